"""Inclusive Travel Agent Configuration Module.

This module exposes environment-driven settings for the client.

Functions:
    describe_settings: Summarize the active configuration for startup logging.
"""
from config import settings


def describe_settings() -> dict:
    """Return the connectivity-relevant settings as a plain dict."""
    return {
        "API_BASE_URL": settings.API_BASE_URL,
        "OFFLINE_FALLBACK": settings.OFFLINE_FALLBACK,
        "LOCAL_CHAT_SIMULATION": settings.LOCAL_CHAT_SIMULATION,
        "REQUEST_TIMEOUT": settings.REQUEST_TIMEOUT,
        "PROFILE_STORAGE_PATH": settings.PROFILE_STORAGE_PATH,
    }


__all__ = ["settings", "describe_settings"]
