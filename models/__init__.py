"""Inclusive Travel Agent Data Models.

This module contains dataclasses for the profile and chat session state.

Models:
    UserProfile: Durable traveller profile (identity, interests, accessibility, preferences).
    ChatMessage: One transcript entry, sent by the user or the agent.
    ChatTurnResponse: The backend's reply to a chat turn.
    SessionContext: Identifier and start time of one chat session.
"""
from models.profile import (
    UserProfile,
    BasicInfo,
    EmergencyContact,
    TravelInterests,
    AccessibilityProfile,
    ServiceAnimal,
    Preferences,
    TravelStyle,
    BudgetRange,
    CommunicationStyle,
    RiskTolerance,
)
from models.session import (
    Sender,
    ChatMessage,
    ChatTurnResponse,
    UserContextEcho,
    SessionContext,
)

__all__ = [
    "UserProfile",
    "BasicInfo",
    "EmergencyContact",
    "TravelInterests",
    "AccessibilityProfile",
    "ServiceAnimal",
    "Preferences",
    "TravelStyle",
    "BudgetRange",
    "CommunicationStyle",
    "RiskTolerance",
    "Sender",
    "ChatMessage",
    "ChatTurnResponse",
    "UserContextEcho",
    "SessionContext",
]
