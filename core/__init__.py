"""Core infrastructure: error taxonomy and observability."""
from core.errors import (
    TravelAgentError,
    RemoteUnavailable,
    NotFound,
    ValidationError,
    SpeechError,
    RecognitionError,
    SynthesisError,
)

__all__ = [
    "TravelAgentError",
    "RemoteUnavailable",
    "NotFound",
    "ValidationError",
    "SpeechError",
    "RecognitionError",
    "SynthesisError",
]
