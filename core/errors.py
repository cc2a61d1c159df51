"""Error taxonomy for the travel agent client.

RemoteUnavailable and NotFound drive the connectivity fallback; speech errors
are reported as events rather than raised to callers; ValidationError marks
blank required input that never reaches the network.
"""


class TravelAgentError(Exception):
    """Base class for all client-side failures."""


class RemoteUnavailable(TravelAgentError):
    """Network error, non-success status or malformed response body."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NotFound(TravelAgentError):
    """Neither the backend nor the local cache holds the requested record."""

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ValidationError(TravelAgentError):
    """Blank or missing required input."""


class SpeechError(TravelAgentError):
    """Platform speech engine failure."""


class RecognitionError(SpeechError):
    pass


class SynthesisError(SpeechError):
    pass
