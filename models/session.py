from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import uuid

from core.errors import RemoteUnavailable


class Sender(Enum):
    USER = "user"
    AGENT = "agent"


@dataclass
class ChatMessage:
    """One entry in the session transcript."""
    id: str
    text: str
    sender: Sender
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class UserContextEcho:
    """What the backend says it knew about the user when it answered."""
    user_id: str = ""
    context_injected: bool = False
    user_name: str = ""
    accessibility_needs: bool = False


@dataclass
class ChatTurnResponse:
    response: str
    session_id: str
    events: List[Any] = field(default_factory=list)  # opaque, unused by the client
    user_context: Optional[UserContextEcho] = None

    def to_dict(self) -> dict:
        data = {
            "response": self.response,
            "session_id": self.session_id,
            "events": list(self.events),
        }
        if self.user_context is not None:
            data["user_context"] = {
                "user_id": self.user_context.user_id,
                "context_injected": self.user_context.context_injected,
                "user_name": self.user_context.user_name,
                "accessibility_needs": self.user_context.accessibility_needs,
            }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], session_id: str = "") -> "ChatTurnResponse":
        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise RemoteUnavailable("chat response body has no 'response' text")

        echo = data.get("user_context")
        user_context = None
        if isinstance(echo, dict):
            user_context = UserContextEcho(
                user_id=str(echo.get("user_id") or ""),
                context_injected=bool(echo.get("context_injected", False)),
                user_name=str(echo.get("user_name") or ""),
                accessibility_needs=bool(echo.get("accessibility_needs", False)),
            )

        events = data.get("events")
        return cls(
            response=data["response"],
            session_id=data.get("session_id") or session_id,
            events=events if isinstance(events, list) else [],
            user_context=user_context,
        )


@dataclass
class SessionContext:
    """Identity of one chat session; generated once, never shared globally."""
    session_id: str = field(default_factory=lambda: f"session-{uuid.uuid4().hex[:12]}")
    started_at: datetime = field(default_factory=datetime.now)
