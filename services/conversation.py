"""Conversation Session Manager

One chat session: an append-only transcript, a session identifier generated
once, and a busy flag that keeps chat turns from overlapping.

Every accepted user turn gets exactly one agent reply in the transcript, the
apology message standing in when the turn fails.
"""
import itertools
import logging
from typing import List, Optional

from models.session import ChatMessage, Sender, SessionContext
from services.connectivity import ConnectivityDispatcher
from services.speech import SpeechIOCoordinator
from services.user_session import ProfileHolder

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "I'm sorry, I encountered an error communicating with my services. Please try again."
ASSISTANT_NAME = "Aura"


class ConversationSessionManager:
    """
    Relays chat turns for the active profile and reads replies aloud.

    Attributes:
        context: Session identity (id generated once at construction).
        messages: Transcript in insertion order.
        busy: True while a chat turn is outstanding.
        error: Last turn's failure, cleared when a new turn starts.
        draft: Text dictated through speech recognition, not yet submitted.
    """

    def __init__(self, dispatcher: ConnectivityDispatcher, speech: SpeechIOCoordinator,
                 profiles: ProfileHolder, context: SessionContext = None):
        self.dispatcher = dispatcher
        self.speech = speech
        self.profiles = profiles
        self.context = context or SessionContext()
        self.messages: List[ChatMessage] = []
        self.busy = False
        self.error: Optional[str] = None
        self.draft = ""
        self._ids = itertools.count(1)

        self.speech.on_transcript = self.append_transcript
        self.speech.on_error = self.report_speech_error

    @property
    def session_id(self) -> str:
        return self.context.session_id

    def greeting(self) -> str:
        name = self.profiles.profile.display_name if self.profiles.profile else ""
        return (
            f"Hello {name}! I'm {ASSISTANT_NAME}, your inclusive travel assistant. "
            "How can I help you plan your accessible journey today?"
        )

    def submit(self, text: str) -> Optional[ChatMessage]:
        """
        Send one chat turn. Never raises.

        Returns:
            The agent message appended for this turn, or None when the turn
            was rejected (blank text, no profile, or a turn already running).
        """
        profile = self.profiles.profile
        if not text or not text.strip() or profile is None or self.busy:
            return None

        self._append(text, Sender.USER)
        self.draft = ""
        self.busy = True
        self.error = None

        try:
            try:
                result = self.dispatcher.chat(text, self.session_id, profile.user_id)
                reply = result.value.response
            except Exception as e:
                logger.error(f"Backend chat call failed: {e}")
                self.error = f"Failed to get response: {e}"
                return self._append(APOLOGY_TEXT, Sender.AGENT, prefix="agent-error")

            agent_message = self._append(reply, Sender.AGENT)
            try:
                self.speech.speak(reply)
            except Exception as e:
                logger.error(f"Could not read reply aloud: {e}")
            return agent_message
        finally:
            self.busy = False

    def submit_draft(self) -> Optional[ChatMessage]:
        return self.submit(self.draft)

    def append_transcript(self, transcript: str):
        """Speech recognition result handler: dictate into the draft."""
        self.draft += transcript

    def report_speech_error(self, reason: str):
        """Speech error handler: transient and user-visible."""
        self.error = f"Speech recognition error: {reason}"

    def end(self):
        """Leave the chat view: silence speech and discard the transcript."""
        self.speech.stop_listening()
        self.speech.stop_speaking()
        self.messages = []
        self.draft = ""
        self.error = None

    def _append(self, text: str, sender: Sender, prefix: str = None) -> ChatMessage:
        message = ChatMessage(
            id=f"{prefix or sender.value}-{next(self._ids)}",
            text=text,
            sender=sender,
        )
        self.messages.append(message)
        return message
