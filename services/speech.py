"""Speech I/O Coordinator

State machine over a platform speech engine (recognizer + synthesizer).

States:
    IDLE       nothing active (initial; the machine cycles back here)
    LISTENING  recognition session running
    SPEAKING   an utterance is being synthesized

Listening and speaking are kept mutually exclusive: speaking stops an active
recognition session and listening cancels in-flight speech, so the
microphone never captures our own playback.

The engine reports asynchronously through the coordinator's handle_* methods.
Each recognition session and utterance carries a token; events whose token is
no longer current (superseded or explicitly stopped) are ignored.
"""
import itertools
import logging
from enum import Enum
from typing import Callable, Optional

from core.errors import RecognitionError, SynthesisError

logger = logging.getLogger(__name__)


class SpeechState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"


class SpeechEngine:
    """
    Capability interface for a platform speech backend.

    Implementations call back into the attached coordinator:
        handle_transcript(token, text, is_final)
        handle_recognition_error(token, reason)
        handle_recognition_end(token)
        handle_synthesis_end(token)
        handle_synthesis_error(token, reason)
    start_recognition/speak may raise RecognitionError/SynthesisError when the
    platform refuses to start.
    """
    supports_recognition = False
    supports_synthesis = False

    def attach(self, coordinator: "SpeechIOCoordinator"):
        self.coordinator = coordinator

    def start_recognition(self, token: int):
        raise NotImplementedError

    def stop_recognition(self):
        raise NotImplementedError

    def speak(self, token: int, text: str):
        raise NotImplementedError

    def cancel_speech(self):
        raise NotImplementedError


class NullSpeechEngine(SpeechEngine):
    """Engine for hosts without speech support; the coordinator never calls it."""

    def start_recognition(self, token: int):
        pass

    def stop_recognition(self):
        pass

    def speak(self, token: int, text: str):
        pass

    def cancel_speech(self):
        pass


def _ignore(*args):
    pass


class SpeechIOCoordinator:
    """Owns the Idle/Listening/Speaking state and emits transcript, error and completion events."""

    def __init__(self, engine: SpeechEngine = None,
                 on_transcript: Callable[[str], None] = None,
                 on_error: Callable[[str], None] = None,
                 on_speak_end: Callable[[], None] = None):
        self.engine = engine or NullSpeechEngine()
        self.on_transcript = on_transcript or _ignore
        self.on_error = on_error or _ignore
        self.on_speak_end = on_speak_end or _ignore

        self.state = SpeechState.IDLE
        self._tokens = itertools.count(1)
        self._listen_token: Optional[int] = None
        self._speak_token: Optional[int] = None

        # One-time capability probe
        self.can_listen = bool(self.engine.supports_recognition)
        self.can_speak = bool(self.engine.supports_synthesis)
        self.unsupported = not (self.can_listen and self.can_speak)
        if self.unsupported:
            logger.warning("Speech recognition or synthesis is not supported on this host")

        self.engine.attach(self)

    @property
    def is_listening(self) -> bool:
        return self.state is SpeechState.LISTENING

    @property
    def is_speaking(self) -> bool:
        return self.state is SpeechState.SPEAKING

    # === Recognition ===

    def start_listening(self):
        if not self.can_listen or self.is_listening:
            return
        if self.is_speaking:
            self._cancel_speech()

        token = next(self._tokens)
        try:
            self.engine.start_recognition(token)
        except RecognitionError as e:
            logger.error(f"Speech recognition start error: {e}")
            self.on_error("Could not start recognition. It might already be active.")
            return

        self._listen_token = token
        self.state = SpeechState.LISTENING

    def stop_listening(self):
        if not self.is_listening:
            return
        self._listen_token = None
        self.state = SpeechState.IDLE
        self.engine.stop_recognition()

    def toggle_listening(self):
        if self.is_listening:
            self.stop_listening()
        else:
            self.start_listening()

    def handle_transcript(self, token: int, text: str, is_final: bool = True):
        if token != self._listen_token or not is_final or not text:
            return
        # Push-to-talk: one final transcript ends the session.
        self.stop_listening()
        self.on_transcript(text)

    def handle_recognition_error(self, token: int, reason: str):
        if token != self._listen_token:
            return
        logger.warning(f"Speech recognition error: {reason}")
        self._listen_token = None
        self.state = SpeechState.IDLE
        self.on_error(reason)

    def handle_recognition_end(self, token: int):
        """The platform ended the session on its own (silence, timeout)."""
        if token != self._listen_token:
            return
        self._listen_token = None
        self.state = SpeechState.IDLE

    # === Synthesis ===

    def speak(self, text: str):
        if not self.can_speak or not text or not text.strip():
            return
        if self.is_listening:
            self.stop_listening()
        # A new utterance always preempts the previous one.
        self._cancel_speech()

        token = next(self._tokens)
        self._speak_token = token
        self.state = SpeechState.SPEAKING
        try:
            self.engine.speak(token, text)
        except SynthesisError as e:
            self.handle_synthesis_error(token, str(e))

    def stop_speaking(self):
        if not self.can_speak:
            return
        self._cancel_speech()

    def handle_synthesis_end(self, token: int):
        if token != self._speak_token:
            return
        self._speak_token = None
        self.state = SpeechState.IDLE
        self.on_speak_end()

    def handle_synthesis_error(self, token: int, reason: str):
        if token != self._speak_token:
            return
        logger.error(f"Speech synthesis error: {reason}")
        self._speak_token = None
        self.state = SpeechState.IDLE

    def _cancel_speech(self):
        was_speaking = self._speak_token is not None
        self._speak_token = None
        if self.is_speaking:
            self.state = SpeechState.IDLE
        if was_speaking:
            self.engine.cancel_speech()
