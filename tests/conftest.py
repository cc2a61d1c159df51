"""Shared fixtures: local store, stub gateways and a scripted speech engine."""
from unittest.mock import Mock

import pytest

from core.errors import RemoteUnavailable, RecognitionError
from core.observability import metrics
from services.connectivity import ConnectivityDispatcher, ConnectivityMode
from services.profile_store import LocalProfileStore, InMemoryStorage
from services.remote_gateway import RemoteGateway
from services.speech import SpeechEngine
from services.user_session import ProfileHolder


class FakeSpeechEngine(SpeechEngine):
    """Test double: records calls, lets tests fire platform events by hand."""
    supports_recognition = True
    supports_synthesis = True

    def __init__(self, recognition=True, synthesis=True):
        self.supports_recognition = recognition
        self.supports_synthesis = synthesis
        self.calls = []
        self.recognition_token = None
        self.utterances = {}  # token -> text
        self.fail_next_start = False

    def start_recognition(self, token):
        if self.fail_next_start:
            self.fail_next_start = False
            raise RecognitionError("already started")
        self.calls.append(("start_recognition", token))
        self.recognition_token = token

    def stop_recognition(self):
        self.calls.append(("stop_recognition",))

    def speak(self, token, text):
        self.calls.append(("speak", token, text))
        self.utterances[token] = text

    def cancel_speech(self):
        self.calls.append(("cancel_speech",))

    # Platform events

    def finish(self, text):
        """Fire the end event for the utterance with this text."""
        token = next(t for t, said in self.utterances.items() if said == text)
        self.coordinator.handle_synthesis_end(token)

    def hear(self, text, is_final=True):
        self.coordinator.handle_transcript(self.recognition_token, text, is_final)


def failing_gateway():
    """A RemoteGateway whose every operation raises RemoteUnavailable."""
    gateway = Mock(spec=RemoteGateway)
    error = RemoteUnavailable("connection refused")
    gateway.create_profile.side_effect = error
    gateway.fetch_profile.side_effect = error
    gateway.update_profile.side_effect = error
    gateway.send_chat_turn.side_effect = error
    gateway.ping.return_value = False
    return gateway


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield


@pytest.fixture
def store():
    return LocalProfileStore(InMemoryStorage())


@pytest.fixture
def down_gateway():
    return failing_gateway()


@pytest.fixture
def fallback_dispatcher(down_gateway, store):
    """Remote always fails; every call goes through the local path."""
    return ConnectivityDispatcher(down_gateway, store, ConnectivityMode(offline_fallback=False), local_chat=True)


@pytest.fixture
def offline_dispatcher(down_gateway, store):
    """Forced offline: the gateway is never called."""
    return ConnectivityDispatcher(down_gateway, store, ConnectivityMode.forced_offline(), local_chat=True)


@pytest.fixture
def holder(fallback_dispatcher, store):
    return ProfileHolder(fallback_dispatcher, store)


@pytest.fixture
def engine():
    return FakeSpeechEngine()


@pytest.fixture
def make_engine():
    return FakeSpeechEngine
