"""Inclusive Travel Agent - Console Client

Wires the client together from settings:
- LocalProfileStore (in-memory, or file-backed via TRAVEL_AGENT_STORAGE_PATH)
- RemoteGateway + ConnectivityDispatcher (remote first, local fallback)
- ProfileHolder (resumes the last active user)
- ConversationSessionManager + SpeechIOCoordinator

Commands inside the chat loop:
    exit / quit   leave
    /metrics      print dispatch metrics
    /logout       forget the active user and leave
"""
import logging

from config import describe_settings
from config.settings import API_BASE_URL
from core.observability import get_metrics_summary
from services.connectivity import ConnectivityDispatcher, ConnectivityMode, NetworkProbe
from services.conversation import ConversationSessionManager
from services.profile_store import create_profile_store
from services.remote_gateway import RemoteGateway
from services.speech import SpeechIOCoordinator, NullSpeechEngine
from services.user_session import ProfileHolder

logger = logging.getLogger(__name__)

UNSUPPORTED_SPEECH_NOTICE = "(Voice input and read-aloud are not available in this console.)"


def build_client():
    """Create the profile holder and an unattached chat session from settings."""
    logger.info(f"API Configuration: {describe_settings()}")
    store = create_profile_store()
    mode = ConnectivityMode(is_online=NetworkProbe(API_BASE_URL))
    dispatcher = ConnectivityDispatcher(RemoteGateway(API_BASE_URL), store, mode)
    holder = ProfileHolder(dispatcher, store)
    speech = SpeechIOCoordinator(NullSpeechEngine())
    session = ConversationSessionManager(dispatcher, speech, holder)
    return holder, session


def sign_up(holder: ProfileHolder):
    print("Let's create your traveller profile.")
    while holder.profile is None:
        name = input("Full name: ")
        email = input("Email: ")
        if holder.create_profile(name, email) is None:
            print("Both name and email are required.")


def main():
    print("=== Inclusive Travel Agent ===")
    holder, session = build_client()

    holder.load()
    if holder.profile is None:
        sign_up(holder)
    if not holder.synced:
        print("(Offline: your profile is saved on this device only.)")

    if session.speech.unsupported:
        print(UNSUPPORTED_SPEECH_NOTICE)
    print("\nType 'exit' to quit.\n")
    print(f"{session.greeting()}")

    while True:
        user_input = input("\nYou: ")
        command = user_input.strip().lower()
        if command in ["exit", "quit"]:
            print("Safe travels! Goodbye.")
            break
        if command == "/metrics":
            print(get_metrics_summary())
            continue
        if command == "/logout":
            holder.logout()
            print("Logged out.")
            break

        reply = session.submit(user_input)
        if reply is None:
            continue
        if session.error:
            print(f"[{session.error}]")
        print(f"Aura: {reply.text}")

    session.end()


if __name__ == "__main__":
    main()
