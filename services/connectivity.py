"""Connectivity Dispatcher

Wraps every RemoteGateway operation with a remote-or-local decision:

    1. Local-only when the offline fallback flag is set AND the network probe
       reports offline.
    2. Otherwise one remote attempt.
    3. On RemoteUnavailable (or a remote NotFound for fetch/update), the local
       equivalent: LocalProfileStore + merge_profile for profiles, a
       deterministic acknowledgement for chat.
    4. Only a double failure reaches the caller.

Results carry their source so callers can tell remote-confirmed state from
local-only (unsynced) state.
"""
import logging
import socket
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from config.settings import API_BASE_URL, OFFLINE_FALLBACK, LOCAL_CHAT_SIMULATION, PROBE_TIMEOUT
from core.errors import RemoteUnavailable, NotFound, ValidationError
from core.observability import Tracer, metrics
from models.profile import UserProfile
from models.session import ChatTurnResponse, UserContextEcho
from services.profile_store import LocalProfileStore
from services.remote_gateway import RemoteGateway
from tools.profile_merge import merge_profile

logger = logging.getLogger(__name__)


class DataSource(Enum):
    REMOTE = "remote"
    LOCAL = "local"


@dataclass
class DispatchResult:
    value: Any  # UserProfile or ChatTurnResponse
    source: DataSource

    @property
    def synced(self) -> bool:
        """True when the backend confirmed this value."""
        return self.source is DataSource.REMOTE


class NetworkProbe:
    """
    Cheap reachability check: a TCP connect to the backend's host and port.

    Kept apart from RemoteGateway.ping, which is a startup diagnostic only.
    """

    def __init__(self, base_url: str = API_BASE_URL, timeout: float = PROBE_TIMEOUT):
        parsed = urlparse(base_url)
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        self.timeout = timeout

    def __call__(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug(f"Network probe to {self.host}:{self.port} failed: {e}")
            return False


@dataclass
class ConnectivityMode:
    """
    Explicit connectivity configuration.

    Attributes:
        offline_fallback: Opt-in flag allowing the local path to be taken
            without a remote attempt.
        is_online: Network probe consulted only when offline_fallback is set.
    """
    offline_fallback: bool = OFFLINE_FALLBACK
    is_online: Callable[[], bool] = field(default_factory=NetworkProbe)

    @classmethod
    def forced_offline(cls) -> "ConnectivityMode":
        return cls(offline_fallback=True, is_online=lambda: False)

    def skip_remote(self) -> bool:
        return self.offline_fallback and not self.is_online()


class ConnectivityDispatcher:
    """Remote-first access to profiles and chat with local fallback."""

    def __init__(self, gateway: RemoteGateway, store: LocalProfileStore,
                 mode: ConnectivityMode = None, local_chat: bool = LOCAL_CHAT_SIMULATION):
        self.gateway = gateway
        self.store = store
        self.mode = mode or ConnectivityMode()
        self.local_chat = local_chat

    def ping(self) -> bool:
        """Startup diagnostic; has no effect on dispatch decisions."""
        return self.gateway.ping()

    # === Profiles ===

    def create_profile(self, name: str, email: str) -> DispatchResult:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            raise ValidationError("name and email are required")

        if not self.mode.skip_remote():
            try:
                with Tracer("create_profile", email):
                    profile = self.gateway.create_profile(name, email)
                self.store.put(profile.user_id, profile)
                return DispatchResult(profile, DataSource.REMOTE)
            except RemoteUnavailable as e:
                logger.warning(f"API call failed, falling back to local storage: {e}")
        else:
            logger.info("Using local storage fallback (offline mode)")

        metrics.record_fallback("create_profile")
        return DispatchResult(self._create_local(name, email), DataSource.LOCAL)

    def fetch_profile(self, user_id: str) -> DispatchResult:
        if not self.mode.skip_remote():
            try:
                with Tracer("fetch_profile", user_id):
                    profile = self.gateway.fetch_profile(user_id)
                self.store.put(user_id, profile)
                return DispatchResult(profile, DataSource.REMOTE)
            except (RemoteUnavailable, NotFound) as e:
                logger.warning(f"API call failed, falling back to local storage: {e}")

        metrics.record_fallback("fetch_profile")
        return DispatchResult(self._fetch_local(user_id), DataSource.LOCAL)

    def update_profile(self, user_id: str, patch: Dict[str, Any]) -> DispatchResult:
        if not self.mode.skip_remote():
            try:
                with Tracer("update_profile", user_id):
                    profile = self.gateway.update_profile(user_id, patch)
                self.store.put(user_id, profile)
                return DispatchResult(profile, DataSource.REMOTE)
            except (RemoteUnavailable, NotFound) as e:
                logger.warning(f"API call failed, falling back to local storage: {e}")

        metrics.record_fallback("update_profile")
        merged = merge_profile(self._fetch_local(user_id), patch)
        self.store.put(user_id, merged)
        return DispatchResult(merged, DataSource.LOCAL)

    # === Chat ===

    def chat(self, message: str, session_id: str, user_id: str = None) -> DispatchResult:
        if not self.mode.skip_remote():
            try:
                with Tracer("chat", session_id):
                    reply = self.gateway.send_chat_turn(message, session_id, user_id)
                return DispatchResult(reply, DataSource.REMOTE)
            except RemoteUnavailable as e:
                if not self.local_chat:
                    raise
                logger.warning(f"API call failed, falling back to local simulation: {e}")
        elif not self.local_chat:
            raise RemoteUnavailable("offline and local chat simulation is disabled")

        metrics.record_fallback("chat")
        return DispatchResult(self._chat_local(message, session_id, user_id), DataSource.LOCAL)

    # === Local Equivalents ===

    def _create_local(self, name: str, email: str) -> UserProfile:
        now = datetime.now(timezone.utc).isoformat()
        user_id = f"user-{uuid.uuid4().hex[:12]}"
        profile = UserProfile.new(user_id, name, email, now)
        self.store.put(user_id, profile)
        logger.info(f"Created local profile {user_id}")
        return profile

    def _fetch_local(self, user_id: str) -> UserProfile:
        profile = self.store.get(user_id)
        if profile is None:
            raise NotFound(user_id)
        return profile

    def _chat_local(self, message: str, session_id: str, user_id: Optional[str]) -> ChatTurnResponse:
        text = f'I have received your message: "{message}". I am processing your request.'
        user_name = "User"

        profile = self.store.get(user_id) if user_id else None
        if profile is not None and profile.display_name:
            user_name = profile.display_name
            text = (
                f'Hello {user_name}! I\'ve received your message: "{message}". '
                "I am taking your accessibility needs and travel preferences into account "
                "while I find the perfect options for you."
            )

        return ChatTurnResponse(
            response=text,
            session_id=session_id,
            events=[],
            user_context=UserContextEcho(
                user_id=user_id or "",
                context_injected=bool(user_id),
                user_name=user_name,
                accessibility_needs=True,
            ),
        )
