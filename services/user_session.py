"""Session-level profile owner.

Holds the active traveller's profile for the lifetime of the client:
resumes it from the local active-user key on startup, creates it at sign-up,
and applies edits optimistically before the dispatcher confirms them.
"""
import logging
from typing import Any, Callable, Dict, Optional, Union

from core.errors import NotFound, ValidationError
from models.profile import UserProfile
from services.connectivity import ConnectivityDispatcher
from services.profile_store import LocalProfileStore
from tools.profile_merge import merge_profile

logger = logging.getLogger(__name__)

PatchSource = Union[Dict[str, Any], Callable[[UserProfile], Dict[str, Any]]]


class ProfileHolder:
    """Current profile plus the state the UI gates navigation on."""

    def __init__(self, dispatcher: ConnectivityDispatcher, store: LocalProfileStore):
        self.dispatcher = dispatcher
        self.store = store
        self.profile: Optional[UserProfile] = None
        self.synced = False
        self.loading = True

    @property
    def user_id(self) -> Optional[str]:
        return self.profile.user_id if self.profile else None

    @property
    def needs_onboarding(self) -> bool:
        return self.profile is not None and not self.profile.onboarding_completed

    def load(self) -> Optional[UserProfile]:
        """Resume the last active user, if any. A vanished profile logs out."""
        self.loading = True
        try:
            self.dispatcher.ping()

            user_id = self.store.get_active_user_id()
            if user_id:
                try:
                    result = self.dispatcher.fetch_profile(user_id)
                    self.profile, self.synced = result.value, result.synced
                except NotFound as e:
                    logger.error(f"Failed to fetch user profile, logging out. {e}")
                    self.logout()
            return self.profile
        finally:
            self.loading = False

    def create_profile(self, name: str, email: str) -> Optional[UserProfile]:
        try:
            result = self.dispatcher.create_profile(name, email)
        except ValidationError as e:
            logger.debug(f"Sign-up rejected: {e}")
            return None

        self.store.set_active_user_id(result.value.user_id)
        self.profile, self.synced = result.value, result.synced
        logger.info(f"Active user is now {self.profile.user_id} (synced={self.synced})")
        return self.profile

    def update_profile(self, patch: PatchSource) -> Optional[UserProfile]:
        """
        Apply a patch (or a function of the current profile returning one).

        The merged state is visible immediately; it is then replaced by the
        dispatcher's authoritative result. If no record exists anywhere the
        optimistic change is reverted.
        """
        if self.profile is None:
            return None

        previous, previous_synced = self.profile, self.synced
        patch = patch(previous) if callable(patch) else patch
        self.profile = merge_profile(previous, patch)

        try:
            result = self.dispatcher.update_profile(previous.user_id, patch)
        except NotFound as e:
            logger.error(f"Failed to update profile: {e}")
            self.profile, self.synced = previous, previous_synced
            return None

        self.profile, self.synced = result.value, result.synced
        return self.profile

    def logout(self):
        self.store.clear_active_user_id()
        self.profile = None
        self.synced = False
