"""Local Profile Store

Key-value cache of profile snapshots used when the backend is unreachable.

This module provides:
1. Storage backends with a browser-storage style API (get/set/remove item)
   - InMemoryStorage: lives as long as the process (session scoped)
   - JsonFileStorage: one JSON file on disk, rewritten on every write
2. LocalProfileStore: namespaced profile records plus the active-user key
   used to resume a session. Pure storage, no merge logic.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from config.settings import DB_USER_PREFIX, ACTIVE_USER_KEY, PROFILE_STORAGE_PATH
from models.profile import UserProfile

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Process-lifetime key-value storage."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)

    def keys(self):
        return list(self._items.keys())


class JsonFileStorage(InMemoryStorage):
    """Key-value storage persisted to a single JSON file."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load_from_disk()

    def set_item(self, key: str, value: str):
        super().set_item(key, value)
        self._save_to_disk()

    def remove_item(self, key: str):
        super().remove_item(key)
        self._save_to_disk()

    def _load_from_disk(self):
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load storage file {self.path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: expected a JSON object")
            return
        self._items = {str(k): str(v) for k, v in data.items()}
        logger.info(f"Loaded {len(self._items)} keys from {self.path}")

    def _save_to_disk(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(self._items, f, indent=2)
        tmp_path.replace(self.path)


class LocalProfileStore:
    """
    Profiles keyed by ``prefix + user_id``, stored as JSON text.

    get() returns None when there is no usable record; the dispatcher turns
    that into NotFound.
    """

    def __init__(self, storage=None, prefix: str = DB_USER_PREFIX,
                 active_user_key: str = ACTIVE_USER_KEY):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.prefix = prefix
        self.active_user_key = active_user_key

    def _key(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def get(self, user_id: str) -> Optional[UserProfile]:
        raw = self.storage.get_item(self._key(user_id))
        if raw is None:
            return None
        try:
            return UserProfile.from_dict(json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt profile record for {user_id}: {e}")
            return None

    def put(self, user_id: str, profile: UserProfile):
        self.storage.set_item(self._key(user_id), json.dumps(profile.to_dict()))
        logger.debug(f"Stored profile {user_id} locally")

    def has(self, user_id: str) -> bool:
        return self.storage.get_item(self._key(user_id)) is not None

    # === Session Resumption ===

    def get_active_user_id(self) -> Optional[str]:
        return self.storage.get_item(self.active_user_key) or None

    def set_active_user_id(self, user_id: str):
        self.storage.set_item(self.active_user_key, user_id)

    def clear_active_user_id(self):
        self.storage.remove_item(self.active_user_key)


def create_profile_store(storage_path: str = PROFILE_STORAGE_PATH) -> LocalProfileStore:
    """Build the store configured by TRAVEL_AGENT_STORAGE_PATH (in-memory when unset)."""
    if storage_path:
        logger.info(f"Using file-backed profile cache at {storage_path}")
        return LocalProfileStore(JsonFileStorage(Path(storage_path)))
    return LocalProfileStore(InMemoryStorage())
