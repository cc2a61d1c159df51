"""Profile Merge Engine

Deterministic merge of a partial profile update (a "patch") into a profile.

Policy (shared with the backend's PUT /users/{id}):
    - Shallow per section, deep per field: a section present in the patch only
      overwrites the fields it names; everything else is kept from the base.
    - List, map and record fields are replaced wholesale, never unioned.
    - user_id and created_at are never touched; updated_at is always refreshed
      and strictly increases.
    - Unknown sections and fields are ignored.
"""
import copy
import logging
from datetime import datetime, timedelta, timezone
from dataclasses import fields
from typing import Dict, Any, Optional

from models.profile import UserProfile, PROFILE_SECTIONS, PROFILE_FLAGS, to_wire

logger = logging.getLogger(__name__)

SECTION_FIELDS = {
    name: frozenset(f.name for f in fields(section_cls))
    for name, section_cls in PROFILE_SECTIONS.items()
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_updated_at(previous: str, now: datetime = None) -> str:
    """A timestamp strictly after ``previous``, normally just ``now``."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    last = parse_timestamp(previous)
    if last is not None and now <= last:
        now = last + timedelta(microseconds=1)
    return now.isoformat()


def merge_profile(base: UserProfile, patch: Dict[str, Any], now: datetime = None) -> UserProfile:
    """
    Apply ``patch`` to ``base`` and return the merged profile.

    Args:
        base: Current profile. Never mutated.
        patch: Partial profile in wire shape, e.g.
            {"travel_interests": {"travel_style": ["adventure"]}}.
        now: Clock override (tests).

    Returns:
        A new UserProfile with a refreshed updated_at.
    """
    merged = base.to_dict()
    patch = patch or {}

    for key, value in patch.items():
        if key in SECTION_FIELDS:
            if not isinstance(value, dict):
                logger.warning(f"Ignoring non-object patch for section '{key}'")
                continue
            for field_name, field_value in value.items():
                if field_name in SECTION_FIELDS[key]:
                    merged[key][field_name] = to_wire(field_value)
                else:
                    logger.debug(f"Ignoring unknown field {key}.{field_name}")
        elif key in PROFILE_FLAGS:
            if isinstance(value, bool):
                merged[key] = value
            else:
                logger.warning(f"Ignoring non-boolean value {value!r} for '{key}'")
        else:
            # user_id, created_at, updated_at and anything unknown
            logger.debug(f"Ignoring patch key '{key}'")

    merged["updated_at"] = next_updated_at(base.updated_at, now)
    return UserProfile.from_dict(merged)


def combine_patches(first: Dict[str, Any], second: Dict[str, Any]) -> Dict[str, Any]:
    """
    The single patch equivalent to applying ``first`` then ``second``.

    Fields named by both take ``second``'s value; sections are combined field
    by field, mirroring merge_profile.
    """
    combined = copy.deepcopy(first or {})
    for key, value in (second or {}).items():
        if key in SECTION_FIELDS and isinstance(value, dict) and isinstance(combined.get(key), dict):
            combined[key].update(copy.deepcopy(value))
        else:
            combined[key] = copy.deepcopy(value)
    return combined
