"""Explicit partial-update builder.

Form handlers record individual field edits here instead of cloning and
mutating a whole profile, so the patch sent to the dispatcher names only
what actually changed.
"""
import copy
from typing import Dict, Any, Optional

from models.profile import UserProfile, PROFILE_FLAGS, to_wire
from tools.profile_merge import SECTION_FIELDS


class ProfilePatchBuilder:
    """Accumulates field edits as a wire-shaped patch.

    Example:
        builder = ProfilePatchBuilder(profile)
        builder.set("travel_interests.travel_style", ["accessible", "cultural"])
        builder.set("accessibility_profile.service_animal", {"type": "Guide Dog", "name": "Rex", "documentation": True})
        builder.mark_onboarding_complete()
        holder.update_profile(builder.build())
    """

    def __init__(self, base: Optional[UserProfile] = None):
        self._base = base.to_dict() if base is not None else None
        self._patch: Dict[str, Any] = {}

    def set(self, path: str, value: Any) -> "ProfilePatchBuilder":
        section, _, field_name = path.partition(".")

        if not field_name:
            if section not in PROFILE_FLAGS:
                raise ValueError(f"Unknown profile field: {path}")
            if self._base is None or self._base.get(section) != value:
                self._patch[section] = bool(value)
            else:
                self._patch.pop(section, None)
            return self

        if section not in SECTION_FIELDS or field_name not in SECTION_FIELDS[section]:
            raise ValueError(f"Unknown profile field: {path}")

        value = to_wire(value)
        unchanged = self._base is not None and self._base[section].get(field_name) == value
        if unchanged:
            # An earlier edit may have been undone.
            self._patch.get(section, {}).pop(field_name, None)
            if section in self._patch and not self._patch[section]:
                del self._patch[section]
        else:
            self._patch.setdefault(section, {})[field_name] = copy.deepcopy(value)
        return self

    def mark_onboarding_complete(self) -> "ProfilePatchBuilder":
        self.set("onboarding_completed", True)
        self.set("profile_complete", True)
        return self

    @property
    def is_empty(self) -> bool:
        return not self._patch

    def build(self) -> Dict[str, Any]:
        return copy.deepcopy(self._patch)

