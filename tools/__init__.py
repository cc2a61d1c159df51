"""Deterministic profile tools.

Tools:
    merge_profile: Apply a partial update to a profile (shallow per section, deep per field).
    combine_patches: Fold two sequential patches into one.
    ProfilePatchBuilder: Build a patch containing only the fields that changed.
"""
from tools.profile_merge import merge_profile, combine_patches
from tools.patch_builder import ProfilePatchBuilder

__all__ = [
    "merge_profile",
    "combine_patches",
    "ProfilePatchBuilder",
]
