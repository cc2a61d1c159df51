"""Tests for the profile merge engine and the patch builder."""
from datetime import datetime, timezone, timedelta

import pytest

from models.profile import (
    UserProfile,
    TravelStyle,
    BudgetRange,
    ServiceAnimal,
    CommunicationStyle,
)
from tools.profile_merge import merge_profile, combine_patches, next_updated_at, parse_timestamp
from tools.patch_builder import ProfilePatchBuilder

CREATED = "2024-05-01T10:00:00+00:00"
NOW = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def profile():
    p = UserProfile.new("user-123", "Jane", "jane@x.com", CREATED)
    p.travel_interests.travel_style = [TravelStyle.CULTURAL, TravelStyle.RELAXATION]
    p.travel_interests.preferred_destinations = ["Lisbon", "Kyoto"]
    p.accessibility_profile.mobility_needs = ["wheelchair access"]
    p.accessibility_profile.assistance_preferences = {"airport": "meet at curb"}
    return p


class TestMergePolicy:
    """Shallow per section, deep per field."""

    def test_empty_patch_only_refreshes_updated_at(self, profile):
        """An empty patch changes nothing but updated_at."""
        merged = merge_profile(profile, {}, now=NOW)
        expected = profile.to_dict()
        expected["updated_at"] = NOW.isoformat()
        assert merged.to_dict() == expected

    def test_section_fields_not_in_patch_are_kept(self, profile):
        """Untouched fields in a patched section survive."""
        merged = merge_profile(profile, {"basic_info": {"age": 34}}, now=NOW)
        assert merged.basic_info.age == 34
        assert merged.basic_info.name == "Jane"
        assert merged.basic_info.email == "jane@x.com"

    def test_list_is_replaced_not_unioned(self, profile):
        """List fields are replaced wholesale."""
        merged = merge_profile(profile, {"travel_interests": {"travel_style": ["adventure"]}}, now=NOW)
        assert merged.travel_interests.travel_style == [TravelStyle.ADVENTURE]
        assert merged.travel_interests.preferred_destinations == ["Lisbon", "Kyoto"]

    def test_map_field_is_replaced_wholesale(self, profile):
        """Map fields are replaced, not merged key by key."""
        patch = {"accessibility_profile": {"assistance_preferences": {"hotel": "ground floor"}}}
        merged = merge_profile(profile, patch, now=NOW)
        assert merged.accessibility_profile.assistance_preferences == {"hotel": "ground floor"}

    def test_service_animal_set_and_cleared(self, profile):
        """The service animal record can be set and cleared."""
        animal = {"type": "Guide Dog", "name": "Rex", "documentation": True}
        with_animal = merge_profile(profile, {"accessibility_profile": {"service_animal": animal}}, now=NOW)
        assert with_animal.accessibility_profile.service_animal == ServiceAnimal("Guide Dog", "Rex", True)

        cleared = merge_profile(with_animal, {"accessibility_profile": {"service_animal": None}}, now=NOW)
        assert cleared.accessibility_profile.service_animal is None

    def test_top_level_flags_overwrite(self, profile):
        """Completion flags are overwritten directly."""
        merged = merge_profile(profile, {"onboarding_completed": True, "profile_complete": True}, now=NOW)
        assert merged.onboarding_completed is True
        assert merged.profile_complete is True

    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_non_boolean_flags_are_ignored(self, profile, value):
        """Only real booleans change the completion flags."""
        merged = merge_profile(profile, {"onboarding_completed": value}, now=NOW)
        assert merged.onboarding_completed is False

    def test_string_flags_in_records_read_as_false(self, profile):
        """A stored "false" string does not turn into True."""
        record = profile.to_dict()
        record["profile_complete"] = "false"
        record["onboarding_completed"] = True
        loaded = UserProfile.from_dict(record)
        assert loaded.profile_complete is False
        assert loaded.onboarding_completed is True

    def test_unknown_sections_and_fields_are_ignored(self, profile):
        """Unknown keys are dropped."""
        patch = {"loyalty": {"tier": "gold"}, "preferences": {"seat": "aisle", "currency_preference": "EUR"}}
        merged = merge_profile(profile, patch, now=NOW)
        assert merged.preferences.currency_preference == "EUR"
        assert "loyalty" not in merged.to_dict()
        assert "seat" not in merged.to_dict()["preferences"]

    def test_base_is_not_mutated(self, profile):
        """Merging is pure."""
        before = profile.to_dict()
        merge_profile(profile, {"travel_interests": {"travel_style": ["solo"]}}, now=NOW)
        assert profile.to_dict() == before


class TestImmutableIdentity:
    """user_id and created_at survive any patch."""

    @pytest.mark.parametrize("patch", [
        {},
        {"user_id": "someone-else"},
        {"created_at": "1999-01-01T00:00:00+00:00"},
        {"user_id": "x", "created_at": "y", "basic_info": {"name": "Joan"}},
    ])
    def test_identity_never_changes(self, profile, patch):
        """user_id and created_at cannot be patched."""
        merged = merge_profile(profile, patch, now=NOW)
        assert merged.user_id == profile.user_id
        assert merged.created_at == profile.created_at

    def test_patch_cannot_set_updated_at(self, profile):
        """updated_at always comes from the clock."""
        merged = merge_profile(profile, {"updated_at": "2000-01-01T00:00:00+00:00"}, now=NOW)
        assert merged.updated_at == NOW.isoformat()


class TestUpdatedAt:
    """updated_at strictly increases on every merge."""

    def test_strictly_increases_when_clock_stalls(self, profile):
        """Same clock reading still advances updated_at."""
        first = merge_profile(profile, {}, now=NOW)
        second = merge_profile(first, {}, now=NOW)
        assert parse_timestamp(second.updated_at) > parse_timestamp(first.updated_at)

    def test_clock_behind_previous_value(self):
        """A clock behind the stored value bumps by one microsecond."""
        previous = "2030-01-01T00:00:00+00:00"
        bumped = next_updated_at(previous, now=NOW)
        assert bumped == (datetime(2030, 1, 1, tzinfo=timezone.utc) + timedelta(microseconds=1)).isoformat()

    def test_accepts_zulu_suffix(self):
        """Timestamps ending in Z are parsed as UTC."""
        assert next_updated_at("2024-05-01T10:00:00Z", now=NOW) == NOW.isoformat()


class TestLastWriterWins:
    """merge(merge(P, A), B) == merge(P, combine(A, B)) field by field."""

    def test_sequential_equals_combined(self, profile):
        """Two merges equal one merge of the combined patch."""
        a = {
            "basic_info": {"name": "Janet", "age": 30},
            "travel_interests": {"travel_style": ["family"], "budget_range": "luxury"},
        }
        b = {
            "basic_info": {"age": 31},
            "travel_interests": {"travel_style": ["accessible"]},
            "preferences": {"communication_style": "brief"},
            "profile_complete": True,
        }
        sequential = merge_profile(merge_profile(profile, a, now=NOW), b, now=NOW)
        combined = merge_profile(profile, combine_patches(a, b), now=NOW)

        seq, comb = sequential.to_dict(), combined.to_dict()
        seq.pop("updated_at")
        comb.pop("updated_at")
        assert seq == comb
        assert sequential.basic_info.name == "Janet"
        assert sequential.basic_info.age == 31
        assert sequential.travel_interests.budget_range == BudgetRange.LUXURY
        assert sequential.preferences.communication_style == CommunicationStyle.BRIEF

    def test_combine_does_not_mutate_inputs(self):
        """Combining patches copies its inputs."""
        a = {"basic_info": {"name": "A"}}
        b = {"basic_info": {"email": "b@x.com"}}
        combine_patches(a, b)
        assert a == {"basic_info": {"name": "A"}}


class TestProfilePatchBuilder:
    """Patches name only what changed."""

    def test_only_changed_fields_are_included(self, profile):
        """Unchanged values are left out of the patch."""
        builder = ProfilePatchBuilder(profile)
        builder.set("basic_info.name", "Jane")  # unchanged
        builder.set("basic_info.home_location", "Porto")
        builder.set("travel_interests.travel_style", [TravelStyle.ADVENTURE])
        assert builder.build() == {
            "basic_info": {"home_location": "Porto"},
            "travel_interests": {"travel_style": ["adventure"]},
        }

    def test_reverting_an_edit_drops_it(self, profile):
        """Setting a field back to its base value removes it."""
        builder = ProfilePatchBuilder(profile)
        builder.set("basic_info.nationality", "Portuguese")
        builder.set("basic_info.nationality", "")
        assert builder.is_empty

    def test_service_animal_record_is_serialized(self, profile):
        """Records are serialized to wire dicts."""
        builder = ProfilePatchBuilder(profile)
        builder.set("accessibility_profile.service_animal", ServiceAnimal("Guide Dog", "Rex", True))
        assert builder.build() == {
            "accessibility_profile": {
                "service_animal": {"type": "Guide Dog", "name": "Rex", "documentation": True}
            }
        }

    def test_mark_onboarding_complete(self, profile):
        """Onboarding completion sets both flags."""
        patch = ProfilePatchBuilder(profile).mark_onboarding_complete().build()
        assert patch == {"onboarding_completed": True, "profile_complete": True}

    def test_unknown_path_raises(self, profile):
        """Only known section fields can be set."""
        with pytest.raises(ValueError):
            ProfilePatchBuilder(profile).set("basic_info.shoe_size", 42)
        with pytest.raises(ValueError):
            ProfilePatchBuilder(profile).set("user_id", "x")

    def test_build_returns_a_copy(self):
        """Mutating a built patch does not affect the builder."""
        builder = ProfilePatchBuilder()
        builder.set("accessibility_profile.mobility_aids", ["white cane"])
        patch = builder.build()
        patch["accessibility_profile"]["mobility_aids"].append("walker")
        assert builder.build() == {"accessibility_profile": {"mobility_aids": ["white cane"]}}

    def test_builder_patch_round_trips_through_merge(self, profile):
        """A built patch merges into the expected profile."""
        builder = ProfilePatchBuilder(profile)
        builder.set("accessibility_profile.mobility_aids", ["power wheelchair"])
        merged = merge_profile(profile, builder.build(), now=NOW)
        assert merged.accessibility_profile.mobility_aids == ["power wheelchair"]
        assert merged.accessibility_profile.mobility_needs == ["wheelchair access"]
