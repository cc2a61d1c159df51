"""User profile data model.

The profile is the durable record of who the traveller is: identity, travel
interests, accessibility needs and communication preferences. ``to_dict``
produces the JSON wire shape shared by the backend and the local cache;
``from_dict`` is lenient so newer servers can add fields without breaking us.
"""
import copy
import logging
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields, asdict, is_dataclass
from enum import Enum

from config.settings import DEFAULT_TIMEZONE, DEFAULT_LANGUAGE, DEFAULT_CURRENCY

logger = logging.getLogger(__name__)


class TravelStyle(str, Enum):
    CULTURAL = "cultural"
    ADVENTURE = "adventure"
    RELAXATION = "relaxation"
    BUSINESS = "business"
    FAMILY = "family"
    SOLO = "solo"
    ACCESSIBLE = "accessible"


class BudgetRange(str, Enum):
    BUDGET = "budget"
    MID_RANGE = "mid-range"
    LUXURY = "luxury"
    FLEXIBLE = "flexible"


class CommunicationStyle(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"
    CONVERSATIONAL = "conversational"
    PROFESSIONAL = "professional"


class RiskTolerance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _coerce_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}, using {default.value!r}")
        return default


def _coerce_enum_list(enum_cls, values) -> list:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        logger.warning(f"Expected a list of {enum_cls.__name__} values, got {values!r}")
        return []
    result = []
    for value in values:
        try:
            result.append(enum_cls(value))
        except ValueError:
            logger.warning(f"Dropping unknown {enum_cls.__name__} value {value!r}")
    return result


def _flag(value, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is not None:
        logger.warning(f"Ignoring non-boolean {name} value {value!r}")
    return False


def _known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are fields of the dataclass ``cls``."""
    if not isinstance(data, dict):
        return {}
    names = {f.name for f in fields(cls)}
    return {k: copy.deepcopy(v) for k, v in data.items() if k in names}


def to_wire(value):
    """Convert enum members and nested records to plain JSON values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return to_wire(asdict(value))
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    return value


@dataclass
class EmergencyContact:
    name: str = ""
    phone: str = ""
    relationship: str = ""


@dataclass
class ServiceAnimal:
    type: str = ""
    name: str = ""
    documentation: bool = False


@dataclass
class BasicInfo:
    """Identity and contact details."""
    name: str = ""
    email: str = ""
    age: Optional[int] = None
    nationality: str = ""
    home_location: str = ""
    phone: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BasicInfo":
        values = _known(cls, data)
        contact = values.get("emergency_contact")
        if isinstance(contact, dict):
            values["emergency_contact"] = EmergencyContact(**_known(EmergencyContact, contact))
        elif contact is not None:
            values["emergency_contact"] = None
        return cls(**values)


@dataclass
class TravelInterests:
    preferred_destinations: List[str] = field(default_factory=list)
    travel_style: List[TravelStyle] = field(default_factory=list)
    budget_range: BudgetRange = BudgetRange.MID_RANGE
    group_size_preference: str = ""
    accommodation_preferences: List[str] = field(default_factory=list)
    activity_interests: List[str] = field(default_factory=list)
    transportation_preferences: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TravelInterests":
        values = _known(cls, data)
        if "travel_style" in values:
            values["travel_style"] = _coerce_enum_list(TravelStyle, values["travel_style"])
        if "budget_range" in values:
            values["budget_range"] = _coerce_enum(BudgetRange, values["budget_range"], BudgetRange.MID_RANGE)
        return cls(**values)


@dataclass
class AccessibilityProfile:
    """Accessibility needs. All lists are free-form labels chosen by the user."""
    mobility_needs: List[str] = field(default_factory=list)
    sensory_needs: List[str] = field(default_factory=list)
    cognitive_needs: List[str] = field(default_factory=list)
    assistance_preferences: Dict[str, str] = field(default_factory=dict)
    mobility_aids: List[str] = field(default_factory=list)
    medical_conditions: List[str] = field(default_factory=list)
    accessibility_priorities: List[str] = field(default_factory=list)
    barrier_concerns: List[str] = field(default_factory=list)
    dietary_restrictions: List[str] = field(default_factory=list)
    medication_requirements: List[str] = field(default_factory=list)
    service_animal: Optional[ServiceAnimal] = None
    communication_needs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessibilityProfile":
        values = _known(cls, data)
        animal = values.get("service_animal")
        if isinstance(animal, dict):
            values["service_animal"] = ServiceAnimal(**_known(ServiceAnimal, animal))
        elif animal is not None:
            values["service_animal"] = None
        return cls(**values)


@dataclass
class Preferences:
    communication_style: CommunicationStyle = CommunicationStyle.CONVERSATIONAL
    risk_tolerance: RiskTolerance = RiskTolerance.MEDIUM
    planning_horizon: str = ""
    language_preferences: List[str] = field(default_factory=lambda: [DEFAULT_LANGUAGE])
    currency_preference: str = DEFAULT_CURRENCY
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        values = _known(cls, data)
        if "communication_style" in values:
            values["communication_style"] = _coerce_enum(
                CommunicationStyle, values["communication_style"], CommunicationStyle.CONVERSATIONAL
            )
        if "risk_tolerance" in values:
            values["risk_tolerance"] = _coerce_enum(RiskTolerance, values["risk_tolerance"], RiskTolerance.MEDIUM)
        return cls(**values)


# Nested sections, in wire order, and the dataclass that models each one.
PROFILE_SECTIONS = {
    "basic_info": BasicInfo,
    "travel_interests": TravelInterests,
    "accessibility_profile": AccessibilityProfile,
    "preferences": Preferences,
}

# Top-level fields a patch may overwrite directly.
PROFILE_FLAGS = ("profile_complete", "onboarding_completed")


@dataclass
class UserProfile:
    """Long-term memory: who the traveller is and what they need."""
    user_id: str
    basic_info: BasicInfo = field(default_factory=BasicInfo)
    travel_interests: TravelInterests = field(default_factory=TravelInterests)
    accessibility_profile: AccessibilityProfile = field(default_factory=AccessibilityProfile)
    preferences: Preferences = field(default_factory=Preferences)
    created_at: str = ""
    updated_at: str = ""
    profile_complete: bool = False
    onboarding_completed: bool = False

    @property
    def display_name(self) -> str:
        return self.basic_info.name

    @classmethod
    def new(cls, user_id: str, name: str, email: str, now: str) -> "UserProfile":
        """A fresh profile with every section at its default."""
        return cls(
            user_id=user_id,
            basic_info=BasicInfo(name=name, email=email),
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        return to_wire(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        if not isinstance(data, dict) or not data.get("user_id"):
            raise ValueError("profile record has no user_id")

        sections = {
            name: section_cls.from_dict(data.get(name) or {})
            for name, section_cls in PROFILE_SECTIONS.items()
        }
        return cls(
            user_id=str(data["user_id"]),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
            profile_complete=_flag(data.get("profile_complete"), "profile_complete"),
            onboarding_completed=_flag(data.get("onboarding_completed"), "onboarding_completed"),
            **sections,
        )
