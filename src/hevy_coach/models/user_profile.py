"""User profile data models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class ExperienceLevel(str, Enum):
    """Training experience level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


FOCUS_AREAS = [
    "strength",
    "hypertrophy",
    "endurance",
    "powerlifting",
    "bodybuilding",
    "general_fitness",
    "weight_loss",
    "athletic_performance",
    "flexibility",
    "mobility",
]

COMMON_INJURIES = [
    "lower_back",
    "knee",
    "shoulder",
    "wrist",
    "ankle",
    "hip",
    "elbow",
    "neck",
    "hamstring",
    "calf",
]

MIN_AGE_YEARS = 13
MAX_AGE_YEARS = 120


def calculate_age(birth_date: date, today: date | None = None) -> int:
    """Whole years between birth_date and today."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def is_valid_birth_date(birth_date: date, today: date | None = None) -> bool:
    """Check the birth date puts the user between 13 and 120 years old."""
    today = today or date.today()
    return MIN_AGE_YEARS <= calculate_age(birth_date, today) <= MAX_AGE_YEARS


@dataclass
class UserProfile:
    """Training profile, one per user."""

    user_id: str
    age: int | None = None
    birth_date: date | None = None
    weight: float | None = None  # in kg
    training_frequency: int | None = None  # preferred sessions per week
    experience_level: ExperienceLevel | None = None
    focus_areas: list[str] = field(default_factory=list)
    injuries: list[str] = field(default_factory=list)
    injury_details: str | None = None
    other_activities: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def placeholder(cls, user_id: str) -> "UserProfile":
        """Profile created when an account is confirmed, before the user fills it in."""
        return cls(user_id=user_id, training_frequency=3)

    @property
    def effective_age(self) -> int | None:
        if self.age is not None:
            return self.age
        if self.birth_date is not None:
            return calculate_age(self.birth_date)
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and API responses."""
        return {
            "user_id": self.user_id,
            "age": self.age,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "weight": self.weight,
            "training_frequency": self.training_frequency,
            "experience_level": (
                self.experience_level.value if self.experience_level else None
            ),
            "focus_areas": list(self.focus_areas),
            "injuries": list(self.injuries),
            "injury_details": self.injury_details,
            "other_activities": self.other_activities,
        }

    def to_context(self) -> dict:
        """Profile fields included in the generation context."""
        return {
            "age": self.effective_age,
            "weight": self.weight,
            "experience_level": (
                self.experience_level.value if self.experience_level else None
            ),
            "training_frequency": self.training_frequency,
            "focus_areas": list(self.focus_areas),
            "injuries": list(self.injuries),
            "injury_details": self.injury_details,
            "other_activities": self.other_activities,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        id: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> "UserProfile":
        """Create from dictionary."""
        birth_date = data.get("birth_date")
        if isinstance(birth_date, str):
            birth_date = date.fromisoformat(birth_date[:10])
        experience = data.get("experience_level")
        return cls(
            id=id,
            user_id=data["user_id"],
            age=data.get("age"),
            birth_date=birth_date,
            weight=data.get("weight"),
            training_frequency=data.get("training_frequency"),
            experience_level=ExperienceLevel(experience) if experience else None,
            focus_areas=list(data.get("focus_areas") or []),
            injuries=list(data.get("injuries") or []),
            injury_details=data.get("injury_details"),
            other_activities=data.get("other_activities"),
            created_at=created_at,
            updated_at=updated_at,
        )
