"""Domain entities for workout plans: the canonical submission and the persisted tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from coachplan.domain.identity import DayKey, ExerciseKey, SetKey


class WorkoutCategory(str, Enum):
    HYPERTROPHY = "HYPERTROPHY"
    STRENGTH = "STRENGTH"
    DELOAD = "DELOAD"
    RELOAD = "RELOAD"
    ENDURANCE = "ENDURANCE"


class IntensityMode(str, Enum):
    """How a set's weight is prescribed: absolute kilograms or percent of 1RM."""

    ABSOLUTE = "ABSOLUTE"
    PERCENT = "PERCENT"


class PlanStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class WeightUnit(str, Enum):
    KG = "KG"
    LB = "LB"


class BodyPart(str, Enum):
    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    LEGS = "legs"
    QUADS = "quads"
    HAMSTRINGS = "hamstrings"
    CALVES = "calves"
    CORE = "core"
    FULLBODY = "fullbody"
    CARDIO = "cardio"


# ---------------------------------------------------------------------------
# Canonical incoming tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlanMeta:
    """Plan-level fields written by the top-level update step."""

    title: str
    description: str
    start_date: date
    end_date: date
    duration_weeks: int
    category: WorkoutCategory
    intensity_mode: IntensityMode
    status: PlanStatus


@dataclass(frozen=True)
class SetPrescription:
    set_number: int
    reps: Optional[int]
    weight_kg: Optional[float]
    rest_seconds: Optional[int]
    intensity_mode: IntensityMode
    notes: str = ""

    @property
    def key(self) -> SetKey:
        return SetKey(self.set_number)


@dataclass(frozen=True)
class ExerciseAssignment:
    exercise_ref_id: str
    position: int
    instructions: str = ""
    notes: str = ""
    sets: tuple[SetPrescription, ...] = ()

    @property
    def key(self) -> ExerciseKey:
        return ExerciseKey(self.exercise_ref_id, self.position)

    @property
    def children(self) -> tuple[SetPrescription, ...]:
        return self.sets


@dataclass(frozen=True)
class PlannedDay:
    week_number: int
    day_number: int
    day_date: date
    title: str
    exercises: tuple[ExerciseAssignment, ...] = ()

    @property
    def key(self) -> DayKey:
        return DayKey(self.week_number, self.day_number)

    @property
    def children(self) -> tuple[ExerciseAssignment, ...]:
        return self.exercises


@dataclass(frozen=True)
class CanonicalPlan:
    """Normalized submission: definitive dates, positions and kilogram weights."""

    plan_id: str
    meta: PlanMeta
    days: tuple[PlannedDay, ...]


# ---------------------------------------------------------------------------
# Persisted tree
# ---------------------------------------------------------------------------


@dataclass
class StoredSet:
    id: str
    exercise_assignment_id: str
    set_number: int
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    rest_seconds: Optional[int] = None
    intensity_mode: Optional[IntensityMode] = None
    notes: str = ""

    @property
    def key(self) -> SetKey:
        return SetKey(self.set_number)

    @property
    def children(self) -> list:
        return []


@dataclass
class StoredExercise:
    id: str
    day_id: str
    exercise_ref_id: str
    position: int
    instructions: str = ""
    notes: str = ""
    sets: list[StoredSet] = field(default_factory=list)

    @property
    def key(self) -> ExerciseKey:
        return ExerciseKey(self.exercise_ref_id, self.position)

    @property
    def children(self) -> list[StoredSet]:
        return self.sets


@dataclass
class StoredDay:
    id: str
    plan_id: str
    week_number: int
    day_number: int
    day_date: Optional[date] = None
    title: str = ""
    exercises: list[StoredExercise] = field(default_factory=list)

    @property
    def key(self) -> DayKey:
        return DayKey(self.week_number, self.day_number)

    @property
    def children(self) -> list[StoredExercise]:
        return self.exercises


@dataclass
class StoredPlan:
    """Persisted plan header plus, once loaded, its day tree."""

    id: str
    trainer_id: Optional[str]
    client_id: Optional[str]
    title: str
    description: str
    start_date: Optional[date]
    end_date: Optional[date]
    duration_weeks: Optional[int]
    category: Optional[WorkoutCategory]
    intensity_mode: Optional[IntensityMode]
    status: Optional[PlanStatus]
    days: list[StoredDay] = field(default_factory=list)

    def meta(self) -> Optional[PlanMeta]:
        """Return the header as :class:`PlanMeta`, or ``None`` if incomplete."""
        if self.start_date is None or self.end_date is None or self.duration_weeks is None:
            return None
        if self.category is None or self.intensity_mode is None or self.status is None:
            return None
        return PlanMeta(
            title=self.title,
            description=self.description,
            start_date=self.start_date,
            end_date=self.end_date,
            duration_weeks=self.duration_weeks,
            category=self.category,
            intensity_mode=self.intensity_mode,
            status=self.status,
        )
