"""Mapping utilities for converting persistence rows into the stored plan tree."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Type, TypeVar

from coachplan.domain.entities import (
    IntensityMode,
    PlanStatus,
    StoredDay,
    StoredExercise,
    StoredPlan,
    StoredSet,
    WorkoutCategory,
)
from coachplan.utils import converters

E = TypeVar("E", bound=Enum)


class PlanMappingError(ValueError):
    """Raised when a persistence row cannot be converted to the stored tree."""


@dataclass
class PlanTreeMapper:
    """Translate plan rows and flattened tree rows into stored entities."""

    def plan_from_row(self, row: Mapping[str, Any]) -> StoredPlan:
        if row is None:
            raise PlanMappingError("plan row is required")

        plan_id = converters.to_id(row.get("id"))
        if plan_id is None:
            raise PlanMappingError("plan row is missing its id")

        return StoredPlan(
            id=plan_id,
            trainer_id=converters.to_id(row.get("trainer_id")),
            client_id=converters.to_id(row.get("client_id")),
            title=row.get("title") or "",
            description=row.get("description") or "",
            start_date=converters.to_date(row.get("start_date")),
            end_date=converters.to_date(row.get("end_date")),
            duration_weeks=converters.to_int(row.get("duration_weeks")),
            category=self._to_enum(WorkoutCategory, row.get("category")),
            intensity_mode=self._to_enum(IntensityMode, row.get("intensity_mode")),
            status=self._to_enum(PlanStatus, row.get("status")),
        )

    def days_from_rows(self, plan_id: str, rows: Sequence[Mapping[str, Any]]) -> list[StoredDay]:
        """Fold LEFT JOIN rows (day x exercise x set) into nested stored days.

        Rows are expected in tree order; the order of first appearance is kept.
        """

        days: Dict[str, StoredDay] = {}
        exercises: Dict[str, StoredExercise] = {}

        for row in rows:
            if not isinstance(row, Mapping):
                raise PlanMappingError("tree rows must be mappings")

            day_id = converters.to_id(row.get("day_id"))
            if day_id is None:
                raise PlanMappingError("day_id is required for each tree row")

            day = days.get(day_id)
            if day is None:
                day = self._build_day(plan_id, day_id, row)
                days[day_id] = day

            exercise_id = converters.to_id(row.get("exercise_id"))
            if exercise_id is None:
                continue
            exercise = exercises.get(exercise_id)
            if exercise is None:
                exercise = self._build_exercise(day_id, exercise_id, row)
                exercises[exercise_id] = exercise
                day.exercises.append(exercise)

            set_id = converters.to_id(row.get("set_id"))
            if set_id is None:
                continue
            exercise.sets.append(self._build_set(exercise_id, set_id, row))

        return list(days.values())

    # --- helpers -----------------------------------------------------------------

    def _build_day(self, plan_id: str, day_id: str, row: Mapping[str, Any]) -> StoredDay:
        week_number = converters.to_int(row.get("week_number"))
        day_number = converters.to_int(row.get("day_number"))
        if week_number is None or day_number is None:
            raise PlanMappingError(f"day {day_id} is missing week_number or day_number")
        return StoredDay(
            id=day_id,
            plan_id=plan_id,
            week_number=week_number,
            day_number=day_number,
            day_date=converters.to_date(row.get("day_date")),
            title=row.get("day_title") or "",
        )

    def _build_exercise(self, day_id: str, exercise_id: str, row: Mapping[str, Any]) -> StoredExercise:
        ref_id = converters.to_id(row.get("exercise_ref_id"))
        position = converters.to_int(row.get("position"))
        if ref_id is None or position is None:
            raise PlanMappingError(f"exercise assignment {exercise_id} is missing its reference or position")
        return StoredExercise(
            id=exercise_id,
            day_id=day_id,
            exercise_ref_id=ref_id,
            position=position,
            instructions=row.get("instructions") or "",
            notes=row.get("exercise_notes") or "",
        )

    def _build_set(self, exercise_id: str, set_id: str, row: Mapping[str, Any]) -> StoredSet:
        set_number = converters.to_int(row.get("set_number"))
        if set_number is None:
            raise PlanMappingError(f"set {set_id} is missing its set_number")
        return StoredSet(
            id=set_id,
            exercise_assignment_id=exercise_id,
            set_number=set_number,
            reps=converters.to_int(row.get("reps")),
            weight_kg=converters.to_float(row.get("weight_kg")),
            rest_seconds=converters.to_int(row.get("rest_seconds")),
            intensity_mode=self._to_enum(IntensityMode, row.get("set_intensity_mode")),
            notes=row.get("set_notes") or "",
        )

    @staticmethod
    def _to_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
        if value is None:
            return None
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(str(value).strip().upper())
        except ValueError:
            return None
