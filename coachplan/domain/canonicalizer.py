"""Turn a validated submission into the canonical incoming plan tree.

Dates are always recomputed here from the week-aligned start anchor and
never taken from the client. Pure functions only, no I/O.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Optional

from coachplan.domain.entities import (
    CanonicalPlan,
    ExerciseAssignment,
    IntensityMode,
    PlanMeta,
    PlannedDay,
    SetPrescription,
    WeightUnit,
)
from coachplan.utils import converters

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from coachplan.application.schemas import ExerciseInput, ReconcileRequest, SetInput

MONDAY = 1


def week_anchor(start: date, week_start_weekday: int = MONDAY) -> date:
    """Return the first day of the week containing ``start``."""
    offset = (start.isoweekday() - week_start_weekday) % 7
    return start - timedelta(days=offset)


def day_date(anchor: date, week_number: int, day_number: int) -> date:
    return anchor + timedelta(days=(week_number - 1) * 7 + (day_number - 1))


def plan_end_date(anchor: date, duration_weeks: int) -> date:
    return anchor + timedelta(days=duration_weeks * 7 - 1)


def prescribed_weight_kg(
    raw: str,
    unit: WeightUnit,
    intensity_mode: IntensityMode,
) -> Optional[float]:
    """Parse a weight cell; blank, zero and unparseable values mean no weight.

    The result carries the three decimals the weight column stores.
    """
    value = converters.to_float(raw)
    if not value:
        return None
    if intensity_mode is not IntensityMode.PERCENT and unit is WeightUnit.LB:
        value = converters.lb_to_kg(value)
    return converters.round_half_up(value, 3) or None


def prescribed_reps(raw: str) -> Optional[int]:
    return converters.to_int(raw) or None


def _canonical_set(
    data: "SetInput",
    unit: WeightUnit,
    intensity_mode: IntensityMode,
) -> SetPrescription:
    return SetPrescription(
        set_number=data.set_number,
        reps=prescribed_reps(data.reps),
        weight_kg=prescribed_weight_kg(data.weight, unit, intensity_mode),
        rest_seconds=data.rest_seconds or None,
        intensity_mode=intensity_mode,
        notes=data.notes,
    )


def _canonical_exercise(
    data: "ExerciseInput",
    position: int,
    unit: WeightUnit,
    intensity_mode: IntensityMode,
) -> ExerciseAssignment:
    sets = sorted(
        (_canonical_set(s, unit, intensity_mode) for s in data.sets),
        key=lambda s: s.set_number,
    )
    return ExerciseAssignment(
        exercise_ref_id=data.exercise_ref_id,
        position=position,
        instructions=data.instructions or "",
        notes="",
        sets=tuple(sets),
    )


def canonicalize(
    request: "ReconcileRequest",
    *,
    weight_unit: WeightUnit = WeightUnit.KG,
    week_start_weekday: int = MONDAY,
) -> CanonicalPlan:
    """Build the canonical tree for ``request``.

    Days are ordered by (week, day) regardless of submission order, exercise
    positions are their 1-based list index, and set weights are in kilograms.
    """
    meta_in = request.meta
    anchor = week_anchor(meta_in.start_date, week_start_weekday)
    meta = PlanMeta(
        title=meta_in.title,
        description=meta_in.description,
        start_date=anchor,
        end_date=plan_end_date(anchor, meta_in.duration_weeks),
        duration_weeks=meta_in.duration_weeks,
        category=meta_in.category,
        intensity_mode=meta_in.intensity_mode,
        status=meta_in.status,
    )

    days: list[PlannedDay] = []
    for week in request.weeks:
        for day in week.days:
            exercises = tuple(
                _canonical_exercise(exercise, position, weight_unit, meta.intensity_mode)
                for position, exercise in enumerate(day.exercises, start=1)
            )
            days.append(
                PlannedDay(
                    week_number=week.week_number,
                    day_number=day.day_number,
                    day_date=day_date(anchor, week.week_number, day.day_number),
                    title=day.title,
                    exercises=exercises,
                )
            )
    days.sort(key=lambda d: (d.week_number, d.day_number))

    return CanonicalPlan(plan_id=request.plan_id, meta=meta, days=tuple(days))
