"""Input-shape checks run before any persistence access."""

from __future__ import annotations

from typing import Any, List, Mapping

from pydantic import ValidationError

from coachplan.application.exceptions import InputShapeError
from coachplan.application.schemas import ReconcileRequest


def _format_location(loc: tuple) -> str:
    parts: List[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts) or "request"


def parse_request(payload: Mapping[str, Any] | ReconcileRequest) -> ReconcileRequest:
    """Validate a raw payload into a :class:`ReconcileRequest`."""

    if isinstance(payload, ReconcileRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InputShapeError("Submission must be a JSON object")
    try:
        return ReconcileRequest.model_validate(payload)
    except ValidationError as exc:
        problems = [
            f"{_format_location(err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InputShapeError("Invalid submission: " + "; ".join(problems)) from exc


def check_plan_shape(request: ReconcileRequest, *, days_per_week: int) -> None:
    """Enforce identity-key uniqueness and the fixed day arity per week.

    Raises :class:`InputShapeError` naming the first offending week, day or
    exercise.
    """

    expected_days = list(range(1, days_per_week + 1))
    seen_weeks: set[int] = set()

    for week in request.weeks:
        if week.week_number in seen_weeks:
            raise InputShapeError(f"Week {week.week_number} appears more than once")
        seen_weeks.add(week.week_number)

        if len(week.days) != days_per_week:
            raise InputShapeError(
                f"Week {week.week_number} must have exactly {days_per_week} days, got {len(week.days)}"
            )
        day_numbers = sorted(day.day_number for day in week.days)
        if day_numbers != expected_days:
            raise InputShapeError(
                f"Week {week.week_number} day numbers must be {expected_days}, got {day_numbers}"
            )

        for day in week.days:
            for index, exercise in enumerate(day.exercises, start=1):
                set_numbers = [s.set_number for s in exercise.sets]
                if len(set(set_numbers)) != len(set_numbers):
                    raise InputShapeError(
                        f"Week {week.week_number} day {day.day_number} exercise {index} "
                        f"has duplicate set numbers: {sorted(set_numbers)}"
                    )
