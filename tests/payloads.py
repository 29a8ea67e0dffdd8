"""Builders for raw plan submissions, shaped like the editor's JSON."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

PLAN_ID = "plan-1"
TRAINER_ID = "trainer-1"


def set_row(number: int, weight: Any = "50", reps: Any = "10", rest: int = 90, notes: str = "") -> Dict[str, Any]:
    return {"setNumber": number, "weight": weight, "reps": reps, "rest": rest, "notes": notes}


def exercise(ref: str, *sets: Dict[str, Any], instructions: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "listExerciseId": ref,
        "name": ref.replace("-", " ").title(),
        "bodyPart": "legs",
        "sets": list(sets) or [set_row(1), set_row(2)],
    }
    if instructions is not None:
        payload["instructions"] = instructions
    return payload


def day(number: int, *exercises: Dict[str, Any], title: Optional[str] = None) -> Dict[str, Any]:
    return {
        "dayNumber": number,
        "title": title if title is not None else f"Day {number}",
        "estimatedTimeMinutes": 45,
        "exercises": list(exercises) or [exercise("squat")],
    }


def week(number: int, *days: Dict[str, Any], days_per_week: int = 3) -> Dict[str, Any]:
    return {
        "weekNumber": number,
        "days": list(days) or [day(n) for n in range(1, days_per_week + 1)],
    }


def plan_payload(
    weeks: Optional[List[Dict[str, Any]]] = None,
    *,
    plan_id: str = PLAN_ID,
    start_date: str = "2025-01-06",
    duration_weeks: Optional[int] = None,
    status: str = "DRAFT",
    intensity_mode: str = "ABSOLUTE",
    category: str = "STRENGTH",
    title: str = "Strength block",
) -> Dict[str, Any]:
    weeks = weeks if weeks is not None else [week(1), week(2)]
    return {
        "planId": plan_id,
        "meta": {
            "title": title,
            "description": "",
            "startDate": start_date,
            "durationWeeks": duration_weeks or len(weeks),
            "category": category,
            "intensityMode": intensity_mode,
            "status": status,
        },
        "weeks": weeks,
    }


def stored_tree(plan):
    """Persist a canonical plan as-is, with readable ids like ``d1.1/e1/s2``."""
    from coachplan.domain.entities import StoredDay, StoredExercise, StoredSet

    days = []
    for planned in plan.days:
        day_id = f"d{planned.week_number}.{planned.day_number}"
        stored_day = StoredDay(
            id=day_id,
            plan_id=plan.plan_id,
            week_number=planned.week_number,
            day_number=planned.day_number,
            day_date=planned.day_date,
            title=planned.title,
        )
        for assignment in planned.exercises:
            exercise_id = f"{day_id}/e{assignment.position}"
            stored_exercise = StoredExercise(
                id=exercise_id,
                day_id=day_id,
                exercise_ref_id=assignment.exercise_ref_id,
                position=assignment.position,
                instructions=assignment.instructions,
                notes=assignment.notes,
            )
            for prescription in assignment.sets:
                stored_exercise.sets.append(
                    StoredSet(
                        id=f"{exercise_id}/s{prescription.set_number}",
                        exercise_assignment_id=exercise_id,
                        set_number=prescription.set_number,
                        reps=prescription.reps,
                        weight_kg=prescription.weight_kg,
                        rest_seconds=prescription.rest_seconds,
                        intensity_mode=prescription.intensity_mode,
                        notes=prescription.notes,
                    )
                )
            stored_day.exercises.append(stored_exercise)
        days.append(stored_day)
    return days
