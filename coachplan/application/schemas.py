"""Pydantic models describing a plan reconciliation request."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coachplan.domain.entities import BodyPart, IntensityMode, PlanStatus, WorkoutCategory


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SetInput(_RequestModel):
    set_number: int = Field(..., gt=0, alias="setNumber")
    weight: str = ""
    reps: str = ""
    rest_seconds: int = Field(0, ge=0, alias="rest")
    notes: str = ""

    @field_validator("weight", "reps", mode="before")
    @classmethod
    def _numbers_as_text(cls, value):
        # Editors send "" for empty cells and numbers for filled ones.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ExerciseInput(_RequestModel):
    exercise_ref_id: str = Field(..., min_length=1, alias="listExerciseId")
    name: str = ""
    body_part: Optional[BodyPart] = Field(None, alias="bodyPart")
    position: Optional[int] = Field(None, ge=0, alias="order")
    instructions: Optional[str] = None
    sets: List[SetInput] = Field(..., min_length=1)


class DayInput(_RequestModel):
    day_number: int = Field(..., ge=1, le=7, alias="dayNumber")
    title: str = ""
    estimated_minutes: int = Field(0, ge=0, alias="estimatedTimeMinutes")
    exercises: List[ExerciseInput] = Field(default_factory=list)


class WeekInput(_RequestModel):
    week_number: int = Field(..., gt=0, alias="weekNumber")
    days: List[DayInput]


class PlanMetaInput(_RequestModel):
    title: str
    description: str = ""
    start_date: date = Field(..., alias="startDate")
    duration_weeks: int = Field(..., gt=0, alias="durationWeeks")
    category: WorkoutCategory
    intensity_mode: IntensityMode = Field(..., alias="intensityMode")
    status: PlanStatus

    @field_validator("start_date", mode="before")
    @classmethod
    def _strip_time(cls, value):
        # Timestamps from the editor carry a time and zone; only the calendar day counts.
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
            return value[:10]
        return value


class ReconcileRequest(_RequestModel):
    plan_id: str = Field(..., min_length=1, alias="planId")
    meta: PlanMetaInput
    weeks: List[WeekInput] = Field(..., min_length=1)
