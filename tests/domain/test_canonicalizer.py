from datetime import date

import pytest

from coachplan.application.validation import parse_request
from coachplan.domain.canonicalizer import (
    canonicalize,
    day_date,
    plan_end_date,
    prescribed_reps,
    prescribed_weight_kg,
    week_anchor,
)
from coachplan.domain.entities import IntensityMode, WeightUnit
from tests.payloads import day, exercise, plan_payload, set_row, week


@pytest.mark.parametrize(
    "start, expected",
    [
        (date(2025, 1, 6), date(2025, 1, 6)),  # Monday stays put
        (date(2025, 1, 8), date(2025, 1, 6)),
        (date(2025, 1, 12), date(2025, 1, 6)),  # Sunday belongs to the week before
        (date(2025, 1, 13), date(2025, 1, 13)),
    ],
)
def test_week_anchor_moves_back_to_monday(start, expected):
    assert week_anchor(start) == expected


def test_week_anchor_respects_configured_week_start():
    assert week_anchor(date(2025, 1, 8), week_start_weekday=7) == date(2025, 1, 5)


def test_day_date_week_two_day_two():
    assert day_date(date(2025, 1, 6), 2, 2) == date(2025, 1, 14)


def test_plan_end_date_is_last_day_of_final_week():
    assert plan_end_date(date(2025, 1, 6), 4) == date(2025, 2, 2)


def test_canonicalize_recomputes_dates_from_anchor():
    request = parse_request(plan_payload(start_date="2025-01-08T09:30:00.000Z"))

    plan = canonicalize(request)

    assert plan.meta.start_date == date(2025, 1, 6)
    assert plan.meta.end_date == date(2025, 1, 19)
    dates = {(d.week_number, d.day_number): d.day_date for d in plan.days}
    assert dates[(1, 1)] == date(2025, 1, 6)
    assert dates[(2, 2)] == date(2025, 1, 14)
    assert dates[(2, 3)] == date(2025, 1, 15)


def test_canonicalize_orders_days_regardless_of_submission_order():
    weeks = [
        week(2, day(3), day(1), day(2)),
        week(1, day(2), day(3), day(1)),
    ]
    plan = canonicalize(parse_request(plan_payload(weeks)))

    assert [(d.week_number, d.day_number) for d in plan.days] == [
        (1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (2, 3),
    ]


def test_exercise_positions_follow_list_order():
    first = exercise("squat")
    second = exercise("squat")
    first["order"] = 7
    second["order"] = 7
    weeks = [week(1, day(1, first, second, exercise("lunge")), day(2), day(3))]

    plan = canonicalize(parse_request(plan_payload(weeks)))

    keys = [(e.exercise_ref_id, e.position) for e in plan.days[0].exercises]
    assert keys == [("squat", 1), ("squat", 2), ("lunge", 3)]


def test_exercise_notes_reset_and_instructions_default_to_blank():
    weeks = [week(1, day(1, exercise("squat"), exercise("press", instructions="Slow eccentric")), day(2), day(3))]

    plan = canonicalize(parse_request(plan_payload(weeks)))

    squat, press = plan.days[0].exercises
    assert squat.instructions == ""
    assert press.instructions == "Slow eccentric"
    assert squat.notes == "" and press.notes == ""


def test_sets_are_sorted_and_normalised():
    sets = (
        set_row(2, weight="", reps="0", rest=0),
        set_row(1, weight="60.5", reps="8 reps", rest=120, notes="tempo 3-1-1"),
    )
    weeks = [week(1, day(1, exercise("squat", *sets)), day(2), day(3))]

    plan = canonicalize(parse_request(plan_payload(weeks)))

    first, second = plan.days[0].exercises[0].sets
    assert first.set_number == 1
    assert first.reps == 8
    assert first.weight_kg == 60.5
    assert first.rest_seconds == 120
    assert first.notes == "tempo 3-1-1"
    assert first.intensity_mode is IntensityMode.ABSOLUTE
    assert second.reps is None
    assert second.weight_kg is None
    assert second.rest_seconds is None


def test_pound_weights_are_converted_to_kilograms():
    weeks = [week(1, day(1, exercise("squat", set_row(1, weight="100"))), day(2), day(3))]

    plan = canonicalize(parse_request(plan_payload(weeks)), weight_unit=WeightUnit.LB)

    assert plan.days[0].exercises[0].sets[0].weight_kg == pytest.approx(45.359)


def test_percent_intensity_is_never_converted():
    assert prescribed_weight_kg("75", WeightUnit.LB, IntensityMode.PERCENT) == 75.0


@pytest.mark.parametrize("raw", ["", "  ", "abc", "0", "0.0001", "nan", "inf", "-Infinity", "1e999"])
def test_blank_or_zero_weight_means_no_weight(raw):
    assert prescribed_weight_kg(raw, WeightUnit.KG, IntensityMode.ABSOLUTE) is None


@pytest.mark.parametrize(
    "raw, unit, expected",
    [
        ("60kg", WeightUnit.KG, 60.0),
        (" 62.5 kg", WeightUnit.KG, 62.5),
        ("135 lb", WeightUnit.LB, 61.235),
        ("80.1234", WeightUnit.KG, 80.123),
        ("80.1235", WeightUnit.KG, 80.124),
    ],
)
def test_weight_takes_leading_number_at_column_scale(raw, unit, expected):
    assert prescribed_weight_kg(raw, unit, IntensityMode.ABSOLUTE) == expected


def test_percent_weights_are_rounded_too():
    assert prescribed_weight_kg("72.55555", WeightUnit.KG, IntensityMode.PERCENT) == 72.556


@pytest.mark.parametrize("raw, expected", [("10", 10), ("8-10", 8), ("", None), ("0", None), ("x", None)])
def test_prescribed_reps(raw, expected):
    assert prescribed_reps(raw) == expected
