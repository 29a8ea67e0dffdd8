from dataclasses import dataclass

from coachplan.domain.identity import DayKey, ExerciseKey, SetKey, index_by_key


@dataclass
class _Node:
    key: object
    id: str


def test_keys_compare_by_value():
    assert DayKey(1, 2) == DayKey(1, 2)
    assert DayKey(1, 2) != DayKey(2, 1)
    assert ExerciseKey("squat", 1) != ExerciseKey("squat", 2)
    assert len({SetKey(1), SetKey(1), SetKey(2)}) == 2


def test_keys_of_different_kinds_never_collide():
    # "1-2" style string keys would collide across levels; typed keys do not.
    assert SetKey(1) != DayKey(1, 1)
    assert ExerciseKey("1", 2) != DayKey(1, 2)


def test_keys_render_for_log_messages():
    assert str(DayKey(3, 2)) == "week 3 day 2"
    assert str(ExerciseKey("squat", 2)) == "exercise squat at position 2"
    assert str(SetKey(4)) == "set 4"


def test_index_by_key_keeps_first_duplicate():
    first = _Node(SetKey(1), "a")
    duplicate = _Node(SetKey(1), "b")
    other = _Node(SetKey(2), "c")

    index = index_by_key([first, duplicate, other])

    assert index == {SetKey(1): first, SetKey(2): other}


def test_index_by_key_on_empty_input():
    assert index_by_key([]) == {}
