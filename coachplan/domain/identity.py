"""Structural identity keys and the lookup indices built over them.

Nodes in a submitted plan carry no storage ids, so days, exercise assignments
and sets are matched against persisted rows by composite keys instead:

* a day by ``(week_number, day_number)`` within its plan,
* an exercise assignment by ``(exercise_ref_id, position)`` within its day,
* a set instruction by ``set_number`` within its exercise assignment.

Keys are frozen dataclasses, so two keys are equal only when they are the
same kind of key with the same values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Protocol, TypeVar, Union


@dataclass(frozen=True, order=True)
class DayKey:
    week_number: int
    day_number: int

    def __str__(self) -> str:
        return f"week {self.week_number} day {self.day_number}"


@dataclass(frozen=True, order=True)
class ExerciseKey:
    exercise_ref_id: str
    position: int

    def __str__(self) -> str:
        return f"exercise {self.exercise_ref_id} at position {self.position}"


@dataclass(frozen=True, order=True)
class SetKey:
    set_number: int

    def __str__(self) -> str:
        return f"set {self.set_number}"


IdentityKey = Union[DayKey, ExerciseKey, SetKey]


class Keyed(Protocol):
    @property
    def key(self) -> Hashable: ...


N = TypeVar("N", bound=Keyed)


def index_by_key(nodes: Iterable[N]) -> Dict[Hashable, N]:
    """Map each node's identity key to the node, scoped to one parent.

    If a key repeats, the first node wins; later duplicates are left out of
    the index and so surface as delete candidates during diffing.
    """
    index: Dict[Hashable, N] = {}
    for node in nodes:
        index.setdefault(node.key, node)
    return index
