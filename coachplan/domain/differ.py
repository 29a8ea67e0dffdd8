"""Three-level diff between a canonical submission and the persisted plan tree.

Days, exercise assignments and set instructions are compared by the same
routine, :func:`reconcile_children`, parameterised by a :class:`Level` that
names the node kind, the mutable fields worth comparing and the level below.
Matching is purely structural (see :mod:`coachplan.domain.identity`): a node
whose identity fields changed is a delete candidate plus a create.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from coachplan.domain.entities import CanonicalPlan, StoredDay
from coachplan.domain.identity import IdentityKey, index_by_key


class NodeKind(str, Enum):
    DAY = "day"
    EXERCISE = "exercise"
    SET = "set"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Level:
    kind: NodeKind
    fields: tuple[str, ...]
    child: Optional["Level"] = None


SET_LEVEL = Level(NodeKind.SET, ("reps", "weight_kg", "rest_seconds", "intensity_mode", "notes"))
EXERCISE_LEVEL = Level(NodeKind.EXERCISE, ("instructions", "notes"), SET_LEVEL)
DAY_LEVEL = Level(NodeKind.DAY, ("title", "day_date"), EXERCISE_LEVEL)


@dataclass
class NodeChange:
    """Classification of one incoming node, with its children's classifications."""

    kind: NodeKind
    action: Action
    key: IdentityKey
    incoming: Any
    existing: Any = None
    children: List["NodeChange"] = field(default_factory=list)

    @property
    def storage_id(self) -> Optional[str]:
        return None if self.existing is None else self.existing.id


@dataclass
class DeleteCandidate:
    """A persisted node absent from the submission, with every id in its subtree."""

    kind: NodeKind
    key: IdentityKey
    node_id: str
    parent_id: Optional[str]
    subtree: Dict[NodeKind, List[str]]

    @property
    def set_ids(self) -> List[str]:
        return self.subtree.get(NodeKind.SET, [])

    def describe(self) -> str:
        return f"{self.kind.value} {self.key} (id={self.node_id})"


@dataclass
class PlanDiff:
    days: List[NodeChange]
    candidates: List[DeleteCandidate]

    def walk(self):
        stack = list(reversed(self.days))
        while stack:
            change = stack.pop()
            yield change
            stack.extend(reversed(change.children))

    def counts(self) -> Counter:
        """Count changes by ``(kind, action)``; candidates count as ``"delete"``."""
        tally: Counter = Counter()
        for change in self.walk():
            tally[(change.kind, change.action.value)] += 1
        for candidate in self.candidates:
            tally[(candidate.kind, "delete")] += 1
        return tally

    @property
    def is_noop(self) -> bool:
        return not self.candidates and all(
            change.action is Action.UNCHANGED for change in self.walk()
        )


def _differs(level: Level, incoming: Any, existing: Any) -> bool:
    return any(getattr(incoming, name) != getattr(existing, name) for name in level.fields)


def _parent_id(level: Level, node: Any) -> Optional[str]:
    if level.kind is NodeKind.DAY:
        return getattr(node, "plan_id", None)
    if level.kind is NodeKind.EXERCISE:
        return getattr(node, "day_id", None)
    return getattr(node, "exercise_assignment_id", None)


def _collect_subtree(level: Level, node: Any, into: Dict[NodeKind, List[str]]) -> None:
    into.setdefault(level.kind, []).append(node.id)
    if level.child is None:
        return
    for child in node.children:
        _collect_subtree(level.child, child, into)


def delete_candidate(level: Level, node: Any) -> DeleteCandidate:
    subtree: Dict[NodeKind, List[str]] = {}
    _collect_subtree(level, node, subtree)
    return DeleteCandidate(
        kind=level.kind,
        key=node.key,
        node_id=node.id,
        parent_id=_parent_id(level, node),
        subtree=subtree,
    )


def reconcile_children(
    level: Level,
    incoming: Sequence[Any],
    existing: Sequence[Any],
    candidates: List[DeleteCandidate],
) -> List[NodeChange]:
    """Classify ``incoming`` against ``existing`` siblings under one parent.

    Matched pairs become update or unchanged, unmatched incoming nodes become
    creates (their whole subtree too), and unmatched persisted nodes are
    appended to ``candidates``.
    """
    existing_index = index_by_key(existing)
    paired: set[int] = set()
    changes: List[NodeChange] = []

    for node in incoming:
        match = existing_index.get(node.key)
        if match is not None and id(match) not in paired:
            paired.add(id(match))
            action = Action.UPDATE if _differs(level, node, match) else Action.UNCHANGED
            child_existing = match.children
        else:
            match = None
            action = Action.CREATE
            child_existing = []

        children: List[NodeChange] = []
        if level.child is not None:
            children = reconcile_children(level.child, node.children, child_existing, candidates)
        changes.append(NodeChange(level.kind, action, node.key, node, match, children))

    for node in existing:
        if id(node) not in paired:
            candidates.append(delete_candidate(level, node))

    return changes


def diff_plan(canonical: CanonicalPlan, existing_days: Sequence[StoredDay]) -> PlanDiff:
    candidates: List[DeleteCandidate] = []
    days = reconcile_children(DAY_LEVEL, canonical.days, existing_days, candidates)
    return PlanDiff(days=days, candidates=candidates)
