"""Apply a plan diff to the store inside the caller's transaction."""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Any, Callable, Optional

from coachplan.domain.canonicalizer import day_date
from coachplan.domain.deletion_guard import GuardDecision
from coachplan.domain.differ import Action, NodeChange, NodeKind, PlanDiff
from coachplan.domain.entities import CanonicalPlan, StoredDay, StoredPlan
from coachplan.domain.repositories import PlanStore


def new_id() -> str:
    return str(uuid.uuid4())


class MutationExecutor:
    """Writes creates, updates and approved deletions in a fixed order.

    Plan metadata first, then each day depth-first (a parent is written
    before its children), then deletions children-first: sets, exercises,
    days.
    """

    def __init__(
        self,
        store: PlanStore,
        *,
        id_factory: Callable[[], str] = new_id,
        soft_delete_vetoed: bool = False,
    ):
        self.store = store
        self.id_factory = id_factory
        self.soft_delete_vetoed = soft_delete_vetoed

    def apply(
        self,
        tx: Any,
        plan: StoredPlan,
        canonical: CanonicalPlan,
        diff: PlanDiff,
        decision: GuardDecision,
    ) -> Counter:
        """Execute all mutations and return counts keyed by ``(kind, outcome)``."""
        stats: Counter = Counter()

        if plan.meta() != canonical.meta:
            self.store.update_plan(tx, plan.id, canonical.meta)
            stats[("plan", "update")] += 1

        for change in diff.days:
            self._apply_change(tx, change, parent_id=plan.id, stats=stats)

        doomed = decision.ids_to_delete()
        if doomed[NodeKind.SET]:
            self.store.delete_sets(tx, doomed[NodeKind.SET])
        if doomed[NodeKind.EXERCISE]:
            self.store.delete_exercises(tx, doomed[NodeKind.EXERCISE])
        if doomed[NodeKind.DAY]:
            self.store.delete_days(tx, doomed[NodeKind.DAY])
        for kind in NodeKind:
            stats[(kind, "delete")] += len(doomed[kind])

        stored_days = {day.id: day for day in plan.days}
        for candidate in decision.vetoed:
            stats[(candidate.kind, "vetoed")] += 1
            if candidate.kind is NodeKind.DAY:
                self._redate(tx, stored_days[candidate.node_id], canonical, stats)
        if self.soft_delete_vetoed and decision.vetoed:
            for kind in NodeKind:
                ids = [c.node_id for c in decision.vetoed if c.kind is kind]
                if ids:
                    self.store.mark_deleted(tx, kind.value, ids)

        return stats

    def _apply_change(
        self,
        tx: Any,
        change: NodeChange,
        *,
        parent_id: str,
        stats: Counter,
    ) -> None:
        node_id: Optional[str]
        if change.action is Action.CREATE:
            node_id = self.id_factory()
            self._insert(tx, change, parent_id, node_id)
        else:
            node_id = change.storage_id
            if change.action is Action.UPDATE:
                self._update(tx, change, node_id)
        stats[(change.kind, change.action.value)] += 1

        for child in change.children:
            self._apply_change(tx, child, parent_id=node_id, stats=stats)

    def _redate(self, tx: Any, day: StoredDay, canonical: CanonicalPlan, stats: Counter) -> None:
        """Keep a vetoed day on the calendar of the current start date."""
        expected = day_date(canonical.meta.start_date, day.week_number, day.day_number)
        if day.day_date != expected:
            self.store.update_day_date(tx, day.id, expected)
            stats[(NodeKind.DAY, "redated")] += 1

    def _insert(self, tx: Any, change: NodeChange, parent_id: str, node_id: str) -> None:
        if change.kind is NodeKind.DAY:
            self.store.insert_day(tx, parent_id, node_id, change.incoming)
        elif change.kind is NodeKind.EXERCISE:
            self.store.insert_exercise(tx, parent_id, node_id, change.incoming)
        else:
            self.store.insert_set(tx, parent_id, node_id, change.incoming)

    def _update(self, tx: Any, change: NodeChange, node_id: str) -> None:
        if change.kind is NodeKind.DAY:
            self.store.update_day(tx, node_id, change.incoming)
        elif change.kind is NodeKind.EXERCISE:
            self.store.update_exercise(tx, node_id, change.incoming)
        else:
            self.store.update_set(tx, node_id, change.incoming)
