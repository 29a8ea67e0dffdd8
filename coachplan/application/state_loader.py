"""Read the persisted plan tree that a reconciliation diffs against."""

from __future__ import annotations

from typing import Any

from coachplan.application.exceptions import PlanNotFoundError
from coachplan.domain.entities import StoredPlan
from coachplan.domain.repositories import PlanStore


class PlanStateLoader:
    def __init__(self, store: PlanStore):
        self.store = store

    def lock(self, tx: Any, plan_id: str) -> StoredPlan:
        """Lock the plan row for the rest of ``tx`` and return its header.

        The row lock serialises concurrent reconciliations of the same plan.
        """
        plan = self.store.lock_plan(tx, plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    def load(self, tx: Any, plan: StoredPlan) -> StoredPlan:
        """Attach the live day tree (days, exercises, sets) to ``plan``."""
        plan.days = self.store.load_plan_tree(tx, plan.id)
        return plan
