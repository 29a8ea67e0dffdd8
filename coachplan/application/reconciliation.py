# coachplan/application/reconciliation.py
"""
Plan reconciliation: make the persisted plan tree match a full submission.

The service validates the submission, then inside one transaction locks the
plan, canonicalises the submission, diffs it against the persisted tree,
guards deletions against performance logs and applies the mutations. Callers
only ever see ``{"ok": True}`` or ``{"ok": False, "message": ...}``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from coachplan.application.exceptions import (
    ApplicationError,
    DataAccessError,
    PlanAccessError,
    PlanConflictError,
)
from coachplan.application.executor import MutationExecutor, new_id
from coachplan.application.schemas import ReconcileRequest
from coachplan.application.state_loader import PlanStateLoader
from coachplan.application.validation import check_plan_shape, parse_request
from coachplan.config import settings
from coachplan.domain.canonicalizer import canonicalize
from coachplan.domain.deletion_guard import DeletionGuard
from coachplan.domain.differ import NodeKind, diff_plan
from coachplan.domain.entities import CanonicalPlan, PlanStatus, StoredPlan
from coachplan.domain.repositories import PlanStore
from coachplan.infrastructure import log_utils

GENERIC_FAILURE_MESSAGE = "Failed to update workout plan; no changes were saved."


@dataclass(frozen=True)
class ReconcileResult:
    ok: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True}
        return {"ok": False, "message": self.message or GENERIC_FAILURE_MESSAGE}


def _format_counts(counts: Counter) -> str:
    parts = []
    for kind in NodeKind:
        parts.append(
            f"{kind.value}s +{counts[(kind, 'create')]}"
            f" ~{counts[(kind, 'update')]}"
            f" ={counts[(kind, 'unchanged')]}"
            f" -{counts[(kind, 'delete')]}"
        )
    return ", ".join(parts)


def _totals(stats: Counter) -> Dict[str, int]:
    """Sum the executor's ``(kind, outcome)`` counts per outcome."""
    totals = {"created": 0, "updated": 0, "deleted": 0, "vetoed": 0, "redated": 0}
    outcomes = {"create": "created", "update": "updated", "delete": "deleted"}
    for (_kind, outcome), count in stats.items():
        name = outcomes.get(outcome, outcome)
        if name in totals:
            totals[name] += count
    return totals


def conflict_message(conflict: Mapping[str, Any]) -> str:
    start = conflict["start_date"]
    end = conflict["end_date"]
    suggested = end + timedelta(days=1)
    return (
        f"Choose start date after {end:%d/%m/%Y} as previous plan '{conflict['title']}' "
        f"({start:%d/%m/%Y} - {end:%d/%m/%Y}) is currently published. "
        f"Suggested start date: {suggested:%d/%m/%Y}"
    )


class PlanReconciliationService:
    """Reconcile a plan's days, exercise assignments and sets with a submission."""

    def __init__(
        self,
        store: PlanStore,
        *,
        days_per_week: Optional[int] = None,
        week_start_weekday: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        soft_delete_vetoed: Optional[bool] = None,
        id_factory: Callable[[], str] = new_id,
    ):
        self.store = store
        self.days_per_week = days_per_week or settings.DAYS_PER_WEEK
        self.week_start_weekday = week_start_weekday or settings.WEEK_START_WEEKDAY
        self.timeout_seconds = (
            settings.RECONCILE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        if soft_delete_vetoed is None:
            soft_delete_vetoed = settings.SOFT_DELETE_VETOED
        self.loader = PlanStateLoader(store)
        self.guard = DeletionGuard(store)
        self.executor = MutationExecutor(
            store,
            id_factory=id_factory,
            soft_delete_vetoed=soft_delete_vetoed,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def reconcile(
        self,
        payload: Mapping[str, Any] | ReconcileRequest,
        *,
        actor_id: Optional[str] = None,
    ) -> ReconcileResult:
        """Apply a full plan submission; never raises."""
        return self._report("reconcile", lambda: self._reconcile(payload, actor_id))

    def set_plan_archived(
        self,
        plan_id: str,
        archive: bool,
        *,
        actor_id: Optional[str] = None,
    ) -> ReconcileResult:
        """Archive a plan, or restore it to draft."""
        return self._report("archive", lambda: self._set_archived(plan_id, archive, actor_id))

    # ------------------------------------------------------------------
    # Result reporting
    # ------------------------------------------------------------------

    def _report(self, operation: str, run: Callable[[], None]) -> ReconcileResult:
        try:
            run()
        except DataAccessError as exc:
            log_utils.error(f"Plan {operation} rolled back: {exc}", exc_info=True)
            return ReconcileResult(ok=False, message=GENERIC_FAILURE_MESSAGE)
        except ApplicationError as exc:
            log_utils.warn(f"Plan {operation} rejected: {exc}")
            return ReconcileResult(ok=False, message=str(exc))
        except Exception as exc:
            log_utils.error(f"Unexpected failure during plan {operation}: {exc!r}", exc_info=True)
            return ReconcileResult(ok=False, message=GENERIC_FAILURE_MESSAGE)
        return ReconcileResult(ok=True)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _reconcile(self, payload: Mapping[str, Any] | ReconcileRequest, actor_id: Optional[str]) -> None:
        request = parse_request(payload)
        check_plan_shape(request, days_per_week=self.days_per_week)

        plan_id = request.plan_id
        log_utils.info(
            f"Reconciling {len(request.weeks)} submitted week(s).",
            plan_id=plan_id,
            actor_id=actor_id,
        )

        with self.store.transaction(timeout_seconds=self.timeout_seconds) as tx:
            plan = self.loader.lock(tx, plan_id)
            self._check_owner(plan, actor_id)

            weight_unit = self.store.trainer_weight_unit(tx, plan.trainer_id)
            canonical = canonicalize(
                request,
                weight_unit=weight_unit,
                week_start_weekday=self.week_start_weekday,
            )
            self._check_conflicts(tx, plan, canonical)

            self.loader.load(tx, plan)
            diff = diff_plan(canonical, plan.days)
            log_utils.debug(f"Diff: {_format_counts(diff.counts())}", plan_id=plan_id)

            decision = self.guard.review(tx, diff.candidates)
            stats = self.executor.apply(tx, plan, canonical, diff, decision)

        log_utils.info(
            f"Plan reconciled: {_format_counts(stats)}",
            plan_id=plan_id,
            actor_id=actor_id,
            **_totals(stats),
        )

    def _set_archived(self, plan_id: str, archive: bool, actor_id: Optional[str]) -> None:
        status = PlanStatus.ARCHIVED if archive else PlanStatus.DRAFT
        with self.store.transaction(timeout_seconds=self.timeout_seconds) as tx:
            plan = self.loader.lock(tx, plan_id)
            self._check_owner(plan, actor_id)
            self.store.set_plan_status(tx, plan_id, status)
        log_utils.info(f"Plan status set to {status.value}.", plan_id=plan_id, actor_id=actor_id)

    @staticmethod
    def _check_owner(plan: StoredPlan, actor_id: Optional[str]) -> None:
        if actor_id is not None and actor_id != plan.trainer_id:
            raise PlanAccessError("You can only update your own workout plans")

    def _check_conflicts(self, tx: Any, plan: StoredPlan, canonical: CanonicalPlan) -> None:
        if canonical.meta.status is not PlanStatus.PUBLISHED:
            return
        conflict = self.store.find_conflicting_plan(
            tx,
            plan_id=plan.id,
            client_id=plan.client_id,
            trainer_id=plan.trainer_id,
            start_date=canonical.meta.start_date,
            end_date=canonical.meta.end_date,
        )
        if conflict:
            raise PlanConflictError(conflict_message(conflict))
