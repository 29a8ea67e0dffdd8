from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, ContextManager, Dict, Iterable, List, Optional, Set

from coachplan.domain.entities import (
    ExerciseAssignment,
    PlanMeta,
    PlanStatus,
    PlannedDay,
    SetPrescription,
    StoredDay,
    StoredPlan,
    WeightUnit,
)


class PlanStore(ABC):
    """Abstract interface for plan persistence used by reconciliation.

    Every operation takes the transaction handle yielded by
    :meth:`transaction`; nothing runs outside an explicit transaction.
    """

    @abstractmethod
    def transaction(self, *, timeout_seconds: Optional[float] = None) -> ContextManager[Any]:
        """Open an all-or-nothing transaction, rolled back on any exception."""

    # --- reads ---------------------------------------------------------------

    @abstractmethod
    def lock_plan(self, tx: Any, plan_id: str) -> Optional[StoredPlan]:
        """Lock and return the plan header (no days), or ``None`` if missing."""

    @abstractmethod
    def load_plan_tree(self, tx: Any, plan_id: str) -> List[StoredDay]:
        """Return live days with nested exercises and sets, deterministically ordered."""

    @abstractmethod
    def trainer_weight_unit(self, tx: Any, trainer_id: Optional[str]) -> WeightUnit:
        """Return the unit the trainer enters weights in."""

    @abstractmethod
    def find_conflicting_plan(
        self,
        tx: Any,
        *,
        plan_id: str,
        client_id: Optional[str],
        trainer_id: Optional[str],
        start_date: date,
        end_date: date,
    ) -> Optional[Dict[str, Any]]:
        """Return another published plan of the same client and trainer overlapping the range.

        Plans without a client or trainer never conflict.
        """

    @abstractmethod
    def logged_set_ids(self, tx: Any, set_ids: Iterable[str]) -> Set[str]:
        """Return the subset of ``set_ids`` referenced by at least one performance log."""

    # --- writes --------------------------------------------------------------

    @abstractmethod
    def update_plan(self, tx: Any, plan_id: str, meta: PlanMeta) -> None: ...

    @abstractmethod
    def set_plan_status(self, tx: Any, plan_id: str, status: PlanStatus) -> None: ...

    @abstractmethod
    def insert_day(self, tx: Any, plan_id: str, day_id: str, day: PlannedDay) -> None: ...

    @abstractmethod
    def update_day(self, tx: Any, day_id: str, day: PlannedDay) -> None: ...

    @abstractmethod
    def update_day_date(self, tx: Any, day_id: str, day_date: date) -> None:
        """Move a day kept out of the submission onto its recomputed date."""

    @abstractmethod
    def insert_exercise(
        self, tx: Any, day_id: str, exercise_id: str, exercise: ExerciseAssignment
    ) -> None: ...

    @abstractmethod
    def update_exercise(self, tx: Any, exercise_id: str, exercise: ExerciseAssignment) -> None: ...

    @abstractmethod
    def insert_set(
        self, tx: Any, exercise_id: str, set_id: str, prescription: SetPrescription
    ) -> None: ...

    @abstractmethod
    def update_set(self, tx: Any, set_id: str, prescription: SetPrescription) -> None: ...

    @abstractmethod
    def delete_sets(self, tx: Any, set_ids: List[str]) -> None: ...

    @abstractmethod
    def delete_exercises(self, tx: Any, exercise_ids: List[str]) -> None: ...

    @abstractmethod
    def delete_days(self, tx: Any, day_ids: List[str]) -> None: ...

    @abstractmethod
    def mark_deleted(self, tx: Any, kind: str, ids: List[str]) -> None:
        """Flag rows of ``kind`` ("day", "exercise" or "set") as soft-deleted."""
