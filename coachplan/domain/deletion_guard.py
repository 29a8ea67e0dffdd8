"""Veto deletions of plan nodes that performance logs still reference."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List

from coachplan.domain.differ import DeleteCandidate, NodeKind
from coachplan.domain.repositories import PlanStore
from coachplan.infrastructure import log_utils


@dataclass
class GuardDecision:
    approved: List[DeleteCandidate] = field(default_factory=list)
    vetoed: List[DeleteCandidate] = field(default_factory=list)

    def ids_to_delete(self) -> Dict[NodeKind, List[str]]:
        """Every id removed by the approved candidates, grouped by kind."""
        grouped: Dict[NodeKind, List[str]] = {kind: [] for kind in NodeKind}
        for candidate in self.approved:
            for kind, ids in candidate.subtree.items():
                grouped[kind].extend(ids)
        return grouped


def review_candidates(
    candidates: List[DeleteCandidate],
    logged_set_ids: Collection[str],
) -> GuardDecision:
    """Split candidates by whether any set in their subtree has a log.

    A vetoed candidate keeps its whole subtree; nothing beneath it is removed.
    """
    decision = GuardDecision()
    for candidate in candidates:
        if any(set_id in logged_set_ids for set_id in candidate.set_ids):
            decision.vetoed.append(candidate)
        else:
            decision.approved.append(candidate)
    return decision


class DeletionGuard:
    """Checks delete candidates against performance logs in one query."""

    def __init__(self, store: PlanStore):
        self.store = store

    def review(self, tx: Any, candidates: List[DeleteCandidate]) -> GuardDecision:
        if not candidates:
            return GuardDecision()

        set_ids = [set_id for candidate in candidates for set_id in candidate.set_ids]
        logged = self.store.logged_set_ids(tx, set_ids) if set_ids else set()
        decision = review_candidates(candidates, logged)

        for candidate in decision.vetoed:
            blocking = sum(1 for set_id in candidate.set_ids if set_id in logged)
            log_utils.warn(
                f"Deletion vetoed for {candidate.describe()}: "
                f"{blocking} set(s) in its subtree have performance logs."
            )
        return decision
