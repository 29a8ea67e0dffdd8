# coachplan/infrastructure/postgres_dal.py
"""
PostgreSQL implementation of the plan store used by reconciliation.

Every read and write runs on the cursor of an explicit :class:`PlanTransaction`
opened by :meth:`PostgresPlanStore.transaction`; the whole reconciliation
commits or rolls back as one unit.
"""
from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from coachplan.application.exceptions import DataAccessError
from coachplan.config import get_database_url, settings
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
from coachplan.domain.repositories import PlanStore
from coachplan.infrastructure import log_utils
from coachplan.infrastructure.mappers import PlanTreeMapper
from coachplan.utils import converters

# --- Connection Pool Management ---
_pool: ConnectionPool | None = None


def _create_pool() -> ConnectionPool:
    db_url = get_database_url()
    return ConnectionPool(
        conninfo=db_url,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
    )


def get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = _create_pool()
    return _pool


_SOFT_DELETE_TABLES = {
    "day": "workout_days",
    "exercise": "workout_day_exercises",
    "set": "workout_set_instructions",
}


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


@dataclass
class PlanTransaction:
    """Handle for one open database transaction."""

    conn: psycopg.Connection
    cursor: psycopg.Cursor


# --- Data Access Layer ---
class PostgresPlanStore(PlanStore):
    """PostgreSQL implementation of :class:`PlanStore`."""

    def __init__(self, pool: Optional[ConnectionPool] = None, mapper: Optional[PlanTreeMapper] = None):
        self.pool = pool or get_pool()
        self.mapper = mapper or PlanTreeMapper()

    @contextmanager
    def transaction(self, *, timeout_seconds: Optional[float] = None) -> Iterator[PlanTransaction]:
        try:
            with self.pool.connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        if timeout_seconds:
                            timeout_ms = str(int(timeout_seconds * 1000))
                            cur.execute("SELECT set_config('statement_timeout', %s, true);", (timeout_ms,))
                            cur.execute("SELECT set_config('lock_timeout', %s, true);", (timeout_ms,))
                        yield PlanTransaction(conn=conn, cursor=cur)
        except psycopg.Error as exc:
            raise DataAccessError(f"Database transaction failed: {exc}") from exc

    # ----------------------------------------------
    # --- Reads ---
    # ----------------------------------------------
    def lock_plan(self, tx: PlanTransaction, plan_id: str) -> Optional[StoredPlan]:
        if not _is_uuid(plan_id):
            return None
        tx.cursor.execute(
            """
            SELECT id, trainer_id, client_id, title, description, start_date, end_date,
                   duration_weeks, category, intensity_mode, status
            FROM workout_plans
            WHERE id = %s
            FOR UPDATE;
            """,
            (plan_id,),
        )
        row = tx.cursor.fetchone()
        if row is None:
            return None
        return self.mapper.plan_from_row(row)

    def load_plan_tree(self, tx: PlanTransaction, plan_id: str) -> List[StoredDay]:
        tx.cursor.execute(
            """
            SELECT d.id AS day_id, d.week_number, d.day_number, d.day_date, d.title AS day_title,
                   e.id AS exercise_id, e.exercise_ref_id, e.position, e.instructions,
                   e.notes AS exercise_notes,
                   s.id AS set_id, s.set_number, s.reps, s.weight_kg, s.rest_seconds,
                   s.intensity_mode AS set_intensity_mode, s.notes AS set_notes
            FROM workout_days d
            LEFT JOIN workout_day_exercises e
                   ON e.day_id = d.id AND NOT e.is_deleted
            LEFT JOIN workout_set_instructions s
                   ON s.exercise_assignment_id = e.id AND NOT s.is_deleted
            WHERE d.plan_id = %s AND NOT d.is_deleted
            ORDER BY d.week_number, d.day_number, d.id,
                     e.position, e.id,
                     s.set_number, s.id;
            """,
            (plan_id,),
        )
        rows = tx.cursor.fetchall()
        return self.mapper.days_from_rows(plan_id, rows)

    def trainer_weight_unit(self, tx: PlanTransaction, trainer_id: Optional[str]) -> WeightUnit:
        if not trainer_id:
            return WeightUnit.KG
        tx.cursor.execute(
            "SELECT weight_unit FROM users_profile WHERE user_id = %s;",
            (trainer_id,),
        )
        row = tx.cursor.fetchone()
        if not row or not row.get("weight_unit"):
            return WeightUnit.KG
        try:
            return WeightUnit(str(row["weight_unit"]).upper())
        except ValueError:
            log_utils.warn(f"Unknown weight unit {row['weight_unit']!r} for trainer {trainer_id}; using KG.")
            return WeightUnit.KG

    def find_conflicting_plan(
        self,
        tx: PlanTransaction,
        *,
        plan_id: str,
        client_id: Optional[str],
        trainer_id: Optional[str],
        start_date: date,
        end_date: date,
    ) -> Optional[Dict[str, Any]]:
        if client_id is None or trainer_id is None:
            return None
        tx.cursor.execute(
            """
            SELECT id, title, start_date, end_date
            FROM workout_plans
            WHERE id <> %s
              AND client_id = %s
              AND trainer_id = %s
              AND status = 'PUBLISHED'
              AND start_date <= %s
              AND end_date >= %s
            ORDER BY end_date DESC
            LIMIT 1;
            """,
            (plan_id, client_id, trainer_id, end_date, start_date),
        )
        row = tx.cursor.fetchone()
        if row is None:
            return None
        return {
            "id": converters.to_id(row.get("id")),
            "title": row.get("title") or "",
            "start_date": converters.to_date(row.get("start_date")),
            "end_date": converters.to_date(row.get("end_date")),
        }

    def logged_set_ids(self, tx: PlanTransaction, set_ids: Iterable[str]) -> Set[str]:
        ids = list(set_ids)
        if not ids:
            return set()
        tx.cursor.execute(
            "SELECT DISTINCT set_id FROM exercise_logs WHERE set_id = ANY(%s::uuid[]);",
            (ids,),
        )
        return {converters.to_id(row["set_id"]) for row in tx.cursor.fetchall()}

    # ----------------------------------------------
    # --- Plan header ---
    # ----------------------------------------------
    def update_plan(self, tx: PlanTransaction, plan_id: str, meta: PlanMeta) -> None:
        tx.cursor.execute(
            """
            UPDATE workout_plans
            SET title = %s, description = %s, start_date = %s, end_date = %s,
                duration_weeks = %s, category = %s, intensity_mode = %s, status = %s,
                updated_at = now()
            WHERE id = %s;
            """,
            (
                meta.title,
                meta.description,
                meta.start_date,
                meta.end_date,
                meta.duration_weeks,
                meta.category.value,
                meta.intensity_mode.value,
                meta.status.value,
                plan_id,
            ),
        )

    def set_plan_status(self, tx: PlanTransaction, plan_id: str, status: PlanStatus) -> None:
        tx.cursor.execute(
            "UPDATE workout_plans SET status = %s, updated_at = now() WHERE id = %s;",
            (status.value, plan_id),
        )

    # ----------------------------------------------
    # --- Days ---
    # ----------------------------------------------
    def insert_day(self, tx: PlanTransaction, plan_id: str, day_id: str, day: PlannedDay) -> None:
        tx.cursor.execute(
            """
            INSERT INTO workout_days (id, plan_id, week_number, day_number, day_date, title)
            VALUES (%s, %s, %s, %s, %s, %s);
            """,
            (day_id, plan_id, day.week_number, day.day_number, day.day_date, day.title),
        )

    def update_day(self, tx: PlanTransaction, day_id: str, day: PlannedDay) -> None:
        tx.cursor.execute(
            "UPDATE workout_days SET day_date = %s, title = %s, updated_at = now() WHERE id = %s;",
            (day.day_date, day.title, day_id),
        )

    def update_day_date(self, tx: PlanTransaction, day_id: str, day_date: date) -> None:
        tx.cursor.execute(
            "UPDATE workout_days SET day_date = %s, updated_at = now() WHERE id = %s;",
            (day_date, day_id),
        )

    # ----------------------------------------------
    # --- Exercise assignments ---
    # ----------------------------------------------
    def insert_exercise(
        self, tx: PlanTransaction, day_id: str, exercise_id: str, exercise: ExerciseAssignment
    ) -> None:
        tx.cursor.execute(
            """
            INSERT INTO workout_day_exercises (id, day_id, exercise_ref_id, position, instructions, notes)
            VALUES (%s, %s, %s, %s, %s, %s);
            """,
            (
                exercise_id,
                day_id,
                exercise.exercise_ref_id,
                exercise.position,
                exercise.instructions,
                exercise.notes,
            ),
        )

    def update_exercise(self, tx: PlanTransaction, exercise_id: str, exercise: ExerciseAssignment) -> None:
        tx.cursor.execute(
            """
            UPDATE workout_day_exercises
            SET instructions = %s, notes = %s, updated_at = now()
            WHERE id = %s;
            """,
            (exercise.instructions, exercise.notes, exercise_id),
        )

    # ----------------------------------------------
    # --- Set prescriptions ---
    # ----------------------------------------------
    def insert_set(
        self, tx: PlanTransaction, exercise_id: str, set_id: str, prescription: SetPrescription
    ) -> None:
        tx.cursor.execute(
            """
            INSERT INTO workout_set_instructions (
                id, exercise_assignment_id, set_number, reps, weight_kg,
                rest_seconds, intensity_mode, notes
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s);
            """,
            (
                set_id,
                exercise_id,
                prescription.set_number,
                prescription.reps,
                prescription.weight_kg,
                prescription.rest_seconds,
                prescription.intensity_mode.value,
                prescription.notes,
            ),
        )

    def update_set(self, tx: PlanTransaction, set_id: str, prescription: SetPrescription) -> None:
        tx.cursor.execute(
            """
            UPDATE workout_set_instructions
            SET reps = %s, weight_kg = %s, rest_seconds = %s, intensity_mode = %s, notes = %s,
                updated_at = now()
            WHERE id = %s;
            """,
            (
                prescription.reps,
                prescription.weight_kg,
                prescription.rest_seconds,
                prescription.intensity_mode.value,
                prescription.notes,
                set_id,
            ),
        )

    # ----------------------------------------------
    # --- Deletions ---
    # ----------------------------------------------
    def delete_sets(self, tx: PlanTransaction, set_ids: List[str]) -> None:
        tx.cursor.execute(
            "DELETE FROM workout_set_instructions WHERE id = ANY(%s::uuid[]);",
            (list(set_ids),),
        )

    def delete_exercises(self, tx: PlanTransaction, exercise_ids: List[str]) -> None:
        tx.cursor.execute(
            "DELETE FROM workout_day_exercises WHERE id = ANY(%s::uuid[]);",
            (list(exercise_ids),),
        )

    def delete_days(self, tx: PlanTransaction, day_ids: List[str]) -> None:
        tx.cursor.execute(
            "DELETE FROM workout_days WHERE id = ANY(%s::uuid[]);",
            (list(day_ids),),
        )

    def mark_deleted(self, tx: PlanTransaction, kind: str, ids: List[str]) -> None:
        table = _SOFT_DELETE_TABLES.get(kind)
        if table is None:
            raise ValueError(f"Unknown node kind for soft delete: {kind!r}")
        tx.cursor.execute(
            f"UPDATE {table} SET is_deleted = true, deleted_at = now() WHERE id = ANY(%s::uuid[]);",
            (list(ids),),
        )

