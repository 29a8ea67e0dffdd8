"""Health check support for the coachplan CLI and API."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Iterable, List, Sequence

import psycopg

from coachplan.config import get_database_url

DEFAULT_TIMEOUT_SECONDS = 3.0

REQUIRED_TABLES = (
    "workout_plans",
    "workout_days",
    "workout_day_exercises",
    "workout_set_instructions",
    "exercise_logs",
)


@dataclass
class CheckResult:
    """Represents a single dependency check outcome."""

    name: str
    ok: bool
    detail: str


def _format_duration(start: float) -> str:
    elapsed = perf_counter() - start
    if elapsed < 0.001:
        return "<1ms"
    return f"{int(elapsed * 1000)}ms"


def _format_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if not message:
        message = exc.__class__.__name__
    return message.splitlines()[0]


def check_database(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> CheckResult:
    start = perf_counter()
    try:
        with psycopg.connect(get_database_url(), connect_timeout=timeout) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
    except (psycopg.Error, RuntimeError) as exc:
        return CheckResult(name="DB", ok=False, detail=_format_exception(exc))
    return CheckResult(name="DB", ok=True, detail=_format_duration(start))


def check_schema(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> CheckResult:
    """Confirm the plan tables exist."""
    try:
        with psycopg.connect(get_database_url(), connect_timeout=timeout) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT table_name FROM information_schema.tables WHERE table_name = ANY(%s)",
                    (list(REQUIRED_TABLES),),
                )
                present = {row[0] for row in cur.fetchall()}
    except (psycopg.Error, RuntimeError) as exc:
        return CheckResult(name="Schema", ok=False, detail=_format_exception(exc))
    missing = [name for name in REQUIRED_TABLES if name not in present]
    if missing:
        return CheckResult(name="Schema", ok=False, detail=f"missing {', '.join(missing)}")
    return CheckResult(name="Schema", ok=True, detail=f"{len(REQUIRED_TABLES)} tables")


def run_status_checks(
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    checks: Sequence[Callable[[], CheckResult]] | None = None,
) -> List[CheckResult]:
    """Executes dependency checks, allowing override for testing."""

    if checks is None:
        checks = (
            lambda: check_database(timeout),
            lambda: check_schema(timeout),
        )

    return [check() for check in checks]


def render_results(results: Iterable[CheckResult]) -> str:
    lines = []
    for result in results:
        status = "OK" if result.ok else "FAIL"
        lines.append(f"{result.name:<8} {status:<4} {result.detail}")
    return "\n".join(lines)
