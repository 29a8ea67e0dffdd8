import hmac
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Header, HTTPException, Query, Request

from coachplan.application.reconciliation import PlanReconciliationService
from coachplan.cli.status import (
    DEFAULT_TIMEOUT_SECONDS,
    render_results,
    run_status_checks,
)
from coachplan.config import settings  # loads .env via BaseSettings
from coachplan.infrastructure import log_utils

app = FastAPI(title="coachplan API")


# Helper to validate API key from header OR query string
def validate_api_key(request: Request, x_api_key: str | None) -> None:
    expected = settings.COACHPLAN_API_KEY
    key = x_api_key or request.query_params.get("api_key")
    if not expected or not key or not hmac.compare_digest(str(key), str(expected)):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def get_reconciliation_service() -> PlanReconciliationService:
    from coachplan.infrastructure.di_container import get_container

    return get_container().resolve(PlanReconciliationService)


@app.get("/")
def root_get():
    return {"status": "ok", "message": "coachplan API root"}


@app.put("/plans/{plan_id}")
def reconcile_plan(
    plan_id: str,
    request: Request,
    payload: Dict[str, Any] = Body(...),
    x_api_key: str = Header(None),
    x_trainer_id: Optional[str] = Header(None),
):
    """
    Replace the plan's days, exercises and sets with the submitted document.
    Always answers 200 with ``{"ok": true}`` or ``{"ok": false, "message": ...}``.
    """
    validate_api_key(request, x_api_key)

    submitted_id = payload.get("plan_id", payload.get("planId"))
    if submitted_id is not None and str(submitted_id) != plan_id:
        return {"ok": False, "message": "Plan id in the body does not match the URL."}
    body = {key: value for key, value in payload.items() if key != "planId"}
    body["plan_id"] = plan_id

    log_utils.info(f"API reconcile requested for plan {plan_id}.")
    result = get_reconciliation_service().reconcile(body, actor_id=x_trainer_id)
    return result.to_dict()


@app.post("/plans/{plan_id}/archive")
def archive_plan(
    plan_id: str,
    request: Request,
    archive: bool = Query(True, description="Archive when true, restore to draft when false."),
    x_api_key: str = Header(None),
    x_trainer_id: Optional[str] = Header(None),
):
    validate_api_key(request, x_api_key)
    result = get_reconciliation_service().set_plan_archived(plan_id, archive, actor_id=x_trainer_id)
    return result.to_dict()


@app.get("/status")
def status(
    request: Request,
    x_api_key: str = Header(None),
    timeout: float = Query(
        DEFAULT_TIMEOUT_SECONDS,
        ge=0.1,
        description="Connection timeout in seconds.",
    ),
):
    """Expose the CLI health check results via the API."""

    validate_api_key(request, x_api_key)

    results = run_status_checks(timeout=timeout)
    checks = [
        {"name": result.name, "ok": result.ok, "detail": result.detail}
        for result in results
    ]

    return {
        "ok": all(check["ok"] for check in checks),
        "checks": checks,
        "summary": render_results(results),
    }
