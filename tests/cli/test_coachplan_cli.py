import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

import coachplan.cli.main as cli_main
from coachplan.application.reconciliation import ReconcileResult
from coachplan.cli.main import app
from coachplan.cli.status import CheckResult
from tests.payloads import plan_payload

runner = CliRunner()


@pytest.fixture
def service(monkeypatch):
    mock_service = MagicMock()
    monkeypatch.setattr(cli_main, "_build_service", lambda: mock_service)
    return mock_service


@pytest.fixture
def payload_file(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(plan_payload()), encoding="utf-8")
    return path


def test_reconcile_success(service, payload_file):
    service.reconcile.return_value = ReconcileResult(ok=True)

    result = runner.invoke(app, ["reconcile", "plan-1", str(payload_file), "--actor", "trainer-1"])

    assert result.exit_code == 0
    assert "Plan plan-1 updated." in result.stdout
    submitted = service.reconcile.call_args.args[0]
    assert submitted["plan_id"] == "plan-1"
    assert "planId" not in submitted
    assert service.reconcile.call_args.kwargs == {"actor_id": "trainer-1"}


def test_reconcile_failure_prints_message(service, payload_file):
    service.reconcile.return_value = ReconcileResult(ok=False, message="Plan not found: plan-1")

    result = runner.invoke(app, ["reconcile", "plan-1", str(payload_file)])

    assert result.exit_code == 1
    assert "Plan not found: plan-1" in result.stdout


def test_reconcile_rejects_mismatched_plan_id(service, payload_file):
    result = runner.invoke(app, ["reconcile", "plan-2", str(payload_file)])

    assert result.exit_code == 1
    assert "does not match" in result.stdout
    service.reconcile.assert_not_called()


def test_reconcile_rejects_invalid_json(service, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["reconcile", "plan-1", str(broken)])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.stdout
    service.reconcile.assert_not_called()


def test_archive_and_restore(service):
    service.set_plan_archived.return_value = ReconcileResult(ok=True)

    archived = runner.invoke(app, ["archive", "plan-1"])
    restored = runner.invoke(app, ["archive", "plan-1", "--restore"])

    assert archived.exit_code == 0 and "archived" in archived.stdout
    assert restored.exit_code == 0 and "restored to draft" in restored.stdout
    assert [c.args[1] for c in service.set_plan_archived.call_args_list] == [True, False]


def test_status_reports_failures(monkeypatch):
    captured = {}

    def fake_checks(*, timeout, checks=None):
        captured["timeout"] = timeout
        return [CheckResult("DB", False, "connection refused"), CheckResult("Schema", True, "5 tables")]

    monkeypatch.setattr(cli_main, "run_status_checks", fake_checks)

    result = runner.invoke(app, ["status", "--timeout", "2.5"])

    assert result.exit_code == 1
    assert "FAIL" in result.stdout
    assert "connection refused" in result.stdout
    assert captured["timeout"] == 2.5
