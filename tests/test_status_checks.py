import coachplan.cli.status as status
from coachplan.cli.status import CheckResult


def test_run_status_checks_uses_injected_checks():
    calls = []

    def first():
        calls.append("first")
        return CheckResult("DB", True, "2ms")

    def second():
        calls.append("second")
        return CheckResult("Schema", False, "missing exercise_logs")

    results = status.run_status_checks(checks=[first, second])

    assert calls == ["first", "second"]
    assert [r.ok for r in results] == [True, False]


def test_default_checks_receive_timeout(monkeypatch):
    seen = {}

    def fake_db(timeout):
        seen["db"] = timeout
        return CheckResult("DB", True, "1ms")

    def fake_schema(timeout):
        seen["schema"] = timeout
        return CheckResult("Schema", True, "5 tables")

    monkeypatch.setattr(status, "check_database", fake_db)
    monkeypatch.setattr(status, "check_schema", fake_schema)

    results = status.run_status_checks(timeout=1.5)

    assert seen == {"db": 1.5, "schema": 1.5}
    assert all(r.ok for r in results)


def test_render_results_aligns_columns():
    rendered = status.render_results(
        [CheckResult("DB", True, "3ms"), CheckResult("Schema", False, "missing workout_days")]
    )

    lines = rendered.splitlines()
    assert lines[0] == "DB       OK   3ms"
    assert lines[1] == "Schema   FAIL missing workout_days"


def test_check_database_reports_missing_configuration(monkeypatch):
    def no_url():
        raise RuntimeError("DATABASE_URL is not configured")

    monkeypatch.setattr(status, "get_database_url", no_url)

    result = status.check_database(timeout=0.1)

    assert result.ok is False
    assert result.detail == "DATABASE_URL is not configured"
