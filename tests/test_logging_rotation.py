import logging
from logging.handlers import RotatingFileHandler

import pytest

from coachplan import logging_setup
from coachplan.infrastructure import log_utils

LOGGER_TAG = "TEST"


@pytest.fixture
def temp_logger(tmp_path):
    log_path = tmp_path / "coachplan_history.log"
    logging_setup.configure_logging(log_path=log_path, force=True)
    adapter = logging_setup.get_logger(LOGGER_TAG)
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    try:
        yield adapter, base_logger, log_path
    finally:
        logging_setup.reset_logging()


def test_rotating_handler_defaults(temp_logger):
    _, base_logger, log_path = temp_logger
    rotating_handlers = [h for h in base_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert rotating_handlers, "Expected at least one rotating handler"
    handler = rotating_handlers[0]
    assert handler.maxBytes == logging_setup.DEFAULT_MAX_BYTES
    assert handler.backupCount == logging_setup.DEFAULT_BACKUP_COUNT
    assert handler.baseFilename == str(log_path)


def test_tagged_lines_reach_the_file(temp_logger):
    adapter, base_logger, log_path = temp_logger
    adapter.info("plan reconciled")
    for handler in base_logger.handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "[INFO] [TEST] plan reconciled" in content


def test_rotating_handler_rollover(tmp_path):
    log_path = tmp_path / "coachplan_history.log"
    logging_setup.configure_logging(
        log_path=log_path,
        force=True,
        max_bytes=512,
        backup_count=2,
    )
    adapter = logging_setup.get_logger(LOGGER_TAG)
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    try:
        payload = "x" * 256
        for _ in range(10):
            adapter.info(payload)
        for handler in base_logger.handlers:
            handler.flush()
        assert log_path.exists()
        assert log_path.with_name("coachplan_history.log.1").exists()
    finally:
        logging_setup.reset_logging()


@pytest.mark.parametrize(
    "module_name, expected",
    [
        ("coachplan.domain.deletion_guard", "GUARD"),
        ("coachplan.application.reconciliation", "RECON"),
        ("coachplan.infrastructure.postgres_dal", "DB"),
        ("coachplan.cli.main", "CLI"),
        ("coachplan.domain.identity", "GEN"),
    ],
)
def test_tag_for_module(module_name, expected):
    assert logging_setup.get_tag_for_module(module_name) == expected


def test_plan_context_is_rendered_after_the_message(temp_logger):
    adapter, base_logger, log_path = temp_logger
    adapter.info("plan reconciled", extra={"plan_id": "p-1", "created": 3, "vetoed": None})
    for handler in base_logger.handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "[TEST] plan reconciled (plan_id=p-1, created=3)" in content


def test_log_utils_forwards_context_and_tags_by_caller(temp_logger):
    _, base_logger, log_path = temp_logger
    log_utils.warn("deletion vetoed", plan_id="p-2", deleted=0)
    log_utils.info("tagged explicitly", tag="CLI")
    for handler in base_logger.handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "[WARNING] [GEN] deletion vetoed (plan_id=p-2, deleted=0)" in content
    assert "[INFO] [CLI] tagged explicitly" in content


def test_render_context_keeps_field_order():
    rendered = logging_setup.render_context({"vetoed": 1, "plan_id": "p", "actor_id": None})

    assert rendered == " (plan_id=p, vetoed=1)"
    assert logging_setup.render_context({}) == ""
