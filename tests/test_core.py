import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from onboarding.core.config import Settings, validate_settings
from onboarding.core.exceptions import OnboardingError, StorageError
from onboarding.core.logging import (
    DevelopmentFormatter,
    LogContext,
    StructuredFormatter,
    get_logger,
    setup_logging,
)
from onboarding.db.json_store import JsonDocumentStore
from onboarding.utils.time_utils import has_elapsed, parse_timestamp


def test_settings_defaults(monkeypatch):
    for name in ("ONBOARDING_DATA_DIR", "USER_STATES_FILENAME", "JSON_INDENT"):
        monkeypatch.delenv(name, raising=False)

    s = Settings(_env_file=None)

    assert s.ONBOARDING_DATA_DIR == "data/onboarding"
    assert s.USER_STATES_FILENAME == "userStates.json"
    assert s.JSON_INDENT == 2
    assert validate_settings() is True


def test_settings_reject_path_in_filename(monkeypatch):
    monkeypatch.setenv("USER_STATES_FILENAME", "../states.json")
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_storage_error_shape():
    err = StorageError("boom", details={"path": "x"})

    assert isinstance(err, OnboardingError)
    assert err.code == "STORAGE_ERROR"
    assert err.details == {"path": "x"}
    assert str(err) == "boom"


def test_get_logger_namespacing():
    assert get_logger("services.user_state_manager").name == "onboarding.services.user_state_manager"
    assert get_logger("onboarding.db.json_store").name == "onboarding.db.json_store"


def test_structured_formatter_includes_context():
    logger = get_logger("tests")
    with LogContext(user_id="u1", guild_id="g1"):
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "hello", None, None)

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["message"] == "hello"
    assert payload["user_id"] == "u1"
    assert payload["guild_id"] == "g1"


def test_log_context_is_cleared_on_exit():
    logger = get_logger("tests")
    with LogContext(step="rules"):
        inside = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "in", None, None)
    outside = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "out", None, None)

    assert inside.step == "rules"
    assert not hasattr(outside, "step")


def test_log_context_is_task_local():
    logger = get_logger("tests")

    async def record_for(user_id, delay):
        with LogContext(user_id=user_id):
            await asyncio.sleep(delay)
            return logger.makeRecord(logger.name, logging.INFO, __file__, 1, "x", None, None)

    async def run():
        return await asyncio.gather(record_for("a", 0.02), record_for("b", 0.01))

    first, second = asyncio.run(run())

    assert first.user_id == "a"
    assert second.user_id == "b"


def test_parse_timestamp_variants():
    assert parse_timestamp("2024-01-01T00:00:00.000Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T00:00:00").tzinfo is not None
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_has_elapsed_boundary():
    now = datetime(2024, 1, 2, tzinfo=timezone.utc)

    assert has_elapsed("2024-01-01T00:00:00+00:00", timedelta(hours=24), now=now)
    assert not has_elapsed("2024-01-01T00:00:01+00:00", timedelta(hours=24), now=now)
    assert not has_elapsed(None, timedelta(hours=24), now=now)


def test_json_store_missing_file_reads_empty(tmp_path):
    store = JsonDocumentStore(tmp_path / "missing.json")
    assert asyncio.run(store.read()) == {}


def test_json_store_write_then_read(tmp_path):
    store = JsonDocumentStore(tmp_path / "nested" / "doc.json", indent=2)

    async def run():
        await store.ensure_directory()
        await store.write({"g-u": {"step": "reglas ✅"}})
        return await store.read()

    assert asyncio.run(run()) == {"g-u": {"step": "reglas ✅"}}
    assert "✅" in (tmp_path / "nested" / "doc.json").read_text(encoding="utf-8")


def test_json_store_write_failure_raises_storage_error(tmp_path):
    store = JsonDocumentStore(tmp_path / "no-such-dir" / "doc.json")

    with pytest.raises(StorageError):
        asyncio.run(store.write({}))


def test_development_formatter_shows_context():
    logger = get_logger("tests")
    with LogContext(guild_id="g1", user_id="u1", step="rules"):
        record = logger.makeRecord(logger.name, logging.WARNING, __file__, 1, "careful", None, None)

    text = DevelopmentFormatter().format(record)

    assert "careful" in text
    assert "[guild=g1, user=u1, step=rules]" in text


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        logger = setup_logging()

        assert logger.name == "onboarding"
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, (DevelopmentFormatter, StructuredFormatter))
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
