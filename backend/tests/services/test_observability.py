"""Tests for the JSON log formatter and the session manager's error mapping."""

import json
import logging

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import DatabaseError
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "app.services.escrow_payment", logging.WARNING, __file__, 1,
        "Escrow released", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_set_ids_only():
    entry = json.loads(JSONFormatter().format(
        _record(payment_id="p-1", recipients=3, job_id=None),
    ))
    assert entry["message"] == "Escrow released"
    assert entry["level"] == "WARNING"
    assert entry["payment_id"] == "p-1"
    assert entry["recipients"] == 3
    assert "job_id" not in entry


def test_setup_logging_replaces_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("DEBUG", "json")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("stripe").level == logging.WARNING
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])


async def test_session_maps_integrity_error_to_database_error():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    try:
        with pytest.raises(DatabaseError) as exc_info:
            async with manager.session():
                raise IntegrityError("INSERT", {}, Exception("duplicate"))
        assert exc_info.value.operation == "commit"
        assert await manager.ping() is True
    finally:
        await manager.close()
