"""Structured Logging: one JSON object per line, carrying marketplace ids.

Invariants:
    - Every record has timestamp (from the record, UTC), level, logger, message
    - job_id, payment_id, review_id, user_id, error_code and friends appear only when set
    - setup_logging replaces earlier root handlers, so repeated startups never duplicate lines
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "job_id", "payment_id", "review_id", "user_id",
    "error_code", "status", "path", "recipients",
)

NOISY_LOGGERS = ("stripe", "sqlalchemy.engine", "aiosqlite")


def _plain(value):
    return value if isinstance(value, (bool, int, float)) else str(value)


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, _plain(getattr(record, key)))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"),
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
