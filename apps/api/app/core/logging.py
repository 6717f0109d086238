from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

SERVICE_NAME = "penpals-api"

_OPTIONAL_FIELDS = (
    "request_id",
    "user_id",
    "role",
    "letter_id",
    "kid_id",
    "parent_id",
    "elf_id",
    "plan_type",
    "event_type",
    "event_id",
    "route",
    "method",
    "status_code",
    "execution_time_ms",
)


class JsonFormatter(logging.Formatter):
    def __init__(self, environment: str) -> None:
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "environment": self.environment,
        }

        for field in _OPTIONAL_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=True)


def setup_json_logging(environment: str, level: int = logging.INFO) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(environment))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
