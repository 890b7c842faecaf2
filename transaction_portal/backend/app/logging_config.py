# backend/app/logging_config.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .config import Settings, settings as default_settings
from .middleware.structured_logging import current_request

# Record attributes that make it into the JSON line when present. Services
# pass transaction_id/status as extras; request_id/user_id/role come from the
# request context filter below unless the call site set them itself.
PORTAL_FIELDS = ("request_id", "user_id", "role", "transaction_id", "status")
HTTP_FIELDS = ("method", "path", "status_code", "latency_ms")


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        ctx = current_request()
        if ctx is None:
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = ctx.request_id
        if getattr(record, "user_id", None) is None and ctx.user_id:
            record.user_id = ctx.user_id
        if getattr(record, "role", None) is None and ctx.role:
            record.role = ctx.role
        return True


def _jsonable(v: Any) -> Any:
    if isinstance(v, Enum):
        return v.value
    return v


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k in PORTAL_FIELDS + HTTP_FIELDS:
            v = getattr(record, k, None)
            if v is not None:
                payload[k] = _jsonable(v)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or default_settings
    level = settings.log_level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    # uvicorn --reload re-imports the app; don't stack handlers
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
