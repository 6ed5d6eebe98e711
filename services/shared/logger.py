"""
Structured JSON Logging for StockFlow
=====================================
One JSON line per log record, queryable with CloudWatch Logs Insights:

    fields @timestamp, message, order_id, error_kind
    | filter level = "WARNING" and logger like /allocation_service/
    | sort @timestamp desc

Usage:
  from shared.logger import get_logger
  logger = get_logger(__name__)
  logger.info("Stock allocated", extra={"order_id": "abc", "sku": "SKU-1"})

Extras may hold pydantic models, enums and Decimals; they are rendered as
JSON rather than their repr.
"""
from __future__ import annotations

import json
import logging
import os
import time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

# Standard logging.LogRecord fields we don't want in the output
_STDLIB_FIELDS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName",
}

_configured = False


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    if isinstance(value, BaseException):
        return repr(value)
    return str(value)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        log_obj: dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "service": os.environ.get("SERVICE_NAME", "stockflow"),
            "logger": record.name,
            "message": record.message,
        }

        trace_id = os.environ.get("_X_AMZN_TRACE_ID")
        if trace_id:
            log_obj["xray_trace_id"] = trace_id

        for key, value in record.__dict__.items():
            if key not in _STDLIB_FIELDS:
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger emitting structured JSON to stdout.
    Idempotent; safe to call from every module.
    """
    global _configured
    if not _configured:
        root = logging.getLogger()
        formatter = _JsonFormatter()
        if root.handlers:
            # Lambda's runtime installs its own handler; reuse it
            for h in root.handlers:
                h.setFormatter(formatter)
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            root.addHandler(handler)
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, log_level, logging.INFO))
        _configured = True
    return logging.getLogger(name)
