"""Structured logging. API keys and bearer tokens never reach the output."""

from __future__ import annotations

import json
import logging
import re
import sys
from typing import Any

_SECRET_RE = re.compile(r"(sk-[A-Za-z0-9_\-]{8,}|bearer\s+\S+)", re.IGNORECASE)

# Attributes every LogRecord has; anything else came in through `extra`.
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _redact(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_redact(v) for v in obj]
    if isinstance(obj, str):
        return _SECRET_RE.sub("[REDACTED]", obj)
    return obj


class StructuredFormatter(logging.Formatter):
    """JSON or key=value lines; `extra` fields are included after redaction."""

    def __init__(self, use_json: bool = True) -> None:
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": _redact(record.getMessage()),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_FIELDS:
                log_dict[key] = _redact(value)
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        if self.use_json:
            return json.dumps(log_dict, default=str)
        return " ".join(f"{k}={v!r}" for k, v in log_dict.items())


def setup_logging(level: str = "INFO", use_json: bool = True) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(use_json=use_json))
        root.addHandler(handler)
    # werkzeug logs every request line on its own handler
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
