"""
Structured logging for client calls.

Events are ordinary log records whose message is the event name and whose
fields ride along as record attributes, so any handler can pick them up.
`LogfmtFormatter` renders them as `key=value` pairs:

    level=info logger=declarest.dispatcher event=client_call method=get_issue ...
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import IO, Any, Dict, Iterable, Optional

# Every attribute a bare LogRecord carries, plus the two Formatter fills in.
RESERVED_LOG_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

LOG_EXTRA_FIELDS = (
    "request_id",
    "method",
    "verb",
    "endpoint",
    "url",
    "status",
    "duration_ms",
    "attempt",
    "error_type",
)


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS and v is not None
    }


def new_request_id(candidate: Optional[str] = None) -> str:
    return candidate or uuid.uuid4().hex


def elapsed_ms(start: float) -> int:
    """Milliseconds since a `time.perf_counter()` reading."""
    return int((time.perf_counter() - start) * 1000)


def log_event(
    event: str,
    logger: Optional[logging.Logger] = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit one structured event.
    - The event name is the log message and is also stored as `event`
    - Fields set to None are left off the record
    - Names that collide with LogRecord attributes are dropped
    """
    log = logger or logging.getLogger("declarest.observability")
    if not log.isEnabledFor(level):
        return
    extra = {"event": event, **_clean_fields(fields)}
    log.log(level, event, extra=extra)


class LogfmtFormatter(logging.Formatter):
    """logfmt renderer for declarest events; missing fields are skipped."""

    def __init__(
        self, fields: Iterable[str] = LOG_EXTRA_FIELDS, *, timestamps: bool = False
    ):
        super().__init__()
        self.fields = tuple(fields)
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        kv: list[str] = []
        if self.timestamps:
            kv.append(f"ts={self.formatTime(record, '%Y-%m-%dT%H:%M:%S%z')}")
        kv.append(f"level={record.levelname.lower()}")
        kv.append(f"logger={record.name}")

        msg = record.getMessage()
        if msg:
            kv.append(f"event={self._fmt_val(msg)}")

        for key in self.fields:
            val = getattr(record, key, None)
            if val is None:
                continue
            kv.append(f"{key}={self._fmt_val(val)}")

        if record.exc_info and record.exc_info[0] is not None:
            kv.append(f"exc_type={record.exc_info[0].__name__}")

        return " ".join(kv)

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, bool):
            return "true" if val else "false"
        if isinstance(val, (int, float)):
            return str(val)
        s = str(val)
        if not s or any(c in s for c in ' ="'):
            s = '"' + s.replace('"', '\\"') + '"'
        return s


class _LogfmtHandler(logging.StreamHandler):
    pass


def setup_logging(
    level: str = "INFO",
    *,
    logger_name: str = "declarest",
    stream: Optional[IO[str]] = None,
    timestamps: bool = False,
) -> logging.Logger:
    """
    Attach a logfmt handler to `logger_name` (the declarest tree by default).
    Calling it again swaps the previous logfmt handler instead of stacking one.
    """
    logger = logging.getLogger(logger_name or None)
    for h in list(logger.handlers):
        if isinstance(h, _LogfmtHandler):
            logger.removeHandler(h)

    handler = _LogfmtHandler(stream or sys.stderr)
    handler.setFormatter(LogfmtFormatter(timestamps=timestamps))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


__all__ = [
    "LOG_EXTRA_FIELDS",
    "RESERVED_LOG_KEYS",
    "LogfmtFormatter",
    "elapsed_ms",
    "log_event",
    "new_request_id",
    "setup_logging",
]
