"""Structured logging bootstrap.

Call ``setup_logging`` once when the host process starts (the
``controller_lifespan`` helper in ``taskgate.infra.lifespan`` does it for
you).  Every ``logging.getLogger(__name__)`` in the package then emits
either:

* **JSON lines** (``json_output=True``): one machine-parseable record
  per line.
* **Plain text** (``json_output=False``, default): timestamp-prefixed
  lines for local runs.

Records carry the ``trace_id``/``span_id`` of the task span that logged
them, empty when tracing is off.
"""

from __future__ import annotations

import logging
import sys

from taskgate.configs.system import LoggingConfig
from taskgate.infra.telemetry import get_current_trace_context

_PLAIN_FORMAT = "%(levelname)-8s %(asctime)s %(name)s  %(message)s"
_PLAIN_DATEFMT = "%H:%M:%S"
_JSON_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
)


class _TraceContextFilter(logging.Filter):
    """Adds ``trace_id`` / ``span_id`` attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        trace_ctx = get_current_trace_context()
        record.trace_id, record.span_id = trace_ctx or ("", "")  # type: ignore[attr-defined]
        return True


class _TaskgateHandler(logging.StreamHandler):
    """Marker subclass so repeated setup replaces only our own handler."""


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if not config.json_output:
        return logging.Formatter(fmt=_PLAIN_FORMAT, datefmt=_PLAIN_DATEFMT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt=_JSON_FORMAT,
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
        defaults={"trace_id": "", "span_id": ""},
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the stdout handler on the root logger.

    Handlers installed by the host application are left in place;
    calling this again swaps the previous taskgate handler.
    """
    if config is None:
        config = LoggingConfig()

    root = logging.getLogger()
    root.setLevel(config.level.upper())

    handler = _TaskgateHandler(sys.stdout)
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_build_formatter(config))

    root.handlers = [
        h for h in root.handlers if not isinstance(h, _TaskgateHandler)
    ] + [handler]

    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
