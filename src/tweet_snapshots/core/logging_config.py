"""structlog setup shared by the API process, the Celery worker and Beat.

``configure_logging()`` routes both ``logging.getLogger(__name__)`` records
and ``structlog.get_logger(__name__)`` events through one
``ProcessorFormatter`` on stdout: newline-delimited JSON normally, coloured
console output when the level is ``DEBUG``.

Context bound with ``structlog.contextvars`` (the API middleware binds
``request_id``; the dispatch loop binds ``username``) is merged into stdlib
records as well, so pipeline modules can keep using plain stdlib loggers.

Nothing secret may reach a renderer: keys naming a secret are replaced, and
the trigger's ``secret=`` query parameter is masked inside any string value
(uvicorn logs request lines with their query string).
"""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Request ID set by the API middleware; see :func:`_inject_request_id`."""

REDACTED = "[REDACTED]"

_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "secret",
    "password",
    "token",
    "credential",
    "authorization",
    "api_key",
})

_SECRET_QUERY_RE = re.compile(r"([?&]secret=)[^&\s\"']*", re.IGNORECASE)

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _is_secret_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(fragment in lowered for fragment in _SECRET_SUBSTRINGS)


def _mask_query_secret(value: Any) -> Any:
    if isinstance(value, str) and "secret=" in value.lower():
        return _SECRET_QUERY_RE.sub(rf"\g<1>{REDACTED}", value)
    return value


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Redact secret-bearing keys and ``secret=`` query values.

    Top-level keys and the keys of directly nested dicts are checked
    case-insensitively against :data:`_SECRET_SUBSTRINGS`.  String values
    that survive (including ``event`` itself) have any ``secret=`` query
    parameter masked.
    """
    for key, value in list(event_dict.items()):
        if _is_secret_key(key):
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if _is_secret_key(k) else _mask_query_secret(v)
                for k, v in value.items()
            }
        else:
            event_dict[key] = _mask_query_secret(value)
    return event_dict


def _inject_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Add ``request_id`` from :data:`request_id_var` unless already bound."""
    rid = request_id_var.get()
    if rid is not None:
        event_dict.setdefault("request_id", rid)
    return event_dict


def _pre_chain() -> list[Processor]:
    """Processors applied to every record before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        _inject_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # Last, so rendered exception text is masked too.
        _redact_secrets,
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Install the stdout handler and configure structlog.

    Safe to call repeatedly: the root logger keeps exactly one handler and
    structlog's configuration is replaced.  The API calls it at import time
    and again from ``create_app()``; the worker calls it from Celery's
    ``setup_logging`` signal.

    Args:
        log_level: Level name, case-insensitive.  Unknown names fall back to
            ``INFO``.  ``DEBUG`` switches to the console renderer and keeps
            per-request httpx logging.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"
    pre_chain = _pre_chain()

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if debug
        else structlog.processors.JSONRenderer(ensure_ascii=False)
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # One httpx line per content URL drowns out the per-user summaries.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
