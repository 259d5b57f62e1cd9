"""Logging setup.

Records carry the bound request id and pipeline stage, plus any ``extra=`` fields passed at the
call site, rendered as ``key=value`` pairs after the message. Output goes to stderr so a generated
document can be piped from stdout.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Iterator

from rich.console import Console
from rich.logging import RichHandler


_request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("mdxai_request_id", default="-")
_stage_var: contextvars.ContextVar[str] = contextvars.ContextVar("mdxai_stage", default="-")

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "request_id", "stage"}

# Chatty HTTP client loggers pulled in by the openai SDK.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


class _ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = _request_id_var.get()  # type: ignore[attr-defined]
        record.stage = _stage_var.get()  # type: ignore[attr-defined]
        return True


class _ExtraFormatter(logging.Formatter):
    """Append ``extra=`` fields to the formatted message in a stable order."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        text = super().format(record)
        fields = sorted((k, v) for k, v in record.__dict__.items() if k not in _RECORD_ATTRS)
        if not fields:
            return text
        return text + " " + " ".join(f"{k}={v}" for k, v in fields)


@contextlib.contextmanager
def request_context(*, request_id: str, stage: str | None = None) -> Iterator[None]:
    """Bind a request id (and optionally a stage) for every record logged inside the block."""

    token_request = _request_id_var.set(request_id)
    token_stage = _stage_var.set(stage or _stage_var.get())
    try:
        yield
    finally:
        _request_id_var.reset(token_request)
        _stage_var.reset(token_stage)


def set_stage(stage: str) -> None:
    """Move the current request on to ``stage``."""

    _stage_var.set(stage)


def configure_logging(level: str = "INFO") -> None:
    """Install the stderr rich handler on the root logger.

    Safe to call repeatedly; an existing rich handler is reconfigured instead of duplicated.

    Args:
        level: Logging level name for mdxai loggers. The HTTP client loggers stay at WARNING
            unless ``level`` is DEBUG.
    """

    formatter = _ExtraFormatter(fmt="request=%(request_id)s stage=%(stage)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
    if not handlers:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        root.addHandler(handler)
        handlers = [handler]
    for handler in handlers:
        if not any(isinstance(f, _ContextFilter) for f in handler.filters):
            handler.addFilter(_ContextFilter())
        handler.setFormatter(formatter)

    noisy_level = logging.DEBUG if logging.getLevelName(level) == logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)
