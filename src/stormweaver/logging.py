"""Logging utilities.

Records carry the run id and the current step (pipeline stage or section title) from
context variables, and any ``extra={...}`` fields are rendered after the message.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler

_run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("stormweaver_run_id", default="-")
_step_var: contextvars.ContextVar[str] = contextvars.ContextVar("stormweaver_step", default="-")

# attributes every LogRecord has; anything else on a record came from ``extra``
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "run_id", "step"}


class _ContextFilter(logging.Filter):
    """Inject run context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.run_id = _run_id_var.get()  # type: ignore[attr-defined]
        record.step = _step_var.get()  # type: ignore[attr-defined]
        return True


class _ExtraFormatter(logging.Formatter):
    """Append ``extra`` fields to the message as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        text = super().format(record)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        if not extras:
            return text
        return text + " | " + " ".join(f"{k}={v}" for k, v in extras.items())


@contextlib.contextmanager
def run_context(*, run_id: str, step: str | None = None) -> Iterator[None]:
    """Temporarily bind run context for structured logging.

    Args:
        run_id: Run identifier.
        step: Optional step identifier; the current step is kept when omitted.
    """

    token_run = _run_id_var.set(run_id)
    token_step = _step_var.set(step or _step_var.get())
    try:
        yield
    finally:
        _run_id_var.reset(token_run)
        _step_var.reset(token_step)


@contextlib.contextmanager
def step_context(step: str) -> Iterator[None]:
    """Bind ``step`` for the duration of the block, restoring the previous one after."""

    token = _step_var.set(step)
    try:
        yield
    finally:
        _step_var.reset(token)


def set_step(step: str) -> None:
    """Update current step in context."""

    _step_var.set(step)


def current_step() -> str:
    return _step_var.get()


def current_run_id() -> str:
    return _run_id_var.get()


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Logs go to stderr through rich, so stdout stays free for command output.

    Args:
        level: Logging level name.
    """

    root = logging.getLogger()
    root.setLevel(level)

    handler = next((h for h in root.handlers if getattr(h, "_stormweaver", False)), None)
    if handler is None:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_time=True, show_level=True)
        handler._stormweaver = True  # type: ignore[attr-defined]
        handler.addFilter(_ContextFilter())
        root.addHandler(handler)
    handler.setFormatter(_ExtraFormatter(fmt="run=%(run_id)s step=%(step)s %(name)s: %(message)s"))

    # openai/httpx are chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the exception being handled, with structured context fields."""

    logger.exception(msg, extra=context)
