"""Logging setup for analysis runs.

Events are emitted with structlog and handed to the stdlib ``logging``
tree, so each configured output (stderr, stdout or a file) filters by its
own level and renders as JSON or console text.

Every analysis pass gets a short run id. While a pass is active the id is
attached to each event, including events logged from worker threads that
run inside a copy of the caller's context.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from codeatlas.config.models import LoggingConfig, LogOutputConfig

RUN_ID_LENGTH = 12

_current_run: ContextVar[str | None] = ContextVar("codeatlas_run_id", default=None)


def new_run_id() -> str:
    return uuid4().hex[:RUN_ID_LENGTH]


def get_run_id() -> str | None:
    return _current_run.get()


def set_run_id(run_id: str | None = None) -> str:
    """Make ``run_id`` (or a fresh id) current in this context and return it."""
    run_id = run_id or new_run_id()
    _current_run.set(run_id)
    return run_id


def clear_run_id() -> None:
    _current_run.set(None)


@contextmanager
def run_scope(run_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Scope one analysis pass.

    Events logged inside the block carry the run id and ``fields``. On exit
    the previous run id and bound fields come back, so scopes can nest.

    Example:
        with run_scope(repo="acme/app") as run_id:
            log.info("analysis_started")
    """
    rid = run_id or new_run_id()
    token = _current_run.set(rid)
    try:
        with structlog.contextvars.bound_contextvars(**fields):
            yield rid
    finally:
        _current_run.reset(token)


def _inject_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    run_id = _current_run.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


def _level_number(name: str | None, default: int) -> int:
    if not name:
        return default
    # getLevelName maps a registered name (WARN included) back to its number
    number = logging.getLevelName(name.upper())
    return number if isinstance(number, int) else default


def _build_handler(
    output: LogOutputConfig,
    pre_chain: list[structlog.types.Processor],
    default_level: int,
) -> logging.Handler:
    console = output.destination in ("stderr", "stdout")
    handler: logging.Handler
    if console:
        handler = logging.StreamHandler(getattr(sys, output.destination))
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")

    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        colors = console and getattr(sys, output.destination).isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    handler.setLevel(_level_number(output.level, default_level))
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route log events to the outputs in ``config``.

    Without a config a single stderr output is set up at ``level``, as JSON
    when ``json_format`` is set. A later call replaces the earlier setup.
    """
    from codeatlas.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level_number(config.level, logging.INFO)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _inject_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # loggers created before this call must pick up the new setup
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(root_level)
    for output in config.outputs:
        root.addHandler(_build_handler(output, pre_chain, root_level))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Lazy logger; ``name`` is recorded as the ``logger`` field."""
    initial = {"logger": name} if name else {}
    return structlog.get_logger(**initial)  # type: ignore[no-any-return]
