"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep context serialization stable and shell-safe for grep-friendly output.
"""

from __future__ import annotations

import sys
from contextlib import suppress
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [f"{key}={_sanitize_context_value(context[key])}" for key in sorted(context)]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for CLI-observable workflow activity.

    Every line has the shape `[phase] level=<LEVEL> stage=<stage> event=<event> k=v ...`.
    Constructing a logger drops loguru's default stderr handler. Every logger
    tags its records, so concurrent loggers never write into each other's sink.
    """

    _DEFAULT_HANDLER_ID = 0

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Attach a `{message}`-only loguru handler for `sink` at `level`."""

        self._sink = sink or sys.stdout
        self._token = object()
        self._logger = _loguru_logger.bind(run_logger=self._token)
        with suppress(ValueError):
            _loguru_logger.remove(self._DEFAULT_HANDLER_ID)
        self._handler_id: int | None = _loguru_logger.add(
            self._sink,
            format="{message}",
            level=level,
            colorize=False,
            filter=self._owns_record,
        )

    def _owns_record(self, record: dict) -> bool:
        """Accept only records emitted through this logger."""

        return record["extra"].get("run_logger") is self._token

    def close(self) -> None:
        """Detach this logger's loguru handler."""

        if self._handler_id is None:
            return
        with suppress(ValueError):
            _loguru_logger.remove(self._handler_id)
        self._handler_id = None

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        if self._handler_id is None:
            return
        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def log_event(self, stage: str, event: str, *, level: str = "INFO", **context: object) -> None:
        """Emit an arbitrary stage event such as `skip`, `fallback`, or `batch`."""

        self._emit(level, event, stage, **context)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)
