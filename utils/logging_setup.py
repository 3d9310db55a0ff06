from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

from config.settings import get_settings


_INITIALIZED: bool = False

# Structured fields appended to every line; absent ones print as "-".
RUN_FIELDS = ("kind", "run_id", "step", "status", "duration_ms", "error")


class SafeExtraFormatter(logging.Formatter):
    """Formatter that tolerates missing run fields by injecting defaults."""

    DEFAULTS: dict[str, Any] = {name: "-" for name in RUN_FIELDS}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self.DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return super().format(record)


class RunLogger(logging.LoggerAdapter):
    """Binds the acquisition kind and run id to every record of one run.

    Per-call `extra` fields (step, status, error...) are merged over the bound ones.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> "RunLogger":
        return RunLogger(self.logger, {**self.extra, **fields})


def run_logger(logger: logging.Logger, kind: str, run_id: str) -> RunLogger:
    return RunLogger(logger, {"kind": kind, "run_id": run_id})


def init_logging(level: str | None = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level_str = (level or get_settings().log_level).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(log_level)
        fields = " ".join(f"{name}=%({name})s" for name in RUN_FIELDS)
        handler.setFormatter(SafeExtraFormatter(fmt=f"%(asctime)s %(levelname)s %(name)s %(message)s {fields}"))
        root_logger.addHandler(handler)

    _INITIALIZED = True
