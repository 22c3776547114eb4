"""Structured JSON-line logging helpers."""

import json
import logging
import os
import time
from typing import Any, Dict, Optional

Json = Dict[str, Any]

LOG_LEVEL_ENV = "STAKELEDGER_LOG_LEVEL"


def _now_ms() -> int:
    return int(time.time() * 1000)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging for JSONL output on stderr.

    Level comes from the argument, then STAKELEDGER_LOG_LEVEL, then INFO.
    Safe to call multiple times.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").strip().upper()
    resolved = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger("stakeledger")
    if getattr(root, "_stakeledger_configured", False):
        root.setLevel(resolved)
        return

    handler = logging.StreamHandler()
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(resolved)
    root.propagate = False
    setattr(root, "_stakeledger_configured", True)


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit a single JSONL log event."""
    if not logger.isEnabledFor(level):
        return
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        logger.log(level, json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.log(level, " ".join(parts))
