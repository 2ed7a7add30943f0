#!/usr/bin/env python3
# ============================================================
# breakout_radar/helpers/logger.py — v1.0 (Settings-Driven Logger)
# ------------------------------------------------------------
# One "BreakoutRadar" logger:
#   • Rich console (off under pytest or BREAKOUT_LOG_CONSOLE=0)
#   • JSONL rotating file under PATHS["LOGS"] (or BREAKOUT_LOG_FILE)
# ============================================================
from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from breakout_radar.settings import settings as SETTINGS


@lru_cache(maxsize=1)
def _resolve_log_file() -> Path:
    """env BREAKOUT_LOG_FILE wins; else settings LOGGING.FILES.CORE under PATHS["LOGS"]."""
    env_path = os.getenv("BREAKOUT_LOG_FILE")
    if env_path:
        p = Path(env_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    return SETTINGS.log_file("CORE")


log_file = _resolve_log_file()
_cfg = SETTINGS.LOGGING
LEVEL = getattr(logging, str(_cfg.get("LEVEL", "INFO")).upper(), logging.INFO)

_env_console = os.getenv("BREAKOUT_LOG_CONSOLE")
if _env_console is not None:
    CONSOLE_ENABLED = _env_console != "0"
else:
    CONSOLE_ENABLED = bool(_cfg.get("CONSOLE_ENABLED", True)) and not os.getenv("PYTEST_CURRENT_TEST")


class JSONLFormatter(logging.Formatter):
    """One JSON object per record; tracebacks land under "exc"."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(timespec="seconds"),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
            "env": SETTINGS.get_env(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _file_handler() -> logging.Handler:
    if _cfg.get("ROTATE_ENABLED", True):
        h: logging.Handler = RotatingFileHandler(
            log_file,
            maxBytes=int(_cfg.get("MAX_SIZE_MB", 25)) * 1024 * 1024,
            backupCount=int(_cfg.get("BACKUP_COUNT", 5)),
            encoding="utf-8",
        )
    else:
        h = logging.FileHandler(log_file, encoding="utf-8")
    h.setFormatter(JSONLFormatter())
    return h


console = Console()

log = logging.getLogger("BreakoutRadar")
if not getattr(log, "_breakout_init_done", False):
    log.setLevel(LEVEL)
    if CONSOLE_ENABLED:
        log.addHandler(
            RichHandler(
                console=console,
                markup=False,
                rich_tracebacks=True,
                show_path=False,
                log_time_format="%H:%M:%S",
            )
        )
    log.addHandler(_file_handler())
    log.propagate = False
    log._breakout_init_done = True  # type: ignore[attr-defined]


__all__ = ["log", "console", "JSONLFormatter", "log_file"]
