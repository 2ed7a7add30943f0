#!/usr/bin/env python3
# ============================================================
# breakout_radar/settings/settings.py — v1.0
# (env-aware paths, logging, exchange calendar + session windows)
# ============================================================
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

# ============================================================
# 🧭 Environment
#   BREAKOUT_ENV controls dev/prod path roots (default: dev)
# ============================================================
_ENV = os.getenv("BREAKOUT_ENV", "dev").strip().lower()
if _ENV not in {"dev", "prod"}:
    _ENV = "dev"


def get_env() -> str:
    return _ENV


# ============================================================
# 📁 Paths (project-relative; no imports from helpers)
# ============================================================
_REPO_ROOT = Path(__file__).resolve().parents[2]


def _env_base(env: str) -> Path:
    env = (env or "dev").strip().lower()
    base = _REPO_ROOT / "breakout_radar" / "data" / "runtime"
    return base if env != "prod" else base / "prod"


def _mk(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def _build_paths(env: str) -> Dict[str, Path]:
    base_runtime = _env_base(env)
    return {
        "ROOT": _REPO_ROOT,
        "RUNTIME": _mk(base_runtime),
        "LOGS": _mk(base_runtime / "logs"),
    }


PATHS: Dict[str, Path] = _build_paths(get_env())


# ============================================================
# 🪵 Logging
# ============================================================
LOGGING = {
    "LEVEL": "INFO",
    "ROTATE_ENABLED": True,
    "MAX_SIZE_MB": 25,
    "BACKUP_COUNT": 5,
    "CONSOLE_ENABLED": True,
    "FILES": {
        "CORE": "breakout_activity.log",
    },
}

# ============================================================
# 🏛️ Exchange (calendar + intraday session windows)
#   Windows are "HH:MM" strings in MARKET_TIMEZONE.
# ============================================================
EXCHANGE = {
    "MARKET_TIMEZONE": "Asia/Kolkata",
    "EXCHANGES": {
        "NSE": {
            "MARKET_HOURS": {
                "OPEN": "09:30",
                "CLOSE": "15:30",
            },
            "TRADING_DAYS": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
            "EXPIRY_DAY": "Thursday",
            "SESSION_WINDOWS": {
                "OPTIMAL": [("09:30", "11:30"), ("14:30", "15:15")],
                "LUNCH": ("12:00", "14:00"),
                "EXPIRY_TAIL_FROM": "15:00",
            },
            "STRIKE_STEP": 50,
        },
    },
    "ACTIVE": "NSE",
}


# ============================================================
# 🔎 Access helpers
# ============================================================
def log_file(name: str) -> Path:
    """Return resolved path for a named log stream (e.g., 'CORE')."""
    fname = LOGGING.get("FILES", {}).get(name.upper(), f"{name.lower()}.log")
    PATHS["LOGS"].mkdir(parents=True, exist_ok=True)
    return PATHS["LOGS"] / fname


def market_timezone() -> str:
    return EXCHANGE.get("MARKET_TIMEZONE", "Asia/Kolkata")


def active_exchange() -> str:
    return EXCHANGE.get("ACTIVE", "NSE")


def exchange_info(name: str | None = None) -> Dict[str, Any]:
    name = name or active_exchange()
    return (EXCHANGE.get("EXCHANGES") or {}).get(name, {})


def strike_step() -> float:
    return float(exchange_info().get("STRIKE_STEP", 50))
