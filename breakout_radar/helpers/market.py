#!/usr/bin/env python3
# ============================================================
# breakout_radar/helpers/market.py — v1.0 (session gate)
# ============================================================
"""Market Time & Session Gate
--------------------------
✅ Delegates ALL exchange data to breakout_radar.settings.settings
✅ Pure functions of a timestamp: no wall-clock reads inside the gate
❌ No holiday calendar (weekday-only trading days)
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from breakout_radar.settings import settings as SETTINGS

# -----------------------------
# TZ & exchange info
# -----------------------------
MARKET_TZ = ZoneInfo(SETTINGS.market_timezone())

_EX_INFO: dict = SETTINGS.exchange_info() or {}


def _t(hhmm: str) -> dt.time:
    return dt.time.fromisoformat(hhmm)


def _hours() -> dict:
    h = _EX_INFO.get("MARKET_HOURS") or {}
    return {
        "OPEN": h.get("OPEN") or "09:30",
        "CLOSE": h.get("CLOSE") or "15:30",
    }


MARKET_HOURS = _hours()
TRADING_DAYS = _EX_INFO.get(
    "TRADING_DAYS", ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
)
EXPIRY_DAY = _EX_INFO.get("EXPIRY_DAY", "Thursday")

_WIN = _EX_INFO.get("SESSION_WINDOWS") or {}
OPEN_T = _t(MARKET_HOURS["OPEN"])
CLOSE_T = _t(MARKET_HOURS["CLOSE"])
OPTIMAL_WINDOWS = [
    (_t(a), _t(b)) for a, b in _WIN.get("OPTIMAL", [("09:30", "11:30"), ("14:30", "15:15")])
]
LUNCH_WINDOW = tuple(_t(x) for x in _WIN.get("LUNCH", ("12:00", "14:00")))
EXPIRY_TAIL_FROM = _t(_WIN.get("EXPIRY_TAIL_FROM", "15:00"))


def ensure_tz_aware(ts: dt.datetime) -> dt.datetime:
    """Coerce a naive datetime to MARKET_TZ; otherwise convert to MARKET_TZ."""
    return ts.replace(tzinfo=MARKET_TZ) if ts.tzinfo is None else ts.astimezone(MARKET_TZ)


# -----------------------------
# Day / window logic
# -----------------------------
def is_trading_day(d: dt.date) -> bool:
    return d.strftime("%A") in TRADING_DAYS


def is_tradable_now(ts: dt.datetime) -> bool:
    """Trading day and OPEN ≤ t ≤ CLOSE (both ends inclusive)."""
    now = ensure_tz_aware(ts)
    if not is_trading_day(now.date()):
        return False
    return OPEN_T <= now.time() <= CLOSE_T


def is_optimal_window(ts: dt.datetime) -> bool:
    now = ensure_tz_aware(ts)
    if not is_trading_day(now.date()):
        return False
    t = now.time()
    return any(start <= t <= end for start, end in OPTIMAL_WINDOWS)


def is_lunch_window(ts: dt.datetime) -> bool:
    """Start inclusive, end exclusive."""
    now = ensure_tz_aware(ts)
    start, end = LUNCH_WINDOW
    return start <= now.time() < end


def is_expiry_tail(ts: dt.datetime) -> bool:
    now = ensure_tz_aware(ts)
    return now.strftime("%A") == EXPIRY_DAY and now.time() >= EXPIRY_TAIL_FROM


def session_open(ts: dt.datetime) -> dt.datetime:
    """Regular-session open on the timestamp's local date."""
    now = ensure_tz_aware(ts)
    return dt.datetime.combine(now.date(), OPEN_T, MARKET_TZ)


def minutes_since_open(ts: dt.datetime) -> float:
    now = ensure_tz_aware(ts)
    return (now - session_open(now)).total_seconds() / 60.0


# -----------------------------
# Gate object
# -----------------------------
@dataclass(frozen=True)
class SessionGate:
    now: dt.datetime
    is_trading_day: bool
    is_tradable: bool
    is_optimal: bool
    is_lunch: bool
    is_expiry_tail: bool
    minutes_since_open: float


def evaluate_session(ts: dt.datetime) -> SessionGate:
    now = ensure_tz_aware(ts)
    return SessionGate(
        now=now,
        is_trading_day=is_trading_day(now.date()),
        is_tradable=is_tradable_now(now),
        is_optimal=is_optimal_window(now),
        is_lunch=is_lunch_window(now),
        is_expiry_tail=is_expiry_tail(now),
        minutes_since_open=minutes_since_open(now),
    )


__all__ = [
    "MARKET_TZ",
    "SessionGate",
    "ensure_tz_aware",
    "evaluate_session",
    "is_expiry_tail",
    "is_lunch_window",
    "is_optimal_window",
    "is_tradable_now",
    "is_trading_day",
    "minutes_since_open",
    "session_open",
]
