#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/indicators/session_levels.py — v1.0
# ------------------------------------------------------------
# Running per-session levels, kept outside the bounded history:
#   • first-hour high / low / open (+ point count)
#   • current-session high / low / close
#   • prior-session high / low / close (rolled on date change)
#
# NOTE:
#   • The engine owns one tracker and feeds it once per process().
#   • Detectors read the frozen SessionLevels via IndicatorSnapshot.
# ============================================================
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Optional

from breakout_radar.helpers.logger import log
from breakout_radar.helpers.market import ensure_tz_aware, session_open
from breakout_radar.helpers.options_schema import MarketSnapshot


@dataclass(frozen=True)
class SessionLevels:
    session_date: Optional[dt.date] = None
    first_hour_high: Optional[float] = None
    first_hour_low: Optional[float] = None
    first_hour_open: Optional[float] = None
    first_hour_points: int = 0
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    day_close: Optional[float] = None
    prior_high: Optional[float] = None
    prior_low: Optional[float] = None
    prior_close: Optional[float] = None

    @property
    def has_prior(self) -> bool:
        return self.prior_close is not None


class SessionTracker:
    """Accumulates session levels snapshot by snapshot."""

    def __init__(self) -> None:
        self._levels = SessionLevels()

    @classmethod
    def from_snapshots(cls, snaps: Iterable[MarketSnapshot], first_hour_minutes: float) -> "SessionTracker":
        tracker = cls()
        for s in snaps:
            tracker.update(s, first_hour_minutes)
        return tracker

    @property
    def levels(self) -> SessionLevels:
        return self._levels

    def reset(self) -> None:
        self._levels = SessionLevels()

    def update(self, snapshot: MarketSnapshot, first_hour_minutes: float) -> SessionLevels:
        lv = self._levels
        ts = ensure_tz_aware(snapshot.timestamp)
        day = ts.date()

        if lv.session_date is not None and day < lv.session_date:
            log.warning(f"[Session] {ts.isoformat()} predates session {lv.session_date}; levels unchanged")
            return lv
        if lv.session_date is None or day > lv.session_date:
            lv = SessionLevels(
                session_date=day,
                prior_high=lv.day_high if lv.day_high is not None else lv.prior_high,
                prior_low=lv.day_low if lv.day_low is not None else lv.prior_low,
                prior_close=lv.day_close if lv.day_close is not None else lv.prior_close,
            )

        hi, lo, spot = snapshot.bar_high(), snapshot.bar_low(), snapshot.spot_price
        fh = {}
        start = session_open(ts)
        if start <= ts <= start + dt.timedelta(minutes=first_hour_minutes):
            first = lv.first_hour_points == 0
            fh = {
                "first_hour_high": spot if first else max(lv.first_hour_high, spot),
                "first_hour_low": spot if first else min(lv.first_hour_low, spot),
                "first_hour_open": (
                    (snapshot.open if snapshot.open > 0 else spot) if first else lv.first_hour_open
                ),
                "first_hour_points": lv.first_hour_points + 1,
            }

        self._levels = SessionLevels(
            session_date=day,
            first_hour_high=fh.get("first_hour_high", lv.first_hour_high),
            first_hour_low=fh.get("first_hour_low", lv.first_hour_low),
            first_hour_open=fh.get("first_hour_open", lv.first_hour_open),
            first_hour_points=fh.get("first_hour_points", lv.first_hour_points),
            day_high=hi if lv.day_high is None else max(lv.day_high, hi),
            day_low=lo if lv.day_low is None else min(lv.day_low, lo),
            day_close=spot,
            prior_high=lv.prior_high,
            prior_low=lv.prior_low,
            prior_close=lv.prior_close,
        )
        return self._levels


__all__ = ["SessionLevels", "SessionTracker"]
