#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/patterns/core.py — v1.0
# ------------------------------------------------------------
# Shared detector plumbing:
#   • DetectorContext (snapshot, history, indicators, config, session)
#   • session_weight  → off-peak confidence factor
#   • trend_direction → recent spot drift
#   • make_signal     → immutable BreakoutSignal with derived fields
#
# NOTE:
#   • Detectors live in oi_flow.py / price_action.py / volatility.py
#     and return BreakoutSignal | None.
#   • Isolation (skip vs. log-and-drop) lives in patterns/runner.py.
#   • Session levels (first hour, prior session) come from
#     indicators/session_levels.py, not from the bounded history.
# ============================================================
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from breakout_radar.helpers.errors import MissingDataError
from breakout_radar.helpers.market import SessionGate
from breakout_radar.helpers.options_schema import MarketSnapshot, StrikeRecord
from breakout_radar.helpers.ta_math import clamp01
from breakout_radar.services.history import RollingHistory
from breakout_radar.settings.breakout_settings import priority_for
from breakout_radar.technicals.indicators.state import IndicatorSnapshot
from breakout_radar.technicals.state_objects import BreakoutSignal, Direction


@dataclass(frozen=True)
class DetectorContext:
    snapshot: MarketSnapshot
    history: RollingHistory
    indicators: IndicatorSnapshot
    config: Mapping[str, Any]
    session: SessionGate

    def cfg(self, key: str) -> float:
        return float(self.config[key])


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def require_atm(ctx: DetectorContext) -> StrikeRecord:
    rec = ctx.snapshot.atm_record()
    if rec is None or rec.call is None or rec.put is None:
        raise MissingDataError(f"no ATM call/put at {ctx.snapshot.atm_strike}")
    return rec


def session_weight(ctx: DetectorContext) -> float:
    """1.0 inside an optimal window, else `off_peak_confidence_factor`."""
    if ctx.session.is_optimal:
        return 1.0
    return ctx.cfg("off_peak_confidence_factor")


def trend_direction(ctx: DetectorContext) -> Direction:
    pts = ctx.history.last(int(ctx.cfg("trend_points")))
    if len(pts) < 2:
        return "neutral"
    move = pts[-1].spot_price - pts[0].spot_price
    if move > ctx.cfg("trend_min_move"):
        return "bullish"
    if move < -ctx.cfg("trend_min_move"):
        return "bearish"
    return "neutral"


def make_signal(
    ctx: DetectorContext,
    *,
    pattern: str,
    direction: Direction,
    strength: float,
    confidence: float,
    message: str,
    evidence: Optional[Dict[str, Any]] = None,
    target: Optional[float] = None,
    stop_loss: Optional[float] = None,
    timeframe: str = "intraday",
) -> BreakoutSignal:
    conf = clamp01(confidence)
    ts = ctx.snapshot.timestamp
    return BreakoutSignal(
        id=f"{pattern}:{ts.isoformat()}",
        direction=direction,
        pattern=pattern,
        strength=clamp01(strength),
        confidence=conf,
        message=message,
        timestamp=ts,
        evidence=dict(evidence or {}),
        target=target,
        stop_loss=stop_loss,
        timeframe=timeframe,
        priority=priority_for(conf),
        actionable=direction != "neutral",
    )


__all__ = [
    "DetectorContext",
    "require_atm",
    "session_weight",
    "trend_direction",
    "make_signal",
]
