#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/patterns/price_action.py — v1.0
# ------------------------------------------------------------
# Price / volume detectors:
#   • vwap_breakout            (distance beyond ATR multiple, confirmed)
#   • first_hour_breakout      (opening-range break, small gap)
#   • volume_spike_key_level   (surge at round number / prior H-L)
#   • range_expansion          (wide point + volume surge)
# ============================================================
from __future__ import annotations

from typing import Optional

from breakout_radar.helpers.errors import InsufficientHistoryError, require
from breakout_radar.helpers.ta_math import clamp01, excess_strength
from breakout_radar.technicals.patterns.core import (
    DetectorContext,
    make_signal,
    session_weight,
    trend_direction,
)
from breakout_radar.technicals.state_objects import (
    FIRST_HOUR_BREAKOUT,
    RANGE_EXPANSION_VOLUME,
    VOLUME_SPIKE_KEY_LEVEL,
    VWAP_BREAKOUT,
    BreakoutSignal,
)


def _volume_confirmed(ctx: DetectorContext) -> bool:
    ratio = ctx.indicators.volume_ratio
    return ratio is not None and ratio > ctx.cfg("volume_multiplier")


# ------------------------------------------------------------
# VWAP breakout
# ------------------------------------------------------------
def vwap_breakout(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    vwap = require(ctx.indicators.vwap, "vwap")
    atr = require(ctx.indicators.atr, "atr")
    if atr <= 0:
        return None

    spot = ctx.snapshot.spot_price
    d = spot - vwap
    multiple = ctx.cfg("vwap_atr_multiple")
    if abs(d) <= multiple * atr:
        return None
    if abs(d) / vwap * 100.0 <= ctx.cfg("vwap_distance_pct"):
        return None

    # last N points sit on the same side of their own rolling VWAP
    n = int(ctx.cfg("vwap_confirmation_points"))
    spots = ctx.indicators.frame["spot"].to_list()[-n:]
    vws = ctx.indicators.vwap_series[-n:]
    if len(spots) < n or len(vws) < n or any(v is None for v in vws):
        raise InsufficientHistoryError("VWAP confirmation window incomplete")
    side = 1 if d > 0 else -1
    if not all((s - v) * side > 0 for s, v in zip(spots, vws)):
        return None

    volume_ok = _volume_confirmed(ctx)
    direction = "bullish" if side > 0 else "bearish"
    return make_signal(
        ctx,
        pattern=VWAP_BREAKOUT,
        direction=direction,
        strength=excess_strength(abs(d) / atr, multiple),
        confidence=0.75 + (0.1 if volume_ok else 0.0),
        message=f"Spot {'above' if side > 0 else 'below'} VWAP {vwap:.2f} by {abs(d):.2f} ({abs(d) / atr:.2f}×ATR)",
        evidence={
            "vwap": vwap,
            "atr": atr,
            "distance": d,
            "volume_ratio": ctx.indicators.volume_ratio,
            "volume_confirmed": volume_ok,
        },
        target=spot + side * atr,
        stop_loss=vwap - side * 0.3 * atr,
    )


# ------------------------------------------------------------
# First-hour breakout
# ------------------------------------------------------------
def first_hour_breakout(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    minutes = ctx.cfg("first_hour_minutes")
    if not ctx.session.is_tradable or ctx.session.minutes_since_open <= minutes:
        return None

    lv = ctx.indicators.session_levels
    today = lv.session_date == ctx.session.now.date()
    if not today or lv.first_hour_points < int(ctx.cfg("first_hour_min_points")):
        raise InsufficientHistoryError("first-hour window too sparse")
    if not lv.has_prior:
        raise InsufficientHistoryError("prior-session close unknown")
    prior_close = lv.prior_close
    gap_pct = abs(lv.first_hour_open - prior_close) / prior_close * 100.0 if prior_close else None
    if gap_pct is None or gap_pct >= ctx.cfg("max_gap_pct"):
        return None

    hi, lo = lv.first_hour_high, lv.first_hour_low
    rng = hi - lo
    spot = ctx.snapshot.spot_price
    if spot > hi:
        direction, level, target = "bullish", hi, hi + rng
        beyond = spot - hi
    elif spot < lo:
        direction, level, target = "bearish", lo, lo - rng
        beyond = lo - spot
    else:
        return None

    volume_ok = _volume_confirmed(ctx)
    return make_signal(
        ctx,
        pattern=FIRST_HOUR_BREAKOUT,
        direction=direction,
        strength=clamp01(beyond / rng) if rng > 0 else 1.0,
        confidence=(0.75 + (0.1 if volume_ok else 0.0)) * session_weight(ctx),
        message=f"First-hour range {lo:.2f}–{hi:.2f} broken {'up' if direction == 'bullish' else 'down'}",
        evidence={
            "first_hour_high": hi,
            "first_hour_low": lo,
            "gap_pct": gap_pct,
            "volume_confirmed": volume_ok,
        },
        target=target,
        stop_loss=level,
    )


# ------------------------------------------------------------
# Volume spike at key level
# ------------------------------------------------------------
def _spike_ratio(ctx: DetectorContext) -> Optional[float]:
    ratio = require(ctx.indicators.volume_ratio, "volume_ratio")
    return ratio if ratio > ctx.cfg("volume_spike_multiplier") else None


def _key_level(ctx: DetectorContext) -> Optional[str]:
    spot = ctx.snapshot.spot_price
    step = ctx.cfg("round_number_step")
    if step > 0:
        nearest = round(spot / step) * step
        if abs(spot - nearest) <= ctx.cfg("key_level_proximity"):
            return f"round:{nearest:g}"
    lv = ctx.indicators.session_levels
    if lv.has_prior:
        hi, lo = lv.prior_high, lv.prior_low
        near = ctx.cfg("prior_level_proximity")
        if abs(spot - hi) <= near:
            return f"prior_high:{hi:g}"
        if abs(spot - lo) <= near:
            return f"prior_low:{lo:g}"
    return None


def volume_spike_key_level(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    ratio = _spike_ratio(ctx)
    if ratio is None:
        return None
    level = _key_level(ctx)
    if level is None:
        return None

    mult = ctx.cfg("volume_spike_multiplier")
    direction = trend_direction(ctx)
    return make_signal(
        ctx,
        pattern=VOLUME_SPIKE_KEY_LEVEL,
        direction=direction,
        strength=excess_strength(ratio, mult),
        confidence=min(0.95, 0.75 + 0.1 * (ratio / mult - 1.0)),
        message=f"Volume {ratio:.1f}× average at key level {level}",
        evidence={
            "volume_ratio": ratio,
            "avg_volume": ctx.indicators.avg_volume,
            "key_level": level,
        },
    )


# ------------------------------------------------------------
# Range expansion + volume
# ------------------------------------------------------------
def range_expansion(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    avg_range = require(ctx.indicators.avg_range, "avg_range")
    cur = require(ctx.indicators.current_range, "current_range")
    if avg_range <= 0:
        return None
    mult = ctx.cfg("range_expansion_multiplier")
    if cur <= mult * avg_range:
        return None
    ratio = _spike_ratio(ctx)
    if ratio is None:
        return None

    return make_signal(
        ctx,
        pattern=RANGE_EXPANSION_VOLUME,
        direction=trend_direction(ctx),
        strength=excess_strength(cur / avg_range, mult),
        confidence=0.85,
        message=f"Range {cur:.2f} is {cur / avg_range:.1f}× average on {ratio:.1f}× volume",
        evidence={"range": cur, "avg_range": avg_range, "volume_ratio": ratio},
    )


EXPORTS = {
    "vwap_breakout": vwap_breakout,
    "first_hour_breakout": first_hour_breakout,
    "volume_spike_key_level": volume_spike_key_level,
    "range_expansion": range_expansion,
}
