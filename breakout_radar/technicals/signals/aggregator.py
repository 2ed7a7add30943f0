#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/signals/aggregator.py — v1.0
# ------------------------------------------------------------
# Raw detector output → AnalysisResult:
#   1) dedupe by (pattern, direction), keep highest confidence
#   2) drop below min_confidence_threshold
#   3) assign priority
#   4) sort by confidence desc, then timestamp desc
#   5) summary + market state
# Never raises on well-typed input.
# ============================================================
from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from breakout_radar.helpers.market import ensure_tz_aware
from breakout_radar.helpers.ta_math import linreg_slope, percentile
from breakout_radar.settings.breakout_settings import priority_for, strength_label
from breakout_radar.technicals.patterns.core import DetectorContext
from breakout_radar.technicals.state_objects import (
    AnalysisResult,
    Band,
    BreakoutSignal,
    KeyLevels,
    MarketState,
    SignalSummary,
    Trend,
)


# ------------------------------------------------------------
# Signal pipeline
# ------------------------------------------------------------
def dedupe(signals: Iterable[BreakoutSignal]) -> List[BreakoutSignal]:
    best: Dict[Tuple[str, str], BreakoutSignal] = {}
    for s in signals:
        key = (s.pattern, s.direction)
        cur = best.get(key)
        if cur is None or s.confidence > cur.confidence:
            best[key] = s
    return list(best.values())


def _sort_key(s: BreakoutSignal):
    return (-s.confidence, -ensure_tz_aware(s.timestamp).timestamp())


def summarize(signals: List[BreakoutSignal]) -> SignalSummary:
    by_dir = {"bullish": 0, "bearish": 0, "neutral": 0}
    by_strength = {"STRONG": 0, "MODERATE": 0, "WEAK": 0}
    by_prio = {"HIGH": 0, "MEDIUM": 0, "LOW": 0}
    for s in signals:
        by_dir[s.direction] = by_dir.get(s.direction, 0) + 1
        by_strength[strength_label(s.strength)] += 1
        by_prio[s.priority] = by_prio.get(s.priority, 0) + 1

    if by_dir["bullish"] > by_dir["bearish"]:
        bias = "BULLISH"
    elif by_dir["bearish"] > by_dir["bullish"]:
        bias = "BEARISH"
    else:
        bias = "NEUTRAL"

    return SignalSummary(
        total_signals=len(signals),
        bullish=by_dir["bullish"],
        bearish=by_dir["bearish"],
        neutral=by_dir["neutral"],
        strong=by_strength["STRONG"],
        moderate=by_strength["MODERATE"],
        weak=by_strength["WEAK"],
        high_priority=by_prio["HIGH"],
        medium_priority=by_prio["MEDIUM"],
        low_priority=by_prio["LOW"],
        overall_bias=bias,
        confidence_score=float(np.mean([s.confidence for s in signals])) if signals else 0.0,
    )


def categorize_signals(signals: Iterable[BreakoutSignal]) -> Dict[str, List[BreakoutSignal]]:
    """Confidence buckets (≥0.8 / ≥0.6 / rest) plus direction buckets."""
    out: Dict[str, List[BreakoutSignal]] = {
        "high_confidence": [],
        "medium_confidence": [],
        "low_confidence": [],
        "bullish": [],
        "bearish": [],
        "neutral": [],
    }
    for s in signals:
        if s.confidence >= 0.8:
            out["high_confidence"].append(s)
        elif s.confidence >= 0.6:
            out["medium_confidence"].append(s)
        else:
            out["low_confidence"].append(s)
        out[s.direction].append(s)
    return out


def pattern_stats(signals: Iterable[BreakoutSignal]) -> Dict[str, Dict[str, float]]:
    """Per-pattern count and avg/max/min confidence (0–1)."""
    by_pattern: Dict[str, List[float]] = {}
    for s in signals:
        by_pattern.setdefault(s.pattern, []).append(s.confidence)
    return {
        p: {
            "count": len(cs),
            "avg_confidence": float(np.mean(cs)),
            "max_confidence": max(cs),
            "min_confidence": min(cs),
        }
        for p, cs in by_pattern.items()
    }


def signal_frequency(signals: List[BreakoutSignal]) -> Optional[float]:
    """Signals per hour across the span of `signals`; None below two points."""
    if len(signals) < 2:
        return None
    stamps = [ensure_tz_aware(s.timestamp) for s in signals]
    minutes = (max(stamps) - min(stamps)).total_seconds() / 60.0
    if minutes <= 0:
        return None
    return len(signals) / minutes * 60.0


# ------------------------------------------------------------
# Market state
# ------------------------------------------------------------
def _band(value: Optional[float], low: float, high: float) -> Band:
    if value is None:
        return "MEDIUM"
    if value < low:
        return "LOW"
    if value > high:
        return "HIGH"
    return "MEDIUM"


def _trend(ctx: DetectorContext) -> Trend:
    spots = [s.spot_price for s in ctx.history.last(int(ctx.cfg("trend_window")))]
    slope = linreg_slope(spots)
    base = float(np.mean(spots)) if spots else 0.0
    if slope is None or base == 0:
        return "SIDEWAYS"
    pct = slope * (len(spots) - 1) / base * 100.0
    threshold = ctx.cfg("trend_threshold_pct")
    if pct > threshold:
        return "BULLISH"
    if pct < -threshold:
        return "BEARISH"
    return "SIDEWAYS"


def _volatility(ctx: DetectorContext) -> Band:
    ind = ctx.indicators
    spot = ctx.snapshot.spot_price
    if ind.atr is not None and spot > 0:
        return _band(ind.atr / spot * 100.0, ctx.cfg("atr_low_pct"), ctx.cfg("atr_high_pct"))
    if ind.bb_ready:
        return _band(ind.bb_width, ctx.cfg("bb_low_width"), ctx.cfg("bb_high_width"))
    return "MEDIUM"


def _key_levels(ctx: DetectorContext) -> KeyLevels:
    pts = ctx.history.last(int(ctx.cfg("key_level_window")))
    q = ctx.cfg("key_level_percentile")
    return KeyLevels(
        support=percentile([s.bar_low() for s in pts], q),
        resistance=percentile([s.bar_high() for s in pts], 100.0 - q),
        vwap=ctx.indicators.vwap,
        max_pain=ctx.indicators.max_pain,
    )


def build_market_state(ctx: Optional[DetectorContext]) -> MarketState:
    if ctx is None or len(ctx.history) == 0:
        return MarketState()
    return MarketState(
        trend=_trend(ctx),
        volatility=_volatility(ctx),
        volume=_band(
            ctx.indicators.volume_ratio,
            ctx.cfg("volume_low_ratio"),
            ctx.cfg("volume_high_ratio"),
        ),
        key_levels=_key_levels(ctx),
    )


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------
def aggregate(
    raw_signals: Iterable[BreakoutSignal],
    config: Mapping,
    ctx: Optional[DetectorContext] = None,
    analyzed_at: Optional[dt.datetime] = None,
) -> AnalysisResult:
    floor = float(config["min_confidence_threshold"])
    kept = [s for s in dedupe(raw_signals) if s.confidence >= floor]
    kept = [replace(s, priority=priority_for(s.confidence)) for s in kept]
    kept.sort(key=_sort_key)

    if analyzed_at is None:
        analyzed_at = ctx.snapshot.timestamp if ctx is not None else dt.datetime.now(dt.timezone.utc)

    return AnalysisResult(
        signals=kept,
        summary=summarize(kept),
        market_state=build_market_state(ctx),
        analyzed_at=analyzed_at,
    )


__all__ = [
    "aggregate",
    "build_market_state",
    "categorize_signals",
    "dedupe",
    "pattern_stats",
    "signal_frequency",
    "summarize",
]
