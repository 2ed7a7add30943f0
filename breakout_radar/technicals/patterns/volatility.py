#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/patterns/volatility.py — v1.0
# ------------------------------------------------------------
# Volatility-regime detectors (both emit neutral signals):
#   • iv_crush_stability  (compressed bands + falling, balanced IV)
#   • gamma_flip          (GEX proxy changes sign)
# ============================================================
from __future__ import annotations

from typing import Optional

from breakout_radar.helpers.errors import InsufficientHistoryError, MissingDataError, require
from breakout_radar.helpers.ta_math import clamp01, excess_strength
from breakout_radar.technicals.indicators.options import (
    atm_average_iv,
    chain_average_iv,
    gamma_regime,
)
from breakout_radar.technicals.patterns.core import DetectorContext, make_signal
from breakout_radar.technicals.state_objects import (
    GAMMA_EXPOSURE_FLIP,
    IV_CRUSH_STABILITY,
    BreakoutSignal,
)

IV_DECLINE_POINTS = 3


def iv_crush_stability(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    ind = ctx.indicators
    if not ind.bb_ready or ind.bb_width >= ctx.cfg("bb_compression_threshold"):
        return None

    pts = ctx.history.last(IV_DECLINE_POINTS)
    if len(pts) < IV_DECLINE_POINTS:
        raise InsufficientHistoryError("IV decline window incomplete")
    ivs = [atm_average_iv(s) for s in pts]
    if any(v is None for v in ivs):
        raise MissingDataError("ATM IV missing inside decline window")
    if not all(b < a for a, b in zip(ivs, ivs[1:])):
        return None
    drop_pct = (ivs[0] - ivs[-1]) / ivs[0] * 100.0 if ivs[0] else 0.0
    if drop_pct <= ctx.cfg("iv_drop_pct"):
        return None

    call_iv = require(chain_average_iv(ctx.snapshot, "CE"), "chain_call_iv")
    put_iv = require(chain_average_iv(ctx.snapshot, "PE"), "chain_put_iv")
    skew = abs(call_iv - put_iv)
    skew_max = ctx.cfg("iv_skew_threshold")
    if skew >= skew_max:
        return None

    return make_signal(
        ctx,
        pattern=IV_CRUSH_STABILITY,
        direction="neutral",
        strength=excess_strength(drop_pct, ctx.cfg("iv_drop_pct")),
        confidence=0.65 + (0.05 if skew < skew_max / 2 else 0.0),
        message=f"IV down {drop_pct:.1f}% inside {ind.bb_width:.2f}% Bollinger width; expansion likely",
        evidence={
            "bb_width": ind.bb_width,
            "iv_drop_pct": drop_pct,
            "iv_skew": skew,
            "atm_iv": ivs[-1],
        },
    )


def gamma_flip(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    now = require(ctx.indicators.gex, "gex")
    prev = require(ctx.indicators.prev_gex, "prev_gex")
    floor = ctx.cfg("gex_floor")
    if prev * now >= 0 or abs(now) < floor:
        return None

    before, after = gamma_regime(prev, floor), gamma_regime(now, floor)
    return make_signal(
        ctx,
        pattern=GAMMA_EXPOSURE_FLIP,
        direction="neutral",
        strength=clamp01(abs(now) / (2 * floor)) if floor > 0 else 1.0,
        confidence=0.6 + (0.1 if abs(prev) >= floor else 0.0),
        message=f"Gamma exposure flipped {prev:+.0f} → {now:+.0f} ({before} → {after})",
        evidence={"gex": now, "prev_gex": prev, "regime": after, "prev_regime": before},
    )


EXPORTS = {
    "iv_crush_stability": iv_crush_stability,
    "gamma_flip": gamma_flip,
}
