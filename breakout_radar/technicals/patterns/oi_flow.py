#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/patterns/oi_flow.py — v1.0
# ------------------------------------------------------------
# Open-interest flow detectors:
#   • oi_imbalance        (call vs put writing at ATM)
#   • oi_price_divergence (short covering / fresh shorts)
#   • delta_neutral_shift (ATM±1 OI share crossing)
#   • vwap_oi_confluence  (VWAP side + opposing ATM OI flow)
#   • max_pain_shift      (writer-pain strike moved)
# ============================================================
from __future__ import annotations

from typing import Optional

from breakout_radar.helpers.errors import InsufficientHistoryError, MissingDataError, require
from breakout_radar.helpers.ta_math import clamp01, excess_strength, pct_change
from breakout_radar.technicals.indicators.options import atm_average_iv
from breakout_radar.technicals.patterns.core import (
    DetectorContext,
    make_signal,
    require_atm,
    session_weight,
)
from breakout_radar.technicals.state_objects import (
    DELTA_NEUTRAL_SHIFT,
    MAX_PAIN_SHIFT,
    OI_IMBALANCE,
    OI_PRICE_DIVERGENCE,
    VWAP_OI_CONFLUENCE,
    BreakoutSignal,
)


# ------------------------------------------------------------
# OI writing imbalance
# ------------------------------------------------------------
def oi_imbalance(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    """Call-led writing ⇒ bearish, put-led writing ⇒ bullish; unwinding inverts.

    Confidence rises when the leading side's ATM IV is flat or falling.
    """
    if not ctx.session.is_tradable or ctx.session.is_lunch:
        return None
    require_atm(ctx)
    imb = require(ctx.indicators.oi_imbalance, "oi_imbalance")
    threshold = ctx.cfg("oi_imbalance_ratio")

    if imb.ratio > threshold:
        side, delta = "call", imb.delta_call
        direction = "bearish" if delta > 0 else "bullish"
        strength = excess_strength(imb.ratio, threshold)
    elif imb.ratio < 1.0 / threshold:
        side, delta = "put", imb.delta_put
        direction = "bullish" if delta > 0 else "bearish"
        strength = 1.0 if imb.ratio == 0 else excess_strength(1.0 / imb.ratio, threshold)
    else:
        return None

    prev = ctx.history.previous
    prev_rec = prev.record(imb.strike) if prev is not None else None
    now_rec = ctx.snapshot.record(imb.strike)
    leg_now = now_rec.leg("CE" if side == "call" else "PE") if now_rec else None
    leg_prev = prev_rec.leg("CE" if side == "call" else "PE") if prev_rec else None
    iv_confirmed = (
        leg_now is not None
        and leg_prev is not None
        and leg_now.implied_volatility <= leg_prev.implied_volatility
    )

    base = 0.8 if iv_confirmed else 0.6
    action = "writing" if delta > 0 else "unwinding"
    return make_signal(
        ctx,
        pattern=OI_IMBALANCE,
        direction=direction,
        strength=strength,
        confidence=base * session_weight(ctx),
        message=f"{side.title()} {action} dominates at {imb.strike:g} (ratio {imb.ratio:.2f})",
        evidence={
            "strike": imb.strike,
            "ratio": imb.ratio,
            "delta_call_oi": imb.delta_call,
            "delta_put_oi": imb.delta_put,
            "leading_side": side,
            "iv_confirmed": iv_confirmed,
        },
    )


# ------------------------------------------------------------
# OI + price divergence
# ------------------------------------------------------------
def oi_price_divergence(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    n = int(ctx.cfg("divergence_points"))
    pts = ctx.history.last(n)
    if len(pts) < n or n < 2:
        raise InsufficientHistoryError(f"divergence needs {n} points")
    first, last = pts[0], pts[-1]

    price_pct = pct_change(first.spot_price, last.spot_price)
    if price_pct is None or abs(price_pct) <= ctx.cfg("divergence_price_pct"):
        return None

    iv_first, iv_last = atm_average_iv(first), atm_average_iv(last)
    if iv_first is None or iv_last is None:
        raise MissingDataError("ATM IV unavailable across divergence window")

    call_pct = pct_change(first.total_call_oi, last.total_call_oi)
    put_pct = pct_change(first.total_put_oi, last.total_put_oi)
    if call_pct is None or put_pct is None:
        return None

    if price_pct > 0 and call_pct < 0 and put_pct < 0 and iv_last < iv_first:
        direction, setup = "bullish", "short_covering"
    elif price_pct < 0 and call_pct > 0 and put_pct > 0 and iv_last > iv_first:
        direction, setup = "bearish", "fresh_shorts"
    else:
        return None

    confidence = 0.75
    if abs(price_pct) >= 0.5:
        confidence += 0.05
    if max(abs(call_pct), abs(put_pct)) >= 10.0:
        confidence += 0.05

    return make_signal(
        ctx,
        pattern=OI_PRICE_DIVERGENCE,
        direction=direction,
        strength=clamp01(abs(price_pct) / ctx.cfg("divergence_full_strength_pct")),
        confidence=confidence,
        message=f"{setup.replace('_', ' ').title()}: price {price_pct:+.2f}% vs OI CE {call_pct:+.1f}% / PE {put_pct:+.1f}%",
        evidence={
            "setup": setup,
            "price_change_pct": price_pct,
            "call_oi_change_pct": call_pct,
            "put_oi_change_pct": put_pct,
            "iv_change_pct": pct_change(iv_first, iv_last),
            "points": n,
        },
    )


# ------------------------------------------------------------
# Delta-neutral shift
# ------------------------------------------------------------
def delta_neutral_shift(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    now = require(ctx.indicators.call_share, "call_share")
    prev = require(ctx.indicators.prev_call_share, "prev_call_share")
    level = ctx.cfg("delta_neutral_ratio")

    if prev < level <= now:
        direction = "bullish"
    elif (1.0 - prev) < level <= (1.0 - now):
        direction = "bearish"
    else:
        return None

    heavy = "call" if direction == "bullish" else "put"
    return make_signal(
        ctx,
        pattern=DELTA_NEUTRAL_SHIFT,
        direction=direction,
        strength=abs(now - (1.0 - now)),
        confidence=0.7,
        message=f"ATM±1 OI turned {heavy}-heavy ({now:.0%} calls)",
        evidence={"call_share": now, "prev_call_share": prev, "threshold": level},
    )


# ------------------------------------------------------------
# VWAP + OI confluence
# ------------------------------------------------------------
def vwap_oi_confluence(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    n = int(ctx.cfg("confluence_points"))
    pts = ctx.history.last(n)
    if len(pts) < n or n < 2:
        raise InsufficientHistoryError(f"confluence needs {n} points")
    vwap = require(ctx.indicators.vwap, "vwap")

    k = ctx.snapshot.atm_strike
    c0, p0 = pts[0].oi_at(k, "CE"), pts[0].oi_at(k, "PE")
    c1, p1 = pts[-1].oi_at(k, "CE"), pts[-1].oi_at(k, "PE")
    if None in (c0, p0, c1, p1):
        raise MissingDataError(f"ATM strike {k:g} missing inside confluence window")
    d_call, d_put = c1 - c0, p1 - p0

    spot = ctx.snapshot.spot_price
    if spot > vwap and d_call < 0 and d_put > 0:
        direction = "bullish"
    elif spot < vwap and d_call > 0 and d_put < 0:
        direction = "bearish"
    else:
        return None

    atr = ctx.indicators.atr
    strength = min(abs(spot - vwap) / atr, 1.0) if atr else 0.5
    return make_signal(
        ctx,
        pattern=VWAP_OI_CONFLUENCE,
        direction=direction,
        strength=strength,
        confidence=0.9,
        message=f"Spot {'above' if direction == 'bullish' else 'below'} VWAP {vwap:.2f} with opposing ATM OI flow",
        evidence={"vwap": vwap, "strike": k, "delta_call_oi": d_call, "delta_put_oi": d_put},
    )


# ------------------------------------------------------------
# Max-pain shift
# ------------------------------------------------------------
def max_pain_shift(ctx: DetectorContext) -> Optional[BreakoutSignal]:
    if ctx.session.is_expiry_tail:
        return None
    now = require(ctx.indicators.max_pain, "max_pain")
    prev = require(ctx.indicators.prev_max_pain, "prev_max_pain")
    shift = now - prev
    threshold = ctx.cfg("max_pain_shift_points")
    if abs(shift) <= threshold:
        return None

    min_oi = ctx.cfg("max_pain_min_oi")
    step = ctx.snapshot.strike_step
    near = sorted(
        (k for k in ctx.snapshot.strikes if abs(k - now) <= step),
        key=lambda k: (abs(k - now), k),
    )
    support_strike, support_oi = None, 0.0
    for k in near:
        oi = (ctx.snapshot.oi_at(k, "CE") or 0.0) + (ctx.snapshot.oi_at(k, "PE") or 0.0)
        if oi >= min_oi:
            support_strike, support_oi = k, oi
            break
    if support_strike is None:
        return None

    direction = "bullish" if shift > 0 else "bearish"
    confidence = 0.7 + (0.1 if support_oi >= 2 * min_oi else 0.0)
    return make_signal(
        ctx,
        pattern=MAX_PAIN_SHIFT,
        direction=direction,
        strength=clamp01(abs(shift) / (2 * threshold)) if threshold > 0 else 1.0,
        confidence=confidence,
        message=f"Max pain moved {prev:g} → {now:g} ({shift:+g})",
        evidence={
            "max_pain": now,
            "prev_max_pain": prev,
            "shift": shift,
            "support_strike": support_strike,
            "support_oi": support_oi,
        },
        target=now,
    )


EXPORTS = {
    "oi_imbalance": oi_imbalance,
    "oi_price_divergence": oi_price_divergence,
    "delta_neutral_shift": delta_neutral_shift,
    "vwap_oi_confluence": vwap_oi_confluence,
    "max_pain_shift": max_pain_shift,
}
