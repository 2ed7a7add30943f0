# ============================================================
# breakout_radar/technicals/indicators/options.py — v1.0
# ------------------------------------------------------------
# Option-chain indicators:
#   • max_pain              → writer-pain minimum strike
#   • oi_imbalance          → |ΔcallOI| / |ΔputOI| at the ATM strike
#   • gamma_exposure_proxy  → Σ (callOI − putOI) × weight near ATM
#   • gamma_regime          → neutral / long / short
#   • atm_concentration     → call share of OI within ATM ± 1 step
#   • chain_average_iv      → mean positive IV per side
#   • trailing_average      → mean of prior points (min count guard)
# ============================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence

import numpy as np

from breakout_radar.helpers.options_schema import MarketSnapshot

GammaRegime = Literal["neutral", "long", "short"]


# ---------------- Max Pain ----------------
def max_pain(snapshot: MarketSnapshot) -> Optional[float]:
    """Strike S minimising

        Σ_{K>S} (K − S)·callOI(K) + Σ_{K<S} (S − K)·putOI(K)

    over every listed strike. The first minimum in ascending strike order
    wins ties. None for an empty chain.
    """
    if not snapshot.strikes:
        return None

    ks = np.array(snapshot.sorted_strikes(), dtype=float)
    call_oi = np.array(
        [snapshot.oi_at(k, "CE") or 0.0 for k in ks], dtype=float
    )
    put_oi = np.array(
        [snapshot.oi_at(k, "PE") or 0.0 for k in ks], dtype=float
    )

    # rows = candidate S, cols = strike K
    diff = ks[np.newaxis, :] - ks[:, np.newaxis]
    pain = (np.where(diff > 0, diff, 0.0) * call_oi).sum(axis=1) + (
        np.where(diff < 0, -diff, 0.0) * put_oi
    ).sum(axis=1)

    return float(ks[int(np.argmin(pain))])


# ---------------- OI imbalance ----------------
@dataclass(frozen=True)
class OIImbalance:
    strike: float
    ratio: float
    delta_call: float
    delta_put: float


def oi_imbalance(
    latest: Optional[MarketSnapshot], previous: Optional[MarketSnapshot]
) -> Optional[OIImbalance]:
    """OI change ratio at the latest ATM strike between two snapshots.

    None when either snapshot lacks that strike's call/put, or ΔputOI is 0.
    """
    if latest is None or previous is None:
        return None
    k = latest.atm_strike
    c_now, p_now = latest.oi_at(k, "CE"), latest.oi_at(k, "PE")
    c_prev, p_prev = previous.oi_at(k, "CE"), previous.oi_at(k, "PE")
    if None in (c_now, p_now, c_prev, p_prev):
        return None

    d_call = c_now - c_prev
    d_put = p_now - p_prev
    if d_put == 0:
        return None
    return OIImbalance(strike=k, ratio=abs(d_call) / abs(d_put), delta_call=d_call, delta_put=d_put)


# ---------------- Gamma exposure proxy ----------------
def gamma_exposure_proxy(
    snapshot: MarketSnapshot, window: int = 2, weight: float = 0.01
) -> Optional[float]:
    """Σ over ATM ± `window` grid steps of (callOI − putOI) × weight.

    None when no strike in the window is listed.
    """
    step = snapshot.strike_step
    total = 0.0
    seen = False
    for i in range(-int(window), int(window) + 1):
        rec = snapshot.record(snapshot.atm_strike + i * step)
        if rec is None:
            continue
        seen = True
        c = rec.call.open_interest if rec.call else 0.0
        p = rec.put.open_interest if rec.put else 0.0
        total += (c - p) * weight
    return total if seen else None


def gamma_regime(value: Optional[float], floor: float) -> GammaRegime:
    if value is None or abs(value) < floor:
        return "neutral"
    return "long" if value > 0 else "short"


# ---------------- Chain shape ----------------
def atm_concentration(snapshot: MarketSnapshot) -> Optional[float]:
    """Call share of open interest within ATM ± 1 step (None if zero OI)."""
    call = put = 0.0
    for k in (snapshot.atm_strike - snapshot.strike_step, snapshot.atm_strike, snapshot.atm_strike + snapshot.strike_step):
        call += snapshot.oi_at(k, "CE") or 0.0
        put += snapshot.oi_at(k, "PE") or 0.0
    total = call + put
    return call / total if total > 0 else None


def chain_average_iv(snapshot: MarketSnapshot, side: str) -> Optional[float]:
    ivs = []
    for rec in snapshot.strikes.values():
        leg = rec.leg(side)
        if leg is not None and leg.implied_volatility > 0:
            ivs.append(leg.implied_volatility)
    return float(np.mean(ivs)) if ivs else None


def atm_average_iv(snapshot: MarketSnapshot) -> Optional[float]:
    rec = snapshot.atm_record()
    if rec is None or rec.call is None or rec.put is None:
        return None
    return (rec.call.implied_volatility + rec.put.implied_volatility) / 2.0


def trailing_average(
    values: Sequence[float], lookback: int, min_points: int
) -> Optional[float]:
    """Mean of the last `lookback` values; None with fewer than `min_points`."""
    tail = [float(v) for v in values[-int(lookback):]] if lookback > 0 else []
    if len(tail) < max(1, int(min_points)):
        return None
    return float(np.mean(tail))


__all__ = [
    "OIImbalance",
    "max_pain",
    "oi_imbalance",
    "gamma_exposure_proxy",
    "gamma_regime",
    "atm_concentration",
    "chain_average_iv",
    "atm_average_iv",
    "trailing_average",
]
