# breakout_radar/tests/_builders.py
"""Small snapshot/chain/signal builders shared by the test modules.

Naive datetimes are exchange-local (Asia/Kolkata). BASE_DAY is a Wednesday.
"""
from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Optional

from breakout_radar.helpers.market import evaluate_session
from breakout_radar.helpers.options_schema import (
    MarketSnapshot,
    OptionLeg,
    StrikeRecord,
    nearest_strike,
)
from breakout_radar.services.history import RollingHistory
from breakout_radar.settings.breakout_settings import BreakoutConfig
from breakout_radar.technicals.indicators.state import compute_indicator_snapshot
from breakout_radar.technicals.patterns.core import DetectorContext
from breakout_radar.technicals.state_objects import BreakoutSignal

STEP = 50.0
BASE_DAY = dt.date(2024, 1, 10)      # Wednesday
PREV_DAY = dt.date(2024, 1, 9)       # Tuesday
EXPIRY_DAY = dt.date(2024, 1, 11)    # Thursday


def at(hhmm: str, day: dt.date = BASE_DAY) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.fromisoformat(hhmm))


def leg(oi: float = 100_000, iv: float = 15.0, volume: float = 1_000.0, ltp: float = 100.0) -> OptionLeg:
    return OptionLeg(last_price=ltp, volume=volume, open_interest=oi, price_change=0.0, implied_volatility=iv)


def make_chain(
    atm: float,
    *,
    call_oi: float = 100_000,
    put_oi: float = 100_000,
    call_iv: float = 15.0,
    put_iv: float = 15.0,
    volume: float = 1_000.0,
    width: int = 2,
) -> Dict[float, StrikeRecord]:
    out: Dict[float, StrikeRecord] = {}
    for i in range(-width, width + 1):
        k = atm + i * STEP
        out[k] = StrikeRecord(
            strike=k,
            call=leg(call_oi, call_iv, volume),
            put=leg(put_oi, put_iv, volume),
        )
    return out


def snap(
    ts: dt.datetime,
    spot: float,
    *,
    call_oi: float = 100_000,
    put_oi: float = 100_000,
    iv: Optional[float] = None,
    call_iv: float = 15.0,
    put_iv: float = 15.0,
    volume: float = 1_000.0,
    total_volume: float = 0.0,
    high: float = 0.0,
    low: float = 0.0,
    open_: float = 0.0,
    strikes: Optional[Dict[float, StrikeRecord]] = None,
    width: int = 2,
) -> MarketSnapshot:
    if iv is not None:
        call_iv = put_iv = iv
    if strikes is None:
        strikes = make_chain(
            nearest_strike(spot, STEP),
            call_oi=call_oi,
            put_oi=put_oi,
            call_iv=call_iv,
            put_iv=put_iv,
            volume=volume,
            width=width,
        )
    return MarketSnapshot.build(
        timestamp=ts,
        spot_price=spot,
        strikes=strikes,
        total_volume=total_volume,
        high=high,
        low=low,
        open=open_,
        strike_step=STEP,
    )


def minutes_from(start: dt.datetime, n: int, step: int = 1) -> List[dt.datetime]:
    return [start + dt.timedelta(minutes=i * step) for i in range(n)]


def history_of(snaps: Iterable[MarketSnapshot], capacity: int = 120) -> RollingHistory:
    h = RollingHistory(capacity)
    for s in snaps:
        h.append(s)
    return h


def ctx_for(
    history: RollingHistory,
    config: Optional[BreakoutConfig] = None,
    prev_max_pain: Optional[float] = None,
    prev_gex: Optional[float] = None,
) -> DetectorContext:
    cfg = config or BreakoutConfig()
    latest = history.latest
    return DetectorContext(
        snapshot=latest,
        history=history,
        indicators=compute_indicator_snapshot(history, cfg, prev_max_pain, prev_gex),
        config=cfg,
        session=evaluate_session(latest.timestamp),
    )


def sig(
    pattern: str = "VWAP_BREAKOUT",
    direction: str = "bullish",
    confidence: float = 0.7,
    *,
    strength: float = 0.5,
    ts: Optional[dt.datetime] = None,
) -> BreakoutSignal:
    ts = ts or at("10:00")
    return BreakoutSignal(
        id=f"{pattern}:{ts.isoformat()}",
        direction=direction,
        pattern=pattern,
        strength=strength,
        confidence=confidence,
        message="test",
        timestamp=ts,
        actionable=direction != "neutral",
    )
