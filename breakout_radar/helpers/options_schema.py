#!/usr/bin/env python3
# ============================================================
# breakout_radar/helpers/options_schema.py — v1.0
# Option-chain snapshot model (+ broker-style payload adapter)
# ============================================================
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from breakout_radar.helpers.logger import log


@dataclass(frozen=True)
class OptionLeg:
    """One side (call or put) of a strike."""

    last_price: float = 0.0
    volume: float = 0.0
    open_interest: float = 0.0
    price_change: float = 0.0
    implied_volatility: float = 0.0

    @classmethod
    def from_payload(cls, raw: Optional[Mapping[str, Any]]) -> Optional[OptionLeg]:
        if not raw:
            return None
        return cls(
            last_price=float(raw.get("last_price") or 0.0),
            volume=float(raw.get("volume") or 0.0),
            open_interest=float(raw.get("oi", raw.get("open_interest")) or 0.0),
            price_change=float(raw.get("change", raw.get("price_change")) or 0.0),
            implied_volatility=float(raw.get("iv", raw.get("implied_volatility")) or 0.0),
        )


@dataclass(frozen=True)
class StrikeRecord:
    strike: float
    call: Optional[OptionLeg] = None
    put: Optional[OptionLeg] = None

    def leg(self, side: str) -> Optional[OptionLeg]:
        return self.call if side.upper() in ("CE", "CALL") else self.put


def nearest_strike(spot: float, step: float) -> float:
    """Nearest grid strike to `spot`, halves rounding up."""
    if step <= 0:
        return float(spot)
    return float(math.floor(spot / step + 0.5) * step)


def _parse_ts(value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, (int, float)):
        secs = value / 1000.0 if value > 1e11 else float(value)
        return dt.datetime.fromtimestamp(secs, tz=dt.timezone.utc)
    if isinstance(value, str) and value:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise ValueError(f"[Snapshot] Unparseable timestamp: {value!r}")


@dataclass(frozen=True)
class MarketSnapshot:
    """One observation of the underlying plus its option chain."""

    timestamp: dt.datetime
    spot_price: float
    total_volume: float
    high: float
    low: float
    open: float
    atm_strike: float
    strikes: Dict[float, StrikeRecord] = field(default_factory=dict)
    strike_step: float = 50.0

    # -----------------------------
    # Construction
    # -----------------------------
    @classmethod
    def build(
        cls,
        *,
        timestamp: dt.datetime,
        spot_price: float,
        strikes: Optional[Dict[float, StrikeRecord]] = None,
        total_volume: float = 0.0,
        high: float = 0.0,
        low: float = 0.0,
        open: float = 0.0,
        strike_step: float = 50.0,
    ) -> MarketSnapshot:
        """Create a snapshot with `atm_strike` derived from spot."""
        return cls(
            timestamp=timestamp,
            spot_price=float(spot_price),
            total_volume=float(total_volume or 0.0),
            high=float(high or 0.0),
            low=float(low or 0.0),
            open=float(open or 0.0),
            atm_strike=nearest_strike(float(spot_price), strike_step),
            strikes=dict(strikes or {}),
            strike_step=float(strike_step),
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], strike_step: float = 50.0) -> MarketSnapshot:
        """Parse `{"spot_price", "timestamp", "options": {strike: {"CE", "PE"}}}`.

        Any `atm_strike` in the payload is ignored and recomputed from spot.
        """
        if "spot_price" not in payload:
            raise ValueError("[Snapshot] payload missing 'spot_price'")
        strikes: Dict[float, StrikeRecord] = {}
        for raw_strike, sides in (payload.get("options") or {}).items():
            k = float(raw_strike)
            sides = sides or {}
            strikes[k] = StrikeRecord(
                strike=k,
                call=OptionLeg.from_payload(sides.get("CE")),
                put=OptionLeg.from_payload(sides.get("PE")),
            )
        if payload.get("atm_strike") is not None:
            log.debug("[Snapshot] payload atm_strike ignored; recomputed from spot")
        return cls.build(
            timestamp=_parse_ts(payload.get("timestamp")),
            spot_price=float(payload["spot_price"]),
            strikes=strikes,
            total_volume=float(payload.get("volume") or 0.0),
            high=float(payload.get("high") or 0.0),
            low=float(payload.get("low") or 0.0),
            open=float(payload.get("open") or 0.0),
            strike_step=strike_step,
        )

    def with_strike_step(self, strike_step: float) -> MarketSnapshot:
        """Same observation on another strike grid (ATM re-derived)."""
        step = float(strike_step)
        if step == self.strike_step:
            return self
        return replace(self, strike_step=step, atm_strike=nearest_strike(self.spot_price, step))

    # -----------------------------
    # Chain accessors
    # -----------------------------
    def record(self, strike: float) -> Optional[StrikeRecord]:
        return self.strikes.get(float(strike))

    def atm_record(self) -> Optional[StrikeRecord]:
        return self.record(self.atm_strike)

    def has_atm_data(self) -> bool:
        rec = self.atm_record()
        return rec is not None and rec.call is not None and rec.put is not None

    def sorted_strikes(self) -> list[float]:
        return sorted(self.strikes)

    def oi_at(self, strike: float, side: str) -> Optional[float]:
        rec = self.record(strike)
        leg = rec.leg(side) if rec else None
        return leg.open_interest if leg else None

    def _sum(self, side: str, attr: str) -> float:
        total = 0.0
        for rec in self.strikes.values():
            leg = rec.leg(side)
            if leg is not None:
                total += getattr(leg, attr)
        return total

    @property
    def total_call_oi(self) -> float:
        return self._sum("CE", "open_interest")

    @property
    def total_put_oi(self) -> float:
        return self._sum("PE", "open_interest")

    @property
    def option_volume(self) -> float:
        """Combined call+put traded volume across every strike."""
        return self._sum("CE", "volume") + self._sum("PE", "volume")

    @property
    def activity_volume(self) -> float:
        """Underlying volume when quoted, else the chain's option volume."""
        return self.total_volume if self.total_volume > 0 else self.option_volume

    def bar_high(self) -> float:
        return self.high if self.high > 0 else self.spot_price

    def bar_low(self) -> float:
        return self.low if self.low > 0 else self.spot_price


__all__ = ["OptionLeg", "StrikeRecord", "MarketSnapshot", "nearest_strike"]
