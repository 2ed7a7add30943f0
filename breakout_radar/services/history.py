#!/usr/bin/env python3
# ============================================================
# breakout_radar/services/history.py — v1.0 (rolling snapshot store)
# ============================================================
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional

import polars as pl

from breakout_radar.helpers.logger import log
from breakout_radar.helpers.market import ensure_tz_aware
from breakout_radar.helpers.options_schema import MarketSnapshot

FRAME_COLUMNS = [
    "timestamp",
    "spot",
    "high",
    "low",
    "open",
    "volume",
    "option_volume",
    "atm_strike",
    "atm_call_oi",
    "atm_put_oi",
    "atm_call_iv",
    "atm_put_iv",
    "total_call_oi",
    "total_put_oi",
]


class RollingHistory:
    """Time-ascending, capacity-bounded FIFO of MarketSnapshot.

    `append` never rejects: duplicates and out-of-order timestamps are kept
    (the latter with a warning) and the oldest entry is evicted on overflow.
    """

    def __init__(self, capacity: int = 120) -> None:
        if capacity <= 0:
            raise ValueError("[History] capacity must be positive")
        self.capacity = int(capacity)
        self._items: Deque[MarketSnapshot] = deque(maxlen=self.capacity)

    def append(self, snapshot: MarketSnapshot) -> None:
        last = self._items[-1] if self._items else None
        if last is not None and ensure_tz_aware(snapshot.timestamp) < ensure_tz_aware(last.timestamp):
            log.warning(
                f"[History] Out-of-order snapshot {snapshot.timestamp.isoformat()} "
                f"< {last.timestamp.isoformat()} (kept)"
            )
        self._items.append(snapshot)

    def last(self, n: int) -> List[MarketSnapshot]:
        if n <= 0:
            return []
        return list(self._items)[-n:]

    def all(self) -> List[MarketSnapshot]:
        return list(self._items)

    @property
    def latest(self) -> Optional[MarketSnapshot]:
        return self._items[-1] if self._items else None

    @property
    def previous(self) -> Optional[MarketSnapshot]:
        return self._items[-2] if len(self._items) >= 2 else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    # -----------------------------
    # Columnar view
    # -----------------------------
    def to_frame(self, n: Optional[int] = None) -> pl.DataFrame:
        """One row per snapshot (last `n`, or all), ATM fields taken per row.

        `timestamp` is epoch seconds; naive snapshot times are exchange-local.
        """
        items = self.all() if n is None else self.last(n)
        rows = []
        for s in items:
            rec = s.atm_record()
            call = rec.call if rec else None
            put = rec.put if rec else None
            rows.append(
                {
                    "timestamp": ensure_tz_aware(s.timestamp).timestamp(),
                    "spot": s.spot_price,
                    "high": s.bar_high(),
                    "low": s.bar_low(),
                    "open": s.open,
                    "volume": s.activity_volume,
                    "option_volume": s.option_volume,
                    "atm_strike": s.atm_strike,
                    "atm_call_oi": call.open_interest if call else None,
                    "atm_put_oi": put.open_interest if put else None,
                    "atm_call_iv": call.implied_volatility if call else None,
                    "atm_put_iv": put.implied_volatility if put else None,
                    "total_call_oi": s.total_call_oi,
                    "total_put_oi": s.total_put_oi,
                }
            )
        schema = {c: pl.Float64 for c in FRAME_COLUMNS}
        if not rows:
            return pl.DataFrame(schema=schema)
        return pl.DataFrame(rows, schema=schema)


__all__ = ["RollingHistory", "FRAME_COLUMNS"]
