# ============================================================
# breakout_radar/technicals/indicators/core.py — v1.0
# ------------------------------------------------------------
# Polars-based price/volume indicators over the history frame
# produced by RollingHistory.to_frame():
#   • VWAP (rolling series + vwap_last)
#   • ATR (atr_last, simple mean of True Range)
#   • Bollinger width (% of SMA, population σ)
#
# Unavailable → None (never a silent zero). Bollinger width
# returns the BB_WIDTH_NOT_COMPRESSED sentinel plus a ready flag.
# ============================================================

from __future__ import annotations

from typing import Optional, Tuple

import polars as pl

from breakout_radar.helpers.ta_math import mean_true_range

BB_WIDTH_NOT_COMPRESSED = 100.0


# ---------------- VWAP ----------------
def vwap_series(df: pl.DataFrame, lookback: int = 20) -> pl.Series:
    """Rolling VWAP of spot weighted by combined option volume.

    Rows with fewer than `lookback` points behind them, or whose window
    carries zero weight, are null.
    """
    if df.is_empty():
        return pl.Series("vwap", [], dtype=pl.Float64)

    spot = df["spot"].cast(pl.Float64, strict=False)
    vol = df["option_volume"].cast(pl.Float64, strict=False).fill_null(0.0)

    w = int(lookback)
    return (
        pl.DataFrame({"pv": spot * vol, "v": vol})
        .select(
            pl.when(pl.col("v").rolling_sum(window_size=w) > 0)
            .then(pl.col("pv").rolling_sum(window_size=w) / pl.col("v").rolling_sum(window_size=w))
            .otherwise(None)
            .alias("vwap")
        )
        .to_series()
    )


def vwap_last(df: pl.DataFrame, lookback: int = 20) -> Optional[float]:
    """Latest VWAP over the last `lookback` points, or None if not computable."""
    if not isinstance(df, pl.DataFrame) or df.height < int(lookback) or lookback <= 0:
        return None
    s = vwap_series(df.tail(int(lookback)), lookback)
    if s.is_empty():
        return None
    v = s.tail(1).item()
    return float(v) if v is not None else None


# ---------------- ATR ----------------
def atr_last(df: pl.DataFrame, period: int = 14) -> Optional[float]:
    """Mean True Range over `period` steps; prevClose is the previous spot."""
    if not isinstance(df, pl.DataFrame) or df.height < int(period) + 1:
        return None
    return mean_true_range(df["high"], df["low"], df["spot"], int(period))


# ---------------- Bollinger width ----------------
def bollinger_width(
    df: pl.DataFrame, period: int = 20, k: float = 2.0
) -> Tuple[float, bool]:
    """(upper − lower) / SMA × 100 over the last `period` spots.

    Returns (width, ready). Not ready → (BB_WIDTH_NOT_COMPRESSED, False).
    """
    if not isinstance(df, pl.DataFrame) or df.height < int(period) or period <= 0:
        return BB_WIDTH_NOT_COMPRESSED, False

    spot = df["spot"].tail(int(period)).cast(pl.Float64, strict=False)
    mid = spot.mean()
    sd = spot.std(ddof=0)
    if mid is None or sd is None or mid == 0:
        return BB_WIDTH_NOT_COMPRESSED, False

    upper = mid + k * sd
    lower = mid - k * sd
    return float((upper - lower) / mid * 100.0), True


__all__ = [
    "BB_WIDTH_NOT_COMPRESSED",
    "vwap_series",
    "vwap_last",
    "atr_last",
    "bollinger_width",
]
