#!/usr/bin/env python3
# ============================================================
# breakout_radar/helpers/ta_math.py — v1.0 (TA Primitives)
# ------------------------------------------------------------
# Single source of truth for numeric helpers used by indicators,
# detectors and market-state labelling.
#
# Pure NumPy, no Polars/settings/logging dependencies.
#
#   • to_np             → robust Series/iterable → np.ndarray
#   • true_range        → per-point True Range
#   • mean_true_range   → simple-mean ATR over the last `period` TRs
#   • percentile        → linear-interpolated percentile (None if empty)
#   • linreg_slope      → least-squares slope per step
#   • pct_change        → (b - a) / a × 100 with zero guard
#   • clamp01           → clip a scalar to [0, 1]
#   • excess_strength   → "distance beyond threshold" in [0, 1]
# ============================================================

from __future__ import annotations

from typing import Iterable, Optional, Union

import numpy as np

ArrayLike = Union[np.ndarray, Iterable[float]]


# ------------------------------------------------------------
# Core conversion helper
# ------------------------------------------------------------
def to_np(x: ArrayLike, *, dtype=float) -> np.ndarray:
    """Convert an iterable/array-like into a 1D NumPy array of given dtype.

    Safe to pass lists, tuples, NumPy arrays and Polars Series.
    """
    if isinstance(x, np.ndarray):
        arr = x
    else:
        try:
            arr = np.asarray(x, dtype=dtype)
        except TypeError:
            arr = np.asarray(list(x), dtype=dtype)

    if arr.ndim == 0:
        arr = arr.reshape(1)
    elif arr.ndim > 1:
        arr = arr.reshape(-1)

    return arr.astype(dtype, copy=False)


# ------------------------------------------------------------
# 1) Range / volatility
# ------------------------------------------------------------
def true_range(
    high: ArrayLike, low: ArrayLike, prev_close: ArrayLike
) -> np.ndarray:
    """True Range per point:

    TR = max(
        high - low,
        abs(high - prev_close),
        abs(low - prev_close),
    )
    """
    h = to_np(high, dtype=float)
    l = to_np(low, dtype=float)
    pc = to_np(prev_close, dtype=float)

    n = min(h.size, l.size, pc.size)
    h, l, pc = h[:n], l[:n], pc[:n]

    return np.maximum.reduce([h - l, np.abs(h - pc), np.abs(l - pc)])


def mean_true_range(
    high: ArrayLike,
    low: ArrayLike,
    close: ArrayLike,
    period: int = 14,
) -> Optional[float]:
    """Arithmetic mean of the last `period` True Ranges.

    prev_close for point i is close[i-1], so `period + 1` points are needed.
    Returns None when there are fewer.
    """
    h = to_np(high, dtype=float)
    l = to_np(low, dtype=float)
    c = to_np(close, dtype=float)

    n = min(h.size, l.size, c.size)
    if period <= 0 or n < period + 1:
        return None

    h, l, c = h[n - period:n], l[n - period:n], c[n - period - 1:n - 1]
    tr = true_range(h, l, c)
    return float(np.mean(tr))


# ------------------------------------------------------------
# 2) Statistics
# ------------------------------------------------------------
def percentile(x: ArrayLike, q: float) -> Optional[float]:
    arr = to_np(x, dtype=float)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return None
    return float(np.percentile(arr, q))


def linreg_slope(y: ArrayLike) -> Optional[float]:
    """Least-squares slope of `y` against 0..n-1 (None below two points)."""
    arr = to_np(y, dtype=float)
    if arr.size < 2:
        return None
    x = np.arange(arr.size, dtype=float)
    slope, _ = np.polyfit(x, arr, 1)
    return float(slope)


def pct_change(a: float, b: float) -> Optional[float]:
    if not a:
        return None
    return (b - a) / a * 100.0


# ------------------------------------------------------------
# 3) Normalisation
# ------------------------------------------------------------
def clamp01(x: float) -> float:
    if not np.isfinite(x):
        return 0.0
    return float(min(1.0, max(0.0, x)))


def excess_strength(value: float, threshold: float, span: Optional[float] = None) -> float:
    """How far `value` sits beyond `threshold`, mapped to [0, 1].

    With no `span`, the excess is measured relative to the threshold itself,
    so twice the threshold scores 1.0.
    """
    span = threshold if span is None else span
    if span <= 0:
        return 1.0 if value > threshold else 0.0
    return clamp01((value - threshold) / span)


__all__ = [
    "to_np",
    "true_range",
    "mean_true_range",
    "percentile",
    "linreg_slope",
    "pct_change",
    "clamp01",
    "excess_strength",
]
