#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/indicators/state.py — v1.0 (per-cycle state)
# ------------------------------------------------------------
# One indicator pass per engine cycle, shared by every detector.
# Unavailable values stay None; Bollinger width carries a
# sentinel + `bb_ready` flag instead.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import polars as pl

from breakout_radar.services.history import RollingHistory
from breakout_radar.technicals.indicators.core import (
    BB_WIDTH_NOT_COMPRESSED,
    atr_last,
    bollinger_width,
    vwap_last,
    vwap_series,
)
from breakout_radar.technicals.indicators.options import (
    OIImbalance,
    atm_concentration,
    gamma_exposure_proxy,
    max_pain,
    oi_imbalance,
    trailing_average,
)
from breakout_radar.technicals.indicators.session_levels import SessionLevels, SessionTracker


@dataclass(frozen=True)
class IndicatorSnapshot:
    frame: pl.DataFrame = field(repr=False)
    vwap: Optional[float] = None
    vwap_series: List[Optional[float]] = field(default_factory=list)
    atr: Optional[float] = None
    bb_width: float = BB_WIDTH_NOT_COMPRESSED
    bb_ready: bool = False
    max_pain: Optional[float] = None
    prev_max_pain: Optional[float] = None
    oi_imbalance: Optional[OIImbalance] = None
    gex: Optional[float] = None
    prev_gex: Optional[float] = None
    call_share: Optional[float] = None
    prev_call_share: Optional[float] = None
    avg_volume: Optional[float] = None
    volume_ratio: Optional[float] = None
    current_range: Optional[float] = None
    avg_range: Optional[float] = None
    session_levels: SessionLevels = field(default_factory=SessionLevels)


def compute_indicator_snapshot(
    history: RollingHistory,
    config: Mapping,
    prev_max_pain: Optional[float] = None,
    prev_gex: Optional[float] = None,
    session_levels: Optional[SessionLevels] = None,
) -> IndicatorSnapshot:
    """Compute every indicator for the latest point of `history`.

    `prev_max_pain` / `prev_gex` come from the engine's previous-cycle cache.
    Without `session_levels` the levels are rebuilt from `history` alone.
    """
    df = history.to_frame()
    latest = history.latest
    previous = history.previous
    if latest is None:
        return IndicatorSnapshot(frame=df, prev_max_pain=prev_max_pain, prev_gex=prev_gex)

    if session_levels is None:
        session_levels = SessionTracker.from_snapshots(
            history.all(), float(config["first_hour_minutes"])
        ).levels

    lookback = int(config["vwap_lookback"])
    vw_all = vwap_series(df, lookback).to_list() if df.height else []
    width, ready = bollinger_width(df, int(config["bb_period"]), float(config["bb_stddev"]))

    # trailing averages exclude the current point
    vols = df["volume"].to_list()
    ranges = (df["high"] - df["low"]).to_list()
    vol_lb = int(config["volume_lookback"])
    min_pts = int(config["volume_min_points"])
    avg_volume = trailing_average(vols[:-1], vol_lb, min_pts)
    avg_range = trailing_average(ranges[:-1], vol_lb, min_pts)
    volume_ratio = (
        latest.activity_volume / avg_volume if avg_volume and avg_volume > 0 else None
    )

    return IndicatorSnapshot(
        frame=df,
        vwap=vwap_last(df, lookback),
        vwap_series=vw_all,
        atr=atr_last(df, int(config["atr_period"])),
        bb_width=width,
        bb_ready=ready,
        max_pain=max_pain(latest),
        prev_max_pain=prev_max_pain,
        oi_imbalance=oi_imbalance(latest, previous),
        gex=gamma_exposure_proxy(
            latest, int(config["gex_strike_window"]), float(config["gex_oi_weight"])
        ),
        prev_gex=prev_gex,
        call_share=atm_concentration(latest),
        prev_call_share=atm_concentration(previous) if previous is not None else None,
        avg_volume=avg_volume,
        volume_ratio=volume_ratio,
        current_range=ranges[-1] if ranges else None,
        avg_range=avg_range,
        session_levels=session_levels,
    )


__all__ = ["IndicatorSnapshot", "compute_indicator_snapshot"]
