# breakout_radar/settings/breakout_settings.py
"""Breakout Detection Settings
===========================
Centralized thresholds for the breakout engine.

Modules reading these settings (fresh on every cycle, never cached):
- technicals/indicators/state.py
- technicals/patterns/oi_flow.py
- technicals/patterns/price_action.py
- technicals/patterns/volatility.py
- technicals/signals/aggregator.py
- services/breakout_engine.py

Usage:
    from breakout_radar.settings.breakout_settings import BreakoutConfig

    cfg = BreakoutConfig()
    cfg.update({"minConfidenceThreshold": 0.7})   # camelCase accepted
    cfg["min_confidence_threshold"]               # -> 0.7
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional

from breakout_radar.helpers.logger import log
from breakout_radar.settings import settings as SETTINGS

# ===========================================================================
# Defaults (confidence values live on a 0–1 scale)
# ===========================================================================
BREAKOUT_DEFAULTS: Dict[str, float] = {
    # === Surfacing ===
    "min_confidence_threshold": 0.6,
    "history_capacity": 120,          # snapshots kept by the engine's store
    "signal_log_size": 200,           # surfaced signals kept for lookups
    "strike_step": SETTINGS.strike_step(),  # strike grid; snapshots are re-gridded to it

    # === Indicator windows ===
    "vwap_lookback": 20,
    "atr_period": 14,
    "bb_period": 20,
    "bb_stddev": 2.0,
    "volume_lookback": 10,            # trailing points for average volume/range
    "volume_min_points": 5,           # fewer prior points → average unavailable

    # === OI writing imbalance ===
    "oi_imbalance_ratio": 1.5,        # |ΔcallOI| / |ΔputOI|

    # === VWAP breakout ===
    "vwap_atr_multiple": 0.5,         # distance must exceed this × ATR
    "vwap_distance_pct": 0.0,         # optional % floor (0 disables)
    "vwap_confirmation_points": 2,
    "volume_multiplier": 2.0,         # volume confirmation for VWAP / first hour

    # === OI + price divergence ===
    "divergence_points": 3,
    "divergence_price_pct": 0.2,
    "divergence_full_strength_pct": 1.0,

    # === First hour ===
    "first_hour_minutes": 60,
    "first_hour_min_points": 3,
    "max_gap_pct": 0.8,

    # === Max pain ===
    "max_pain_shift_points": 50,
    "max_pain_min_oi": 10000,

    # === IV crush + stability ===
    "bb_compression_threshold": 1.5,  # Bollinger width % below this = compressed
    "iv_drop_pct": 5.0,               # drop across the 3-point decline
    "iv_skew_threshold": 2.0,         # |avg call IV − avg put IV|

    # === Volume spike / range expansion ===
    "volume_spike_multiplier": 2.5,
    "range_expansion_multiplier": 1.5,
    "round_number_step": 50,
    "key_level_proximity": 5,         # points from a round number
    "prior_level_proximity": 10,      # points from prior-session high/low
    "trend_points": 3,
    "trend_min_move": 5,              # points across trend_points

    # === Delta-neutral shift / confluence ===
    "delta_neutral_ratio": 0.65,
    "confluence_points": 3,

    # === Gamma exposure proxy ===
    "gex_strike_window": 2,           # ATM ± N grid steps
    "gex_oi_weight": 0.01,
    "gex_floor": 50000,

    # === Time-of-day context ===
    "off_peak_confidence_factor": 0.85,

    # === Market state labels ===
    "trend_window": 10,
    "trend_threshold_pct": 0.5,
    "atr_low_pct": 0.1,
    "atr_high_pct": 0.3,
    "bb_low_width": 1.0,
    "bb_high_width": 3.0,
    "volume_low_ratio": 0.5,
    "volume_high_ratio": 2.0,
    "key_level_window": 20,
    "key_level_percentile": 10,
}

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _norm_key(name: str) -> str:
    """minConfidenceThreshold / min-confidence-threshold → min_confidence_threshold."""
    key = _CAMEL.sub("_", str(name).strip())
    return key.replace("-", "_").replace(" ", "_").lower()


class BreakoutConfig(Mapping):
    """Flat name → number mapping, replaceable wholesale or by partial merge.

    Detectors receive the live object and index it on every invocation, so an
    update is visible from the next cycle on. Values are not bounds-checked.
    """

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(BREAKOUT_DEFAULTS)
        if overrides:
            self._merge(overrides)

    # ---------- Mapping protocol ----------
    def __getitem__(self, key: str) -> Any:
        return self._values[_norm_key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _norm_key(key) in self._values

    def __repr__(self) -> str:
        return f"BreakoutConfig({self._values!r})"

    # ---------- mutation ----------
    def _merge(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        applied: Dict[str, Any] = {}
        for raw_key, value in values.items():
            key = _norm_key(raw_key)
            if key not in BREAKOUT_DEFAULTS:
                log.warning(f"[Config] Unknown breakout setting '{raw_key}' accepted as '{key}'")
            self._values[key] = value
            applied[key] = value
        return applied

    def update(self, partial: Mapping[str, Any]) -> None:
        """Merge `partial` over the current values."""
        applied = self._merge(partial)
        log.info(f"[Config] Breakout config updated → {applied}")

    def replace(self, full: Mapping[str, Any]) -> None:
        """Replace every value; keys absent from `full` fall back to defaults."""
        self._values = dict(BREAKOUT_DEFAULTS)
        applied = self._merge(full)
        log.info(f"[Config] Breakout config replaced ({len(applied)} explicit keys)")

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


# ===========================================================================
# Label helpers (shared by aggregator + engine)
# ===========================================================================
def priority_for(confidence: float) -> str:
    """HIGH ≥ 0.8, MEDIUM ≥ 0.6, else LOW."""
    if confidence >= 0.8:
        return "HIGH"
    if confidence >= 0.6:
        return "MEDIUM"
    return "LOW"


def strength_label(strength: float) -> str:
    if strength >= 0.75:
        return "STRONG"
    if strength >= 0.5:
        return "MODERATE"
    return "WEAK"


__all__ = [
    "BREAKOUT_DEFAULTS",
    "BreakoutConfig",
    "priority_for",
    "strength_label",
]
