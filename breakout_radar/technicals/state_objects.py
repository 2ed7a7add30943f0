#!/usr/bin/env python3
# ======================================================================
# breakout_radar/technicals/state_objects.py — v1.0
# ----------------------------------------------------------------------
# Canonical output dataclasses for the breakout engine:
#
#   • BreakoutSignal  (one detector emission, immutable)
#   • SignalSummary   (counts + overall bias)
#   • KeyLevels / MarketState
#   • AnalysisResult  (one per engine cycle)
#
# Confidence lives on a 0–1 scale internally; `to_dict` converts it at
# the output boundary.
# ======================================================================

from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

# ----------------------------------------------------------------------
# Literal labels
# ----------------------------------------------------------------------

Direction = Literal["bullish", "bearish", "neutral"]
Priority = Literal["HIGH", "MEDIUM", "LOW"]
Bias = Literal["BULLISH", "BEARISH", "NEUTRAL"]
Trend = Literal["BULLISH", "BEARISH", "SIDEWAYS"]
Band = Literal["LOW", "MEDIUM", "HIGH"]

# Pattern names
OI_IMBALANCE = "OI_IMBALANCE"
VWAP_BREAKOUT = "VWAP_BREAKOUT"
OI_PRICE_DIVERGENCE = "OI_PRICE_DIVERGENCE"
FIRST_HOUR_BREAKOUT = "FIRST_HOUR_BREAKOUT"
MAX_PAIN_SHIFT = "MAX_PAIN_SHIFT"
IV_CRUSH_STABILITY = "IV_CRUSH_STABILITY"
VOLUME_SPIKE_KEY_LEVEL = "VOLUME_SPIKE_KEY_LEVEL"
RANGE_EXPANSION_VOLUME = "RANGE_EXPANSION_VOLUME"
DELTA_NEUTRAL_SHIFT = "DELTA_NEUTRAL_SHIFT"
VWAP_OI_CONFLUENCE = "VWAP_OI_CONFLUENCE"
GAMMA_EXPOSURE_FLIP = "GAMMA_EXPOSURE_FLIP"

PATTERNS = (
    OI_IMBALANCE,
    VWAP_BREAKOUT,
    OI_PRICE_DIVERGENCE,
    FIRST_HOUR_BREAKOUT,
    MAX_PAIN_SHIFT,
    IV_CRUSH_STABILITY,
    VOLUME_SPIKE_KEY_LEVEL,
    RANGE_EXPANSION_VOLUME,
    DELTA_NEUTRAL_SHIFT,
    VWAP_OI_CONFLUENCE,
    GAMMA_EXPOSURE_FLIP,
)


def _iso(v: Any) -> Any:
    return v.isoformat() if isinstance(v, (dt.datetime, dt.date)) else v


# ======================================================================
# Signals
# ======================================================================

@dataclass(frozen=True)
class BreakoutSignal:
    id: str
    direction: Direction
    pattern: str
    strength: float
    confidence: float
    message: str
    timestamp: dt.datetime
    evidence: Dict[str, Any] = field(default_factory=dict)
    target: Optional[float] = None
    stop_loss: Optional[float] = None
    timeframe: str = "intraday"
    priority: Priority = "LOW"
    actionable: bool = True

    def to_dict(self, confidence_scale: float = 100.0) -> Dict[str, Any]:
        d = asdict(self)
        d["confidence"] = round(self.confidence * confidence_scale, 2)
        d["timestamp"] = _iso(self.timestamp)
        d["evidence"] = {k: _iso(v) for k, v in self.evidence.items()}
        return d


@dataclass(frozen=True)
class SignalSummary:
    total_signals: int = 0
    bullish: int = 0
    bearish: int = 0
    neutral: int = 0
    strong: int = 0
    moderate: int = 0
    weak: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0
    overall_bias: Bias = "NEUTRAL"
    confidence_score: float = 0.0


# ======================================================================
# Market state
# ======================================================================

@dataclass(frozen=True)
class KeyLevels:
    support: Optional[float] = None
    resistance: Optional[float] = None
    vwap: Optional[float] = None
    max_pain: Optional[float] = None


@dataclass(frozen=True)
class MarketState:
    trend: Trend = "SIDEWAYS"
    volatility: Band = "MEDIUM"
    volume: Band = "MEDIUM"
    key_levels: KeyLevels = field(default_factory=KeyLevels)


# ======================================================================
# Per-cycle result
# ======================================================================

@dataclass(frozen=True)
class AnalysisResult:
    signals: List[BreakoutSignal]
    summary: SignalSummary
    market_state: MarketState
    analyzed_at: dt.datetime

    def to_dict(self, confidence_scale: float = 100.0) -> Dict[str, Any]:
        summary = asdict(self.summary)
        summary["confidence_score"] = round(self.summary.confidence_score * confidence_scale, 2)
        return {
            "signals": [s.to_dict(confidence_scale) for s in self.signals],
            "summary": summary,
            "market_state": asdict(self.market_state),
            "analyzed_at": _iso(self.analyzed_at),
        }


__all__ = [
    "Direction",
    "Priority",
    "BreakoutSignal",
    "SignalSummary",
    "KeyLevels",
    "MarketState",
    "AnalysisResult",
    "PATTERNS",
]
