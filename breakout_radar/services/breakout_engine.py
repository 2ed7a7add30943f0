#!/usr/bin/env python3
# ============================================================
# breakout_radar/services/breakout_engine.py — v1.0
# ------------------------------------------------------------
# One engine instance = one owned history + one live config.
#
# Cycle (process):
#   re-grid to config strike_step → append → session levels
#   → indicators (single pass) → session gate
#   → detectors (skipped when ATM call/put missing)
#   → aggregate → previous-cycle cache → signal log
# ============================================================
from __future__ import annotations

import datetime as dt
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple, Union

from breakout_radar.helpers.logger import log
from breakout_radar.helpers.market import ensure_tz_aware, evaluate_session
from breakout_radar.helpers.options_schema import MarketSnapshot
from breakout_radar.services.history import RollingHistory
from breakout_radar.settings.breakout_settings import BreakoutConfig
from breakout_radar.technicals.indicators.state import (
    IndicatorSnapshot,
    compute_indicator_snapshot,
)
from breakout_radar.technicals.indicators.session_levels import SessionLevels, SessionTracker
from breakout_radar.technicals.patterns.core import DetectorContext
from breakout_radar.technicals.patterns.runner import run_detectors
from breakout_radar.technicals.signals.aggregator import (
    aggregate,
    categorize_signals,
    pattern_stats,
    signal_frequency,
)
from breakout_radar.technicals.state_objects import AnalysisResult, BreakoutSignal


class BreakoutEngine:
    """Stateful driver for the breakout detectors.

    Example:
        engine = BreakoutEngine()
        result = engine.process(MarketSnapshot.from_payload(payload))
        result.to_dict()          # confidence on a 0–100 scale
    """

    def __init__(
        self,
        history: Optional[RollingHistory] = None,
        config: Optional[BreakoutConfig | Mapping[str, Any]] = None,
    ) -> None:
        if config is None:
            self.config = BreakoutConfig()
        elif isinstance(config, BreakoutConfig):
            self.config = config
        else:
            self.config = BreakoutConfig(config)
        self.history = (
            history if history is not None else RollingHistory(int(self.config["history_capacity"]))
        )
        self._signal_log: Deque[BreakoutSignal] = deque(maxlen=int(self.config["signal_log_size"]))
        self._last_result: Optional[AnalysisResult] = None
        # previous-cycle Max Pain / GEX for shift + flip detection
        self._prev_levels: Tuple[Optional[float], Optional[float]] = (None, None)
        self._seen_levels: Tuple[Optional[float], Optional[float]] = (None, None)
        # first-hour / prior-session levels outlive the bounded history
        self._session = SessionTracker.from_snapshots(
            self.history.all(), float(self.config["first_hour_minutes"])
        )

    # ---------- cycle ----------
    def process(self, snapshot: MarketSnapshot) -> AnalysisResult:
        """Append `snapshot` and run one full detection cycle."""
        snapshot = snapshot.with_strike_step(self.config["strike_step"])
        self.history.append(snapshot)
        self._session.update(snapshot, float(self.config["first_hour_minutes"]))
        self._prev_levels = self._seen_levels
        result, ind = self._run()
        if ind is not None:
            mp, gex = self._seen_levels
            self._seen_levels = (
                ind.max_pain if ind.max_pain is not None else mp,
                ind.gex if ind.gex is not None else gex,
            )
        self._signal_log.extend(result.signals)
        self._last_result = result
        log.info(
            f"[Engine] {snapshot.timestamp.isoformat()} spot={snapshot.spot_price:.2f} "
            f"→ {result.summary.total_signals} signals ({result.summary.overall_bias})"
        )
        return result

    def analyze(self) -> AnalysisResult:
        """Re-run the current cycle without appending or touching caches."""
        result, _ = self._run()
        return result

    def _run(self) -> Tuple[AnalysisResult, Optional[IndicatorSnapshot]]:
        latest = self.history.latest
        if latest is None:
            return aggregate([], self.config), None

        prev_mp, prev_gex = self._prev_levels
        ind = compute_indicator_snapshot(
            self.history, self.config, prev_mp, prev_gex, self._session.levels
        )
        ctx = DetectorContext(
            snapshot=latest,
            history=self.history,
            indicators=ind,
            config=self.config,
            session=evaluate_session(latest.timestamp),
        )
        if not latest.has_atm_data():
            log.warning(
                f"[Engine] ATM call/put missing at {latest.atm_strike:g}; detectors skipped"
            )
            raw: List[BreakoutSignal] = []
        else:
            raw = run_detectors(ctx)
        return aggregate(raw, self.config, ctx), ind

    # ---------- input ----------
    def snapshot_from_payload(self, payload: Mapping[str, Any]) -> MarketSnapshot:
        """Parse a broker-style payload on the configured strike grid."""
        return MarketSnapshot.from_payload(payload, strike_step=float(self.config["strike_step"]))

    @property
    def session_levels(self) -> SessionLevels:
        return self._session.levels

    # ---------- config ----------
    def get_config(self) -> Dict[str, Any]:
        return self.config.as_dict()

    def update_config(self, partial: Mapping[str, Any]) -> None:
        self.config.update(partial)

    def replace_config(self, full: Mapping[str, Any]) -> None:
        self.config.replace(full)

    # ---------- lookups ----------
    def current_signals(self) -> List[BreakoutSignal]:
        return list(self._last_result.signals) if self._last_result else []

    def signals_by_pattern(self, pattern: str) -> List[BreakoutSignal]:
        key = pattern.upper()
        return [s for s in self._signal_log if s.pattern == key]

    def high_priority_alerts(self) -> List[BreakoutSignal]:
        return [s for s in self.current_signals() if s.priority == "HIGH"]

    def signal_log(
        self,
        limit: Optional[int] = None,
        since: Optional[Union[dt.datetime, dt.timedelta]] = None,
    ) -> List[BreakoutSignal]:
        """Logged signals, oldest first.

        `since` is an absolute datetime or a window ending at the latest
        snapshot's timestamp (e.g. `dt.timedelta(hours=1)`).
        """
        items = list(self._signal_log)
        if since is not None:
            if isinstance(since, dt.timedelta):
                latest = self.history.latest
                if latest is None:
                    return []
                cutoff = ensure_tz_aware(latest.timestamp) - since
            else:
                cutoff = ensure_tz_aware(since)
            items = [s for s in items if ensure_tz_aware(s.timestamp) >= cutoff]
        return items[-limit:] if limit else items

    def pattern_stats(
        self, since: Optional[Union[dt.datetime, dt.timedelta]] = None
    ) -> Dict[str, Any]:
        """Per-pattern counts/confidences (0–100) and signals per hour over the log."""
        items = self.signal_log(since=since)
        stats = pattern_stats(items)
        for row in stats.values():
            for key in ("avg_confidence", "max_confidence", "min_confidence"):
                row[key] = round(row[key] * 100, 2)
        freq = signal_frequency(items)
        return {
            "total_signals": len(items),
            "patterns": stats,
            "signals_per_hour": round(freq, 2) if freq is not None else None,
            "from": items[0].timestamp.isoformat() if items else None,
            "to": items[-1].timestamp.isoformat() if items else None,
        }

    def categorize_signals(self) -> Dict[str, List[BreakoutSignal]]:
        return categorize_signals(self.current_signals())

    def summary_row(self) -> Dict[str, Any]:
        """Flat row for persistence; confidences on a 0–100 scale."""
        res = self._last_result
        snap = self.history.latest
        if res is None or snap is None:
            return {}
        top = res.signals[0] if res.signals else None
        lv = res.market_state.key_levels
        return {
            "timestamp": res.analyzed_at.isoformat(),
            "spot_price": snap.spot_price,
            "atm_strike": snap.atm_strike,
            "total_signals": res.summary.total_signals,
            "bullish": res.summary.bullish,
            "bearish": res.summary.bearish,
            "neutral": res.summary.neutral,
            "overall_bias": res.summary.overall_bias,
            "confidence_score": round(res.summary.confidence_score * 100, 2),
            "trend": res.market_state.trend,
            "volatility": res.market_state.volatility,
            "volume": res.market_state.volume,
            "support": lv.support,
            "resistance": lv.resistance,
            "vwap": lv.vwap,
            "max_pain": lv.max_pain,
            "top_pattern": top.pattern if top else None,
            "top_direction": top.direction if top else None,
            "top_confidence": round(top.confidence * 100, 2) if top else None,
        }


__all__ = ["BreakoutEngine"]
