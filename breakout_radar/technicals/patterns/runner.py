#!/usr/bin/env python3
# ============================================================
# breakout_radar/technicals/patterns/runner.py — v1.0
# One-call detector sweep with per-detector isolation:
#   • MissingDataError / InsufficientHistoryError → skipped (DEBUG)
#   • anything else → logged with traceback, dropped
# ============================================================

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from breakout_radar.helpers.errors import InsufficientHistoryError, MissingDataError
from breakout_radar.helpers.logger import log
from breakout_radar.technicals.state_objects import BreakoutSignal

from . import oi_flow, price_action, volatility
from .core import DetectorContext

Detector = Callable[[DetectorContext], Optional[BreakoutSignal]]

DETECTORS: Dict[str, Detector] = {
    **oi_flow.EXPORTS,
    **price_action.EXPORTS,
    **volatility.EXPORTS,
}


def run_detectors(
    ctx: DetectorContext,
    *,
    subset: Optional[Iterable[str]] = None,
) -> List[BreakoutSignal]:
    """Run every registered detector (or `subset`) against one context."""
    names = list(subset) if subset else list(DETECTORS)
    out: List[BreakoutSignal] = []
    for name in names:
        fn = DETECTORS.get(name)
        if not callable(fn):
            log.warning(f"[Detectors] Unknown detector '{name}'")
            continue
        try:
            sig = fn(ctx)
        except (MissingDataError, InsufficientHistoryError) as e:
            log.debug(f"[Detectors] {name} skipped: {e}")
            continue
        except Exception:
            log.exception(f"[Detectors] {name} internal compute error")
            continue
        if sig is not None:
            out.append(sig)
    return out


__all__ = ["DETECTORS", "run_detectors"]
