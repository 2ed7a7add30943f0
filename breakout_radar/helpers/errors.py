#!/usr/bin/env python3
# ============================================================
# breakout_radar/helpers/errors.py — v1.0 (detector error taxonomy)
# ============================================================
"""Errors raised inside the detection core.

Neither class is fatal: the detector runner treats both as "cannot fire".
Anything else escaping a detector is an internal compute error and is logged
with its traceback by the runner.
"""

from __future__ import annotations

from typing import Optional, TypeVar

T = TypeVar("T")


class BreakoutError(Exception):
    """Base class for breakout-engine errors."""


class MissingDataError(BreakoutError):
    """A required snapshot field is absent (e.g. no ATM call/put record)."""


class InsufficientHistoryError(BreakoutError):
    """An indicator the detector depends on is not yet computable."""


def require(value: Optional[T], name: str) -> T:
    """Return `value`, or raise InsufficientHistoryError when it is None."""
    if value is None:
        raise InsufficientHistoryError(f"{name} unavailable")
    return value


__all__ = [
    "BreakoutError",
    "MissingDataError",
    "InsufficientHistoryError",
    "require",
]
