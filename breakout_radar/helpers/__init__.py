# breakout_radar/helpers/__init__.py
"""Lightweight helpers package init (lazy submodule access).

Usage:
    from breakout_radar.helpers import market
    market.evaluate_session(ts)

    # When (and only when) you actually need them:
    from breakout_radar.helpers import errors, logger, options_schema, ta_math
"""

from importlib import import_module as _im

__all__ = ["errors", "logger", "market", "options_schema", "ta_math"]


def __getattr__(name: str):
    if name in __all__:
        return _im(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + __all__)
