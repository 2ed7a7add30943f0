# breakout_radar/__init__.py
"""Breakout Radar: option-chain breakout signal engine.

Entry point:
    from breakout_radar.services.breakout_engine import BreakoutEngine
"""

__version__ = "1.0.0"
__all__ = ("__version__",)
