# breakout_radar/technicals/patterns/__init__.py
"""Breakout pattern detectors (see runner.DETECTORS for the registry)."""
