# breakout_radar/technicals/__init__.py
"""Indicators, pattern detectors and signal aggregation."""
