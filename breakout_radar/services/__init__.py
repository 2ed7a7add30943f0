# breakout_radar/services/__init__.py
"""Stateful services: rolling snapshot history and the breakout engine."""
