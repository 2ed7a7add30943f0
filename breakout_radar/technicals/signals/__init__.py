# breakout_radar/technicals/signals/__init__.py
"""Signal aggregation: dedupe, filter, prioritise, summarise."""
