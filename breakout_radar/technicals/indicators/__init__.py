# breakout_radar/technicals/indicators/__init__.py
from breakout_radar.technicals.indicators.core import (
    BB_WIDTH_NOT_COMPRESSED,
    atr_last,
    bollinger_width,
    vwap_last,
    vwap_series,
)

__all__ = [
    "BB_WIDTH_NOT_COMPRESSED",
    "atr_last",
    "bollinger_width",
    "vwap_last",
    "vwap_series",
]
