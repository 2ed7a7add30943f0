# breakout_radar/cli/__init__.py
