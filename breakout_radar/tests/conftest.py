# breakout_radar/tests/conftest.py
import os

# keep the Rich console handler quiet during collection as well as runs
os.environ.setdefault("BREAKOUT_LOG_CONSOLE", "0")
