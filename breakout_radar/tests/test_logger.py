# breakout_radar/tests/test_logger.py
import json
import logging
import sys
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

from breakout_radar.helpers.logger import JSONLFormatter, log
from breakout_radar.settings import settings as SETTINGS


def _record(exc_info=None):
    return logging.LogRecord("BreakoutRadar", logging.ERROR, __file__, 1, "boom %s", ("x",), exc_info)


def test_jsonl_line_carries_env_and_traceback():
    try:
        raise ValueError("bad chain")
    except ValueError:
        line = JSONLFormatter().format(_record(sys.exc_info()))
    payload = json.loads(line)
    assert payload["message"] == "boom x"
    assert payload["level"] == "ERROR"
    assert payload["env"] == SETTINGS.get_env()
    assert "ValueError: bad chain" in payload["exc"]


def test_single_file_handler_and_quiet_console():
    files = [h for h in log.handlers if isinstance(h, RotatingFileHandler)]
    assert len(files) == 1
    assert not any(isinstance(h, RichHandler) for h in log.handlers)
    assert not log.propagate
    assert SETTINGS.log_file("CORE").name == SETTINGS.LOGGING["FILES"]["CORE"]
