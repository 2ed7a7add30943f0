# breakout_radar/tests/test_session_gate.py
import datetime as dt

from breakout_radar.helpers.market import (
    evaluate_session,
    is_expiry_tail,
    is_lunch_window,
    is_optimal_window,
    is_tradable_now,
)
from breakout_radar.tests._builders import EXPIRY_DAY, at

SATURDAY = dt.date(2024, 1, 13)


def test_tradable_bounds_inclusive():
    assert is_tradable_now(at("09:30"))
    assert is_tradable_now(at("15:30"))
    assert not is_tradable_now(at("09:29"))
    assert not is_tradable_now(at("15:31"))
    assert not is_tradable_now(at("10:00", SATURDAY))


def test_optimal_windows():
    for t in ("09:30", "10:00", "11:30", "14:30", "15:15"):
        assert is_optimal_window(at(t)), t
    for t in ("11:31", "12:30", "14:29", "15:20"):
        assert not is_optimal_window(at(t)), t


def test_lunch_window_half_open():
    assert is_lunch_window(at("12:00"))
    assert is_lunch_window(at("13:59"))
    assert not is_lunch_window(at("14:00"))
    assert not is_lunch_window(at("11:59"))


def test_expiry_tail_only_on_expiry_weekday():
    assert is_expiry_tail(at("15:00", EXPIRY_DAY))
    assert not is_expiry_tail(at("14:59", EXPIRY_DAY))
    assert not is_expiry_tail(at("15:10"))


def test_aware_timestamps_convert_to_exchange_zone():
    utc = dt.datetime(2024, 1, 10, 4, 30, tzinfo=dt.timezone.utc)  # 10:00 IST
    gate = evaluate_session(utc)
    assert gate.is_tradable and gate.is_optimal
    assert gate.now.hour == 10


def test_evaluate_session_fields():
    gate = evaluate_session(at("10:30"))
    assert gate.is_trading_day and gate.is_tradable
    assert not gate.is_lunch and not gate.is_expiry_tail
    assert gate.minutes_since_open == 60.0


def test_tuesday_morning_is_tradable():
    assert is_tradable_now(at("09:31", dt.date(2024, 1, 9)))
