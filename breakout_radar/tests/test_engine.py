# breakout_radar/tests/test_engine.py
import datetime as dt

from breakout_radar.helpers.market import ensure_tz_aware
from breakout_radar.helpers.options_schema import MarketSnapshot, StrikeRecord
from breakout_radar.services.breakout_engine import BreakoutEngine
from breakout_radar.services.history import RollingHistory
from breakout_radar.technicals.state_objects import (
    FIRST_HOUR_BREAKOUT,
    MAX_PAIN_SHIFT,
    OI_PRICE_DIVERGENCE,
)
from breakout_radar.tests._builders import PREV_DAY, at, leg, make_chain, minutes_from, snap


def _run(engine, snaps):
    res = None
    for s in snaps:
        res = engine.process(s)
    return res


def _max_pain_move(engine):
    return _run(engine, [snap(at("10:00"), 21900), snap(at("10:01"), 22000)])


def test_quiet_market_has_no_signals():
    engine = BreakoutEngine()
    res = _run(engine, [snap(t, 22000) for t in minutes_from(at("10:00"), 8)])
    assert res.signals == []
    assert res.summary.overall_bias == "NEUTRAL"
    assert res.market_state.trend == "SIDEWAYS"


def test_missing_atm_data_skips_detectors():
    engine = BreakoutEngine()
    _run(engine, [snap(at("10:00"), 21900), snap(at("10:01"), 22000)])
    chain = make_chain(22000)
    chain[22000.0] = StrikeRecord(strike=22000.0, call=leg(), put=None)
    res = engine.process(
        MarketSnapshot.build(timestamp=at("10:02"), spot_price=22000, strikes=chain)
    )
    assert res.signals == []
    assert res.market_state is not None
    assert res.market_state.key_levels.max_pain is not None


def test_short_covering_through_engine():
    engine = BreakoutEngine()
    ts = minutes_from(at("10:00"), 3)
    res = _run(engine, [
        snap(ts[0], 22000, call_oi=100_000, put_oi=100_000, iv=20.0),
        snap(ts[1], 22070, call_oi=90_000, put_oi=92_000, iv=19.7),
        snap(ts[2], 22132, call_oi=80_000, put_oi=85_000, iv=19.4),
    ])
    div = [s for s in res.signals if s.pattern == OI_PRICE_DIVERGENCE]
    assert len(div) == 1
    assert div[0].direction == "bullish"
    assert div[0].confidence >= 0.75


def test_max_pain_cache_spans_cycles():
    engine = BreakoutEngine()
    res = _max_pain_move(engine)
    shifts = [s for s in res.signals if s.pattern == MAX_PAIN_SHIFT]
    assert len(shifts) == 1 and shifts[0].direction == "bullish"
    assert len(engine.signals_by_pattern("max_pain_shift")) == 1
    assert [s.pattern for s in engine.high_priority_alerts()] == [MAX_PAIN_SHIFT]

    # analyze() re-runs the cycle without moving the cache or the log
    again = engine.analyze()
    assert [s.pattern for s in again.signals] == [s.pattern for s in res.signals]
    assert len(engine.signal_log()) == len(res.signals)


def test_config_changes_apply_next_cycle():
    engine = BreakoutEngine()
    _max_pain_move(engine)
    engine.update_config({"minConfidenceThreshold": 0.9})
    assert engine.get_config()["min_confidence_threshold"] == 0.9
    assert engine.analyze().signals == []

    engine.replace_config({"volumeMultiplier": 3})
    assert engine.get_config()["min_confidence_threshold"] == 0.6
    assert engine.get_config()["volume_multiplier"] == 3
    assert len(engine.analyze().signals) == 1


def test_history_capacity_from_config():
    engine = BreakoutEngine(config={"historyCapacity": 5})
    _run(engine, [snap(t, 22000) for t in minutes_from(at("10:00"), 8)])
    assert len(engine.history) == 5


def test_engines_are_independent():
    shared_free = BreakoutEngine(history=RollingHistory(10))
    other = BreakoutEngine()
    _max_pain_move(shared_free)
    assert len(shared_free.history) == 2
    assert len(other.history) == 0
    assert other.current_signals() == []
    assert other.summary_row() == {}


def test_summary_row_and_categories():
    engine = BreakoutEngine()
    _max_pain_move(engine)
    row = engine.summary_row()
    assert row["top_pattern"] == MAX_PAIN_SHIFT
    assert row["top_confidence"] == 80.0
    assert row["confidence_score"] == 80.0
    assert row["overall_bias"] == "BULLISH"
    cats = engine.categorize_signals()
    assert [s.pattern for s in cats["high_confidence"]] == [MAX_PAIN_SHIFT]


# ---------------- first hour at a 30-second cadence ----------------
def _opening_session(until="10:45"):
    """Prior close 22000, first hour swinging 21980–22040, then flat at 22010."""
    snaps = [snap(at("15:29", PREV_DAY), 22000)]
    t, end = at("09:30"), at(until)
    i = 0
    while t < end:
        spot = (21980, 22000, 22040, 22010)[i % 4] if t <= at("10:30") else 22010
        snaps.append(snap(t, spot))
        t += dt.timedelta(seconds=30)
        i += 1
    return snaps


def test_first_hour_breakout_survives_history_eviction():
    engine = BreakoutEngine()
    _run(engine, _opening_session("10:45"))
    assert len(engine.history) == 120
    assert ensure_tz_aware(engine.history.all()[0].timestamp) == ensure_tz_aware(at("09:45"))

    res = engine.process(snap(at("10:45"), 22100))
    fh = [s for s in res.signals if s.pattern == FIRST_HOUR_BREAKOUT]
    assert len(fh) == 1
    assert fh[0].direction == "bullish"
    assert fh[0].stop_loss == 22040
    assert fh[0].target == 22100
    assert fh[0].evidence["first_hour_low"] == 21980


def test_session_levels_persist_past_the_first_hour():
    engine = BreakoutEngine()
    _run(engine, _opening_session("12:05"))
    lv = engine.session_levels
    assert (lv.first_hour_high, lv.first_hour_low) == (22040, 21980)
    assert lv.first_hour_points == 121
    assert lv.prior_close == 22000
    assert lv.day_close == 22010


# ---------------- strike grid from config ----------------
def test_strike_step_config_regrids_snapshots():
    engine = BreakoutEngine(config={"strikeStep": 100})
    engine.process(snap(at("10:00"), 22060))
    latest = engine.history.latest
    assert latest.strike_step == 100
    assert latest.atm_strike == 22100

    parsed = engine.snapshot_from_payload({"spot_price": 22140, "timestamp": "2024-01-10T10:01:00+05:30"})
    assert parsed.atm_strike == 22100

    engine.update_config({"strikeStep": 50})
    engine.process(snap(at("10:02"), 22060))
    assert engine.history.latest.atm_strike == 22050


# ---------------- log window + pattern stats ----------------
def test_signal_log_since_and_pattern_stats():
    engine = BreakoutEngine()
    _max_pain_move(engine)
    logged = engine.signal_log()
    assert logged
    assert engine.signal_log(since=dt.timedelta(minutes=5)) == logged
    assert engine.signal_log(since=at("10:01")) == logged
    assert engine.signal_log(since=at("10:02")) == []

    stats = engine.pattern_stats()
    assert stats["total_signals"] == len(logged)
    assert stats["patterns"][MAX_PAIN_SHIFT]["count"] == 1
    assert stats["patterns"][MAX_PAIN_SHIFT]["avg_confidence"] == 80.0
    assert stats["signals_per_hour"] is None  # one timestamp, no span
    assert engine.pattern_stats(since=at("10:02"))["patterns"] == {}
