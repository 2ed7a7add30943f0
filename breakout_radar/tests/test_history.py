# breakout_radar/tests/test_history.py
import pytest

from breakout_radar.services.history import FRAME_COLUMNS, RollingHistory
from breakout_radar.tests._builders import at, history_of, minutes_from, snap


def test_capacity_evicts_oldest():
    ts = minutes_from(at("10:00"), 5)
    h = history_of([snap(t, 22000 + i) for i, t in enumerate(ts)], capacity=3)
    assert len(h) == 3
    assert [s.spot_price for s in h.all()] == [22002, 22003, 22004]
    assert h.latest.spot_price == 22004
    assert h.previous.spot_price == 22003


def test_last_and_empty_reads():
    h = RollingHistory(10)
    assert h.latest is None and h.previous is None
    assert h.last(3) == []
    h.append(snap(at("10:00"), 22000))
    assert len(h.last(5)) == 1
    assert h.last(0) == []


def test_backwards_and_duplicate_timestamps_are_kept():
    h = RollingHistory(10)
    h.append(snap(at("10:05"), 22000))
    h.append(snap(at("10:00"), 22010))
    h.append(snap(at("10:00"), 22020))
    assert len(h) == 3
    assert h.latest.spot_price == 22020


def test_clear():
    h = history_of([snap(at("10:00"), 22000)])
    h.clear()
    assert len(h) == 0


def test_non_positive_capacity_rejected():
    with pytest.raises(ValueError):
        RollingHistory(0)


def test_to_frame_shape():
    ts = minutes_from(at("10:00"), 4)
    h = history_of([snap(t, 22000, call_oi=120_000, put_oi=80_000) for t in ts])
    df = h.to_frame()
    assert df.columns == FRAME_COLUMNS
    assert df.height == 4
    assert df["atm_call_oi"].to_list() == [120_000.0] * 4
    # 5 strikes × 2 legs × 1000
    assert df["option_volume"].to_list() == [10_000.0] * 4
    assert h.to_frame(2).height == 2

    empty = RollingHistory(5).to_frame()
    assert empty.height == 0 and empty.columns == FRAME_COLUMNS


def test_capacity_plus_one_drops_original_oldest():
    ts = minutes_from(at("10:00"), 4)
    first, *rest = [snap(t, 22000 + i) for i, t in enumerate(ts)]
    h = RollingHistory(3)
    h.append(first)
    for s in rest:
        h.append(s)
    assert len(h) == 3
    assert first not in h.all()
    assert h.latest is rest[-1]
