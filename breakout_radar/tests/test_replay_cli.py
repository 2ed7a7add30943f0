# breakout_radar/tests/test_replay_cli.py
import json

import polars as pl

from breakout_radar.cli.replay import main, replay
from breakout_radar.services.breakout_engine import BreakoutEngine


def _payload(ts, spot, call_oi=100_000, put_oi=100_000):
    atm = round(spot / 50) * 50
    return {
        "timestamp": ts,
        "spot_price": spot,
        "options": {
            str(atm + i * 50): {
                "CE": {"last_price": 100, "volume": 1000, "oi": call_oi, "change": 0, "iv": 15},
                "PE": {"last_price": 100, "volume": 1000, "oi": put_oi, "change": 0, "iv": 15},
            }
            for i in range(-2, 3)
        },
    }


def _write(path, payloads):
    lines = [json.dumps(p) for p in payloads] + ["", "{not json"]
    path.write_text("\n".join(lines), encoding="utf-8")


def test_replay_processes_each_payload(tmp_path):
    src = tmp_path / "day.jsonl"
    _write(src, [_payload("2024-01-10T10:00:00", 21900), _payload("2024-01-10T10:01:00", 22000)])
    engine = BreakoutEngine()
    rows = replay(src, engine)
    assert len(rows) == 2
    assert rows[-1]["top_pattern"] == "MAX_PAIN_SHIFT"
    assert len(engine.history) == 2


def test_main_writes_summary_rows(tmp_path):
    src = tmp_path / "day.jsonl"
    out = tmp_path / "rows.csv"
    _write(src, [_payload("2024-01-10T10:00:00", 22000), {"timestamp": "2024-01-10T10:01:00"}])
    main(["--jsonl", str(src), "--out", str(out)])
    df = pl.read_csv(out)
    assert df.height == 1
    assert df["overall_bias"].to_list() == ["NEUTRAL"]


def test_main_strike_step_reaches_engine_config(tmp_path):
    src = tmp_path / "day.jsonl"
    out = tmp_path / "rows.csv"
    _write(src, [_payload("2024-01-10T10:00:00", 22060)])
    main(["--jsonl", str(src), "--strike-step", "100", "--out", str(out)])
    assert pl.read_csv(out)["atm_strike"].to_list() == [22100.0]
