# breakout_radar/tests/test_aggregator.py
import datetime as dt
import random

import pytest

from breakout_radar.settings.breakout_settings import BreakoutConfig, priority_for
from breakout_radar.technicals.signals.aggregator import (
    aggregate,
    categorize_signals,
    pattern_stats,
    signal_frequency,
)
from breakout_radar.technicals.state_objects import PATTERNS, MarketState
from breakout_radar.tests._builders import at, sig

DIRECTIONS = ("bullish", "bearish", "neutral")


def test_min_confidence_filter_holds_for_random_configs():
    rng = random.Random(7)
    for _ in range(200):
        threshold = rng.random()
        raw = [
            sig(
                rng.choice(PATTERNS),
                rng.choice(DIRECTIONS),
                rng.random(),
                strength=rng.random(),
                ts=at("10:00") + dt.timedelta(minutes=rng.randint(0, 30)),
            )
            for _ in range(rng.randint(0, 15))
        ]
        res = aggregate(raw, BreakoutConfig({"minConfidenceThreshold": threshold}))

        assert all(s.confidence >= threshold for s in res.signals)
        confs = [s.confidence for s in res.signals]
        assert confs == sorted(confs, reverse=True)
        assert all(s.priority == priority_for(s.confidence) for s in res.signals)
        keys = [(s.pattern, s.direction) for s in res.signals]
        assert len(keys) == len(set(keys))
        assert res.summary.total_signals == len(res.signals)


def test_dedupe_keeps_highest_confidence():
    res = aggregate(
        [sig("OI_IMBALANCE", "bullish", 0.65), sig("OI_IMBALANCE", "bullish", 0.9), sig("OI_IMBALANCE", "bearish", 0.7)],
        BreakoutConfig(),
    )
    assert [(s.direction, s.confidence) for s in res.signals] == [("bullish", 0.9), ("bearish", 0.7)]
    assert res.signals[0].priority == "HIGH"
    assert res.signals[1].priority == "MEDIUM"


def test_equal_bullish_and_bearish_is_neutral():
    res = aggregate(
        [sig("VWAP_BREAKOUT", "bullish", 0.8), sig("OI_IMBALANCE", "bearish", 0.7), sig("GAMMA_EXPOSURE_FLIP", "neutral", 0.7)],
        BreakoutConfig(),
    )
    assert res.summary.overall_bias == "NEUTRAL"
    assert res.summary.bullish == 1 and res.summary.bearish == 1 and res.summary.neutral == 1


def test_majority_sets_bias_and_score():
    res = aggregate(
        [sig("VWAP_BREAKOUT", "bullish", 0.8), sig("OI_IMBALANCE", "bullish", 0.6), sig("MAX_PAIN_SHIFT", "bearish", 0.7)],
        BreakoutConfig(),
    )
    assert res.summary.overall_bias == "BULLISH"
    assert res.summary.confidence_score == pytest.approx(0.7)
    assert res.summary.high_priority == 1 and res.summary.medium_priority == 2


def test_empty_result_is_well_formed():
    res = aggregate([], BreakoutConfig())
    assert res.signals == []
    assert res.summary.overall_bias == "NEUTRAL"
    assert res.summary.confidence_score == 0.0
    assert res.market_state == MarketState()


def test_equal_confidence_sorts_newest_first():
    older = sig("VWAP_BREAKOUT", "bullish", 0.7, ts=at("10:00"))
    newer = sig("OI_IMBALANCE", "bullish", 0.7, ts=at("10:05"))
    res = aggregate([older, newer], BreakoutConfig())
    assert [s.pattern for s in res.signals] == ["OI_IMBALANCE", "VWAP_BREAKOUT"]


def test_strength_buckets():
    res = aggregate(
        [sig("A", "bullish", 0.7, strength=0.9), sig("B", "bullish", 0.7, strength=0.6), sig("C", "bullish", 0.7, strength=0.1)],
        BreakoutConfig(),
    )
    assert (res.summary.strong, res.summary.moderate, res.summary.weak) == (1, 1, 1)


def test_categorize_signals():
    cats = categorize_signals([sig("A", "bullish", 0.85), sig("B", "bearish", 0.65), sig("C", "neutral", 0.4)])
    assert [s.pattern for s in cats["high_confidence"]] == ["A"]
    assert [s.pattern for s in cats["medium_confidence"]] == ["B"]
    assert [s.pattern for s in cats["low_confidence"]] == ["C"]
    assert [s.pattern for s in cats["bearish"]] == ["B"]


def test_to_dict_uses_percent_confidence():
    res = aggregate([sig("VWAP_BREAKOUT", "bullish", 0.75)], BreakoutConfig())
    out = res.to_dict()
    assert out["signals"][0]["confidence"] == 75.0
    assert out["summary"]["confidence_score"] == 75.0
    assert out["signals"][0]["timestamp"] == "2024-01-10T10:00:00"


def test_pattern_stats_and_frequency():
    signals = [
        sig("VWAP_BREAKOUT", confidence=0.6, ts=at("10:00")),
        sig("VWAP_BREAKOUT", confidence=0.8, ts=at("10:30")),
        sig("MAX_PAIN_SHIFT", confidence=0.7, ts=at("11:00")),
    ]
    stats = pattern_stats(signals)
    assert stats["VWAP_BREAKOUT"]["count"] == 2
    assert stats["VWAP_BREAKOUT"]["avg_confidence"] == pytest.approx(0.7)
    assert stats["VWAP_BREAKOUT"]["max_confidence"] == 0.8
    assert stats["MAX_PAIN_SHIFT"]["min_confidence"] == 0.7
    assert signal_frequency(signals) == pytest.approx(3.0)
    assert signal_frequency(signals[:1]) is None
