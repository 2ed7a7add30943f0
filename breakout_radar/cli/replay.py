#!/usr/bin/env python3
# ============================================================
# breakout_radar/cli/replay.py — v1.0
# ------------------------------------------------------------
# Feed recorded option-chain payloads (one JSON object per line)
# through a BreakoutEngine and print surfaced signals.
#
# Example:
#   python -m breakout_radar.cli.replay --jsonl chain_2024-01-10.jsonl
#   python -m breakout_radar.cli.replay --jsonl day.jsonl --min-confidence 0.75 \
#       --out /tmp/breakout_rows.csv
# ============================================================
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import polars as pl
from rich.table import Table

from breakout_radar.helpers.logger import console, log
from breakout_radar.services.breakout_engine import BreakoutEngine
from breakout_radar.technicals.state_objects import AnalysisResult

_DIR_STYLE = {"bullish": "green", "bearish": "red", "neutral": "yellow"}


def iter_payloads(path: Path) -> Iterator[Dict[str, Any]]:
    """Yield JSON objects from a JSONL file; blank lines are skipped."""
    with path.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                log.warning(f"[Replay] {path.name}:{lineno} skipped ({e.msg})")


def replay(path: Path, engine: BreakoutEngine) -> List[Dict[str, Any]]:
    """Process every payload in `path`; returns one summary row per cycle."""
    rows: List[Dict[str, Any]] = []
    for payload in iter_payloads(path):
        try:
            snapshot = engine.snapshot_from_payload(payload)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"[Replay] Bad payload skipped: {e}")
            continue
        result = engine.process(snapshot)
        if result.signals:
            _print_result(result)
        rows.append(engine.summary_row())
    return rows


def _print_result(result: AnalysisResult) -> None:
    table = Table(
        title=f"{result.analyzed_at.isoformat()} · bias {result.summary.overall_bias}",
        show_lines=False,
    )
    table.add_column("Pattern")
    table.add_column("Dir")
    table.add_column("Conf", justify="right")
    table.add_column("Prio")
    table.add_column("Target", justify="right")
    table.add_column("Stop", justify="right")
    table.add_column("Message")
    for s in result.signals:
        style = _DIR_STYLE.get(s.direction, "white")
        table.add_row(
            s.pattern,
            f"[{style}]{s.direction}[/{style}]",
            f"{s.confidence * 100:.0f}",
            s.priority,
            f"{s.target:.2f}" if s.target is not None else "-",
            f"{s.stop_loss:.2f}" if s.stop_loss is not None else "-",
            s.message,
        )
    console.print(table)


def write_rows(rows: List[Dict[str, Any]], out: Path) -> None:
    df = pl.DataFrame(rows)
    out.parent.mkdir(parents=True, exist_ok=True)
    if out.suffix == ".parquet":
        df.write_parquet(out)
    else:
        df.write_csv(out)
    log.info(f"[Replay] Wrote {df.height} rows → {out}")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Replay recorded option-chain snapshots through the breakout engine."
    )
    parser.add_argument("--jsonl", type=str, required=True, help="Path to JSONL payloads.")
    parser.add_argument("--strike-step", type=float, default=None, help="Strike grid spacing.")
    parser.add_argument("--min-confidence", type=float, default=None, help="0–1 surfacing floor.")
    parser.add_argument("--out", type=str, default=None, help="Write summary rows (.csv/.parquet).")

    args: Any = parser.parse_args(argv)
    p = Path(args.jsonl).expanduser().resolve()
    if not p.exists():
        print(f"[Replay] JSONL not found: {p}")
        return

    engine = BreakoutEngine()
    if args.min_confidence is not None:
        engine.update_config({"min_confidence_threshold": args.min_confidence})
    if args.strike_step is not None:
        engine.update_config({"strike_step": args.strike_step})

    rows = replay(p, engine)
    if not rows:
        print("[Replay] No usable payloads; nothing to report.")
        return
    if args.out:
        write_rows(rows, Path(args.out).expanduser().resolve())


if __name__ == "__main__":
    main()
