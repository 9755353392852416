"""Replay recorded overlays through the decision engine for every tier.

Each JSONL line is either a bare overlay object or
``{"overlay": {...}, "token": "...", "pool_id": "..."}``. Prints the action
distribution per tier, useful after changing thresholds or tier overrides.

With ``--stateful`` lines are fed in order through one engine per tier so
pool history (liquidity drop, sell streak) and convergence build up the way
they do in production.

Usage:
    python scripts/replay_decisions.py overlays.jsonl
    python scripts/replay_decisions.py overlays.jsonl --stateful --show-rugs
"""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from src.signals.engine import SignalEngine, evaluate_detailed  # noqa: E402
from src.signals.tiers import TierId, build_tier_table  # noqa: E402
from src.signals.types import DecisionAction  # noqa: E402


def load_records(path: Path) -> tuple[list[dict], int]:
    """Parse JSONL, skipping blank and malformed lines. Returns (records, skipped)."""
    records: list[dict] = []
    skipped = 0
    with path.open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                continue
            if not isinstance(obj, dict):
                skipped += 1
                continue
            records.append(obj if "overlay" in obj else {"overlay": obj})
    return records, skipped


def replay(records: list[dict], stateful: bool = False) -> dict[TierId, Counter]:
    tiers = build_tier_table(settings.tier_overrides)
    results: dict[TierId, Counter] = {}
    for tier in TierId:
        counts: Counter = Counter()
        engine = SignalEngine(tiers=tiers) if stateful else None
        for rec in records:
            if engine is not None:
                result = engine.evaluate_detailed(
                    rec.get("overlay"), tier, token=rec.get("token"), pool_id=rec.get("pool_id")
                )
            else:
                result = evaluate_detailed(rec.get("overlay"), tier, tiers=tiers)
            counts[result.decision.action] += 1
        results[tier] = counts
    return results


def print_distribution(results: dict[TierId, Counter], total: int) -> None:
    actions = list(DecisionAction)
    header = f"{'Tier':<10}" + "".join(f"{a.value:>13}" for a in actions)
    print("=" * len(header))
    print(header)
    print("-" * len(header))
    for tier, counts in results.items():
        cells = []
        for action in actions:
            n = counts.get(action, 0)
            pct = n / total * 100 if total else 0.0
            cells.append(f"{n:>6} ({pct:4.1f}%)")
        print(f"{tier.value:<10}" + "".join(f"{c:>13}" for c in cells))
    print("=" * len(header))


def print_rugs(records: list[dict], limit: int = 20) -> None:
    print("\nRUG_WARNING samples (BASIC tier):")
    shown = 0
    for i, rec in enumerate(records):
        result = evaluate_detailed(rec.get("overlay"), TierId.BASIC)
        if result.decision.action != DecisionAction.RUG_WARNING:
            continue
        reasons = "; ".join(result.decision.reasons[1:])
        print(f"  #{i:<5} risk={result.rug.risk:<3} conf={result.decision.confidence:<3} {reasons}")
        shown += 1
        if shown >= limit:
            break
    if shown == 0:
        print("  (none)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay overlays through all decision tiers")
    parser.add_argument("path", type=Path, help="JSONL file with one overlay per line")
    parser.add_argument("--stateful", action="store_true", help="Keep pool history between lines")
    parser.add_argument("--show-rugs", action="store_true", help="Print RUG_WARNING samples")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"File not found: {args.path}")
        sys.exit(1)

    records, skipped = load_records(args.path)
    print(f"Loaded {len(records)} overlays ({skipped} malformed lines skipped)")
    if not records:
        return

    results = replay(records, stateful=args.stateful)
    print_distribution(results, len(records))
    if args.show_rugs:
        print_rugs(records)


if __name__ == "__main__":
    main()
