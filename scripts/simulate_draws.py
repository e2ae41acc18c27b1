"""Diagnostic script to check toy draw odds against their ticket counts."""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path
import random
from typing import Iterable, Optional

from toy_raffle.drawing import select_prize, tickets_for
from toy_raffle.storage import StateFiles, load_catalog
from toy_raffle.toys import Toy


TOLERANCE_PERCENT = 2.0

SAMPLE_CATALOG: list[Toy] = [
    Toy(1, "Teddy Bear", 1000, 90.0),
    Toy(2, "Yo-yo", 1000, 10.0),
]


def expected_percentages(toys: Iterable[Toy]) -> dict[int, float]:
    tickets = {toy.id: tickets_for(toy) for toy in toys}
    total = sum(tickets.values())
    if total <= 0:
        raise ValueError("No toy holds a ticket; nothing can be drawn.")
    return {toy_id: count / total * 100 for toy_id, count in tickets.items()}


def simulate_draws(toys: list[Toy], draws: int, seed: Optional[int]) -> Counter[int]:
    """Draw ``draws`` times with an empty won set each time."""

    rng = random.Random(seed)
    counts: Counter[int] = Counter()
    for _ in range(draws):
        prize = select_prize(toys, frozenset(), rng)
        if prize is None:
            break
        counts[prize.id] += 1
    return counts


def report(toys: list[Toy], draws: int, seed: Optional[int], tolerance: float) -> bool:
    counts = simulate_draws(toys, draws, seed)
    expected = expected_percentages(toys)
    print(f"Simulated {draws} draws{' with seed ' + str(seed) if seed is not None else ''}.")
    print(f"Tolerance: ±{tolerance:.1f}%")
    print()
    header = f"{'ID':>5} {'Toy':<20} {'Actual %':>10} {'Expected %':>12} {'Δ%':>8} Status"
    print(header)
    print("-" * len(header))

    within_tolerance = True
    for toy in toys:
        actual_pct = counts[toy.id] / draws * 100 if draws else 0.0
        delta = actual_pct - expected[toy.id]
        status = "OK" if abs(delta) <= tolerance else "WARN"
        if status != "OK":
            within_tolerance = False
        print(
            f"{toy.id:>5} {toy.name:<20} {actual_pct:>10.2f} {expected[toy.id]:>12.2f} {delta:>8.2f} {status}"
        )

    print()
    if within_tolerance:
        print("All toy odds within tolerance.")
    else:
        print("One or more toys deviated beyond tolerance.")
    return within_tolerance


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Catalog file in 'id, name, quantity, weight' format (default: built-in sample).",
    )
    parser.add_argument(
        "--draws",
        type=int,
        default=10000,
        help="Number of simulated draws to run (default: 10000).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducibility.",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=TOLERANCE_PERCENT,
        help=f"Allowed deviation in percentage points (default: {TOLERANCE_PERCENT}).",
    )
    args = parser.parse_args(argv)

    if args.catalog is None:
        toys = list(SAMPLE_CATALOG)
    else:
        path = args.catalog.expanduser()
        toys = load_catalog(StateFiles(directory=path.parent, available_toys=path.name))

    try:
        ok = report(toys, args.draws, args.seed, args.tolerance)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()
