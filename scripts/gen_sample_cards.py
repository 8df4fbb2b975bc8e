#!/usr/bin/env python3
"""Sample card workbook generator.

Writes a filled import template (row 1: template headers, rows 2+: synthetic
cards) for trying the import wizard and for throughput checks. Reference
names are drawn from small fixed vocabularies; --unknown-rate mixes in names
that will not resolve so the missing-data path can be exercised.
"""
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Any

import pandas as pd

from cardvault.excel.template import TEMPLATE_SHEET_NAME
from cardvault.models.template_columns import TEMPLATE_COLUMNS

PLAYERS = ["LeBron James", "Michael Jordan", "Kobe Bryant", "Stephen Curry", "Luka Dončić", "Victor Wembanyama"]
TEAMS = ["Lakers", "Bulls", "Warriors", "Mavericks", "Spurs"]
BRANDS = ["Panini", "Topps", "Upper Deck"]
SERIES = ["Prizm", "Chrome", "Select", "Optic"]
INSERTS = ["", "", "Rookie Ticket", "Downtown"]
PARALLELS = ["", "Base", "Silver", "Gold"]
AUTOGRAPH_TYPES = ["On-card", "Sticker"]


def _season(rng: random.Random) -> str:
    start = rng.randint(1986, 2024)
    return f"{start}-{str(start + 1)[-2:]}"


def generate_card_rows(rows: int, seed: int = 42, unknown_rate: float = 0.0) -> pd.DataFrame:
    """Synthetic cards keyed by template header.

    Args:
        rows: number of cards
        seed: random seed for reproducible data
        unknown_rate: share of rows whose brand is not in the vocabulary
    """
    rng = random.Random(seed)
    data: list[dict[str, Any]] = []
    for i in range(rows):
        autograph = rng.random() < 0.2
        numbered_of = rng.choice([0, 0, 10, 25, 99, 199, 499])
        brand = f"Unknown Brand {i % 7}" if rng.random() < unknown_rate else rng.choice(BRANDS)
        data.append({
            "Player Name": rng.choice(PLAYERS),
            "Team": rng.choice(TEAMS),
            "Brand": brand,
            "Series": rng.choice(SERIES),
            "Insert": rng.choice(INSERTS),
            "Parallel": rng.choice(PARALLELS),
            "Memorabilia": rng.choice(["", "", "Jersey", "Patch"]),
            "Season / Year": _season(rng),
            "Card Number": str(rng.randint(1, 300)),
            "Autograph": "Yes" if autograph else "No",
            "Type of Autograph": rng.choice(AUTOGRAPH_TYPES) if autograph else "",
            "Numbered": "Yes" if numbered_of else "No",
            "Current #": str(rng.randint(1, numbered_of)) if numbered_of else "",
            "Of #": str(numbered_of) if numbered_of else "",
            "Notes": "",
        })
    return pd.DataFrame(data, columns=[c.header for c in TEMPLATE_COLUMNS])


def create_sample_workbook(output_path: Path, rows: int, seed: int = 42, unknown_rate: float = 0.0) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_card_rows(rows, seed, unknown_rate)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET_NAME, index=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a filled card import workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # 1,000 cards, all names resolvable against the sample vocabulary
  python scripts/gen_sample_cards.py --rows 1000 --output data/sample_1k.xlsx

  # 5% unknown brands to see the missing-data report
  python scripts/gen_sample_cards.py --rows 200 --unknown-rate 0.05
""",
    )
    parser.add_argument("--rows", type=int, default=100, help="Number of cards (default: 100)")
    parser.add_argument(
        "--output", type=Path, default=Path("data/sample_cards.xlsx"),
        help="Output file (default: data/sample_cards.xlsx)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument(
        "--unknown-rate", type=float, default=0.0,
        help="Share of rows with an unresolvable brand, 0..1 (default: 0)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.unknown_rate <= 1.0:
        print("Error: --unknown-rate must be between 0 and 1", file=sys.stderr)
        return 1

    print(f"Generating {args.rows:,} cards -> {args.output} (seed={args.seed}, unknown_rate={args.unknown_rate})")
    if args.dry_run:
        print("[DRY RUN] nothing written")
        return 0
    try:
        create_sample_workbook(args.output, args.rows, args.seed, args.unknown_rate)
    except OSError as e:
        print(f"Error generating workbook: {e}", file=sys.stderr)
        return 1
    print("done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
