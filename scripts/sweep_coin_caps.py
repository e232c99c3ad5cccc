"""Clamp every coin balance to its owner's current cap.

Run this after lowering a plan's cap so existing balances come into line
without waiting for each user's next reset.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Apply coin caps to every user balance.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report balances above their cap; do not write.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-user details.",
    )
    return parser.parse_args()


def over_cap_users() -> list[dict]:
    """Return users whose stored balance exceeds their resolved cap."""
    from app.services.ledger_factory import build_ledger_service

    ledger = build_ledger_service()
    return [
        row
        for row in ledger.list_accounts_with_caps()
        if row["cap"] is not None and int(row["coins"]) > row["cap"]
    ]


def run_sweep() -> int:
    """Run one sweep against the configured backend."""
    from app.services.ledger_factory import build_ledger_service

    return build_ledger_service().sweep_caps()


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.dry_run:
        rows = over_cap_users()
        print(f"{len(rows)} user(s) above their coin cap:")
        for row in rows:
            print(f"{row['id']}\t{row['coins']} > {row['cap']}")
        return

    adjusted = run_sweep()
    print(f"Clamped {adjusted} balance(s) to their cap")


if __name__ == "__main__":
    main()
