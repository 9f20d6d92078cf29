#!/usr/bin/env python3
"""Seed the contact search database with deterministic demo data.

Usage:
  python scripts/seed_contacts.py                 # 1000 contacts, seed 42
  python scripts/seed_contacts.py --count 50000 --seed 7
"""

import argparse
import os
import sys

# Add project root so we can import crm_search modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from crm_search.database import SessionLocal, init_db  # noqa: E402
from crm_search.logging_config import setup_logging  # noqa: E402
from crm_search.seed import seed_contacts  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo CRM contacts")
    parser.add_argument("--count", type=int, default=1000, help="Contacts to insert")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed")
    args = parser.parse_args()

    setup_logging()
    init_db()
    with SessionLocal() as db:
        seed_contacts(db, count=args.count, seed=args.seed)


if __name__ == "__main__":
    main()
