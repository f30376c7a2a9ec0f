#!/usr/bin/env python3
"""
Create (or recreate) the goodies schema.

Usage:
    python3 scripts/init_db.py [--config PATH] [--drop]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the goodies database schema.")
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML.")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop all goodies tables first. Destroys data.",
    )
    args = parser.parse_args(argv)

    from goodies_config import init_from_settings, load_settings
    from goodies_kernel.db.engine import create_tables, drop_tables

    settings = load_settings(args.config)
    init_from_settings(settings)

    if args.drop:
        drop_tables()
        print("Dropped existing tables.")
    create_tables()
    print("Schema ready.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
