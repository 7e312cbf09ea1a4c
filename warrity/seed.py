"""
warrity-seed

Purpose:
  Fill the configured database with demo products and warranties.
  Expiration dates are spread around --now so every status shows up.

Examples:
  warrity-seed
  warrity-seed --count 50 --seed 7
  warrity-seed --now 2025-06-01T00:00:00Z
  DATA_DIR=/tmp/warrity warrity-seed --count 10

Exit codes:
  0 = success
  1 = invalid arguments
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from typing import Optional, Sequence

from .core.logging import configure_logging
from .core.warranty_status import InvalidDateError, parse_timestamp
from .db.migrate import run_migrations
from .db.session import Base, SessionLocal, engine
from .deps.clock import get_now
from .models import category as _category  # noqa: F401
from .models import product as _product  # noqa: F401
from .models import service_info as _service_info  # noqa: F401
from .models import user as _user  # noqa: F401
from .models import warranty as _warranty  # noqa: F401
from .services.seed import seed_demo_data
from .settings import settings

logger = logging.getLogger("warrity.seed")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed the Warrity database with demo warranties.")
    p.add_argument("--count", type=int, default=20, help="Number of warranties to create (default: 20)")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    p.add_argument("--now", default=None, help="Reference instant (ISO-8601); defaults to the current time")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(settings.LOG_LEVEL)

    if args.count < 0:
        print("ERROR: --count must be non-negative", file=sys.stderr)
        return 1
    try:
        now = parse_timestamp(args.now) if args.now else get_now()
    except InvalidDateError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine)
    run_migrations(engine, now=now, expiring_window_days=settings.EXPIRING_WINDOW_DAYS)

    db = SessionLocal()
    try:
        summary = seed_demo_data(
            db,
            now,
            count=args.count,
            rng=random.Random(args.seed),
            expiring_window_days=settings.EXPIRING_WINDOW_DAYS,
        )
    finally:
        db.close()

    print(json.dumps({"status": "seeded", **summary}, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
