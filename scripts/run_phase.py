"""Run one phase transition directly against the configured database.

Usage:
    python scripts/run_phase.py freeze
    python scripts/run_phase.py reveal --now 2026-02-20T15:05:00+00:00

Bypasses the HTTP layer (no secret, no Redis lock); the transitions are
idempotent, so re-running after a scheduler hiccup is safe.
"""

import argparse
import asyncio
import json
from datetime import UTC, datetime

from sales_challenge.core.logging import configure_structlog
from sales_challenge.db.base import close_db, get_session_factory, init_db
from sales_challenge.domain.weeks import ensure_utc
from sales_challenge.services.phase_service import PHASES, PhaseService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("phase", choices=PHASES)
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="ISO timestamp to act at (naive values are UTC); defaults to the wall clock",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    configure_structlog(json_logs=False)
    now = ensure_utc(args.now) if args.now else datetime.now(UTC)

    await init_db()
    try:
        result = await PhaseService(get_session_factory()).run(args.phase, now)
    finally:
        await close_db()

    print(json.dumps(result.to_response(), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
