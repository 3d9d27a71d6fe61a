"""Deadline compliance sweep CLI — ``wset-compliance-check``.

Connects to the database, re-validates every active workflow against the
reference date and flags the ones that need a human.  Intended for a
daily cron job.

Examples::

    # Check against today
    uv run wset-compliance-check

    # Re-run the sweep as of a past date
    uv run wset-compliance-check --as-of 2026-03-02
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date

logger = logging.getLogger(__name__)


async def run_check(*, as_of: date | None = None):
    """Run the sweep in its own session, commit, and return the report."""
    # Lazy imports to avoid loading DB machinery at module import time
    from wset_db.engine import dispose_engine, session_scope
    from wset_workflow.compliance import run_compliance_check

    try:
        async with session_scope() as db:
            return await run_compliance_check(db, as_of=as_of)
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``wset-compliance-check``."""
    parser = argparse.ArgumentParser(
        prog="wset-compliance-check",
        description="Flag active WSET workflows whose submission deadline needs attention.",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference date as YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    report = asyncio.run(run_check(as_of=args.as_of))

    print(
        f"Checked: {report.checked}  Flagged: {report.flagged}  "
        f"Overdue: {report.overdue}  Failed: {report.failed}"
    )
    sys.exit(1 if report.failed else 0)
