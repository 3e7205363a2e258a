"""CLI script to load the approver roster from a JSON file."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create or update approvers from a JSON roster (a list of approver objects).",
    )
    parser.add_argument("roster", type=Path, help="Path to the roster JSON file")
    parser.add_argument(
        "--deactivate-missing",
        action="store_true",
        help="Deactivate active approvers that are not listed in the roster",
    )
    return parser.parse_args()


async def _run() -> int:
    from pydantic import TypeAdapter, ValidationError

    from proposal_gate.db.session import async_session_maker, init_db
    from proposal_gate.schemas.approvers import ApproverSeed
    from proposal_gate.services.approver_roster import sync_roster

    args = _parse_args()
    try:
        raw = json.loads(args.roster.read_text(encoding="utf-8"))
        entries = TypeAdapter(list[ApproverSeed]).validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        message = f"Invalid roster {args.roster}: {exc}"
        raise SystemExit(message) from exc

    await init_db()
    async with async_session_maker() as session:
        result = await sync_roster(session, entries, deactivate_missing=bool(args.deactivate_missing))

    sys.stdout.write(
        f"created={len(result.created)} "
        f"updated={len(result.updated)} "
        f"deactivated={len(result.deactivated)}\n",
    )
    for email in result.deactivated:
        sys.stdout.write(f"- deactivated {email}\n")
    return 0


def main() -> None:
    """Run the async CLI workflow and exit with its return code."""
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
