"""Open an auction store, optionally import players, and print its status.

Usage:
    python -m src.auction_draft.run_auction [store_dir] [players_csv]

Examples:
    python -m src.auction_draft.run_auction
    python -m src.auction_draft.run_auction data/store players.csv
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from src.auction_draft.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from src.auction_draft.engine import AuctionEngine
from src.auction_draft.file_store import JsonFileStore
from src.auction_draft.player_import import import_players
from src.auction_draft.scheduler import AsyncioScheduler
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


def format_status(engine: AuctionEngine) -> str:
    """Human-readable summary of the auction."""
    lines = [
        f"Phase: {engine.phase.value}",
        f"Round: {engine.current_round}",
        f"Players: {len(engine.master_players)} total, "
        f"{len(engine.available_players)} available",
    ]
    if engine.round_order:
        order = ", ".join(team.name for team in engine.round_order)
        lines.append(f"Order: {order} (turn {engine.turn_index})")
    for team in engine.teams:
        names = ", ".join(p.name for p in team.players) or "-"
        lines.append(f"  {team.name} ({team.owner}): {names}")
    if engine.error_message:
        lines.append(f"Warning: {engine.error_message}")
    return "\n".join(lines)


async def run(store_dir: Optional[Path] = None, players_csv: Optional[Path] = None) -> str:
    """Bootstrap an engine on the running loop and return its status text."""
    store = JsonFileStore(storage_dir=store_dir)
    engine = AuctionEngine(store, scheduler=AsyncioScheduler()).bootstrap()
    try:
        if players_csv is not None:
            outcome = engine.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
            if not outcome:
                raise RuntimeError(
                    "Seeded administrator login failed; import requires admin access"
                )
            created = import_players(engine, players_csv)
            logger.info("Imported %d players", len(created))
            engine.logout()
        return format_status(engine)
    finally:
        engine.close()


if __name__ == "__main__":
    setup_logging()

    store_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    players_csv = Path(sys.argv[2]) if len(sys.argv) > 2 else None

    try:
        print(asyncio.run(run(store_dir, players_csv)))
    except Exception:
        logger.exception("Auction bootstrap failed")
        sys.exit(1)
