"""CSV player import and tabular roster snapshots.

Handles the usual quirks of hand-maintained player sheets:
- Header names in any case, with stray whitespace
- Blank rows and blank names
- Role spellings like "tech" or "contractual"
- The same player listed twice
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

import pandas as pd

from src.auction_draft.auction_state import AuctionState
from src.auction_draft.models import Player, PlayerRole

if TYPE_CHECKING:
    from src.auction_draft.engine import AuctionEngine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["name", "role"]

ROSTER_COLUMNS = [
    "team_id", "team_name", "owner", "pick",
    "player_id", "player_name", "role",
]

# Lower-cased spelling -> canonical role
_ROLE_ALIASES = {
    "staff": PlayerRole.STAFF,
    "technician": PlayerRole.TECHNICIAN,
    "tech": PlayerRole.TECHNICIAN,
    "contractual worker": PlayerRole.CONTRACTUAL_WORKER,
    "contractual": PlayerRole.CONTRACTUAL_WORKER,
    "contract worker": PlayerRole.CONTRACTUAL_WORKER,
    "contractor": PlayerRole.CONTRACTUAL_WORKER,
}


class PlayerImportError(Exception):
    """Raised when a player CSV cannot be read."""


def normalize_role(value) -> Optional[PlayerRole]:
    """Map a free-form role string to a PlayerRole, or None if unknown."""
    if value is None or pd.isna(value):
        return None
    key = " ".join(str(value).replace("_", " ").split()).lower()
    return _ROLE_ALIASES.get(key)


def _role_value(value) -> Optional[str]:
    role = normalize_role(value)
    return role.value if role is not None else None


class PlayerCsvLoader:
    """Reads a ``name,role`` CSV into a cleaned DataFrame."""

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)

    def read(self) -> pd.DataFrame:
        """Load and clean the CSV.

        Returns DataFrame with columns ``name`` and ``role`` (role values are
        canonical PlayerRole values), blank and duplicate names removed.

        Raises:
            PlayerImportError: If the file is missing or lacks a required column.
        """
        if not self.filepath.exists():
            raise PlayerImportError(f"Player file not found: {self.filepath}")

        logger.info("Reading players: %s", self.filepath.name)
        df = pd.read_csv(self.filepath, dtype=str, skip_blank_lines=True)
        df.columns = [str(c).strip().lower() for c in df.columns]

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise PlayerImportError(
                f"{self.filepath.name} is missing required columns: {missing}"
            )

        df = df[REQUIRED_COLUMNS].copy()
        df["name"] = df["name"].fillna("").str.strip()
        df = df[df["name"] != ""]

        df["role"] = df["role"].map(_role_value)
        unknown = df["role"].isna()
        if unknown.any():
            logger.warning(
                "Dropping %d players with unrecognized role: %s",
                unknown.sum(),
                df.loc[unknown, "name"].tolist(),
            )
            df = df[~unknown]

        dupes = df["name"].str.casefold().duplicated()
        if dupes.any():
            logger.warning(
                "Dropping %d duplicate player names: %s",
                dupes.sum(),
                df.loc[dupes, "name"].tolist(),
            )
            df = df[~dupes]

        df = df.reset_index(drop=True)
        logger.info("Loaded %d players", len(df))
        return df


def import_players(engine: "AuctionEngine", filepath: Path) -> List[Player]:
    """Create every player in ``filepath`` not already in the master list.

    Requires the engine's current user to be an administrator; otherwise
    nothing is created.
    """
    df = PlayerCsvLoader(filepath).read()
    existing = {p.name.casefold() for p in engine.master_players}

    created = []
    for row in df.itertuples(index=False):
        if row.name.casefold() in existing:
            logger.debug("Skipping existing player %s", row.name)
            continue
        outcome = engine.create_player(row.name, row.role)
        if not outcome:
            logger.warning("Could not import %s: %s", row.name, outcome.reason)
            continue
        created.append(outcome.value)
        existing.add(row.name.casefold())

    logger.info("Imported %d of %d players from %s", len(created), len(df), filepath)
    return created


def roster_frame(state: AuctionState) -> pd.DataFrame:
    """One row per drafted player, in team then draft order."""
    rows = [
        {
            "team_id": team.id,
            "team_name": team.name,
            "owner": team.owner,
            "pick": pick,
            "player_id": player.id,
            "player_name": player.name,
            "role": player.role.value,
        }
        for team in state.teams
        for pick, player in enumerate(team.players, start=1)
    ]
    return pd.DataFrame(rows, columns=ROSTER_COLUMNS)
