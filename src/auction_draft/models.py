"""Auction data models - players, teams, accounts and draft records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class PlayerRole(str, Enum):
    STAFF = "Staff"
    TECHNICIAN = "Technician"
    CONTRACTUAL_WORKER = "Contractual Worker"


class CaptainRole(str, Enum):
    STAFF = "Staff"
    TECHNICIAN = "Technician"


class AccountRole(str, Enum):
    ADMIN = "admin"
    TEAM_OWNER = "team_owner"


class AuctionPhase(str, Enum):
    """Shared lifecycle of the auction."""

    LOBBY = "lobby"
    RUNNING = "running"
    ENDED = "ended"


class ViewMode(str, Enum):
    """Client-local screen, derived from phase and the logged-in account."""

    LOGIN = "login"
    PUBLIC_VIEW = "public_view"
    ADMIN_LOBBY = "admin_lobby"
    ADMIN_VIEW = "admin_view"
    TEAM_VIEW = "team_view"
    AUCTION_ENDED = "auction_ended"


@dataclass
class Player:
    """A draftable player."""

    id: int
    name: str
    role: PlayerRole


@dataclass
class Team:
    """A team and its drafted roster (insertion order = draft order)."""

    id: int
    name: str
    owner: str
    captain_role: CaptainRole
    color: str
    logo: str
    players: List[Player] = field(default_factory=list)

    def has_player(self, player_id: int) -> bool:
        return any(p.id == player_id for p in self.players)

    def add_player(self, player: Player):
        self.players.append(player)

    def remove_player(self, player_id: int):
        """Drop a player from the roster (no-op if absent)."""
        self.players = [p for p in self.players if p.id != player_id]


@dataclass
class Account:
    """Login account. Team owners are paired 1:1 with a team by ``team_id``."""

    id: int
    username: str
    password: str
    role: AccountRole
    team_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN


@dataclass
class DraftAction:
    """The single most recent draft, kept for one level of undo."""

    player: Player
    team_id: int


@dataclass
class Announcement:
    """Transient broadcast of the latest pick.

    ``seq`` increases with every draft, so an expiry timer can tell whether
    the announcement it was scheduled for is still the current one.
    """

    player: Player
    team: Team
    seq: int


class OutcomeStatus(str, Enum):
    OK = "ok"
    FORBIDDEN = "forbidden"
    REJECTED = "rejected"


@dataclass
class Outcome:
    """Result of an engine operation.

    Callers that ignore it get silent no-op semantics; callers that inspect
    it can tell a missing capability from an unmet precondition.
    """

    status: OutcomeStatus
    reason: Optional[str] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "Outcome":
        return cls(OutcomeStatus.OK, value=value)

    @classmethod
    def forbidden(cls, reason: str) -> "Outcome":
        return cls(OutcomeStatus.FORBIDDEN, reason=reason)

    @classmethod
    def rejected(cls, reason: str) -> "Outcome":
        return cls(OutcomeStatus.REJECTED, reason=reason)

    def __bool__(self) -> bool:
        return self.status == OutcomeStatus.OK


def name_sort_key(player: Player):
    """Case-insensitive name ordering, ties broken by id."""
    return (player.name.casefold(), player.name, player.id)


def sort_by_name(players: List[Player]) -> List[Player]:
    return sorted(players, key=name_sort_key)


def sort_by_id(players: List[Player]) -> List[Player]:
    return sorted(players, key=lambda p: p.id)
