"""Auction state - the single local owner of everything the engine tracks."""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional

from src.auction_draft.models import (
    Account,
    Announcement,
    AuctionPhase,
    DraftAction,
    Player,
    Team,
    ViewMode,
)


Listener = Callable[[FrozenSet[str]], None]

ADMIN_VIEWS = frozenset({ViewMode.ADMIN_LOBBY, ViewMode.ADMIN_VIEW, ViewMode.AUCTION_ENDED})


def resolve_view(account: Optional[Account], phase: AuctionPhase) -> ViewMode:
    """Screen an account lands on after logging in."""
    if account is None:
        return ViewMode.LOGIN
    if not account.is_admin:
        return ViewMode.TEAM_VIEW
    if phase == AuctionPhase.RUNNING:
        return ViewMode.ADMIN_VIEW
    if phase == AuctionPhase.ENDED:
        return ViewMode.AUCTION_ENDED
    return ViewMode.ADMIN_LOBBY


@dataclass
class AuctionState:
    """Complete client-side auction state.

    The shared subset (phase, round fields, undo entry, announcement and
    drafted-to assignments) is a cache of the remote store and is
    overwritten whenever the store's change feed delivers a snapshot.
    """

    phase: AuctionPhase = AuctionPhase.LOBBY
    view_mode: ViewMode = ViewMode.LOGIN
    current_user: Optional[Account] = None
    error_message: Optional[str] = None

    teams: List[Team] = field(default_factory=list)
    accounts: List[Account] = field(default_factory=list)
    master_players: List[Player] = field(default_factory=list)
    available_players: List[Player] = field(default_factory=list)

    current_round: int = 1
    round_order: List[Team] = field(default_factory=list)
    turn_index: int = 0
    dice_result: Optional[Team] = None
    is_rolling: bool = False
    last_draft: Optional[DraftAction] = None
    announcement: Optional[Announcement] = None
    announcement_seq: int = 0

    # Bumped whenever the round context changes; stale delayed callbacks
    # compare against it before applying.
    epoch: int = 0

    _listeners: List[Listener] = field(default_factory=list, repr=False)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def is_round_complete(self) -> bool:
        return len(self.round_order) > 0 and self.turn_index >= len(self.round_order)

    @property
    def picking_team(self) -> Optional[Team]:
        """Team on the clock, or None while the order is empty or done."""
        if not self.round_order or self.is_round_complete:
            return None
        return self.round_order[self.turn_index]

    @property
    def can_undo(self) -> bool:
        return self.last_draft is not None

    @property
    def is_admin(self) -> bool:
        return self.current_user is not None and self.current_user.is_admin

    def is_my_turn(self) -> bool:
        """Whether the logged-in team owner's team is the picking team."""
        picking = self.picking_team
        user = self.current_user
        if user is None or picking is None or user.is_admin:
            return False
        return user.team_id == picking.id

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_team(self, team_id: int) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def get_player(self, player_id: int) -> Optional[Player]:
        for player in self.master_players:
            if player.id == player_id:
                return player
        return None

    def get_account_for_team(self, team_id: int) -> Optional[Account]:
        for account in self.accounts:
            if account.team_id == team_id:
                return account
        return None

    def is_available(self, player_id: int) -> bool:
        return any(p.id == player_id for p in self.available_players)

    # ------------------------------------------------------------------
    # Round helpers
    # ------------------------------------------------------------------
    def clear_round(self):
        """Reset per-round fields for a fresh draw."""
        self.round_order = []
        self.turn_index = 0
        self.dice_result = None
        self.is_rolling = False
        self.last_draft = None
        self.announcement = None
        self.epoch += 1

    def follow_phase(self):
        """Keep an administrator's screen in step with the shared phase."""
        if self.is_admin and self.view_mode in ADMIN_VIEWS:
            self.view_mode = resolve_view(self.current_user, self.phase)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the names of changed fields."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, *changed: str):
        if not changed:
            return
        names = frozenset(changed)
        for listener in list(self._listeners):
            listener(names)
