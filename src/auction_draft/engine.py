"""Auction engine - wires state, rules, components and the sync bridge."""

import logging
import random
from typing import Callable, Optional, Tuple

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState, Listener
from src.auction_draft.config import (
    ANNOUNCEMENT_TTL_SEC,
    MAX_ROUNDS,
    ROLL_COMMIT_DELAY_SEC,
    TEAMS_PER_ROUND,
)
from src.auction_draft.draft_ledger import DraftLedger
from src.auction_draft.models import (
    Account,
    Announcement,
    AuctionPhase,
    Outcome,
    Player,
    Team,
    ViewMode,
)
from src.auction_draft.phase_machine import AuctionPhaseMachine
from src.auction_draft.player_pool import PlayerPool
from src.auction_draft.remote_store import RemoteStore
from src.auction_draft.scheduler import AsyncioScheduler, Scheduler
from src.auction_draft.sync_bridge import RemoteSyncBridge
from src.auction_draft.team_registry import TeamRegistry
from src.auction_draft.turn_order import TurnOrderScheduler

logger = logging.getLogger(__name__)


class AuctionEngine:
    """Entry point for a view layer.

    All mutation goes through the operation methods; the accessors expose
    read-only views of the state. Register a listener with
    ``add_listener`` to be told which fields changed.
    """

    def __init__(
        self,
        store: RemoteStore,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        max_rounds: int = MAX_ROUNDS,
        teams_per_round: int = TEAMS_PER_ROUND,
        roll_commit_delay: float = ROLL_COMMIT_DELAY_SEC,
        announcement_ttl: float = ANNOUNCEMENT_TTL_SEC,
    ):
        self.store = store
        self.scheduler = scheduler or AsyncioScheduler()
        self._state = AuctionState()
        self.rules = AccessRules(self._state)
        self.bridge = RemoteSyncBridge(self._state, store)
        self.players = PlayerPool(self._state, self.rules, self.bridge)
        self.registry = TeamRegistry(self._state, self.rules, self.bridge)
        self.turn_order = TurnOrderScheduler(
            self._state,
            self.rules,
            self.bridge,
            self.scheduler,
            rng=rng,
            teams_per_round=teams_per_round,
            commit_delay=roll_commit_delay,
        )
        self.ledger = DraftLedger(
            self._state,
            self.rules,
            self.bridge,
            self.scheduler,
            announcement_ttl=announcement_ttl,
        )
        self.phases = AuctionPhaseMachine(
            self._state, self.rules, self.bridge, max_rounds=max_rounds
        )

    def bootstrap(self) -> "AuctionEngine":
        """Load the remote store and subscribe to its change feeds."""
        self.bridge.load()
        self.bridge.start()
        logger.info(
            "Engine ready: %d teams, %d players, phase %s",
            len(self._state.teams),
            len(self._state.master_players),
            self._state.phase.value,
        )
        return self

    def close(self):
        self.bridge.stop()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> AuctionState:
        """Underlying state; treat as read-only."""
        return self._state

    @property
    def phase(self) -> AuctionPhase:
        return self._state.phase

    @property
    def view_mode(self) -> ViewMode:
        return self._state.view_mode

    @property
    def current_user(self) -> Optional[Account]:
        return self._state.current_user

    @property
    def error_message(self) -> Optional[str]:
        return self._state.error_message

    @property
    def teams(self) -> Tuple[Team, ...]:
        return tuple(self._state.teams)

    @property
    def master_players(self) -> Tuple[Player, ...]:
        return tuple(self._state.master_players)

    @property
    def available_players(self) -> Tuple[Player, ...]:
        return tuple(self._state.available_players)

    @property
    def current_round(self) -> int:
        return self._state.current_round

    @property
    def round_order(self) -> Tuple[Team, ...]:
        return tuple(self._state.round_order)

    @property
    def turn_index(self) -> int:
        return self._state.turn_index

    @property
    def dice_result(self) -> Optional[Team]:
        return self._state.dice_result

    @property
    def is_rolling(self) -> bool:
        return self._state.is_rolling

    @property
    def announcement(self) -> Optional[Announcement]:
        return self._state.announcement

    @property
    def picking_team(self) -> Optional[Team]:
        return self._state.picking_team

    @property
    def is_round_complete(self) -> bool:
        return self._state.is_round_complete

    @property
    def can_undo(self) -> bool:
        return self._state.can_undo

    @property
    def is_my_turn(self) -> bool:
        return self._state.is_my_turn()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def login(self, username: str, password: str) -> Outcome:
        return self.phases.login(username, password)

    def logout(self) -> Outcome:
        return self.phases.logout()

    def enter_public_view(self) -> Outcome:
        return self.phases.enter_public_view()

    def return_to_login(self) -> Outcome:
        return self.phases.return_to_login()

    # ------------------------------------------------------------------
    # Players and teams
    # ------------------------------------------------------------------
    def create_player(self, name: str, role) -> Outcome:
        return self.players.create_player(name, role)

    def update_player(self, player_id: int, name: str, role) -> Outcome:
        return self.players.update_player(player_id, name, role)

    def delete_player(self, player_id: int) -> Outcome:
        return self.players.delete_player(player_id)

    def create_team_owner(
        self, team_name: str, owner_name: str, username: str, password: str, captain_role
    ) -> Outcome:
        return self.registry.create_team_owner(
            team_name, owner_name, username, password, captain_role
        )

    def update_team_owner(
        self,
        team_id: int,
        team_name: str,
        owner_name: str,
        username: str,
        password: Optional[str] = None,
    ) -> Outcome:
        return self.registry.update_team_owner(
            team_id, team_name, owner_name, username, password
        )

    def delete_team_owner(self, team_id: int) -> Outcome:
        return self.registry.delete_team_owner(team_id)

    # ------------------------------------------------------------------
    # Auction flow
    # ------------------------------------------------------------------
    def start_auction(self) -> Outcome:
        return self.phases.start_auction()

    def roll_for_next_pick(self) -> Outcome:
        return self.turn_order.roll_for_next_pick()

    def draft_player(self, player: Player) -> Outcome:
        return self.ledger.draft_player(player)

    def undo_last_draft(self) -> Outcome:
        return self.ledger.undo_last_draft()

    def next_round(self) -> Outcome:
        return self.phases.next_round()

    def stop_auction(self) -> Outcome:
        return self.phases.stop_auction()

    def reset_auction(self) -> Outcome:
        return self.phases.reset_auction()
