"""Auction lifecycle (lobby -> running -> ended) and client sessions."""

import logging

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState, resolve_view
from src.auction_draft.config import LOGIN_FAILED_MESSAGE, MAX_ROUNDS
from src.auction_draft.models import AuctionPhase, Outcome, ViewMode, sort_by_name
from src.auction_draft.sync_bridge import RemoteSyncBridge

logger = logging.getLogger(__name__)


class AuctionPhaseMachine:
    """Administrator-driven phase transitions plus round advancement.

    Phases only move forward, except ``reset_auction`` which returns the
    auction to the lobby.
    """

    def __init__(
        self,
        state: AuctionState,
        rules: AccessRules,
        bridge: RemoteSyncBridge,
        max_rounds: int = MAX_ROUNDS,
    ):
        self.state = state
        self.rules = rules
        self.bridge = bridge
        self.max_rounds = max_rounds

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def login(self, username: str, password: str) -> Outcome:
        account = next(
            (
                a for a in self.state.accounts
                if a.username == username and a.password == password
            ),
            None,
        )
        if account is None:
            logger.warning("Failed login for '%s'", username)
            self.state.error_message = LOGIN_FAILED_MESSAGE
            self.state.view_mode = ViewMode.LOGIN
            self.state.emit("error_message", "view_mode")
            return Outcome.rejected(LOGIN_FAILED_MESSAGE)

        self.state.current_user = account
        self.state.view_mode = resolve_view(account, self.state.phase)
        self.state.error_message = None
        logger.info(
            "%s logged in as %s -> %s",
            account.username,
            account.role.value,
            self.state.view_mode.value,
        )
        self.state.emit("current_user", "view_mode", "error_message")
        return Outcome.ok(account)

    def logout(self) -> Outcome:
        user = self.state.current_user
        self.state.current_user = None
        self.state.view_mode = ViewMode.LOGIN
        if user is not None:
            logger.info("%s logged out", user.username)
        self.state.emit("current_user", "view_mode")
        return Outcome.ok()

    def enter_public_view(self) -> Outcome:
        self.state.view_mode = ViewMode.PUBLIC_VIEW
        self.state.emit("view_mode")
        return Outcome.ok()

    def return_to_login(self) -> Outcome:
        self.state.view_mode = ViewMode.LOGIN
        self.state.emit("view_mode")
        return Outcome.ok()

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------
    def start_auction(self) -> Outcome:
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("start_auction ignored: %s", reason)
            return Outcome.forbidden(reason)
        allowed, reason = self.rules.require_phase(AuctionPhase.LOBBY)
        if not allowed:
            return Outcome.rejected(reason)

        self.state.phase = AuctionPhase.RUNNING
        self.state.current_round = 1
        self.state.clear_round()
        self.state.follow_phase()
        logger.info("Auction started with %d teams", len(self.state.teams))
        self._emit_round()

        self.bridge.push_auction_state("start auction")
        return Outcome.ok()

    def next_round(self) -> Outcome:
        """Advance once every team in the order has picked."""
        allowed, reason = self.rules.require_phase(AuctionPhase.RUNNING)
        if not allowed:
            logger.debug("next_round ignored: %s", reason)
            return Outcome.rejected(reason)
        if not self.state.is_round_complete:
            return Outcome.rejected(f"Round {self.state.current_round} is not complete")

        next_number = self.state.current_round + 1
        if next_number > self.max_rounds or not self.state.available_players:
            self.state.phase = AuctionPhase.ENDED
            self.state.epoch += 1
            self.state.follow_phase()
            logger.info(
                "Auction ended after round %d (%d players left)",
                self.state.current_round,
                len(self.state.available_players),
            )
        else:
            self.state.current_round = next_number
            self.state.clear_round()
            logger.info("Advanced to round %d", next_number)
        self._emit_round()

        self.bridge.push_auction_state("next round")
        return Outcome.ok(self.state.phase)

    def stop_auction(self) -> Outcome:
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("stop_auction ignored: %s", reason)
            return Outcome.forbidden(reason)
        if self.state.phase == AuctionPhase.ENDED:
            return Outcome.rejected("Auction has already ended")

        self.state.phase = AuctionPhase.ENDED
        self.state.is_rolling = False
        self.state.epoch += 1
        self.state.follow_phase()
        logger.info("Auction stopped in round %d", self.state.current_round)
        self._emit_round()

        self.bridge.push_auction_state("stop auction")
        return Outcome.ok()

    def reset_auction(self) -> Outcome:
        """Empty every roster, restore the full pool and return to the lobby."""
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("reset_auction ignored: %s", reason)
            return Outcome.forbidden(reason)

        for team in self.state.teams:
            team.players = []
        self.state.available_players = sort_by_name(self.state.master_players)
        self.state.current_round = 1
        self.state.clear_round()
        self.state.error_message = None
        self.state.phase = AuctionPhase.LOBBY
        self.state.follow_phase()
        logger.info(
            "Auction reset; %d players back in the pool",
            len(self.state.available_players),
        )
        self._emit_round()
        self.state.emit("teams", "available_players", "error_message")

        self.bridge.push_auction_state("reset auction")
        self.bridge.clear_player_assignments([p.id for p in self.state.master_players])
        return Outcome.ok()

    def _emit_round(self):
        self.state.emit(
            "phase", "view_mode", "current_round", "round_order", "turn_index",
            "is_rolling", "dice_result", "last_draft", "announcement",
        )
