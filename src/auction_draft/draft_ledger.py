"""Draft ledger - records picks, enforces turn order, single-level undo."""

import logging

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState
from src.auction_draft.config import ANNOUNCEMENT_TTL_SEC
from src.auction_draft.models import (
    Announcement,
    AuctionPhase,
    DraftAction,
    Outcome,
    Player,
    sort_by_id,
)
from src.auction_draft.scheduler import Scheduler
from src.auction_draft.sync_bridge import RemoteSyncBridge

logger = logging.getLogger(__name__)


class DraftLedger:
    """Executes picks for the team on the clock and undoes the latest one.

    Coordinates AccessRules (turn/privilege checks), AuctionState (local
    mutation) and RemoteSyncBridge (shared document and player records).
    """

    def __init__(
        self,
        state: AuctionState,
        rules: AccessRules,
        bridge: RemoteSyncBridge,
        scheduler: Scheduler,
        announcement_ttl: float = ANNOUNCEMENT_TTL_SEC,
    ):
        self.state = state
        self.rules = rules
        self.bridge = bridge
        self.scheduler = scheduler
        self.announcement_ttl = announcement_ttl

    def draft_player(self, player: Player) -> Outcome:
        """Draft ``player`` to the picking team.

        Args:
            player: Player to draft; matched against the available pool by id.

        Returns:
            Outcome whose value is the recorded DraftAction.
        """
        allowed, reason = self.rules.require_phase(AuctionPhase.RUNNING)
        if not allowed:
            logger.debug("draft ignored: %s", reason)
            return Outcome.rejected(reason)

        team = self.state.picking_team
        if team is None:
            logger.debug("draft ignored: no team on the clock")
            return Outcome.rejected("No team is on the clock")

        allowed, reason = self.rules.require_turn()
        if not allowed:
            logger.warning("Out-of-turn draft attempted: %s", reason)
            return Outcome.forbidden(reason)

        drafted = next(
            (p for p in self.state.available_players if p.id == player.id), None
        )
        if drafted is None:
            return Outcome.rejected(f"{player.name} is not in the available pool")

        # Schedule before mutating so a scheduler failure leaves no half-made pick.
        seq = self.state.announcement_seq + 1
        self.scheduler.call_later(self.announcement_ttl, self._expire_announcement, seq)

        self.state.available_players = [
            p for p in self.state.available_players if p.id != drafted.id
        ]
        team.add_player(drafted)
        action = DraftAction(player=drafted, team_id=team.id)
        self.state.last_draft = action
        self.state.announcement_seq = seq
        self.state.announcement = Announcement(player=drafted, team=team, seq=seq)
        self.state.turn_index += 1

        logger.info(
            "Round %d pick %d: %s selects %s (%s)",
            self.state.current_round,
            self.state.turn_index,
            team.name,
            drafted.name,
            drafted.role.value,
        )
        self.state.emit(
            "available_players", "teams", "last_draft", "announcement", "turn_index"
        )

        self.bridge.push_auction_state("draft player")
        self.bridge.push_player_assignment(drafted.id, team.id, self.state.current_round)
        return Outcome.ok(action)

    def _expire_announcement(self, seq: int):
        current = self.state.announcement
        if current is None or current.seq != seq:
            logger.debug("Announcement %d already superseded", seq)
            return
        self.state.announcement = None
        self.state.emit("announcement")
        self.bridge.push_auction_state("expire announcement")

    def undo_last_draft(self) -> Outcome:
        """Revert the most recent pick. Only one level is kept."""
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("undo ignored: %s", reason)
            return Outcome.forbidden(reason)

        action = self.state.last_draft
        if action is None:
            return Outcome.rejected("Nothing to undo")

        player = action.player
        team = self.state.get_team(action.team_id)
        if team is not None:
            team.remove_player(player.id)
        if not self.state.is_available(player.id):
            # Id order keeps the pool in its original creation order.
            self.state.available_players = sort_by_id(
                self.state.available_players + [player]
            )
        self.state.turn_index = max(self.state.turn_index - 1, 0)
        self.state.last_draft = None
        self.state.announcement = None

        logger.info(
            "Undid pick of %s by team %d; turn index now %d",
            player.name,
            action.team_id,
            self.state.turn_index,
        )
        self.state.emit(
            "available_players", "teams", "last_draft", "announcement", "turn_index"
        )

        self.bridge.push_auction_state("undo draft")
        self.bridge.push_player_assignment(player.id, None)
        return Outcome.ok(action)
