"""Player pool - the master roster and the undrafted subset."""

import logging

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState
from src.auction_draft.models import Outcome, Player, PlayerRole, sort_by_name
from src.auction_draft.sync_bridge import RemoteSyncBridge

logger = logging.getLogger(__name__)


class PlayerPool:
    """Administrator CRUD over players.

    The master list and the available pool are always updated together and
    both stay sorted by name.
    """

    def __init__(self, state: AuctionState, rules: AccessRules, bridge: RemoteSyncBridge):
        self.state = state
        self.rules = rules
        self.bridge = bridge

    def next_player_id(self) -> int:
        return max((p.id for p in self.state.master_players), default=0) + 1

    def create_player(self, name: str, role) -> Outcome:
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("create_player ignored: %s", reason)
            return Outcome.forbidden(reason)

        name = (name or "").strip()
        if not name:
            return Outcome.rejected("Player name is required")
        try:
            role = PlayerRole(role)
        except ValueError:
            return Outcome.rejected(f"Unknown player role: {role!r}")

        player = Player(id=self.next_player_id(), name=name, role=role)
        self.state.master_players = sort_by_name(self.state.master_players + [player])
        self.state.available_players = sort_by_name(
            self.state.available_players + [player]
        )
        logger.info("Created player %d: %s (%s)", player.id, player.name, role.value)
        self.state.emit("master_players", "available_players")

        self.bridge.push_new_player(player)
        return Outcome.ok(player)

    def update_player(self, player_id: int, name: str, role) -> Outcome:
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("update_player ignored: %s", reason)
            return Outcome.forbidden(reason)

        if self.state.get_player(player_id) is None:
            return Outcome.rejected(f"Player {player_id} not found")
        name = (name or "").strip()
        if not name:
            return Outcome.rejected("Player name is required")
        try:
            role = PlayerRole(role)
        except ValueError:
            return Outcome.rejected(f"Unknown player role: {role!r}")

        updated = Player(id=player_id, name=name, role=role)

        def replace(players):
            return sort_by_name([updated if p.id == player_id else p for p in players])

        self.state.master_players = replace(self.state.master_players)
        self.state.available_players = replace(self.state.available_players)
        for team in self.state.teams:
            team.players = [updated if p.id == player_id else p for p in team.players]
        logger.info("Updated player %d: %s (%s)", player_id, name, role.value)
        self.state.emit("master_players", "available_players", "teams")

        self.bridge.push_player_fields(updated)
        return Outcome.ok(updated)

    def delete_player(self, player_id: int) -> Outcome:
        """Remove a player everywhere, including any roster it was drafted to."""
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("delete_player ignored: %s", reason)
            return Outcome.forbidden(reason)

        player = self.state.get_player(player_id)
        if player is None:
            return Outcome.rejected(f"Player {player_id} not found")

        self.state.master_players = [
            p for p in self.state.master_players if p.id != player_id
        ]
        self.state.available_players = [
            p for p in self.state.available_players if p.id != player_id
        ]
        for team in self.state.teams:
            if team.has_player(player_id):
                logger.warning(
                    "Deleting player %d drafted to team %d (%s)",
                    player_id,
                    team.id,
                    team.name,
                )
                team.remove_player(player_id)

        undo_cleared = False
        if self.state.last_draft and self.state.last_draft.player.id == player_id:
            self.state.last_draft = None
            undo_cleared = True
        logger.info("Deleted player %d: %s", player_id, player.name)
        self.state.emit("master_players", "available_players", "teams", "last_draft")

        self.bridge.delete_player(player_id)
        if undo_cleared:
            self.bridge.push_auction_state("delete drafted player")
        return Outcome.ok(player)
