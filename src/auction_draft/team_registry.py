"""Team and owner-account registry."""

import logging
from typing import Optional

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState
from src.auction_draft.config import DEFAULT_TEAM_COLOR, DEFAULT_TEAM_LOGO
from src.auction_draft.models import (
    Account,
    AccountRole,
    CaptainRole,
    Outcome,
    Team,
    sort_by_name,
)
from src.auction_draft.sync_bridge import RemoteSyncBridge

logger = logging.getLogger(__name__)


class TeamRegistry:
    """Administrator CRUD over teams and their paired owner accounts.

    Every team has at most one team-owner account, linked by ``team_id``.
    Passwords are stored as given (plain text).
    """

    def __init__(self, state: AuctionState, rules: AccessRules, bridge: RemoteSyncBridge):
        self.state = state
        self.rules = rules
        self.bridge = bridge

    def _username_taken(self, username: str, exclude_account_id: Optional[int] = None) -> bool:
        return any(
            a.username == username and a.id != exclude_account_id
            for a in self.state.accounts
        )

    def _current_team(self, team: Team) -> Team:
        # A store echo may have rebuilt the team list; hand back the live object.
        return self.state.get_team(team.id) or team

    def _current_account(self, account: Account) -> Account:
        return next((a for a in self.state.accounts if a.id == account.id), account)

    def create_team_owner(
        self,
        team_name: str,
        owner_name: str,
        username: str,
        password: str,
        captain_role,
    ) -> Outcome:
        """Create a team and its owner account together.

        Returns:
            Outcome whose value is the ``(team, account)`` pair.
        """
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("create_team_owner ignored: %s", reason)
            return Outcome.forbidden(reason)

        team_name = (team_name or "").strip()
        username = (username or "").strip()
        if not team_name or not username:
            return Outcome.rejected("Team name and username are required")
        if self._username_taken(username):
            return Outcome.rejected(f"Username '{username}' is already in use")
        try:
            captain_role = CaptainRole(captain_role)
        except ValueError:
            return Outcome.rejected(f"Unknown captain role: {captain_role!r}")

        team = Team(
            id=max((t.id for t in self.state.teams), default=0) + 1,
            name=team_name,
            owner=(owner_name or "").strip(),
            captain_role=captain_role,
            color=DEFAULT_TEAM_COLOR,
            logo=DEFAULT_TEAM_LOGO,
        )
        account = Account(
            id=max((a.id for a in self.state.accounts), default=0) + 1,
            username=username,
            password=password or "",
            role=AccountRole.TEAM_OWNER,
            team_id=team.id,
        )
        self.state.teams = self.state.teams + [team]
        self.state.accounts = self.state.accounts + [account]
        logger.info(
            "Created team %d (%s) owned by %s, login '%s'",
            team.id,
            team.name,
            team.owner,
            account.username,
        )
        self.state.emit("teams", "accounts")

        # No rollback: if the account write fails the team stays created.
        self.bridge.push_team(team, create=True)
        self.bridge.push_account(account, create=True)
        return Outcome.ok((self._current_team(team), self._current_account(account)))

    def update_team_owner(
        self,
        team_id: int,
        team_name: str,
        owner_name: str,
        username: str,
        password: Optional[str] = None,
    ) -> Outcome:
        """Rename a team/owner and change the login; a falsy password keeps the old one."""
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("update_team_owner ignored: %s", reason)
            return Outcome.forbidden(reason)

        team = self.state.get_team(team_id)
        if team is None:
            return Outcome.rejected(f"Team {team_id} not found")
        team_name = (team_name or "").strip()
        username = (username or "").strip()
        if not team_name or not username:
            return Outcome.rejected("Team name and username are required")

        account = self.state.get_account_for_team(team_id)
        if account is not None and self._username_taken(username, account.id):
            return Outcome.rejected(f"Username '{username}' is already in use")

        team.name = team_name
        team.owner = (owner_name or "").strip()
        if account is not None:
            account.username = username
            if password:
                account.password = password
        logger.info("Updated team %d (%s)", team.id, team.name)
        self.state.emit("teams", "accounts")

        self.bridge.push_team(team)
        if account is not None:
            self.bridge.push_account(account)
        return Outcome.ok(self._current_team(team))

    def delete_team_owner(self, team_id: int) -> Outcome:
        """Delete a team and its account, returning its roster to the pool."""
        allowed, reason = self.rules.require_admin()
        if not allowed:
            logger.debug("delete_team_owner ignored: %s", reason)
            return Outcome.forbidden(reason)

        team = self.state.get_team(team_id)
        if team is None:
            return Outcome.rejected(f"Team {team_id} not found")

        returned = list(team.players)
        self.state.available_players = sort_by_name(
            self.state.available_players + returned
        )
        self.state.teams = [t for t in self.state.teams if t.id != team_id]
        account = self.state.get_account_for_team(team_id)
        self.state.accounts = [a for a in self.state.accounts if a.team_id != team_id]
        logger.info(
            "Deleted team %d (%s); %d players returned to pool",
            team.id,
            team.name,
            len(returned),
        )
        self.state.emit("teams", "accounts", "available_players")

        if self._drop_from_round(team_id):
            self.state.emit(
                "round_order", "turn_index", "is_rolling", "dice_result",
                "last_draft", "announcement",
            )
            self.bridge.push_auction_state("delete team")
        self.bridge.clear_player_assignments([p.id for p in returned])
        self.bridge.delete_team(team_id)
        if account is not None:
            self.bridge.delete_account(account.id)
        return Outcome.ok(team)

    def _drop_from_round(self, team_id: int) -> bool:
        """Remove a deleted team from the shared round fields.

        Removing the picking team hands the turn to the next team in the
        order. Returns True if any shared field changed.
        """
        state = self.state
        changed = False

        index = next(
            (i for i, t in enumerate(state.round_order) if t.id == team_id), None
        )
        if index is not None:
            state.round_order = [t for t in state.round_order if t.id != team_id]
            if index < state.turn_index:
                state.turn_index -= 1
            changed = True

        if state.dice_result is not None and state.dice_result.id == team_id:
            # The pending commit sees is_rolling cleared and is discarded.
            state.dice_result = None
            state.is_rolling = False
            changed = True
        if state.last_draft is not None and state.last_draft.team_id == team_id:
            state.last_draft = None
            changed = True
        if state.announcement is not None and state.announcement.team.id == team_id:
            state.announcement = None
            changed = True

        if changed:
            logger.info(
                "Removed team %d from round %d; turn index now %d",
                team_id,
                state.current_round,
                state.turn_index,
            )
        return changed
