"""Turn order - randomized per-round draw of which team picks next."""

import logging
import random
from typing import List, Optional, Tuple

from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState
from src.auction_draft.config import ROLL_COMMIT_DELAY_SEC, TEAMS_PER_ROUND
from src.auction_draft.models import AuctionPhase, Outcome, Team
from src.auction_draft.scheduler import Scheduler
from src.auction_draft.sync_bridge import RemoteSyncBridge

logger = logging.getLogger(__name__)

RollStamp = Tuple[int, int, int, int]


class TurnOrderScheduler:
    """Draws teams one at a time into the current round's order.

    A draw is exposed as a pending ``dice_result`` immediately and only
    appended to ``round_order`` after ``commit_delay`` seconds, so no team
    can start picking before every client has seen the reveal.
    """

    def __init__(
        self,
        state: AuctionState,
        rules: AccessRules,
        bridge: RemoteSyncBridge,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        teams_per_round: int = TEAMS_PER_ROUND,
        commit_delay: float = ROLL_COMMIT_DELAY_SEC,
    ):
        self.state = state
        self.rules = rules
        self.bridge = bridge
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.teams_per_round = teams_per_round
        self.commit_delay = commit_delay

    def candidates(self) -> List[Team]:
        """Teams not yet drawn this round."""
        drawn = {team.id for team in self.state.round_order}
        return [team for team in self.state.teams if team.id not in drawn]

    def is_order_full(self) -> bool:
        drawn = len(self.state.round_order)
        return drawn >= len(self.state.teams) or drawn >= self.teams_per_round

    def roll_for_next_pick(self) -> Outcome:
        allowed, reason = self.rules.require_phase(AuctionPhase.RUNNING)
        if not allowed:
            logger.debug("roll ignored: %s", reason)
            return Outcome.rejected(reason)
        if self.state.is_rolling:
            return Outcome.rejected("A draw is already in progress")
        if self.is_order_full():
            return Outcome.rejected("Round order is already full")

        candidates = self.candidates()
        if not candidates:
            return Outcome.rejected("No teams left to draw")

        team = self.rng.choice(candidates)
        stamp = self._stamp(team.id)
        # Scheduling first keeps is_rolling unset if the scheduler fails.
        self.scheduler.call_later(self.commit_delay, self._commit, stamp)
        self.state.is_rolling = True
        self.state.dice_result = team
        logger.info(
            "Round %d draw %d: %s (commit in %.1fs)",
            self.state.current_round,
            len(self.state.round_order) + 1,
            team.name,
            self.commit_delay,
        )
        self.state.emit("is_rolling", "dice_result")

        self.bridge.push_auction_state("roll for next pick")
        return Outcome.ok(team)

    def _stamp(self, team_id: int) -> RollStamp:
        return (
            self.state.epoch,
            self.state.current_round,
            len(self.state.round_order),
            team_id,
        )

    def _commit(self, stamp: RollStamp):
        team_id = stamp[3]
        dice = self.state.dice_result
        if (
            not self.state.is_rolling
            or dice is None
            or dice.id != team_id
            or self._stamp(team_id) != stamp
        ):
            logger.debug("Discarding stale draw commit for team %d", team_id)
            return

        team = self.state.get_team(team_id)
        if team is not None and all(t.id != team_id for t in self.state.round_order):
            self.state.round_order = self.state.round_order + [team]
        self.state.is_rolling = False
        logger.info(
            "Round %d order: %s",
            self.state.current_round,
            ", ".join(t.name for t in self.state.round_order),
        )
        self.state.emit("round_order", "is_rolling")

        self.bridge.push_auction_state("commit draw")
