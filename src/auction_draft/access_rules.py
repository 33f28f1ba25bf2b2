"""Capability checks guarding engine operations."""

from typing import Optional, Tuple

from src.auction_draft.auction_state import AuctionState
from src.auction_draft.models import AccountRole, AuctionPhase


class AccessRules:
    """Decides whether the logged-in account may perform an operation.

    Every check returns ``(is_allowed, reason)`` - ``(True, None)`` if the
    call may proceed.
    """

    def __init__(self, state: AuctionState):
        self.state = state

    def require_admin(self) -> Tuple[bool, Optional[str]]:
        user = self.state.current_user
        if user is None:
            return False, "Not logged in"
        if user.role != AccountRole.ADMIN:
            return False, f"{user.username} is not an administrator"
        return True, None

    def require_turn(self) -> Tuple[bool, Optional[str]]:
        """
        Validate that the logged-in account owns the team on the clock.

        Returns:
            (is_valid, error_message) - (True, None) if valid
        """
        picking = self.state.picking_team
        if picking is None:
            return False, "No team is on the clock"

        user = self.state.current_user
        if user is None or user.role != AccountRole.TEAM_OWNER:
            return False, "Only team owners draft players"
        if user.team_id != picking.id:
            return (
                False,
                f"Not team {user.team_id}'s turn (current: {picking.id})",
            )
        return True, None

    def require_phase(self, phase: AuctionPhase) -> Tuple[bool, Optional[str]]:
        if self.state.phase != phase:
            return False, f"Auction is {self.state.phase.value}, not {phase.value}"
        return True, None
