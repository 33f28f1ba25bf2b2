"""Remote sync bridge - pushes shared fields out and reconciles snapshots in.

Inbound snapshots are the only way remote values reach local state. Each
snapshot overwrites the local cache wholesale, so re-applying a client's
own echoed write is a no-op.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from src.auction_draft.auction_state import AuctionState
from src.auction_draft.config import (
    AUCTION_STATE_PATH,
    DEFAULT_ADMIN_ID,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    PLAYERS_COLLECTION,
    SYNC_FAILED_MESSAGE,
    TEAMS_COLLECTION,
    USERS_COLLECTION,
)
from src.auction_draft.models import (
    Account,
    AccountRole,
    Announcement,
    AuctionPhase,
    CaptainRole,
    DraftAction,
    Player,
    PlayerRole,
    Team,
    name_sort_key,
    sort_by_name,
)
from src.auction_draft.remote_store import Record, RemoteStore, StoreError

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Record codec
# ----------------------------------------------------------------------

def player_to_record(
    player: Player,
    drafted_to_team_id: Optional[int] = None,
    drafted_round: Optional[int] = None,
) -> Record:
    return {
        "id": player.id,
        "name": player.name,
        "role": player.role.value,
        "drafted_to_team_id": drafted_to_team_id,
        "drafted_round": drafted_round,
    }


def record_to_player(record: Record) -> Player:
    return Player(
        id=int(record["id"]),
        name=record["name"],
        role=PlayerRole(record["role"]),
    )


def team_to_record(team: Team) -> Record:
    return {
        "id": team.id,
        "name": team.name,
        "owner": team.owner,
        "captain_role": team.captain_role.value,
        "color": team.color,
        "logo": team.logo,
    }


def record_to_team(record: Record) -> Team:
    return Team(
        id=int(record["id"]),
        name=record["name"],
        owner=record["owner"],
        captain_role=CaptainRole(record["captain_role"]),
        color=record["color"],
        logo=record["logo"],
    )


def account_to_record(account: Account) -> Record:
    return {
        "id": account.id,
        "username": account.username,
        "password": account.password,
        "role": account.role.value,
        "team_id": account.team_id,
    }


def record_to_account(record: Record) -> Account:
    return Account(
        id=int(record["id"]),
        username=record["username"],
        password=record.get("password", ""),
        role=AccountRole(record["role"]),
        team_id=record.get("team_id"),
    )


def default_admin_account() -> Account:
    return Account(
        id=DEFAULT_ADMIN_ID,
        username=DEFAULT_ADMIN_USERNAME,
        password=DEFAULT_ADMIN_PASSWORD,
        role=AccountRole.ADMIN,
    )


def default_auction_document() -> Record:
    return {
        "phase": AuctionPhase.LOBBY.value,
        "current_round": 1,
        "round_order": [],
        "turn_index": 0,
        "is_rolling": False,
        "dice_result_team_id": None,
        "last_draft_player_id": None,
        "last_draft_team_id": None,
        "announcement_player_id": None,
        "announcement_team_id": None,
        "announcement_seq": 0,
    }


def encode_auction_document(state: AuctionState) -> Record:
    """Serialize the shared subset of ``state``."""
    last = state.last_draft
    ann = state.announcement
    return {
        "phase": state.phase.value,
        "current_round": state.current_round,
        "round_order": [team.id for team in state.round_order],
        "turn_index": state.turn_index,
        "is_rolling": state.is_rolling,
        "dice_result_team_id": state.dice_result.id if state.dice_result else None,
        "last_draft_player_id": last.player.id if last else None,
        "last_draft_team_id": last.team_id if last else None,
        "announcement_player_id": ann.player.id if ann else None,
        "announcement_team_id": ann.team.id if ann else None,
        "announcement_seq": state.announcement_seq,
    }


# ----------------------------------------------------------------------
# Pure reconciliation
# ----------------------------------------------------------------------

@dataclass
class SharedAuctionFields:
    """Auction document resolved against local teams and players."""

    phase: AuctionPhase
    current_round: int
    round_order: List[Team]
    turn_index: int
    is_rolling: bool
    dice_result: Optional[Team]
    last_draft: Optional[DraftAction]
    announcement: Optional[Announcement]
    announcement_seq: int


@dataclass
class PlayerReconciliation:
    master: List[Player]
    available: List[Player]
    rosters: Dict[int, List[Player]] = field(default_factory=dict)


def decode_auction_document(
    doc: Record, teams: List[Team], players: List[Player]
) -> SharedAuctionFields:
    """Resolve team/player ids in ``doc``; unknown ids are dropped."""
    teams_by_id = {team.id: team for team in teams}
    players_by_id = {player.id: player for player in players}

    round_order = []
    for team_id in doc.get("round_order") or []:
        team = teams_by_id.get(team_id)
        if team is None:
            logger.warning("Round order references unknown team %s", team_id)
            continue
        round_order.append(team)

    turn_index = min(max(int(doc.get("turn_index") or 0), 0), len(round_order))

    dice_id = doc.get("dice_result_team_id")
    dice_result = teams_by_id.get(dice_id) if dice_id is not None else None

    last_draft = None
    last_player = players_by_id.get(doc.get("last_draft_player_id"))
    last_team_id = doc.get("last_draft_team_id")
    if last_player is not None and last_team_id is not None:
        last_draft = DraftAction(player=last_player, team_id=last_team_id)

    seq = int(doc.get("announcement_seq") or 0)
    announcement = None
    ann_player = players_by_id.get(doc.get("announcement_player_id"))
    ann_team = teams_by_id.get(doc.get("announcement_team_id"))
    if ann_player is not None and ann_team is not None:
        announcement = Announcement(player=ann_player, team=ann_team, seq=seq)

    return SharedAuctionFields(
        phase=AuctionPhase(doc.get("phase", AuctionPhase.LOBBY.value)),
        current_round=max(int(doc.get("current_round") or 1), 1),
        round_order=round_order,
        turn_index=turn_index,
        is_rolling=bool(doc.get("is_rolling", False)),
        dice_result=dice_result,
        last_draft=last_draft,
        announcement=announcement,
        announcement_seq=seq,
    )


def _pick_order(entry: Tuple[Optional[int], Player]):
    # Picks without a recorded round sort after every numbered pick.
    drafted_round, player = entry
    return (drafted_round is None, drafted_round or 0, name_sort_key(player))


def reconcile_players(records: List[Record], teams: List[Team]) -> PlayerReconciliation:
    """Rebuild master list, available pool and rosters from player records.

    A player drafted to a team that no longer exists goes back to the
    available pool rather than disappearing. Rosters are in draft order:
    a team picks at most once per round, so the recorded round orders them.
    """
    team_ids = {team.id for team in teams}
    master = []
    available = []
    picks: Dict[int, List[Tuple[Optional[int], Player]]] = {team.id: [] for team in teams}

    for record in records:
        player = record_to_player(record)
        master.append(player)
        team_id = record.get("drafted_to_team_id")
        if team_id is not None and team_id in team_ids:
            drafted_round = record.get("drafted_round")
            picks[team_id].append(
                (int(drafted_round) if drafted_round is not None else None, player)
            )
        else:
            available.append(player)

    return PlayerReconciliation(
        master=sort_by_name(master),
        available=sort_by_name(available),
        rosters={
            tid: [p for _, p in sorted(entries, key=_pick_order)]
            for tid, entries in picks.items()
        },
    )


# ----------------------------------------------------------------------
# Bridge
# ----------------------------------------------------------------------

class RemoteSyncBridge:
    """Keeps ``state`` consistent with the remote store.

    Outbound writes are fire-and-continue: a failed write leaves the
    optimistic local change in place and sets ``state.error_message``.
    """

    def __init__(self, state: AuctionState, store: RemoteStore):
        self.state = state
        self.store = store
        self._unsubscribers: List[Callable[[], None]] = []
        self._last_document: Optional[Record] = None
        self._last_player_records: Optional[List[Record]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self):
        """Read every collection once and create missing defaults.

        Two clients loading an empty store at the same time will both
        write the default document; the later write wins.
        """
        try:
            users = self.store.read_all(USERS_COLLECTION)
            teams = self.store.read_all(TEAMS_COLLECTION)
            players = self.store.read_all(PLAYERS_COLLECTION)
            doc = self.store.read(AUCTION_STATE_PATH)
        except StoreError as e:
            self._record_failure("initial load", e)
            return

        if not any(r.get("role") == AccountRole.ADMIN.value for r in users):
            admin = default_admin_account()
            logger.info("Seeding administrator account '%s'", admin.username)
            self._write("seed admin", self.store.create, USERS_COLLECTION, admin.id,
                        account_to_record(admin))
            users = users + [account_to_record(admin)]

        self.apply_users(users)
        self.apply_teams(teams)
        self.apply_players(players)

        if doc is None:
            logger.info("Auction document missing, initializing defaults")
            doc = default_auction_document()
            self._write("initialize auction state", self.store.set_document,
                        AUCTION_STATE_PATH, doc)
        self.apply_auction_document(doc)

    def start(self):
        """Subscribe to every change feed."""
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self.store.subscribe_document(AUCTION_STATE_PATH, self.apply_auction_document),
            self.store.subscribe_collection(PLAYERS_COLLECTION, self.apply_players),
            self.store.subscribe_collection(TEAMS_COLLECTION, self.apply_teams),
            self.store.subscribe_collection(USERS_COLLECTION, self.apply_users),
        ]
        logger.info("Subscribed to remote change feeds")

    def stop(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------
    def apply_auction_document(self, doc: Optional[Record]):
        if doc is None:
            return
        self._last_document = doc
        fields = decode_auction_document(doc, self.state.teams, self.state.master_players)
        state = self.state

        if fields.phase != state.phase or fields.current_round != state.current_round:
            state.epoch += 1
        phase_changed = fields.phase != state.phase

        state.phase = fields.phase
        state.current_round = fields.current_round
        state.round_order = fields.round_order
        state.turn_index = fields.turn_index
        state.is_rolling = fields.is_rolling
        state.dice_result = fields.dice_result
        state.last_draft = fields.last_draft
        state.announcement = fields.announcement
        state.announcement_seq = fields.announcement_seq
        if phase_changed:
            state.follow_phase()

        logger.debug(
            "Applied auction document: %s round %d, turn %d/%d",
            state.phase.value,
            state.current_round,
            state.turn_index,
            len(state.round_order),
        )
        state.emit(
            "phase", "view_mode", "current_round", "round_order", "turn_index",
            "is_rolling", "dice_result", "last_draft", "announcement",
        )

    def apply_players(self, records: List[Record]):
        self._last_player_records = records
        result = reconcile_players(records, self.state.teams)
        self.state.master_players = result.master
        self.state.available_players = result.available
        for team in self.state.teams:
            team.players = result.rosters.get(team.id, [])
        logger.debug(
            "Reconciled %d players (%d available)",
            len(result.master),
            len(result.available),
        )
        self.state.emit("master_players", "available_players", "teams")

    def apply_teams(self, records: List[Record]):
        previous = {team.id: team for team in self.state.teams}
        teams = []
        for record in records:
            team = record_to_team(record)
            if team.id in previous:
                team.players = previous[team.id].players
            teams.append(team)
        self.state.teams = teams
        self.state.emit("teams")

        # Rosters and round order hold Team references; re-resolve them.
        if self._last_player_records is not None:
            self.apply_players(self._last_player_records)
        if self._last_document is not None:
            self.apply_auction_document(self._last_document)

    def apply_users(self, records: List[Record]):
        self.state.accounts = [record_to_account(r) for r in records]
        user = self.state.current_user
        if user is not None:
            for account in self.state.accounts:
                if account.id == user.id:
                    self.state.current_user = account
                    break
        self.state.emit("accounts")

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------
    def push_auction_state(self, reason: str) -> bool:
        return self._write(
            reason,
            self.store.set_document,
            AUCTION_STATE_PATH,
            encode_auction_document(self.state),
        )

    def push_player_assignment(
        self,
        player_id: int,
        team_id: Optional[int],
        drafted_round: Optional[int] = None,
    ) -> bool:
        """Record which team holds a player; None returns it to the pool."""
        return self._write(
            f"assign player {player_id}",
            self.store.update,
            PLAYERS_COLLECTION,
            player_id,
            {
                "drafted_to_team_id": team_id,
                "drafted_round": drafted_round if team_id is not None else None,
            },
        )

    def clear_player_assignments(self, player_ids: List[int]) -> bool:
        ok = True
        for player_id in player_ids:
            ok = self.push_player_assignment(player_id, None) and ok
        return ok

    def push_new_player(self, player: Player) -> bool:
        return self._write(
            f"create player {player.id}",
            self.store.create,
            PLAYERS_COLLECTION,
            player.id,
            player_to_record(player),
        )

    def push_player_fields(self, player: Player) -> bool:
        return self._write(
            f"update player {player.id}",
            self.store.update,
            PLAYERS_COLLECTION,
            player.id,
            {"name": player.name, "role": player.role.value},
        )

    def delete_player(self, player_id: int) -> bool:
        return self._write(
            f"delete player {player_id}",
            self.store.delete,
            PLAYERS_COLLECTION,
            player_id,
        )

    def push_team(self, team: Team, create: bool = False) -> bool:
        if create:
            return self._write(
                f"create team {team.id}",
                self.store.create,
                TEAMS_COLLECTION,
                team.id,
                team_to_record(team),
            )
        return self._write(
            f"update team {team.id}",
            self.store.update,
            TEAMS_COLLECTION,
            team.id,
            team_to_record(team),
        )

    def delete_team(self, team_id: int) -> bool:
        return self._write(
            f"delete team {team_id}", self.store.delete, TEAMS_COLLECTION, team_id
        )

    def push_account(self, account: Account, create: bool = False) -> bool:
        if create:
            return self._write(
                f"create account {account.id}",
                self.store.create,
                USERS_COLLECTION,
                account.id,
                account_to_record(account),
            )
        return self._write(
            f"update account {account.id}",
            self.store.update,
            USERS_COLLECTION,
            account.id,
            account_to_record(account),
        )

    def delete_account(self, account_id: int) -> bool:
        return self._write(
            f"delete account {account_id}",
            self.store.delete,
            USERS_COLLECTION,
            account_id,
        )

    def _write(self, description: str, operation, *args) -> bool:
        try:
            operation(*args)
        except StoreError as e:
            self._record_failure(description, e)
            return False
        return True

    def _record_failure(self, description: str, error: Exception):
        logger.warning("Remote write failed (%s): %s", description, error)
        self.state.error_message = f"{SYNC_FAILED_MESSAGE}: {description}: {error}"
        self.state.emit("error_message")
