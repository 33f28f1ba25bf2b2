"""Tests for the remote sync bridge: codec, reconciliation and multi-client sync."""

import pytest

from src.auction_draft.config import SYNC_FAILED_MESSAGE
from src.auction_draft.models import (
    AuctionPhase,
    CaptainRole,
    Player,
    PlayerRole,
    Team,
    ViewMode,
)
from src.auction_draft.remote_store import InMemoryStore
from src.auction_draft.scheduler import ManualScheduler
from src.auction_draft.sync_bridge import (
    decode_auction_document,
    default_auction_document,
    player_to_record,
    reconcile_players,
    record_to_player,
)
from tests.conftest import (
    ANNOUNCEMENT_TTL,
    ROLL_DELAY,
    add_players,
    add_teams,
    draft_as_picking_owner,
    draw_full_order,
    login_admin,
    login_owner,
    make_engine,
    player_named,
)


# ── Helpers ──────────────────────────────────────────────────────────

def _make_team(team_id):
    return Team(
        id=team_id,
        name=f"Team {team_id}",
        owner=f"Owner {team_id}",
        captain_role=CaptainRole.TECHNICIAN,
        color="bg-gray-500",
        logo="star",
    )


def _snapshot(engine):
    """Shared fields as plain ids, insensitive to list identity."""
    return {
        "phase": engine.phase,
        "round": engine.current_round,
        "order": [t.id for t in engine.round_order],
        "turn": engine.turn_index,
        "available": sorted(p.id for p in engine.available_players),
        "rosters": {t.id: sorted(p.id for p in t.players) for t in engine.teams},
        "last_draft": engine.state.last_draft,
    }


# ── Codec and pure reconciliation ────────────────────────────────────


class TestCodec:
    def test_player_record_uses_role_string(self):
        player = Player(id=3, name="Alice", role=PlayerRole.CONTRACTUAL_WORKER)
        record = player_to_record(player, drafted_to_team_id=2, drafted_round=3)
        assert record == {
            "id": 3,
            "name": "Alice",
            "role": "Contractual Worker",
            "drafted_to_team_id": 2,
            "drafted_round": 3,
        }
        assert record_to_player(record) == player

    def test_default_document(self):
        doc = default_auction_document()
        assert doc["phase"] == "lobby"
        assert doc["current_round"] == 1
        assert doc["round_order"] == []
        assert doc["announcement_seq"] == 0


class TestDecodeAuctionDocument:
    def test_resolves_ids(self):
        teams = [_make_team(1), _make_team(2)]
        alice = Player(id=5, name="Alice", role=PlayerRole.STAFF)
        doc = dict(
            default_auction_document(),
            phase="running",
            round_order=[2, 1],
            turn_index=1,
            last_draft_player_id=5,
            last_draft_team_id=2,
            announcement_player_id=5,
            announcement_team_id=2,
            announcement_seq=3,
        )
        fields = decode_auction_document(doc, teams, [alice])
        assert fields.phase == AuctionPhase.RUNNING
        assert [t.id for t in fields.round_order] == [2, 1]
        assert fields.last_draft.player == alice
        assert fields.last_draft.team_id == 2
        assert fields.announcement.team.id == 2
        assert fields.announcement.seq == 3

    def test_unknown_team_dropped_and_turn_clamped(self):
        doc = dict(default_auction_document(), round_order=[1, 99, 2], turn_index=7)
        fields = decode_auction_document(doc, [_make_team(1), _make_team(2)], [])
        assert [t.id for t in fields.round_order] == [1, 2]
        assert fields.turn_index == 2

    def test_unknown_player_means_no_announcement(self):
        doc = dict(
            default_auction_document(),
            announcement_player_id=42,
            announcement_team_id=1,
        )
        fields = decode_auction_document(doc, [_make_team(1)], [])
        assert fields.announcement is None


class TestReconcilePlayers:
    def test_partitions_by_assignment(self):
        records = [
            {"id": 1, "name": "Dana", "role": "Staff", "drafted_to_team_id": None},
            {"id": 2, "name": "alice", "role": "Technician", "drafted_to_team_id": 1},
            {"id": 3, "name": "Bob", "role": "Staff", "drafted_to_team_id": None},
        ]
        result = reconcile_players(records, [_make_team(1)])
        assert [p.name for p in result.master] == ["alice", "Bob", "Dana"]
        assert [p.name for p in result.available] == ["Bob", "Dana"]
        assert [p.id for p in result.rosters[1]] == [2]

    def test_rosters_follow_draft_round(self):
        records = [
            {"id": 1, "name": "Amy", "role": "Staff", "drafted_to_team_id": 1, "drafted_round": 2},
            {"id": 2, "name": "Zed", "role": "Staff", "drafted_to_team_id": 1, "drafted_round": 1},
            {"id": 3, "name": "Bea", "role": "Staff", "drafted_to_team_id": 1},
        ]
        result = reconcile_players(records, [_make_team(1)])
        assert [p.name for p in result.rosters[1]] == ["Zed", "Amy", "Bea"]

    def test_missing_team_returns_player_to_pool(self):
        records = [{"id": 1, "name": "Alice", "role": "Staff", "drafted_to_team_id": 9}]
        result = reconcile_players(records, [_make_team(1)])
        assert [p.id for p in result.available] == [1]
        assert result.rosters == {1: []}


# ── Load and defaults ────────────────────────────────────────────────


class TestLoad:
    def test_empty_store_gets_defaults(self, engine, store):
        assert store.read("auction/state") == default_auction_document()
        users = store.read_all("users")
        assert len(users) == 1
        assert users[0]["username"] == "admin"
        assert users[0]["role"] == "admin"

    def test_admin_not_seeded_twice(self, engine, store, scheduler):
        make_engine(store, scheduler)
        assert len(store.read_all("users")) == 1

    def test_existing_document_is_adopted(self, scheduler):
        store = InMemoryStore()
        store.set_document(
            "auction/state", dict(default_auction_document(), phase="ended", current_round=4)
        )
        engine = make_engine(store, scheduler)
        assert engine.phase == AuctionPhase.ENDED
        assert engine.current_round == 4
        login_admin(engine)
        assert engine.view_mode == ViewMode.AUCTION_ENDED


# ── Two clients sharing one store ────────────────────────────────────


@pytest.fixture
def pair(store, scheduler):
    """Admin client plus a second client, both subscribed to ``store``."""
    admin = login_admin(make_engine(store, scheduler))
    other = make_engine(store, scheduler, seed=99)
    add_teams(admin, 2)
    add_players(admin, ["Dana", "Alice", "Carl", "Bob"])
    return admin, other


class TestTwoClients:
    def test_catalog_reaches_other_client(self, pair):
        admin, other = pair
        assert [t.name for t in other.teams] == ["Team 1", "Team 2"]
        assert [p.name for p in other.available_players] == ["Alice", "Bob", "Carl", "Dana"]
        login_owner(other, 1)
        assert other.view_mode == ViewMode.TEAM_VIEW

    def test_owner_view_ignores_phase_change(self, pair):
        admin, other = pair
        login_owner(other, 1)
        admin.start_auction()
        assert other.phase == AuctionPhase.RUNNING
        assert other.view_mode == ViewMode.TEAM_VIEW

    def test_second_admin_follows_phase(self, pair):
        admin, other = pair
        login_admin(other)
        admin.start_auction()
        assert other.view_mode == ViewMode.ADMIN_VIEW
        admin.stop_auction()
        assert other.view_mode == ViewMode.AUCTION_ENDED

    def test_pending_draw_visible_remotely(self, pair, scheduler):
        admin, other = pair
        admin.start_auction()
        team = admin.roll_for_next_pick().value
        assert other.is_rolling is True
        assert other.dice_result.id == team.id
        assert other.round_order == ()

        scheduler.advance(ROLL_DELAY)
        assert [t.id for t in other.round_order] == [team.id]
        assert other.is_rolling is False

    def test_remote_pick_and_undo(self, pair, scheduler):
        admin, other = pair
        admin.start_auction()
        draw_full_order(admin, scheduler)
        picking = other.picking_team
        assert picking.id == admin.picking_team.id

        alice = player_named(other, "Alice")
        assert draft_as_picking_owner(other, alice)
        assert admin.turn_index == 1
        assert admin.announcement.player.id == alice.id
        assert admin.can_undo is True
        assert admin.state.get_team(picking.id).has_player(alice.id)

        assert admin.undo_last_draft()
        assert other.turn_index == 0
        assert other.can_undo is False
        assert other.state.is_available(alice.id)

    def test_announcement_expiry_propagates(self, pair, scheduler):
        admin, other = pair
        admin.start_auction()
        draw_full_order(admin, scheduler)
        draft_as_picking_owner(other, player_named(other, "Alice"))
        assert admin.announcement is not None
        scheduler.advance(ANNOUNCEMENT_TTL)
        assert admin.announcement is None

    def test_credentials_change_reaches_logged_in_owner(self, pair):
        admin, other = pair
        login_owner(other, 1)
        admin.update_team_owner(1, "Renamed", "Owner 1", "owner1", "newpw")
        assert other.current_user.password == "newpw"
        assert other.state.get_team(1).name == "Renamed"

    def test_deleted_team_roster_returns_remotely(self, pair, scheduler):
        admin, other = pair
        admin.start_auction()
        draw_full_order(admin, scheduler)
        team_id = admin.picking_team.id
        draft_as_picking_owner(admin, player_named(admin, "Alice"))
        login_admin(admin)

        assert admin.delete_team_owner(team_id)
        assert other.state.get_team(team_id) is None
        assert other.state.is_available(player_named(other, "Alice").id)

    def test_closed_client_stops_listening(self, pair):
        admin, other = pair
        other.close()
        admin.create_player("Eve", PlayerRole.STAFF)
        assert "Eve" not in [p.name for p in other.master_players]


# ── Deferred delivery ────────────────────────────────────────────────


class TestDeferredEcho:
    def test_own_echo_is_idempotent(self):
        scheduler = ManualScheduler()
        store = InMemoryStore(scheduler=scheduler)
        engine = login_admin(make_engine(store, scheduler))
        add_teams(engine, 2)
        add_players(engine, ["Dana", "Alice", "Carl", "Bob"])
        scheduler.run_pending()

        engine.start_auction()
        scheduler.run_pending()
        draw_full_order(engine, scheduler)
        scheduler.run_pending()

        draft_as_picking_owner(engine, player_named(engine, "Alice"))
        before = _snapshot(engine)
        assert scheduler.run_pending() > 0
        assert _snapshot(engine) == before

        scheduler.run_pending()
        assert _snapshot(engine) == before


# ── Write failures ───────────────────────────────────────────────────


class TestWriteFailure:
    def test_failed_write_keeps_local_change(self, admin_engine, store):
        store.fail_writes = True
        outcome = admin_engine.create_player("Alice", PlayerRole.STAFF)
        assert outcome
        assert [p.name for p in admin_engine.master_players] == ["Alice"]
        assert admin_engine.error_message.startswith(SYNC_FAILED_MESSAGE)
        assert "create player 1" in admin_engine.error_message
        assert store.read_all("players") == []

    def test_failed_phase_push(self, league, store):
        store.fail_writes = True
        assert league.start_auction()
        assert league.phase == AuctionPhase.RUNNING
        assert store.read("auction/state")["phase"] == "lobby"
        assert league.error_message is not None
