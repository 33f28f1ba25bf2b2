"""Tests for player pool CRUD."""

from src.auction_draft.models import OutcomeStatus, PlayerRole
from tests.conftest import (
    add_players,
    add_teams,
    draft_as_picking_owner,
    login_admin,
    login_owner,
    player_named,
)


def _names(players):
    return [p.name for p in players]


class TestCreatePlayer:
    def test_pool_is_name_sorted_not_insertion_order(self, admin_engine):
        admin_engine.create_player("Zed", PlayerRole.STAFF)
        admin_engine.create_player("Amy", PlayerRole.TECHNICIAN)
        assert _names(admin_engine.available_players) == ["Amy", "Zed"]
        assert _names(admin_engine.master_players) == ["Amy", "Zed"]

    def test_ids_are_max_plus_one(self, admin_engine):
        ids = add_players(admin_engine, ["A", "B", "C"])
        assert ids == [1, 2, 3]
        admin_engine.delete_player(2)
        assert admin_engine.create_player("D", PlayerRole.STAFF).value.id == 4

    def test_accepts_role_string(self, admin_engine):
        outcome = admin_engine.create_player("Eve", "Contractual Worker")
        assert outcome
        assert outcome.value.role == PlayerRole.CONTRACTUAL_WORKER

    def test_rejects_blank_name_and_unknown_role(self, admin_engine):
        assert admin_engine.create_player("  ", PlayerRole.STAFF).status == OutcomeStatus.REJECTED
        assert admin_engine.create_player("Eve", "Goalie").status == OutcomeStatus.REJECTED
        assert admin_engine.master_players == ()

    def test_non_admin_is_silent_noop(self, engine):
        outcome = engine.create_player("Eve", PlayerRole.STAFF)
        assert outcome.status == OutcomeStatus.FORBIDDEN
        assert engine.master_players == ()
        assert engine.error_message is None

    def test_team_owner_cannot_create(self, admin_engine):
        team_ids = add_teams(admin_engine, 1)
        login_owner(admin_engine, team_ids[0])
        assert admin_engine.create_player("Eve", PlayerRole.STAFF).status == OutcomeStatus.FORBIDDEN

    def test_written_to_store(self, admin_engine, store):
        add_players(admin_engine, ["Alice"])
        assert store.read_all("players") == [
            {
                "id": 1,
                "name": "Alice",
                "role": "Staff",
                "drafted_to_team_id": None,
                "drafted_round": None,
            }
        ]


class TestUpdatePlayer:
    def test_rename_resorts_both_lists(self, admin_engine):
        add_players(admin_engine, ["Alice", "Bob"])
        alice = player_named(admin_engine, "Alice")
        assert admin_engine.update_player(alice.id, "Zoe", PlayerRole.TECHNICIAN)
        assert _names(admin_engine.master_players) == ["Bob", "Zoe"]
        assert _names(admin_engine.available_players) == ["Bob", "Zoe"]
        assert player_named(admin_engine, "Zoe").role == PlayerRole.TECHNICIAN

    def test_unknown_player_rejected(self, admin_engine):
        assert admin_engine.update_player(42, "X", PlayerRole.STAFF).status == OutcomeStatus.REJECTED


class TestDeletePlayer:
    def test_removes_from_both_lists(self, admin_engine, store):
        add_players(admin_engine, ["Alice", "Bob"])
        assert admin_engine.delete_player(player_named(admin_engine, "Alice").id)
        assert _names(admin_engine.master_players) == ["Bob"]
        assert _names(admin_engine.available_players) == ["Bob"]
        assert [r["name"] for r in store.read_all("players")] == ["Bob"]

    def test_deleting_drafted_player_clears_roster_and_undo(self, running_league):
        alice = player_named(running_league, "Alice")
        assert draft_as_picking_owner(running_league, alice)
        login_admin(running_league)
        assert running_league.delete_player(alice.id)
        assert all(not team.has_player(alice.id) for team in running_league.teams)
        assert running_league.can_undo is False

    def test_unknown_player_rejected(self, admin_engine):
        assert admin_engine.delete_player(7).status == OutcomeStatus.REJECTED
