"""Tests for the JSON-file-backed store."""

import json

import pytest

from src.auction_draft.file_store import JsonFileStore
from src.auction_draft.models import AuctionPhase, PlayerRole
from src.auction_draft.remote_store import StoreError
from tests.conftest import add_players, add_teams, login_admin, make_engine


class TestJsonFileStore:
    def test_writes_one_file_per_collection_and_document(self, tmp_path):
        store = JsonFileStore(storage_dir=tmp_path)
        store.create("players", 1, {"id": 1, "name": "Alice"})
        store.set_document("auction/state", {"phase": "lobby"})

        with open(tmp_path / "collection_players.json") as f:
            data = json.load(f)
        assert data == {"collection": "players", "records": [{"id": 1, "name": "Alice"}]}

        with open(tmp_path / "document_auction_state.json") as f:
            data = json.load(f)
        assert data == {"path": "auction/state", "record": {"phase": "lobby"}}

    def test_reloads_previous_contents(self, tmp_path):
        first = JsonFileStore(storage_dir=tmp_path)
        first.create("teams", 2, {"id": 2, "name": "Team 2"})
        first.create("teams", 1, {"id": 1, "name": "Team 1"})
        first.delete("teams", 2)
        first.set_document("auction/state", {"phase": "running"})

        second = JsonFileStore(storage_dir=tmp_path)
        assert second.read_all("teams") == [{"id": 1, "name": "Team 1"}]
        assert second.read("auction/state") == {"phase": "running"}

    def test_update_missing_record_raises(self, tmp_path):
        store = JsonFileStore(storage_dir=tmp_path)
        with pytest.raises(StoreError):
            store.update("players", 5, {"name": "Ghost"})

    def test_corrupt_file_is_skipped(self, tmp_path):
        (tmp_path / "collection_players.json").write_text("{not json")
        (tmp_path / "collection_teams.json").write_text(json.dumps({"records": [{}]}))
        store = JsonFileStore(storage_dir=tmp_path)
        assert store.read_all("players") == []
        assert store.read_all("teams") == []

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "nested" / "store"
        JsonFileStore(storage_dir=target)
        assert target.is_dir()


class TestEngineOnFileStore:
    def test_auction_survives_restart(self, tmp_path, scheduler):
        engine = login_admin(make_engine(JsonFileStore(storage_dir=tmp_path), scheduler))
        add_teams(engine, 2)
        add_players(engine, ["Alice", "Bob"], role=PlayerRole.TECHNICIAN)
        engine.start_auction()
        engine.close()

        restarted = make_engine(JsonFileStore(storage_dir=tmp_path), scheduler)
        assert restarted.phase == AuctionPhase.RUNNING
        assert [t.name for t in restarted.teams] == ["Team 1", "Team 2"]
        assert [p.role for p in restarted.available_players] == [PlayerRole.TECHNICIAN] * 2
        assert len(restarted.state.accounts) == 3
