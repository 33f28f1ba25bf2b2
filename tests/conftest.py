"""Shared fixtures for the auction engine test suite."""

import random

import pytest

from src.auction_draft.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from src.auction_draft.engine import AuctionEngine
from src.auction_draft.models import CaptainRole, PlayerRole
from src.auction_draft.remote_store import InMemoryStore
from src.auction_draft.scheduler import ManualScheduler

ROLL_DELAY = 2.5
ANNOUNCEMENT_TTL = 4.0


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def make_engine(store, scheduler, seed=7, **overrides):
    return AuctionEngine(
        store,
        scheduler=scheduler,
        rng=random.Random(seed),
        **overrides,
    ).bootstrap()


def login_admin(engine):
    outcome = engine.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    assert outcome, outcome.reason
    return engine


def add_teams(engine, count):
    """Create ``count`` teams with logins owner1/pw1, owner2/pw2, ..."""
    teams = []
    for i in range(1, count + 1):
        outcome = engine.create_team_owner(
            f"Team {i}", f"Owner {i}", f"owner{i}", f"pw{i}", CaptainRole.STAFF
        )
        assert outcome, outcome.reason
        teams.append(outcome.value[0].id)
    return teams


def add_players(engine, names, role=PlayerRole.STAFF):
    ids = []
    for name in names:
        outcome = engine.create_player(name, role)
        assert outcome, outcome.reason
        ids.append(outcome.value.id)
    return ids


def login_owner(engine, team_id):
    account = engine.state.get_account_for_team(team_id)
    engine.logout()
    outcome = engine.login(account.username, account.password)
    assert outcome, outcome.reason
    return engine


def draw_full_order(engine, scheduler):
    """Roll until the round order is full, letting every draw commit."""
    while engine.roll_for_next_pick():
        scheduler.advance(ROLL_DELAY)
    return list(engine.round_order)


def draft_as_picking_owner(engine, player):
    """Switch to the picking team's owner and draft ``player``."""
    login_owner(engine, engine.picking_team.id)
    return engine.draft_player(player)


def player_named(engine, name):
    return next(p for p in engine.master_players if p.name == name)


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def engine(store, scheduler):
    """Bootstrapped engine, nobody logged in."""
    return make_engine(store, scheduler)


@pytest.fixture
def admin_engine(engine):
    return login_admin(engine)


@pytest.fixture
def league(admin_engine):
    """Admin engine with two teams and four players."""
    add_teams(admin_engine, 2)
    add_players(admin_engine, ["Dana", "Alice", "Carl", "Bob"])
    return admin_engine


@pytest.fixture
def running_league(league, scheduler):
    """League with the auction started and the first round order drawn."""
    assert league.start_auction()
    draw_full_order(league, scheduler)
    return league
