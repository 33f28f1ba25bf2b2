from src.auction_draft.access_rules import AccessRules
from src.auction_draft.auction_state import AuctionState
from src.auction_draft.draft_ledger import DraftLedger
from src.auction_draft.engine import AuctionEngine
from src.auction_draft.file_store import JsonFileStore
from src.auction_draft.models import (
    Account,
    AccountRole,
    Announcement,
    AuctionPhase,
    CaptainRole,
    DraftAction,
    Outcome,
    OutcomeStatus,
    Player,
    PlayerRole,
    Team,
    ViewMode,
)
from src.auction_draft.phase_machine import AuctionPhaseMachine
from src.auction_draft.player_pool import PlayerPool
from src.auction_draft.remote_store import InMemoryStore, RemoteStore, StoreError
from src.auction_draft.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from src.auction_draft.sync_bridge import RemoteSyncBridge
from src.auction_draft.team_registry import TeamRegistry
from src.auction_draft.turn_order import TurnOrderScheduler

__all__ = [
    "AccessRules",
    "Account",
    "AccountRole",
    "Announcement",
    "AsyncioScheduler",
    "AuctionEngine",
    "AuctionPhase",
    "AuctionPhaseMachine",
    "AuctionState",
    "CaptainRole",
    "DraftAction",
    "DraftLedger",
    "InMemoryStore",
    "JsonFileStore",
    "ManualScheduler",
    "Outcome",
    "OutcomeStatus",
    "Player",
    "PlayerPool",
    "PlayerRole",
    "RemoteStore",
    "RemoteSyncBridge",
    "Scheduler",
    "StoreError",
    "Team",
    "TeamRegistry",
    "TurnOrderScheduler",
    "ViewMode",
]
