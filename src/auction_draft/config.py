from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Storage directories
DATA_DIR = PROJECT_ROOT / "data"
STORE_DIR = DATA_DIR / "store"
LOG_DIR = PROJECT_ROOT / "logs"
LOG_FILENAME = "auction_draft.log"

# Auction limits
MAX_ROUNDS = 15
TEAMS_PER_ROUND = 4

# Pacing delays (seconds)
ROLL_COMMIT_DELAY_SEC = 2.5
ANNOUNCEMENT_TTL_SEC = 4.0

# Seeded administrator (plain text, inherited from the source app)
DEFAULT_ADMIN_ID = 1
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "password"

# Team defaults
DEFAULT_TEAM_COLOR = "bg-gray-500"
DEFAULT_TEAM_LOGO = "star"

# Remote store layout
TEAMS_COLLECTION = "teams"
USERS_COLLECTION = "users"
PLAYERS_COLLECTION = "players"
AUCTION_STATE_PATH = "auction/state"

# Advisory messages
LOGIN_FAILED_MESSAGE = "Invalid username or password."
SYNC_FAILED_MESSAGE = "Sync failed"
