import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

SHOP_NAME = os.getenv("SHOP_NAME", "Nantika Physical Thai Massage")

# Optional JSON file with {"therapists": [...], "services": [...]}; built-in roster otherwise
ROSTER_FILE = os.getenv("ROSTER_FILE")

# Assignment rules
DEFAULT_SERVICE_DURATION = int(os.getenv("DEFAULT_SERVICE_DURATION", "60"))  # minutes
SCHEDULED_LEAD_MINUTES = int(os.getenv("SCHEDULED_LEAD_MINUTES", "60"))
CHAIN_ROUND_LIMIT_MINUTES = int(os.getenv("CHAIN_ROUND_LIMIT_MINUTES", "120"))

# Scheduled booking activation
ACTIVATION_INTERVAL_SECONDS = int(os.getenv("ACTIVATION_INTERVAL_SECONDS", "60"))
# true: activate every booking whose time has passed; false: only inside the 60s window
ACTIVATION_CATCH_UP = os.getenv("ACTIVATION_CATCH_UP", "true").lower() == "true"
ACTIVATION_WORKER_ENABLED = os.getenv("ACTIVATION_WORKER_ENABLED", "true").lower() == "true"

# Display board broadcast (Redis sink is optional, the board is always served over HTTP)
BOARD_REDIS_ENABLED = os.getenv("BOARD_REDIS_ENABLED", "false").lower() == "true"
BOARD_REDIS_KEY = os.getenv("BOARD_REDIS_KEY", "serviceBoardData")
BOARD_REDIS_CHANNEL = os.getenv("BOARD_REDIS_CHANNEL", "serviceBoardDataChanged")

# CORS - manager console, kiosk and display board origins
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
