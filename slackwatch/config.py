"""App configuration and setup"""

import os

from dotenv import load_dotenv

load_dotenv()

REQUIRED_ENV = ("SLACK_BOT_TOKEN",)

env: dict[str, str] = {name: os.getenv(name, "") for name in REQUIRED_ENV}

SLACK_BOT_TOKEN = env["SLACK_BOT_TOKEN"]
SLACK_SIGNING_SECRET = os.getenv("SLACK_SIGNING_SECRET", "")

missing_env = [name for name, value in env.items() if not value]

if missing_env:
    raise ValueError(
        "Missing required environment variables: " + ", ".join(missing_env)
    )

# === Slack configuration ===

SLACK_TIMEOUT_SECONDS = float(os.getenv("SLACK_TIMEOUT_SECONDS", "10"))
CHANNEL_TYPES = os.getenv("CHANNEL_TYPES", "public_channel,private_channel")
MEMBER_LOOKUP_CONCURRENCY = int(os.getenv("MEMBER_LOOKUP_CONCURRENCY", "10"))

# === Message sink configuration ===

MESSAGE_WEBHOOK_URLS = [
    u.strip() for u in os.getenv("MESSAGE_WEBHOOK_URLS", "").split(",") if u.strip()
]
MESSAGE_WEBHOOK_SECRET = os.getenv("MESSAGE_WEBHOOK_SECRET", "")
RETRY_DELAY = 5
MAX_ATTEMPTS = 3

if MESSAGE_WEBHOOK_URLS and not MESSAGE_WEBHOOK_SECRET:
    raise ValueError("MESSAGE_WEBHOOK_SECRET is required when webhook URLs are set")

AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID = os.getenv("AIRTABLE_BASE_ID", "")
AIRTABLE_MESSAGES_TABLE = os.getenv("AIRTABLE_MESSAGES_TABLE", "Messages")

# === API configuration ===

SLACKWATCH_API_KEY = os.getenv("SLACKWATCH_API_KEY", None)

# === Other configuration ===

HOST = os.getenv("APP_HOST", "0.0.0.0")
PORT = int(os.getenv("APP_PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
