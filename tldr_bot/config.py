"""Environment-driven configuration. Values are read once at import."""

import os

from dotenv import load_dotenv

load_dotenv()

DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
DISCORD_CLIENT_ID = os.getenv("DISCORD_CLIENT_ID", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514")
SUMMARY_MAX_TOKENS = int(os.getenv("SUMMARY_MAX_TOKENS", "1500"))
DETAIL_MAX_TOKENS = int(os.getenv("DETAIL_MAX_TOKENS", "800"))

MAX_MESSAGES = int(os.getenv("MAX_MESSAGES", "1000"))
MESSAGES_PER_FETCH = 100
RETENTION_LIMIT = int(os.getenv("RETENTION_LIMIT", "50"))
FOLLOWUP_MINUTES = int(os.getenv("FOLLOWUP_MINUTES", "30"))
MAX_TOPIC_BUTTONS = 5

# Optional ceiling on /tldr ranges, written as a range token ("2w").
# Empty means no limit beyond the MAX_MESSAGES cap.
MAX_RANGE = os.getenv("MAX_RANGE", "").strip()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DISCORD_MESSAGE_LIMIT = 2000
