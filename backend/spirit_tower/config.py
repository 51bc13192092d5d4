"""
Spirit Tower configuration.

Every setting can be overridden with an environment variable.
"""

import os

# Server settings
HOST = os.getenv("SPIRIT_TOWER_HOST", "127.0.0.1")
PORT = int(os.getenv("SPIRIT_TOWER_PORT", "8000"))

# Database settings
DATABASE_URL = os.getenv("SPIRIT_TOWER_DATABASE_URL", "sqlite+aiosqlite:///./spirit_tower.db")

# Where the extractor CLI submits finished sheets
API_URL = os.getenv("SPIRIT_TOWER_API_URL", f"http://{HOST}:{PORT}")

# Seconds before a submission request is abandoned
SUBMIT_TIMEOUT = float(os.getenv("SPIRIT_TOWER_SUBMIT_TIMEOUT", "10"))
