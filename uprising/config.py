"""
Single place for default game/setup configuration.
Change DEFAULT_SETUP_ID (or set UPRISING_SETUP_ID) to switch which setup is used when creating a new game.
"""
import os

# Setup id from data/setups/<id>/ (e.g. "standard"). This is the default for new games.
DEFAULT_SETUP_ID = os.environ.get("UPRISING_SETUP_ID", "standard")

# Bind address for server.py
API_HOST = os.environ.get("UPRISING_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("UPRISING_PORT", "8000"))
