from __future__ import annotations

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Environment variables read by the API server (at startup / per request, never cached here).
DB_PATH_ENV = "ROSTER_DB_PATH"
ADMIN_TOKEN_ENV = "ROSTER_ADMIN_TOKEN"

# Seconds a connection waits for the SQLite write lock held by another writer.
DB_TIMEOUT_SEC = float(os.environ.get("ROSTER_DB_TIMEOUT_SEC") or 10.0)

SCHEMA_VERSION = "roster-1"
