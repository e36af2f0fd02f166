# database/schemas.py
# This file defines the SQL statements for creating the database tables.

# --- Runtime Settings ---

SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

# --- Prompt Presets (maintained by admins only) ---

PRESETS_TABLE = """
CREATE TABLE IF NOT EXISTS presets (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    quality_tags TEXT NOT NULL,
    negative_tags TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
"""

# A list of all table creation statements for easy initialization
ALL_TABLES = [
    SETTINGS_TABLE,
    PRESETS_TABLE
]
