# database/db_manager.py
import sqlite3
import os
import time
from . import schemas
from .input_validator import InputValidator
from modules.logging_manager import get_logger

# Default location for the database file
DB_FILE = "bot-nullscape.db"

PRESET_COLUMNS = ("id", "name", "description", "quality_tags", "negative_tags", "created_at", "updated_at")


def _now_ms():
    return int(time.time() * 1000)


class DBManager:
    """Handles all database operations for the bot."""
    def __init__(self, db_path=None):
        """
        Initialize database manager.

        Args:
            db_path: Optional custom database path. If None, uses default path.
        """
        self.logger = get_logger()
        self.db_path = db_path or DB_FILE

        # Ensure parent directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.execute("PRAGMA journal_mode = WAL")
            self._initialize_database()
        except sqlite3.Error as e:
            self.logger.critical(f"CRITICAL DATABASE ERROR: Failed to connect to database: {e}")
            raise

        self.logger.info(f"SQLite database initialized at {self.db_path}")

    def _initialize_database(self):
        """Creates all necessary tables if they don't already exist."""
        cursor = self.conn.cursor()
        try:
            for table_sql in schemas.ALL_TABLES:
                cursor.execute(table_sql)
            self.conn.commit()
        except sqlite3.Error as e:
            self.logger.critical(f"DATABASE ERROR: Failed to initialize tables: {e}")
            raise
        finally:
            cursor.close()

    def get_table_names(self):
        """Returns the names of all tables in the database."""
        cursor = self.conn.cursor()
        try:
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
            return [row[0] for row in cursor.fetchall()]
        finally:
            cursor.close()

    # --- Settings Methods ---

    def get_setting(self, key):
        """
        Retrieves a setting value by key.

        Args:
            key: The setting key to retrieve

        Returns:
            The value as a string, or None if not found
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            cursor.close()
            return row[0] if row else None
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to get setting '{key}': {e}")
            return None

    def set_setting(self, key, value):
        """
        Sets or updates a setting value.

        Args:
            key: The setting key
            value: The setting value (will be converted to string)

        Returns:
            bool: True if stored successfully
        """
        query = """
        INSERT INTO settings (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, (key, str(value)))
            self.conn.commit()
            cursor.close()
            self.logger.debug(f"DATABASE: Set setting '{key}' = '{value}'")
            return True
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to set setting '{key}': {e}")
            return False

    def get_all_settings(self):
        """Returns every stored setting as a {key: value} dict."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT key, value FROM settings")
            rows = cursor.fetchall()
            cursor.close()
            return {key: value for key, value in rows}
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to get settings: {e}")
            return {}

    # --- Preset Methods ---

    def get_preset(self, preset_id):
        """
        Retrieves a preset row by ID.

        Returns:
            dict with preset columns, or None if not found
        """
        query = f"SELECT {', '.join(PRESET_COLUMNS)} FROM presets WHERE id = ?"
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, (preset_id,))
            row = cursor.fetchone()
            cursor.close()
            return dict(zip(PRESET_COLUMNS, row)) if row else None
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to get preset '{preset_id}': {e}")
            return None

    def count_presets(self):
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM presets")
            count = cursor.fetchone()[0]
            cursor.close()
            return count
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to count presets: {e}")
            return 0

    def list_presets(self, limit=25):
        """
        Lists preset summaries ordered by name.

        Returns:
            List of {'id', 'name'} dicts
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT id, name FROM presets ORDER BY name ASC LIMIT ?", (limit,))
            rows = cursor.fetchall()
            cursor.close()
            return [{"id": row[0], "name": row[1]} for row in rows]
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to list presets: {e}")
            return []

    def search_presets(self, query, limit=25):
        """
        Searches presets by ID or name.
        Exact ID matches come first, then ID prefix matches, then the rest by name.

        Args:
            query: Search text (blank lists all presets)
            limit: Maximum number of results

        Returns:
            List of {'id', 'name'} dicts
        """
        q = (query or "").strip()
        if not q:
            return self.list_presets(limit)

        escaped = InputValidator.sanitize_sql_like_pattern(q)
        sql = """
        SELECT id, name
        FROM presets
        WHERE id LIKE :like ESCAPE '\\'
           OR name LIKE :like ESCAPE '\\'
        ORDER BY
            CASE WHEN id = :exact THEN 0 ELSE 1 END,
            CASE WHEN id LIKE :prefix ESCAPE '\\' THEN 0 ELSE 1 END,
            name ASC
        LIMIT :limit
        """
        params = {
            "like": f"%{escaped}%",
            "exact": q,
            "prefix": f"{escaped}%",
            "limit": limit,
        }
        try:
            cursor = self.conn.cursor()
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            cursor.close()
            return [{"id": row[0], "name": row[1]} for row in rows]
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to search presets for '{q}': {e}")
            return []

    def upsert_preset(self, preset_id, name, description, quality_tags, negative_tags):
        """
        Inserts a preset or fully replaces an existing one with the same ID.
        The original creation time is kept on update.

        Returns:
            dict with the stored preset row, or None on failure
        """
        query = """
        INSERT INTO presets (id, name, description, quality_tags, negative_tags, created_at, updated_at)
        VALUES (:id, :name, :description, :quality_tags, :negative_tags, :now, :now)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            description = excluded.description,
            quality_tags = excluded.quality_tags,
            negative_tags = excluded.negative_tags,
            updated_at = excluded.updated_at
        """
        params = {
            "id": preset_id,
            "name": name,
            "description": description,
            "quality_tags": quality_tags,
            "negative_tags": negative_tags,
            "now": _now_ms(),
        }
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            self.conn.commit()
            cursor.close()
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to upsert preset '{preset_id}': {e}")
            return None

        self.logger.info(f"DATABASE: Saved preset '{preset_id}'")
        return self.get_preset(preset_id)

    def delete_preset(self, preset_id):
        """
        Deletes a preset by ID.

        Returns:
            bool: True if a preset was deleted
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM presets WHERE id = ?", (preset_id,))
            deleted = cursor.rowcount > 0
            self.conn.commit()
            cursor.close()

            if deleted:
                self.logger.info(f"DATABASE: Deleted preset '{preset_id}'")
            return deleted
        except sqlite3.Error as e:
            self.logger.error(f"DATABASE ERROR: Failed to delete preset '{preset_id}': {e}")
            return False

    def close(self):
        """Closes the database connection."""
        if self.conn:
            try:
                self.conn.close()
                self.logger.info("Database connection closed.")
            except sqlite3.Error as e:
                self.logger.error(f"DATABASE ERROR: Failed to close connection: {e}")
