"""
SQLite persistence: connection factory, versioned migrations, backups and
the key/value settings table.
"""
import logging
import os
import shutil
import sqlite3
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from . import config

logger = logging.getLogger(__name__)


# -------------------------
# Backup utilities
# -------------------------
def timestamped_backup_name(prefix="repair_shop_backup"):
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{ts}.db"


def cleanup_old_backups(backup_dir: str, retention_days: int = config.BACKUP_RETENTION_DAYS):
    cutoff = datetime.now() - timedelta(days=retention_days)
    try:
        names = os.listdir(backup_dir)
    except FileNotFoundError:
        return
    for fname in names:
        path = os.path.join(backup_dir, fname)
        if not os.path.isfile(path):
            continue
        try:
            mtime = datetime.fromtimestamp(os.path.getmtime(path))
            if mtime < cutoff:
                os.remove(path)
                logger.info("Removed old backup: %s", path)
        except OSError as e:
            logger.warning("Error while checking/removing backup %s: %s", path, e)


def backup_db_to(db_file: str, folder: str, prefix="repair_shop_backup") -> Optional[str]:
    """Copy the database file into folder; returns the new path, or None if there is no DB yet."""
    if not os.path.exists(db_file):
        logger.info("No existing DB to back up.")
        return None
    os.makedirs(folder, exist_ok=True)
    dst = os.path.join(folder, timestamped_backup_name(prefix))
    shutil.copy2(db_file, dst)
    logger.info("Backup created: %s", dst)
    return dst


# -------------------------
# Migrations (versioned)
# -------------------------
def _table_columns(conn: sqlite3.Connection, table_name: str) -> List[Tuple]:
    cur = conn.cursor()
    cur.execute(f"PRAGMA table_info({table_name})")
    return cur.fetchall()


def migration_001_initial_schema(conn: sqlite3.Connection):
    cur = conn.cursor()
    cur.execute("""
    CREATE TABLE IF NOT EXISTS repairs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customerName TEXT,
        phone TEXT,
        model TEXT,
        imei TEXT,
        problem TEXT,
        status TEXT,
        imagePath TEXT,
        createdAt INTEGER
    )
    """)
    cur.execute("""
    CREATE TABLE IF NOT EXISTS sms_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        toNumber TEXT,
        message TEXT,
        sentAt INTEGER,
        status TEXT
    )
    """)
    conn.commit()
    logger.info("Migration 001: repairs/sms_logs tables ensured")


def migration_002_add_completion_and_unlock_fields(conn: sqlite3.Connection):
    cols = [c[1] for c in _table_columns(conn, "repairs")]
    cur = conn.cursor()
    changed = False
    if "completedAt" not in cols:
        cur.execute("ALTER TABLE repairs ADD COLUMN completedAt INTEGER"); changed = True
    if "pin" not in cols:
        cur.execute("ALTER TABLE repairs ADD COLUMN pin TEXT"); changed = True
    if "password" not in cols:
        cur.execute("ALTER TABLE repairs ADD COLUMN password TEXT"); changed = True
    if "pattern" not in cols:
        cur.execute("ALTER TABLE repairs ADD COLUMN pattern TEXT"); changed = True
    if changed:
        conn.commit()
        logger.info("Migration 002: Added completedAt/pin/password/pattern to repairs")
    else:
        logger.info("Migration 002: repairs already have completion/unlock columns")


def migration_003_settings_table(conn: sqlite3.Connection):
    cur = conn.cursor()
    cur.execute("CREATE TABLE IF NOT EXISTS settings (key TEXT PRIMARY KEY, value TEXT)")
    for k, v in config.DEFAULT_SETTINGS.items():
        cur.execute("INSERT OR IGNORE INTO settings (key,value) VALUES (?,?)", (k, v))
    conn.commit()
    logger.info("Migration 003: settings table ensured")


MIGRATIONS: List[Callable[[sqlite3.Connection], None]] = [
    migration_001_initial_schema,
    migration_002_add_completion_and_unlock_fields,
    migration_003_settings_table,
]

SCHEMA_VERSION = len(MIGRATIONS)


class AppDatabase:
    """Handle on the local database file. Call initialize() before use."""

    def __init__(self, path: str = config.DB_FILE, backup_dir: Optional[str] = config.BACKUP_DIR):
        self.path = path
        self.backup_dir = backup_dir

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> "AppDatabase":
        existed = os.path.exists(self.path)
        conn = self.connect()
        try:
            self._ensure_schema_version_table(conn)
            current = self.schema_version(conn)
            logger.info("Current DB schema version: %s, latest: %s", current, SCHEMA_VERSION)
            if current >= SCHEMA_VERSION:
                logger.info("No migrations needed.")
                return self
            if existed and self.backup_dir:
                cleanup_old_backups(self.backup_dir)
                backup_db_to(self.path, self.backup_dir)
            for v in range(current, SCHEMA_VERSION):
                logger.info("Running migration %s: %s", v + 1, MIGRATIONS[v].__name__)
                try:
                    MIGRATIONS[v](conn)
                except sqlite3.Error:
                    logger.exception("Migration %s failed", v + 1)
                    raise
                self._set_schema_version(conn, v + 1)
            logger.info("All migrations applied.")
        finally:
            conn.close()
        return self

    # ---------- schema_version ----------
    @staticmethod
    def _ensure_schema_version_table(conn: sqlite3.Connection):
        cur = conn.cursor()
        cur.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
        cur.execute("SELECT COUNT(*) FROM schema_version")
        if cur.fetchone()[0] == 0:
            cur.execute("INSERT INTO schema_version (version) VALUES (0)")
        conn.commit()

    @staticmethod
    def schema_version(conn: sqlite3.Connection) -> int:
        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version LIMIT 1")
        row = cur.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    def _set_schema_version(conn: sqlite3.Connection, v: int):
        conn.execute("UPDATE schema_version SET version=?", (v,))
        conn.commit()

    # ---------- settings ----------
    def get_setting(self, key, default=""):
        conn = self.connect()
        try:
            r = conn.execute("SELECT value FROM settings WHERE key=?", (key,)).fetchone()
        finally:
            conn.close()
        return r[0] if r and r[0] is not None else default

    def set_setting(self, key, value):
        conn = self.connect()
        try:
            conn.execute("INSERT OR REPLACE INTO settings (key,value) VALUES (?,?)", (key, str(value)))
            conn.commit()
        finally:
            conn.close()

    def backup_to(self, folder: str) -> Optional[str]:
        return backup_db_to(self.path, folder)
