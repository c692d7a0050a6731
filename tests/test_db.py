import os
import sqlite3
import time

import pytest

from repair_shop.db import SCHEMA_VERSION, AppDatabase, _table_columns, cleanup_old_backups


def _columns(db, table):
    conn = db.connect()
    try:
        return [c[1] for c in _table_columns(conn, table)]
    finally:
        conn.close()


def test_initialize_creates_current_schema(db):
    repairs = _columns(db, "repairs")
    for col in ("id", "customerName", "phone", "model", "imei", "problem", "status",
                "imagePath", "createdAt", "completedAt", "pin", "password", "pattern"):
        assert col in repairs
    assert _columns(db, "sms_logs") == ["id", "toNumber", "message", "sentAt", "status"]
    conn = db.connect()
    try:
        assert AppDatabase.schema_version(conn) == SCHEMA_VERSION
    finally:
        conn.close()


def test_initialize_is_idempotent(db, repairs_repo, make_job):
    repairs_repo.insert(make_job())
    db.initialize()
    db.initialize()
    assert len(repairs_repo.list_all()) == 1


def test_fresh_database_is_not_backed_up(db, tmp_path):
    assert not os.path.exists(tmp_path / "backups") or os.listdir(tmp_path / "backups") == []


def test_migrates_version_one_database_without_losing_rows(tmp_path):
    path = str(tmp_path / "legacy.db")
    conn = sqlite3.connect(path)
    conn.executescript("""
    CREATE TABLE repairs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customerName TEXT, phone TEXT, model TEXT, imei TEXT, problem TEXT,
        status TEXT, imagePath TEXT, createdAt INTEGER
    );
    CREATE TABLE sms_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        toNumber TEXT, message TEXT, sentAt INTEGER, status TEXT
    );
    CREATE TABLE schema_version (version INTEGER NOT NULL);
    INSERT INTO schema_version (version) VALUES (1);
    INSERT INTO repairs (customerName, phone, model, imei, problem, status, imagePath, createdAt)
    VALUES ('Bob', '555-0111', 'iPhone 12', '1234', 'Battery', 'Pending', NULL, 1700000000000);
    """)
    conn.commit()
    conn.close()

    db = AppDatabase(path, str(tmp_path / "backups")).initialize()

    cols = _columns(db, "repairs")
    assert {"completedAt", "pin", "password", "pattern"} <= set(cols)
    conn = db.connect()
    try:
        row = conn.execute("SELECT * FROM repairs").fetchone()
        assert AppDatabase.schema_version(conn) == SCHEMA_VERSION
    finally:
        conn.close()
    assert row["customerName"] == "Bob"
    assert row["createdAt"] == 1700000000000
    assert row["completedAt"] is None
    assert len(os.listdir(tmp_path / "backups")) == 1


def test_unversioned_database_with_tables_is_adopted(tmp_path):
    path = str(tmp_path / "old.db")
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE repairs (id INTEGER PRIMARY KEY AUTOINCREMENT, customerName TEXT, phone TEXT, "
                 "model TEXT, imei TEXT, problem TEXT, status TEXT, imagePath TEXT, createdAt INTEGER)")
    conn.execute("INSERT INTO repairs (customerName, phone, createdAt) VALUES ('Eve', '1', 5)")
    conn.commit()
    conn.close()

    db = AppDatabase(path, None).initialize()

    assert "pattern" in _columns(db, "repairs")
    assert "status" in _columns(db, "sms_logs")
    conn = db.connect()
    try:
        assert conn.execute("SELECT COUNT(*) FROM repairs").fetchone()[0] == 1
    finally:
        conn.close()


def test_unavailable_storage_fails(tmp_path):
    missing = tmp_path / "no_such_dir" / "app.db"
    with pytest.raises(sqlite3.OperationalError):
        AppDatabase(str(missing), None).initialize()


def test_settings_defaults_and_overwrite(db):
    assert db.get_setting("shop_name") == "My Repair Shop"
    assert db.get_setting("sms_gateway_url", "none") == ""
    assert db.get_setting("unknown", "fallback") == "fallback"
    db.set_setting("sms_gateway_url", "https://sms.example.com/send")
    assert db.get_setting("sms_gateway_url") == "https://sms.example.com/send"


def test_backup_to_copies_database(db, tmp_path):
    dest = db.backup_to(str(tmp_path / "manual"))
    assert dest is not None
    assert os.path.isfile(dest)


def test_cleanup_old_backups_removes_only_expired(tmp_path):
    folder = tmp_path / "backups"
    folder.mkdir()
    old = folder / "old.db"
    new = folder / "new.db"
    old.write_bytes(b"x")
    new.write_bytes(b"y")
    past = time.time() - 30 * 24 * 3600
    os.utime(old, (past, past))

    cleanup_old_backups(str(folder), retention_days=15)

    assert not old.exists()
    assert new.exists()


def test_cleanup_old_backups_ignores_missing_folder(tmp_path):
    cleanup_old_backups(str(tmp_path / "nothing"))
