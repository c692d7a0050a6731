"""
CRUD helpers over the repairs and sms_logs tables. Every call opens its own
connection and commits a single statement.
"""
from typing import List

from .db import AppDatabase
from .models import REPAIR_COLUMNS, SMS_COLUMNS, RepairJob, SmsLog

_REPAIR_FIELDS = [c for c in REPAIR_COLUMNS if c != "id"]
_SMS_FIELDS = [c for c in SMS_COLUMNS if c != "id"]


class RepairRepository:
    def __init__(self, db: AppDatabase):
        self.db = db

    def insert(self, job: RepairJob) -> int:
        row = job.to_row()
        placeholders = ",".join("?" for _ in _REPAIR_FIELDS)
        conn = self.db.connect()
        try:
            c = conn.cursor()
            c.execute(f"INSERT INTO repairs ({','.join(_REPAIR_FIELDS)}) VALUES ({placeholders})",
                      [row[f] for f in _REPAIR_FIELDS])
            conn.commit()
            job.id = c.lastrowid
        finally:
            conn.close()
        return job.id

    def update(self, job: RepairJob) -> int:
        row = job.to_row()
        assignments = ",".join(f"{f}=?" for f in _REPAIR_FIELDS)
        conn = self.db.connect()
        try:
            c = conn.cursor()
            c.execute(f"UPDATE repairs SET {assignments} WHERE id=?",
                      [row[f] for f in _REPAIR_FIELDS] + [job.id])
            conn.commit()
            return c.rowcount
        finally:
            conn.close()

    def delete_by_id(self, repair_id: int) -> int:
        conn = self.db.connect()
        try:
            c = conn.cursor()
            c.execute("DELETE FROM repairs WHERE id=?", (repair_id,))
            conn.commit()
            return c.rowcount
        finally:
            conn.close()

    def list_all(self) -> List[RepairJob]:
        conn = self.db.connect()
        try:
            rows = conn.execute(f"SELECT {','.join(REPAIR_COLUMNS)} FROM repairs ORDER BY createdAt DESC").fetchall()
        finally:
            conn.close()
        return [RepairJob.from_row(r) for r in rows]


class SmsLogRepository:
    """Append-only: there is no update or delete."""

    def __init__(self, db: AppDatabase):
        self.db = db

    def insert(self, log: SmsLog) -> int:
        row = log.to_row()
        placeholders = ",".join("?" for _ in _SMS_FIELDS)
        conn = self.db.connect()
        try:
            c = conn.cursor()
            c.execute(f"INSERT INTO sms_logs ({','.join(_SMS_FIELDS)}) VALUES ({placeholders})",
                      [row[f] for f in _SMS_FIELDS])
            conn.commit()
            log.id = c.lastrowid
        finally:
            conn.close()
        return log.id

    def list_all(self) -> List[SmsLog]:
        conn = self.db.connect()
        try:
            rows = conn.execute(f"SELECT {','.join(SMS_COLUMNS)} FROM sms_logs ORDER BY sentAt DESC").fetchall()
        finally:
            conn.close()
        return [SmsLog.from_row(r) for r in rows]
