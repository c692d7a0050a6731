"""
Data models for repair jobs and SMS logs.

Column names in the database keep the existing camelCase schema; the
to_row / from_row helpers translate between the two.
"""
import time
from dataclasses import dataclass
from typing import Optional

STATUS_PENDING = "Pending"
STATUS_COMPLETED = "Completed"
REPAIR_STATUSES = [STATUS_PENDING, STATUS_COMPLETED]

SMS_SENT = "sent"
SMS_FAILED = "failed"

REPAIR_COLUMNS = [
    "id", "customerName", "phone", "model", "imei", "problem", "status",
    "imagePath", "createdAt", "completedAt", "pin", "password", "pattern",
]
SMS_COLUMNS = ["id", "toNumber", "message", "sentAt", "status"]


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class RepairJob:
    customer_name: str
    phone: str
    model: str = ""
    imei: str = ""
    problem: str = ""
    status: str = STATUS_PENDING
    image_path: Optional[str] = None
    created_at: Optional[int] = None
    completed_at: Optional[int] = None
    pin: Optional[str] = None
    password: Optional[str] = None
    pattern: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = now_millis()

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "phone": self.phone,
            "model": self.model,
            "imei": self.imei,
            "problem": self.problem,
            "status": self.status,
            "imagePath": self.image_path,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
            "pin": self.pin,
            "password": self.password,
            "pattern": self.pattern,
        }

    @classmethod
    def from_row(cls, row) -> "RepairJob":
        return cls(
            id=row["id"],
            customer_name=row["customerName"] or "",
            phone=row["phone"] or "",
            model=row["model"] or "",
            imei=row["imei"] or "",
            problem=row["problem"] or "",
            status=row["status"] or STATUS_PENDING,
            image_path=row["imagePath"],
            created_at=row["createdAt"],
            completed_at=row["completedAt"],
            pin=row["pin"],
            password=row["password"],
            pattern=row["pattern"],
        )


@dataclass
class SmsLog:
    to_number: str
    message: str
    sent_at: Optional[int] = None
    status: str = SMS_SENT
    id: Optional[int] = None

    def __post_init__(self):
        if self.sent_at is None:
            self.sent_at = now_millis()

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "toNumber": self.to_number,
            "message": self.message,
            "sentAt": self.sent_at,
            "status": self.status,
        }

    @classmethod
    def from_row(cls, row) -> "SmsLog":
        return cls(
            id=row["id"],
            to_number=row["toNumber"] or "",
            message=row["message"] or "",
            sent_at=row["sentAt"],
            status=row["status"] or SMS_SENT,
        )
