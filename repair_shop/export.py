"""
CSV / Excel export of the repair and SMS collections.
"""
import csv
from datetime import datetime
from typing import Iterable, List

from openpyxl import Workbook

from .models import RepairJob, SmsLog

REPAIR_HEADER = ["id", "customer_name", "phone", "model", "imei", "problem",
                 "status", "created_at", "completed_at"]
SMS_HEADER = ["id", "to_number", "message", "sent_at", "status"]


def _fmt_millis(ms) -> str:
    if ms is None:
        return ""
    return datetime.fromtimestamp(ms / 1000.0).strftime("%Y-%m-%d %H:%M:%S")


def repair_rows(repairs: Iterable[RepairJob]) -> List[list]:
    # device unlock fields stay out of exports
    return [[r.id, r.customer_name, r.phone, r.model, r.imei, r.problem, r.status,
             _fmt_millis(r.created_at), _fmt_millis(r.completed_at)] for r in repairs]


def sms_rows(logs: Iterable[SmsLog]) -> List[list]:
    return [[s.id, s.to_number, s.message, _fmt_millis(s.sent_at), s.status] for s in logs]


def detect_file_type_by_ext(path: str) -> str:
    return "excel" if path.lower().endswith(".xlsx") else "csv"


def export_csv(header: List[str], rows: List[list], path: str) -> int:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return len(rows)


def export_excel(header: List[str], rows: List[list], path: str, title: str = "Sheet") -> int:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(header)
    for row in rows:
        ws.append(row)
    wb.save(path)
    return len(rows)


def export_table(header: List[str], rows: List[list], path: str, title: str = "Sheet") -> int:
    if detect_file_type_by_ext(path) == "excel":
        return export_excel(header, rows, path, title)
    return export_csv(header, rows, path)
