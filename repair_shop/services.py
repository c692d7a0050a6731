"""
Platform capabilities that are not Qt widgets: SMS transport, PDF
printing and saving a picked image into the app folder. Each is a small
object with a narrow method set so tests can pass fakes instead.

Qt-backed capabilities (dialer, image picker) live in ui.py.
"""
import logging
import os
import shutil
import subprocess
import sys
from datetime import datetime
from typing import Optional

import requests

from . import config
from .errors import TransportError

logger = logging.getLogger(__name__)


class HttpSmsTransport:
    """
    Sends messages through an HTTP SMS gateway.

    The gateway receives a JSON body {"to", "message", "sender"} with an
    optional bearer token. Any network error, non-2xx response, or missing
    gateway URL raises TransportError.
    """

    def __init__(self, url: str, token: str = "", sender: str = "", timeout: float = config.SMS_TIMEOUT_SEC):
        self.url = (url or "").strip()
        self.token = token or ""
        self.sender = sender or ""
        self.timeout = timeout

    @classmethod
    def from_settings(cls, db) -> "HttpSmsTransport":
        return cls(
            db.get_setting("sms_gateway_url", ""),
            db.get_setting("sms_gateway_token", ""),
            db.get_setting("sms_sender_id", ""),
        )

    def send(self, to_number: str, message: str):
        if not self.url:
            raise TransportError("SMS gateway URL is not configured")
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = {"to": to_number, "message": message, "sender": self.sender}
        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"SMS to {to_number} failed: {exc}") from exc


class SystemPdfPrinter:
    """Writes rendered PDF bytes to disk and opens them in the system viewer."""

    def __init__(self, folder: str = config.INVOICES_DIR):
        self.folder = folder

    def save(self, data: bytes, name: str) -> str:
        os.makedirs(self.folder, exist_ok=True)
        if not name.lower().endswith(".pdf"):
            name += ".pdf"
        path = os.path.join(self.folder, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def print_document(self, data: bytes, name: str) -> str:
        path = self.save(data, name)
        try:
            if sys.platform.startswith("linux"):
                subprocess.Popen(["xdg-open", path])
            elif sys.platform.startswith("darwin"):
                subprocess.Popen(["open", path])
            elif sys.platform.startswith("win"):
                os.startfile(path)
        except OSError as e:
            logger.warning("Open PDF failed: %s", e)
        return path


def save_picked_image(source: Optional[str], images_dir: str = config.IMAGES_DIR) -> Optional[str]:
    """Copy a chosen image into images_dir; None (user cancelled) passes through."""
    if not source:
        return None
    os.makedirs(images_dir, exist_ok=True)
    base = os.path.basename(source)
    dest = os.path.join(images_dir, base)
    if os.path.exists(dest):
        if os.path.samefile(source, dest):
            return dest
        stem, ext = os.path.splitext(base)
        stamped = f"{stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        dest = os.path.join(images_dir, f"{stamped}{ext}")
        n = 1
        while os.path.exists(dest):
            dest = os.path.join(images_dir, f"{stamped}_{n}{ext}")
            n += 1
    shutil.copy2(source, dest)
    return dest
