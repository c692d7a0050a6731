#!/usr/bin/env python3
"""
app.py - composition root. Builds the database, state, vault and platform
capabilities once and hands them to the main window.

Run:
    python -m repair_shop
"""
import logging
import sqlite3
import sys

from cryptography.fernet import InvalidToken
from PyQt6.QtWidgets import QApplication, QMessageBox

from . import config
from .db import AppDatabase
from .repositories import RepairRepository, SmsLogRepository
from .services import HttpSmsTransport, SystemPdfPrinter
from .state import AppState
from .ui import MainWindow
from .vault import CredentialVault, EncryptedFileStore

logger = logging.getLogger(__name__)


def build_services(db_file=config.DB_FILE, backup_dir=config.BACKUP_DIR,
                   vault_file=config.VAULT_FILE, vault_key_file=config.VAULT_KEY_FILE):
    db = AppDatabase(db_file, backup_dir).initialize()
    state = AppState(RepairRepository(db), SmsLogRepository(db))
    vault = CredentialVault(EncryptedFileStore(vault_file, vault_key_file))
    # fail here, not inside the window, when the key no longer matches the vault file
    vault.list_all()
    return db, state, vault


def main():
    config.ensure_data_dirs()
    config.setup_logging()
    app = QApplication(sys.argv)
    app.setApplicationName(config.APP_NAME)
    try:
        db, state, vault = build_services()
    except (sqlite3.Error, OSError) as e:
        logger.exception("Could not open local storage")
        QMessageBox.critical(None, "Error", f"Could not open database: {e}")
        sys.exit(1)
    except InvalidToken:
        logger.exception("Could not decrypt the password vault")
        QMessageBox.critical(None, "Error", f"Could not unlock the password vault.\nCheck the key file {config.VAULT_KEY_FILE}")
        sys.exit(1)
    win = MainWindow(
        db, state, vault,
        transport_factory=lambda: HttpSmsTransport.from_settings(db),
        printer=SystemPdfPrinter(config.INVOICES_DIR),
    )
    win.show()
    if not db.get_setting("sms_gateway_url", ""):
        logger.info("Note: no SMS gateway configured. Messages will be logged as failed until one is set in Settings.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
