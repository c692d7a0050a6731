"""
Configuration constants and logging setup for the repair shop manager.
"""
import logging
import os

# ---------- Configuration ----------
APP_NAME = "Mobile Repair Shop Manager"
DATA_DIR = os.path.join(os.path.expanduser("~"), ".repair_shop")
DB_FILE = os.path.join(DATA_DIR, "app_data.db")
IMAGES_DIR = os.path.join(DATA_DIR, "images")
INVOICES_DIR = os.path.join(DATA_DIR, "invoices")
BACKUP_DIR = os.path.join(DATA_DIR, "backups")
BACKUP_RETENTION_DAYS = 15
VAULT_FILE = os.path.join(DATA_DIR, "vault.bin")
VAULT_KEY_FILE = os.path.join(DATA_DIR, "vault.key")
LOG_FILE = os.path.join(DATA_DIR, "logs", "app.log")

DEFAULT_BRAND_COLOR = "#673AB7"
WINDOW_SIZE = (1100, 780)

SMS_TIMEOUT_SEC = 15

# defaults for the settings table (INSERT OR IGNORE on migration)
DEFAULT_SETTINGS = {
    "shop_name": "My Repair Shop",
    "sms_gateway_url": "",
    "sms_gateway_token": "",
    "sms_sender_id": "",
}
# -----------------------------------

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def ensure_data_dirs():
    for folder in (DATA_DIR, IMAGES_DIR, INVOICES_DIR, BACKUP_DIR, os.path.dirname(LOG_FILE)):
        os.makedirs(folder, exist_ok=True)


def setup_logging(level=logging.INFO, log_file: str = LOG_FILE, console: bool = True):
    """Attach file (and optionally console) handlers to the package logger."""
    logger = logging.getLogger("repair_shop")
    logger.setLevel(level)
    # avoid stacking handlers when called twice
    if logger.handlers:
        return logger
    formatter = logging.Formatter(LOG_FORMAT)
    if log_file:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    return logger
