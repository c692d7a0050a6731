"""
Credential vault: label -> secret pairs kept in a secure store.

The vault itself holds no cache and does no crypto; it only forwards to
whatever store it was given. EncryptedFileStore is the store used by the
desktop app (Fernet-encrypted JSON blob, key kept in a separate file).
"""
import json
import logging
import os
from typing import Dict

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class MemorySecureStore:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def read_all(self) -> Dict[str, str]:
        return dict(self._data)

    def write(self, key: str, value: str):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)


class EncryptedFileStore:
    def __init__(self, path: str, key_path: str):
        self.path = path
        self.key_path = key_path
        self._fernet = Fernet(self._load_or_create_key())

    def _load_or_create_key(self) -> bytes:
        if os.path.exists(self.key_path):
            with open(self.key_path, "rb") as f:
                return f.read().strip()
        os.makedirs(os.path.dirname(self.key_path) or ".", exist_ok=True)
        key = Fernet.generate_key()
        fd = os.open(self.key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key)
        logger.info("Generated new vault key: %s", self.key_path)
        return key

    def read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "rb") as f:
            token = f.read()
        if not token:
            return {}
        try:
            payload = self._fernet.decrypt(token)
        except InvalidToken:
            logger.error("Vault file %s could not be decrypted with %s", self.path, self.key_path)
            raise
        return json.loads(payload.decode("utf-8"))

    def _write_all(self, data: Dict[str, str]):
        token = self._fernet.encrypt(json.dumps(data).encode("utf-8"))
        tmp = self.path + ".tmp"
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(token)
        os.replace(tmp, self.path)

    def write(self, key: str, value: str):
        data = self.read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str):
        data = self.read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class CredentialVault:
    def __init__(self, store):
        self.store = store

    def list_all(self) -> Dict[str, str]:
        return self.store.read_all()

    def write(self, label: str, secret: str):
        self.store.write(label, secret)

    def delete(self, label: str):
        self.store.delete(label)
