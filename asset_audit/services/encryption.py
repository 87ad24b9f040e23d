"""At-rest encryption for blob payloads, keyed by the FERNET_KEY env var."""

from __future__ import annotations

import os
from cryptography.fernet import Fernet

_KEY_ENV = "FERNET_KEY"


def encryption_enabled() -> bool:
    return bool(os.environ.get(_KEY_ENV))


def _cipher() -> Fernet:
    # Looked up per call; tests set the key after import
    key = os.environ.get(_KEY_ENV)
    if not key:
        raise RuntimeError(f"Blob encryption requested but {_KEY_ENV} is unset")
    return Fernet(key)


def encrypt_bytes(payload: bytes) -> bytes:
    return _cipher().encrypt(payload)


def decrypt_bytes(token: bytes) -> bytes:
    return _cipher().decrypt(token)
