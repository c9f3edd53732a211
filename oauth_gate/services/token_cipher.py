"""Symmetric encryption for tokens kept in the cookie session."""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

_PREFIX = "fernet:"


class TokenCipherService:
    """Encrypt and decrypt token strings using a Fernet key derived from a secret.

    Ciphertexts carry a ``fernet:`` prefix so values written before encryption
    was enabled are recognized and passed through as plaintext.
    """

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None:
            return None
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return _PREFIX + token.decode("utf-8")

    def decrypt(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not value.startswith(_PREFIX):
            return value
        try:
            plaintext = self._fernet.decrypt(value[len(_PREFIX):].encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]
