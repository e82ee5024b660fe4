"""Password-based AES-256-GCM encryptor for single string values.

Keys are derived with PBKDF2-HMAC-SHA256 from a password and salt. Each
encryption generates a unique random nonce, which is prepended to the
ciphertext. The combined nonce+ciphertext is base64-encoded behind a
format prefix so encrypted values can be recognised inside job payloads.
"""

from __future__ import annotations

import base64
import binascii
import os
from functools import lru_cache
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.security.encryptor")

# AES-256-GCM parameters
NONCE_SIZE = 12  # 96-bit nonce (recommended for GCM)
TAG_SIZE = 16
KEY_SIZE = 32  # 256-bit key

# PBKDF2 parameters
# 600,000 iterations as recommended by OWASP for PBKDF2-HMAC-SHA256
# https://cheatsheetseries.owasp.org/cheatsheets/Password_Storage_Cheat_Sheet.html
PBKDF2_ITERATIONS = 600_000

# Marks a string as produced by Encryptor.encrypt
CIPHERTEXT_PREFIX = "$AES$:"


@lru_cache(maxsize=32)
def _derive_key(password: str, salt: str) -> bytes:
    """Derive a 256-bit key from a password and salt."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt.encode("utf-8"),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


class Encryptor:
    """Encrypts and decrypts string values with a single AES-256-GCM key.

    Instances are immutable and safe to share between threads.
    """

    __slots__ = ("_aesgcm",)

    def __init__(self, key: bytes) -> None:
        """Initialize the encryptor.

        Args:
            key: 256-bit (32-byte) encryption key.

        Raises:
            ValueError: If key is not exactly 32 bytes.
        """
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be exactly {KEY_SIZE} bytes, got {len(key)}")
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_password(cls, password: str, salt: str) -> Encryptor:
        """Build an encryptor whose key is derived from a password.

        The same password and salt always produce an encryptor that can
        decrypt values from any other encryptor built from them.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password must not be empty")
        return cls(_derive_key(password, salt))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a single string value.

        Args:
            plaintext: The string to encrypt.

        Returns:
            Prefixed base64 string containing nonce + ciphertext.
        """
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        encoded = base64.b64encode(nonce + ciphertext).decode("ascii")
        return f"{CIPHERTEXT_PREFIX}{encoded}"

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a single encrypted value.

        Args:
            encrypted: Value previously returned by :meth:`encrypt`.

        Returns:
            The decrypted plaintext string.

        Raises:
            ValueError: If decryption fails (wrong key, tampered data, etc.).
        """
        if not self.is_ciphertext(encrypted):
            raise ValueError("Decryption failed: value is not ciphertext")
        try:
            combined = base64.b64decode(encrypted[len(CIPHERTEXT_PREFIX) :], validate=True)
            nonce = combined[:NONCE_SIZE]
            plaintext = self._aesgcm.decrypt(nonce, combined[NONCE_SIZE:], None)
            return plaintext.decode("utf-8")
        except (InvalidTag, binascii.Error, UnicodeDecodeError) as e:
            log.debug("decryption_failed", error=type(e).__name__)
            raise ValueError(f"Decryption failed: {type(e).__name__}") from e

    @staticmethod
    def is_ciphertext(value: Any) -> bool:
        """Check if a value is in the encrypted format.

        Non-string values are never considered encrypted.
        """
        if not isinstance(value, str) or not value.startswith(CIPHERTEXT_PREFIX):
            return False
        try:
            decoded = base64.b64decode(value[len(CIPHERTEXT_PREFIX) :], validate=True)
        except binascii.Error:
            return False
        # Minimum size: nonce + tag (empty plaintext)
        return len(decoded) >= NONCE_SIZE + TAG_SIZE
