"""Encrypt and decrypt arbitrary JSON-compatible values.

Values are serialised to JSON before encryption so composite structures
(dicts, lists, numbers, booleans, ``None``) survive the round trip.
"""

from __future__ import annotations

import json
from typing import Any

from encrypted_args.security.keys import CipherProvider


class ValueCodec:
    """Converts job argument values to and from encrypted strings."""

    def __init__(self, provider: CipherProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> CipherProvider:
        """Return the cipher provider used by this codec."""
        return self._provider

    def encode(self, value: Any) -> Any:
        """Encrypt a value.

        ``None`` and values that are already encrypted are returned as is.
        In pass-through mode the original value is returned rather than its
        JSON form.

        Args:
            value: Any JSON-serialisable value.

        Returns:
            The encrypted string, or the original value.

        Raises:
            TypeError: If the value is not JSON-serialisable.
        """
        if value is None or self._provider.is_ciphertext(value):
            return value

        serialized = json.dumps(value, separators=(",", ":"))
        encrypted = self._provider.encrypt(serialized)
        if encrypted == serialized:
            return value
        return encrypted

    def decode(self, value: Any) -> Any:
        """Decrypt a value previously returned by :meth:`encode`.

        Values that are not encrypted, including ``None`` and non-strings,
        are returned unchanged.

        Raises:
            InvalidSecretError: If no configured secret can decrypt the value.
        """
        if not self._provider.is_ciphertext(value):
            return value
        return json.loads(self._provider.decrypt(value))

    def is_encrypted(self, value: Any) -> bool:
        """Check if a value is encrypted."""
        return self._provider.is_ciphertext(value)
