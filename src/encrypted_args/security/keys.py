"""Key ring of password-derived encryptors supporting secret rotation.

The first configured secret is the active one and is used for all new
encryption. Every secret is tried, in order, when decrypting so jobs
enqueued before a rotation remain readable after it.

Secrets can be set programmatically with :meth:`CipherProvider.configure`.
When nothing has been configured the provider loads them lazily from the
``ENCRYPTED_ARGS_SECRET`` setting (whitespace-separated). If that is empty
too, the provider runs in pass-through mode: values are neither encrypted
nor decrypted.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any

from encrypted_args.config import get_settings
from encrypted_args.exceptions import InvalidSecretError
from encrypted_args.logging import get_logger
from encrypted_args.security.encryptor import Encryptor

log = get_logger("encrypted_args.security.keys")

# Hard coded salt used to derive every key. Do not change: values encrypted
# with a different salt cannot be decrypted.
SALT = "3270e054"

SecretSource = Callable[[], Iterable[str]]


def _settings_secrets() -> list[str]:
    return get_settings().encryption_secrets


def _normalize_secrets(secrets: str | Iterable[str]) -> list[str]:
    if isinstance(secrets, str):
        return [secrets]
    normalized = list(secrets)
    for secret in normalized:
        if not isinstance(secret, str):
            raise TypeError(f"Secrets must be strings, got {type(secret).__name__}")
    return normalized


class CipherProvider:
    """Encrypts with the active secret and decrypts with any configured secret.

    The configured encryptors are held in an immutable tuple that is
    replaced as a whole on reconfiguration, so concurrent readers always
    observe either the old or the new key set.
    """

    def __init__(
        self,
        secrets: str | Iterable[str] | None = None,
        secret_source: SecretSource | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            secrets: Optional secret or ordered secrets. When omitted the
                secrets are loaded lazily from ``secret_source``.
            secret_source: Callable returning the fallback secret list.
                Defaults to the ``ENCRYPTED_ARGS_SECRET`` setting.
        """
        self._secret_source = secret_source or _settings_secrets
        self._encryptors: tuple[Encryptor, ...] | None = None
        self._warned = False
        self._lock = threading.Lock()
        if secrets is not None:
            self.configure(secrets)

    def configure(self, secrets: str | Iterable[str] | None) -> None:
        """Replace the configured secrets.

        Args:
            secrets: One secret or an ordered list of secrets. The first one
                encrypts, all of them are tried when decrypting. ``None``
                returns the provider to its unconfigured state.
        """
        if secrets is None:
            self.reset()
            return
        encryptors = self._make_encryptors(_normalize_secrets(secrets))
        with self._lock:
            self._encryptors = encryptors
            self._warned = False
        log.info("cipher_provider_configured", secret_count=len(encryptors))

    def reset(self) -> None:
        """Forget the configured secrets so they are reloaded on next use."""
        with self._lock:
            self._encryptors = None
            self._warned = False

    @property
    def encryptors(self) -> tuple[Encryptor, ...]:
        """Return the configured encryptors, loading them if necessary."""
        encryptors = self._encryptors
        if encryptors:
            return encryptors

        # Lazy load and pass-through warning only; configured keys skip the lock
        with self._lock:
            encryptors = self._encryptors
            if encryptors is None:
                encryptors = self._make_encryptors(_normalize_secrets(self._secret_source()))
                self._encryptors = encryptors
                log.debug("cipher_provider_loaded", secret_count=len(encryptors))
            if not encryptors and not self._warned:
                self._warned = True
                log.warning(
                    "encryption_secret_not_set",
                    reason="set ENCRYPTED_ARGS_SECRET or call configure(); "
                    "job arguments will not be encrypted",
                )
        return encryptors

    @property
    def secret_count(self) -> int:
        """Return the number of configured secrets."""
        return len(self.encryptors)

    @property
    def is_passthrough(self) -> bool:
        """Check if no secret is configured."""
        return not self.encryptors

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string with the active secret.

        Returns the plaintext unchanged in pass-through mode.
        """
        encryptors = self.encryptors
        if not encryptors:
            return plaintext
        return encryptors[0].encrypt(plaintext)

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a string with the first secret that accepts it.

        Values that are not ciphertext are returned unchanged.

        Raises:
            InvalidSecretError: If no configured secret can decrypt the value.
        """
        if not self.is_ciphertext(ciphertext):
            return ciphertext

        encryptors = self.encryptors
        for position, encryptor in enumerate(encryptors):
            try:
                plaintext = encryptor.decrypt(ciphertext)
            except ValueError:
                # Not the right key, try the next one
                continue
            if position > 0:
                log.debug("decrypt_key_fallback", key_position=position)
            return plaintext

        raise InvalidSecretError("Cannot decrypt. Invalid secret provided.")

    @staticmethod
    def is_ciphertext(value: Any) -> bool:
        """Check if a value is in the encrypted format."""
        return Encryptor.is_ciphertext(value)

    @staticmethod
    def _make_encryptors(secrets: list[str]) -> tuple[Encryptor, ...]:
        return tuple(Encryptor.from_password(secret, SALT) for secret in secrets if secret)
