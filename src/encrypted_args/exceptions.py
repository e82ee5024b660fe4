"""Exceptions raised by encrypted job arguments."""


class EncryptedArgsError(Exception):
    """Base class for encrypted argument errors."""

    pass


class InvalidSecretError(EncryptedArgsError):
    """Raised when none of the configured secrets can decrypt a value."""

    pass


class PolicyError(EncryptedArgsError, ValueError):
    """Raised when a job type declares a malformed encryption policy."""

    pass
