"""Process-wide defaults and middleware registration.

Most applications configure encryption once at startup::

    from encrypted_args import configure

    configure(secret=["new-secret", "old-secret"],
              client_chain=client_middleware,
              server_chain=server_middleware)

The module-level helpers operate on a shared :class:`CipherProvider` and
:class:`JobRegistry`. Code that needs isolated state can build its own and
pass them to the middleware directly.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from encrypted_args.codec import ValueCodec
from encrypted_args.jobs.registry import JobRegistry
from encrypted_args.logging import get_logger
from encrypted_args.middleware.chain import MiddlewareChain
from encrypted_args.middleware.client import EncryptArgsMiddleware
from encrypted_args.middleware.server import DecryptArgsMiddleware
from encrypted_args.security.keys import CipherProvider

log = get_logger("encrypted_args.bootstrap")

_cipher_provider: CipherProvider | None = None
_job_registry: JobRegistry | None = None


def get_cipher_provider() -> CipherProvider:
    """Get the shared cipher provider, creating it on first use."""
    global _cipher_provider
    if _cipher_provider is None:
        _cipher_provider = CipherProvider()
    return _cipher_provider


def get_job_registry() -> JobRegistry:
    """Get the shared job registry, creating it on first use."""
    global _job_registry
    if _job_registry is None:
        _job_registry = JobRegistry()
    return _job_registry


def reset_defaults() -> None:
    """Drop the shared provider and registry."""
    global _cipher_provider, _job_registry
    _cipher_provider = None
    _job_registry = None


def get_codec() -> ValueCodec:
    """Get a value codec bound to the shared cipher provider."""
    return ValueCodec(get_cipher_provider())


def set_secret(secrets: str | Iterable[str] | None) -> None:
    """Set the secret, or ordered secrets, used to encrypt arguments.

    The first secret encrypts; all of them are tried when decrypting so
    a secret can be rolled without stranding queued jobs. ``None`` falls
    back to the ``ENCRYPTED_ARGS_SECRET`` environment variable.
    """
    get_cipher_provider().configure(secrets)


def encrypt(value: Any) -> Any:
    """Encrypt any JSON-compatible value with the shared provider."""
    return get_codec().encode(value)


def decrypt(value: Any) -> Any:
    """Decrypt a value encrypted with :func:`encrypt`.

    Unencrypted values are returned unchanged.
    """
    return get_codec().decode(value)


def is_encrypted(value: Any) -> bool:
    """Check if a value is encrypted."""
    return CipherProvider.is_ciphertext(value)


def configure(
    secret: str | Iterable[str] | None = None,
    *,
    client_chain: MiddlewareChain | None = None,
    server_chain: MiddlewareChain | None = None,
    server_client_chain: MiddlewareChain | None = None,
    provider: CipherProvider | None = None,
    registry: JobRegistry | None = None,
) -> CipherProvider:
    """Register the encryption middleware.

    The encrypt middleware is prepended to the client chains so it runs
    before anything that serialises or transmits the job. The decrypt
    middleware is appended to the server chain so it runs after everything
    that needs the raw payload and right before the job body.

    Args:
        secret: Optional secret or secrets. See :func:`set_secret`.
        client_chain: Chain run when a job is enqueued.
        server_chain: Chain run when a worker executes a job.
        server_client_chain: Chain run when a worker enqueues a job.
        provider: Cipher provider to use instead of the shared one.
        registry: Job registry to use instead of the shared one.

    Returns:
        The cipher provider the middleware encrypts with.
    """
    provider = provider or get_cipher_provider()
    registry = registry or get_job_registry()
    if secret is not None:
        provider.configure(secret)
    # Loads lazily configured secrets now, warning early if none are set
    secret_count = provider.secret_count

    codec = ValueCodec(provider)
    for chain in (client_chain, server_client_chain):
        if chain is not None:
            chain.prepend(EncryptArgsMiddleware(codec, registry))
    if server_chain is not None:
        server_chain.add(DecryptArgsMiddleware(codec, registry))

    log.info(
        "encrypted_args_configured",
        secret_count=secret_count,
        client=client_chain is not None,
        server=server_chain is not None,
    )
    return provider
