"""Pytest fixtures for encrypted job argument tests."""

import pytest

from encrypted_args import bootstrap
from encrypted_args.codec import ValueCodec
from encrypted_args.config import get_settings
from encrypted_args.jobs.registry import JobRegistry
from encrypted_args.middleware import DecryptArgsMiddleware, EncryptArgsMiddleware
from encrypted_args.security.keys import CipherProvider
from sample_jobs import ALL_JOBS, ARGS


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Start every test without a secret in the environment or defaults."""
    monkeypatch.delenv("ENCRYPTED_ARGS_SECRET", raising=False)
    get_settings.cache_clear()
    bootstrap.reset_defaults()

    yield

    get_settings.cache_clear()
    bootstrap.reset_defaults()


@pytest.fixture
def provider() -> CipherProvider:
    """Cipher provider configured with a single secret."""
    return CipherProvider("key")


@pytest.fixture
def codec(provider: CipherProvider) -> ValueCodec:
    return ValueCodec(provider)


@pytest.fixture
def registry() -> JobRegistry:
    """Registry with the sample job types registered."""
    reg = JobRegistry()
    for job_class in ALL_JOBS:
        reg.register(job_class)
    return reg


@pytest.fixture
def encrypt_middleware(codec: ValueCodec, registry: JobRegistry) -> EncryptArgsMiddleware:
    return EncryptArgsMiddleware(codec, registry)


@pytest.fixture
def decrypt_middleware(codec: ValueCodec, registry: JobRegistry) -> DecryptArgsMiddleware:
    return DecryptArgsMiddleware(codec, registry)


@pytest.fixture
def job() -> dict:
    """A fresh job record."""
    return {"args": list(ARGS)}
