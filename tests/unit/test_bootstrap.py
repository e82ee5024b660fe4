"""Unit tests for process-wide defaults and middleware registration."""

import pytest
from structlog.testing import capture_logs

import encrypted_args
from encrypted_args.config import get_settings
from encrypted_args.exceptions import InvalidSecretError
from encrypted_args.middleware import DecryptArgsMiddleware, EncryptArgsMiddleware, MiddlewareChain
from encrypted_args.security.keys import CipherProvider


class TestModuleHelpers:
    def test_encrypt_and_decrypt(self) -> None:
        encrypted_args.set_secret("key")
        encrypted = encrypted_args.encrypt("foobar")

        assert encrypted != "foobar"
        assert encrypted_args.is_encrypted(encrypted)
        assert encrypted_args.decrypt(encrypted) == "foobar"

    def test_encrypt_and_decrypt_data_structures(self) -> None:
        encrypted_args.set_secret("key")
        data = {"foo": [1, 2, 3]}
        encrypted = encrypted_args.encrypt(data)

        assert isinstance(encrypted, str)
        assert encrypted_args.decrypt(encrypted) == data

    def test_multiple_secrets_roll_gracefully(self) -> None:
        encrypted_args.set_secret("key_1")
        encrypted_1 = encrypted_args.encrypt("foobar")

        encrypted_args.set_secret(["key_2", "key_1", "key_3"])
        encrypted_2 = encrypted_args.encrypt("foobar")

        assert encrypted_2 != encrypted_1
        assert encrypted_args.decrypt(encrypted_1) == "foobar"
        assert encrypted_args.decrypt(encrypted_2) == "foobar"

    def test_reads_secret_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("ENCRYPTED_ARGS_SECRET", "env_key")
        get_settings.cache_clear()

        env_encrypted = encrypted_args.encrypt("foobar")
        assert encrypted_args.decrypt(env_encrypted) == "foobar"

        encrypted_args.set_secret("key")
        assert encrypted_args.decrypt(encrypted_args.encrypt("foobar")) == "foobar"
        with pytest.raises(InvalidSecretError):
            encrypted_args.decrypt(env_encrypted)

    def test_does_not_encrypt_without_secret(self) -> None:
        assert encrypted_args.encrypt("foobar") == "foobar"

    def test_does_not_encrypt_none(self) -> None:
        encrypted_args.set_secret("key")
        assert encrypted_args.encrypt(None) is None

    @pytest.mark.parametrize("value", ["foobar", None, 1])
    def test_does_not_decrypt_unencrypted_values(self, value) -> None:
        encrypted_args.set_secret("key")
        assert encrypted_args.decrypt(value) == value

    def test_shared_provider_is_reused(self) -> None:
        assert encrypted_args.get_cipher_provider() is encrypted_args.get_cipher_provider()
        assert encrypted_args.get_job_registry() is encrypted_args.get_job_registry()


class TestConfigure:
    def test_registers_client_middleware(self) -> None:
        client_chain = MiddlewareChain("client")
        encrypted_args.configure(secret="key", client_chain=client_chain)

        assert client_chain.exists(EncryptArgsMiddleware)
        assert not client_chain.exists(DecryptArgsMiddleware)

    def test_registers_server_middleware(self) -> None:
        server_chain = MiddlewareChain("server")
        server_client_chain = MiddlewareChain("server_client")
        encrypted_args.configure(
            secret="key",
            server_chain=server_chain,
            server_client_chain=server_client_chain,
        )

        assert server_chain.exists(DecryptArgsMiddleware)
        assert server_client_chain.exists(EncryptArgsMiddleware)

    def test_encrypt_middleware_is_prepended(self) -> None:
        class Existing:
            def __call__(self, job_type, job, queue, call_next):
                return call_next()

        client_chain = MiddlewareChain("client")
        server_chain = MiddlewareChain("server")
        client_chain.add(Existing())
        server_chain.add(Existing())

        encrypted_args.configure(secret="key", client_chain=client_chain, server_chain=server_chain)

        assert isinstance(client_chain.entries[0], EncryptArgsMiddleware)
        assert isinstance(server_chain.entries[-1], DecryptArgsMiddleware)

    def test_configure_is_idempotent(self) -> None:
        client_chain = MiddlewareChain("client")
        encrypted_args.configure(secret="key", client_chain=client_chain)
        encrypted_args.configure(client_chain=client_chain)
        assert len(client_chain) == 1

    def test_sets_secret_on_shared_provider(self) -> None:
        provider = encrypted_args.configure(secret=["new", "old"])

        assert provider is encrypted_args.get_cipher_provider()
        assert provider.secret_count == 2

    def test_uses_explicit_provider(self) -> None:
        provider = CipherProvider("explicit")
        assert encrypted_args.configure(provider=provider) is provider
        assert encrypted_args.get_cipher_provider() is not provider

    def test_warns_without_secret(self) -> None:
        with capture_logs() as logs:
            provider = encrypted_args.configure(client_chain=MiddlewareChain())

        assert provider.is_passthrough
        assert "encryption_secret_not_set" in [e["event"] for e in logs]
