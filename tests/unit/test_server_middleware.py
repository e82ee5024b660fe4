"""Unit tests for the execute-side decryption middleware."""

import pytest
import sample_jobs
from sample_jobs import ARGS

from encrypted_args.codec import ValueCodec
from encrypted_args.exceptions import InvalidSecretError
from encrypted_args.jobs.registry import JobRegistry
from encrypted_args.middleware import DecryptArgsMiddleware
from encrypted_args.security.keys import CipherProvider


def _call(middleware: DecryptArgsMiddleware, worker, job: dict) -> bool:
    called = []
    middleware(worker, job, "default", lambda: called.append(True))
    return called == [True]


class TestDecryptArgsMiddleware:
    def test_missing_option_skips_decryption(self, decrypt_middleware, codec, job) -> None:
        job["args"][1] = codec.encode("bar")
        encrypted_value = job["args"][1]

        assert _call(decrypt_middleware, sample_jobs.RegularJob(), job)
        assert job["args"][1] == encrypted_value

    def test_empty_option_skips_decryption(self, decrypt_middleware, job) -> None:
        job["encrypted_args"] = []
        assert _call(decrypt_middleware, sample_jobs.RegularJob(), job)
        assert job["args"] == ARGS

    def test_decrypts_stamped_positions(self, decrypt_middleware, codec, job) -> None:
        job["args"] = [codec.encode(arg) for arg in ARGS]
        job["encrypted_args"] = [1, 2]

        assert _call(decrypt_middleware, sample_jobs.RegularJob(), job)
        assert job["args"][0] != ARGS[0]
        assert codec.decode(job["args"][0]) == ARGS[0]
        assert job["args"][1:] == ARGS[1:]

    def test_stamped_positions_win_over_job_policy(self, decrypt_middleware, codec, job) -> None:
        job["args"] = [codec.encode(ARGS[0]), ARGS[1], ARGS[2]]
        job["encrypted_args"] = [0]

        assert _call(decrypt_middleware, sample_jobs.NamedArraySecretJob(), job)
        assert job["args"] == ARGS

    def test_tries_multiple_keys(self, registry, job) -> None:
        old_codec = ValueCodec(CipherProvider("old"))
        job["args"] = [old_codec.encode(arg) for arg in ARGS]
        job["encrypted_args"] = [0, 1, 2]

        middleware = DecryptArgsMiddleware(ValueCodec(CipherProvider(["new", "old"])), registry)
        assert _call(middleware, sample_jobs.SecretJob(), job)
        assert job["args"] == ARGS

    def test_unknown_secret_raises(self, registry, job) -> None:
        job["args"][0] = ValueCodec(CipherProvider("other")).encode("foo")
        job["encrypted_args"] = [0]
        middleware = DecryptArgsMiddleware(ValueCodec(CipherProvider("key")), registry)

        with pytest.raises(InvalidSecretError):
            _call(middleware, sample_jobs.SecretJob(), job)

    def test_passes_through_unencrypted_values(self, decrypt_middleware, job) -> None:
        job["encrypted_args"] = [1]
        assert _call(decrypt_middleware, sample_jobs.SecretJob(), job)
        assert job["args"] == ARGS

    def test_out_of_range_positions_are_ignored(self, decrypt_middleware, codec) -> None:
        job = {"args": [codec.encode("foo")], "encrypted_args": [0, 4]}
        assert _call(decrypt_middleware, sample_jobs.SecretJob(), job)
        assert job["args"] == ["foo"]

    def test_decrypts_structured_values(self, decrypt_middleware, codec) -> None:
        payload = {"api_key": "secret", "user_id": 123}
        job = {"args": [codec.encode(payload)], "encrypted_args": [0]}

        assert _call(decrypt_middleware, sample_jobs.SecretJob(), job)
        assert job["args"] == [payload]

    def test_resolves_job_type_from_record(self, decrypt_middleware, codec, job) -> None:
        job["class"] = "NamedArraySecretJob"
        job["args"][1] = codec.encode("bar")
        job["encrypted_args"] = True

        assert _call(decrypt_middleware, None, job)
        assert job["args"] == ARGS


class TestLegacyEncryptedArgs:
    """Job records stamped before positions were normalised."""

    def test_false_option(self, decrypt_middleware, job) -> None:
        job["encrypted_args"] = False
        assert _call(decrypt_middleware, sample_jobs.NotSecretJob(), job)
        assert job["args"] == ARGS

    def test_true_option_decrypts_all(self, decrypt_middleware, codec, job) -> None:
        job["args"] = [codec.encode(arg) for arg in ARGS]
        job["encrypted_args"] = True
        assert _call(decrypt_middleware, sample_jobs.SecretJob(), job)
        assert job["args"] == ARGS

    @pytest.mark.parametrize("stamped", [True, [False, True], {"1": True}, {"arg_2": True}])
    def test_reresolves_from_current_job_policy(self, decrypt_middleware, codec, job, stamped):
        job["args"] = [codec.encode(arg) for arg in ARGS]
        job["encrypted_args"] = stamped

        assert _call(decrypt_middleware, sample_jobs.NamedArraySecretJob(), job)
        assert codec.is_encrypted(job["args"][0])
        assert job["args"][1] == "bar"
        assert codec.is_encrypted(job["args"][2])

    def test_boolean_array_option(self, decrypt_middleware, codec, job) -> None:
        job["args"] = [ARGS[0], codec.encode(ARGS[1]), ARGS[2]]
        job["encrypted_args"] = [False, True]
        assert _call(decrypt_middleware, sample_jobs.BooleanArraySecretJob(), job)
        assert job["args"] == ARGS

    def test_legacy_option_on_job_without_policy(self, decrypt_middleware, codec, job) -> None:
        job["args"] = [ARGS[0], codec.encode(ARGS[1]), ARGS[2]]
        job["encrypted_args"] = [False, True]
        assert _call(decrypt_middleware, sample_jobs.RegularJob(), job)
        assert job["args"] == ARGS

    def test_unreadable_legacy_option_is_not_fatal(self, codec, job) -> None:
        middleware = DecryptArgsMiddleware(codec, JobRegistry(allow_import=False))
        job["encrypted_args"] = {1: True}
        assert _call(middleware, sample_jobs.RegularJob(), job)
        assert job["args"] == ARGS

    def test_root_separator_class_name_is_not_fatal(self, decrypt_middleware, codec) -> None:
        job = {
            "class": ":ReportJob",
            "encrypted_args": True,
            "args": [codec.encode(ARGS[0]), ARGS[1]],
        }
        assert _call(decrypt_middleware, None, job)
        assert job["args"] == ARGS[:2]
