"""Selective encryption of background job arguments.

Job types declare which positional arguments are sensitive. Those
arguments are encrypted before the job is queued and decrypted right
before the job runs, leaving the rest of the payload readable.
"""

from encrypted_args.bootstrap import (
    configure,
    decrypt,
    encrypt,
    get_cipher_provider,
    get_codec,
    get_job_registry,
    is_encrypted,
    reset_defaults,
    set_secret,
)
from encrypted_args.codec import ValueCodec
from encrypted_args.exceptions import EncryptedArgsError, InvalidSecretError, PolicyError
from encrypted_args.jobs import UNSET, EncryptionPolicy, Job, JobDescriptor, JobRegistry
from encrypted_args.middleware import DecryptArgsMiddleware, EncryptArgsMiddleware, MiddlewareChain
from encrypted_args.security import CipherProvider, Encryptor

__version__ = "1.0.0"

__all__ = [
    "UNSET",
    "CipherProvider",
    "DecryptArgsMiddleware",
    "EncryptArgsMiddleware",
    "EncryptedArgsError",
    "EncryptionPolicy",
    "Encryptor",
    "InvalidSecretError",
    "Job",
    "JobDescriptor",
    "JobRegistry",
    "MiddlewareChain",
    "PolicyError",
    "ValueCodec",
    "configure",
    "decrypt",
    "encrypt",
    "get_cipher_provider",
    "get_codec",
    "get_job_registry",
    "is_encrypted",
    "reset_defaults",
    "set_secret",
]
