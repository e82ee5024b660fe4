"""Job types, job type registry and argument encryption policies."""

from encrypted_args.jobs.models import (
    ARGS_KEY,
    CLASS_KEY,
    ENCRYPTED_ARGS_KEY,
    QUEUE_KEY,
    UNSET,
    Job,
    JobDescriptor,
    describe,
)
from encrypted_args.jobs.policy import EncryptionPolicy, PolicyKind, reconcile, resolve
from encrypted_args.jobs.registry import JobRegistry

__all__ = [
    "ARGS_KEY",
    "CLASS_KEY",
    "ENCRYPTED_ARGS_KEY",
    "QUEUE_KEY",
    "UNSET",
    "EncryptionPolicy",
    "Job",
    "JobDescriptor",
    "JobRegistry",
    "PolicyKind",
    "describe",
    "reconcile",
    "resolve",
]
