"""Enqueue-side middleware that encrypts sensitive job arguments.

Runs on every outgoing job before it is handed to the queue transport.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from encrypted_args.codec import ValueCodec
from encrypted_args.exceptions import PolicyError
from encrypted_args.jobs.models import ARGS_KEY, CLASS_KEY, ENCRYPTED_ARGS_KEY
from encrypted_args.jobs.policy import EncryptionPolicy
from encrypted_args.jobs.registry import JobRegistry
from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.middleware.client")


class EncryptArgsMiddleware:
    """Encrypts the arguments a job type declares as sensitive.

    The resolved positions are stamped on the job record under
    ``encrypted_args`` so the worker knows exactly what to decrypt. Jobs
    whose type declares nothing have the key removed.
    """

    def __init__(self, codec: ValueCodec, registry: JobRegistry) -> None:
        self._codec = codec
        self._registry = registry

    def __call__(
        self,
        job_type: Any,
        job: dict[str, Any],
        queue: str,
        call_next: Callable[[], Any],
    ) -> Any:
        self.encrypt_job(job_type, job)
        return call_next()

    def encrypt_job(self, job_type: Any, job: dict[str, Any]) -> list[int] | None:
        """Encrypt a job record's arguments in place.

        Args:
            job_type: Job class, or the name it was enqueued under. Falls
                back to the record's ``class`` key when None.
            job: The job record.

        Returns:
            The stamped positions, or None if nothing is declared.

        Raises:
            PolicyError: If the job type declares a malformed policy. A
                malformed value already on the record is dropped instead.
        """
        if job_type is None:
            job_type = job.get(CLASS_KEY)
        descriptor = self._registry.resolve(job_type)

        policy = EncryptionPolicy.parse(descriptor.declaration if descriptor else None)
        if policy.is_unset:
            # A per-job declaration, or positions stamped by an earlier pass
            try:
                policy = EncryptionPolicy.parse(job.get(ENCRYPTED_ARGS_KEY))
            except PolicyError as e:
                log.warning(
                    "legacy_encrypted_args_unreadable",
                    job_type=descriptor.name if descriptor else str(job_type),
                    error=str(e),
                )
                job.pop(ENCRYPTED_ARGS_KEY, None)
                return None

        args = job.get(ARGS_KEY)
        if args is None:
            args = job[ARGS_KEY] = []
        parameter_names = descriptor.parameter_names if descriptor else ()
        positions = policy.resolve(parameter_names, args)

        if positions is None:
            job.pop(ENCRYPTED_ARGS_KEY, None)
            return None

        for position in positions:
            if position < len(args):
                args[position] = self._codec.encode(args[position])
        job[ENCRYPTED_ARGS_KEY] = positions

        log.debug(
            "job_args_encrypted",
            job_type=descriptor.name if descriptor else str(job_type),
            positions=positions,
        )
        return positions
