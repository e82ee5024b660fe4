"""Execute-side middleware that decrypts job arguments before ``perform``."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from encrypted_args.codec import ValueCodec
from encrypted_args.jobs.models import ARGS_KEY, CLASS_KEY, ENCRYPTED_ARGS_KEY
from encrypted_args.jobs.policy import reconcile
from encrypted_args.jobs.registry import JobRegistry
from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.middleware.server")


class DecryptArgsMiddleware:
    """Decrypts the arguments stamped as encrypted on a job record.

    Jobs without an ``encrypted_args`` key pass straight through. Values at
    stamped positions that are not encrypted are left as they are.
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
        self.decrypt_job(job_type, job)
        return call_next()

    def decrypt_job(self, job_type: Any, job: dict[str, Any]) -> list[int] | None:
        """Decrypt a job record's arguments in place.

        Args:
            job_type: The job instance or class about to run. Falls back to
                the record's ``class`` key when None.
            job: The job record.

        Returns:
            The positions that were considered encrypted, or None.

        Raises:
            InvalidSecretError: If an argument cannot be decrypted with any
                configured secret.
        """
        stamped = job.get(ENCRYPTED_ARGS_KEY)
        if stamped is None:
            return None

        if job_type is None:
            job_type = job.get(CLASS_KEY)
        args = job.get(ARGS_KEY) or []
        descriptor = self._registry.resolve(job_type)
        positions = reconcile(stamped, descriptor, args)
        if not positions:
            return positions

        for position in positions:
            if position < len(args):
                args[position] = self._codec.decode(args[position])

        log.debug(
            "job_args_decrypted",
            job_type=descriptor.name if descriptor else str(job_type),
            positions=positions,
        )
        return positions
