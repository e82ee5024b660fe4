"""Registry mapping job type names to job descriptors.

Job records carry their job type as a string. The registry turns that
string back into a :class:`JobDescriptor` so the encryption policy and the
``perform`` parameter names can be consulted. A name that cannot be
resolved is a normal miss, never an error: the job type may simply not be
loadable in the current process.
"""

from __future__ import annotations

import importlib
import threading
from typing import Any

from encrypted_args.jobs.models import JobDescriptor, describe, job_type_name
from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.jobs.registry")


def normalize_name(name: str) -> str:
    """Normalise a job type name to dotted form.

    Accepts scoped names (``Billing::ChargeCard``) and leading root
    separators (``::Billing::ChargeCard``, ``.billing.ChargeCard``,
    ``:ChargeCard``).
    """
    return name.strip().replace("::", ".").lstrip(".:")


def _import_job_class(name: str) -> type | None:
    """Import ``package.module.Class`` or ``package.module:Class``."""
    if ":" in name:
        module_name, _, attr_path = name.partition(":")
        candidates = [(module_name, attr_path)]
    else:
        parts = name.split(".")
        candidates = [
            (".".join(parts[:i]), ".".join(parts[i:])) for i in range(len(parts) - 1, 0, -1)
        ]

    for module_name, attr_path in candidates:
        if not module_name or not attr_path:
            continue
        try:
            target: Any = importlib.import_module(module_name)
            for attr in attr_path.split("."):
                target = getattr(target, attr)
        except Exception as e:
            # Broken or missing modules named by queue data are a miss
            log.debug(
                "job_class_import_failed",
                module=module_name,
                error=type(e).__name__,
            )
            continue
        if isinstance(target, type) and hasattr(target, "perform"):
            return target
    return None


class JobRegistry:
    """Lookup table of job types by name.

    Classes are registered under both their qualified name and their
    module-dotted name. Descriptors for job types whose code lives in
    another process can be registered directly.
    """

    def __init__(self, *, allow_import: bool = False) -> None:
        """Initialize the registry.

        Args:
            allow_import: Fall back to importing dotted class paths that
                were never registered. Off by default since job type names
                come from queue data and importing runs module code.
        """
        self._descriptors: dict[str, JobDescriptor] = {}
        self._classes: dict[str, type] = {}
        self._allow_import = allow_import
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len({descriptor.name for descriptor in self._descriptors.values()})

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._descriptors

    def register(self, job_class: type, *aliases: str) -> type:
        """Register a job class. Usable as a class decorator."""
        descriptor = describe(job_class)
        names = {descriptor.name, job_class.__qualname__, *aliases}
        with self._lock:
            for name in names:
                key = normalize_name(name)
                self._bind(key, descriptor)
                self._classes[key] = job_class
        log.debug("job_type_registered", job_type=descriptor.name)
        return job_class

    def register_descriptor(self, descriptor: JobDescriptor, *aliases: str) -> None:
        """Register a job type by its structural description only."""
        with self._lock:
            for name in (descriptor.name, *aliases):
                key = normalize_name(name)
                self._bind(key, descriptor)
                self._classes.pop(key, None)
        log.debug("job_type_registered", job_type=descriptor.name)

    def _bind(self, key: str, descriptor: JobDescriptor) -> None:
        previous = self._descriptors.get(key)
        if previous is not None and previous.name != descriptor.name:
            log.warning(
                "job_type_name_rebound",
                name=key,
                previous=previous.name,
                job_type=descriptor.name,
            )
        self._descriptors[key] = descriptor

    def get_class(self, name: str) -> type | None:
        """Return the registered class for a name, if any."""
        return self._classes.get(normalize_name(name))

    def resolve(self, job_type: Any) -> JobDescriptor | None:
        """Resolve a job class, job instance or job type name.

        Returns:
            The job's descriptor, or None if the job type is unknown.
        """
        if job_type is None:
            return None
        if isinstance(job_type, JobDescriptor):
            return job_type
        if isinstance(job_type, type):
            return self._descriptors.get(normalize_name(job_type_name(job_type))) or describe(
                job_type
            )
        if not isinstance(job_type, str):
            return self.resolve(type(job_type))

        key = normalize_name(job_type)
        descriptor = self._descriptors.get(key)
        if descriptor is not None:
            return descriptor

        if self._allow_import and key:
            job_class = _import_job_class(key)
            if job_class is not None:
                descriptor = describe(job_class)
                with self._lock:
                    self._descriptors[key] = descriptor
                    self._classes[key] = job_class
                return descriptor

        log.debug("job_type_unresolved", job_type=job_type)
        return None
