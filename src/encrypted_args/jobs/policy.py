"""Resolve a job type's encryption policy into argument positions.

A job type declares its policy once, in its ``encrypted_args`` attribute.
For each call that declaration is resolved into the sorted list of
argument positions to encrypt. That list is the only form stored on the
job record, so the worker does not need to agree with the enqueuing
process about how the policy was declared.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from encrypted_args.exceptions import PolicyError
from encrypted_args.jobs.models import UNSET, JobDescriptor
from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.jobs.policy")


class PolicyKind(str, Enum):
    """How a job type selects the arguments to encrypt."""

    UNSET = "unset"  # no encryption behaviour
    ALL = "all"
    NONE = "none"
    BY_POSITION = "by_position"
    BY_NAME = "by_name"
    MIXED = "mixed"  # positions and names


@dataclass(frozen=True)
class EncryptionPolicy:
    """Parsed form of an ``encrypted_args`` declaration.

    Attributes:
        kind: How arguments are selected.
        positions: Declared argument positions.
        names: Declared ``perform`` parameter names, in declaration order.
    """

    kind: PolicyKind
    positions: frozenset[int] = frozenset()
    names: tuple[str, ...] = ()

    @classmethod
    def parse(cls, declaration: Any) -> EncryptionPolicy:
        """Parse a declaration.

        ``True`` selects every argument, ``False`` none. A string names one
        parameter. A list may mix positions and parameter names; boolean
        entries are legacy per-position flags. ``None`` and ``UNSET`` mean
        nothing was declared.

        Raises:
            PolicyError: If the declaration has an unsupported shape.
        """
        if isinstance(declaration, EncryptionPolicy):
            return declaration
        if declaration is UNSET or declaration is None:
            return cls(PolicyKind.UNSET)
        if declaration is True:
            return cls(PolicyKind.ALL)
        if declaration is False:
            return cls(PolicyKind.NONE)
        if isinstance(declaration, Mapping):
            raise PolicyError("Mapping-based argument encryption is no longer supported.")
        if isinstance(declaration, (str, int)):
            declaration = [declaration]
        elif not isinstance(declaration, Iterable):
            raise PolicyError(
                f"Unsupported encrypted_args declaration: {type(declaration).__name__}"
            )

        positions: set[int] = set()
        names: list[str] = []
        for index, entry in enumerate(declaration):
            if isinstance(entry, bool):
                if entry:
                    positions.add(index)
            elif isinstance(entry, int):
                if entry < 0:
                    raise PolicyError(f"Encrypted arg positions must not be negative: {entry}")
                positions.add(entry)
            elif isinstance(entry, str):
                if entry not in names:
                    names.append(entry)
            else:
                raise PolicyError("Encrypted args must be specified as integers or names.")

        if names and positions:
            kind = PolicyKind.MIXED
        elif names:
            kind = PolicyKind.BY_NAME
        else:
            kind = PolicyKind.BY_POSITION
        return cls(kind, frozenset(positions), tuple(names))

    @property
    def is_unset(self) -> bool:
        return self.kind is PolicyKind.UNSET

    def resolve(self, parameter_names: Sequence[str], args: Sequence[Any]) -> list[int] | None:
        """Resolve the policy for one call.

        Declared positions are kept even when out of range for ``args``.
        Names missing from ``parameter_names`` are dropped.

        Returns:
            Sorted argument positions, or None for an unset policy.
        """
        if self.kind is PolicyKind.UNSET:
            return None
        if self.kind is PolicyKind.NONE:
            return []
        if self.kind is PolicyKind.ALL:
            return list(range(len(args)))

        resolved = set(self.positions)
        for name in self.names:
            if name in parameter_names:
                resolved.add(list(parameter_names).index(name))
        return sorted(resolved)


def resolve(
    declaration: Any, parameter_names: Sequence[str], args: Sequence[Any]
) -> list[int] | None:
    """Resolve a declaration into the argument positions to encrypt.

    Returns None when nothing was declared, so callers can tell "no policy"
    apart from "encrypt nothing".

    Raises:
        PolicyError: If the declaration has an unsupported shape.
    """
    return EncryptionPolicy.parse(declaration).resolve(parameter_names, args)


def resolve_for(descriptor: JobDescriptor | None, args: Sequence[Any]) -> list[int] | None:
    """Resolve the policy a job type declares for one call."""
    if descriptor is None:
        return None
    return resolve(descriptor.declaration, descriptor.parameter_names, args)


def is_position_list(value: Any) -> bool:
    """Check if a stored value is a list of non-negative argument positions."""
    if not isinstance(value, (list, tuple)):
        return False
    return all(isinstance(v, int) and not isinstance(v, bool) and v >= 0 for v in value)


def reconcile(
    stamped: Any, descriptor: JobDescriptor | None, args: Sequence[Any]
) -> list[int] | None:
    """Determine which positions of a dequeued job are encrypted.

    The positions stamped on the job record win when they are a list of
    non-negative integers. Anything else is a legacy or malformed value:
    the policy the job type currently declares is resolved again, and if
    the job type declares nothing, the legacy value itself is read as a
    declaration.

    Returns:
        Sorted argument positions, or None if nothing is encrypted.

    Raises:
        PolicyError: If the job type's current declaration is malformed.
    """
    if stamped is None:
        return None
    if is_position_list(stamped):
        return sorted(set(stamped))

    job_type = descriptor.name if descriptor else None
    positions = resolve_for(descriptor, args)
    if positions is not None:
        log.info("legacy_encrypted_args_reresolved", job_type=job_type, source="job_type")
        return positions

    parameter_names = descriptor.parameter_names if descriptor else ()
    try:
        positions = resolve(stamped, parameter_names, args)
    except PolicyError as e:
        log.warning("legacy_encrypted_args_unreadable", job_type=job_type, error=str(e))
        return None
    log.info("legacy_encrypted_args_reresolved", job_type=job_type, source="job_record")
    return positions
