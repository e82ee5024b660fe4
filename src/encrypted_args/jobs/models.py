"""Job base class, structural job descriptors and job record keys.

A job record is the plain dict handed to the queue transport::

    {"class": "billing.jobs.ChargeCard", "queue": "default",
     "args": [...], "encrypted_args": [1]}

Only ``args`` and the reserved ``encrypted_args`` key are ever touched by
the encryption middleware.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Job record keys
CLASS_KEY = "class"
QUEUE_KEY = "queue"
ARGS_KEY = "args"
ENCRYPTED_ARGS_KEY = "encrypted_args"

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class _Unset(Enum):
    UNSET = "unset"

    def __repr__(self) -> str:
        return "UNSET"


# Marks a job type that declares no encryption behaviour at all
UNSET = _Unset.UNSET


class Job:
    """Base class for background jobs.

    Subclasses implement :meth:`perform` and may declare which positional
    arguments are sensitive::

        class ChargeCard(Job):
            encrypted_args = ["card_number"]

            def perform(self, account_id, card_number):
                ...

    Recognised declarations are ``True`` (every argument), ``False`` (no
    argument), a list of argument positions, a list of ``perform``
    parameter names, or a mix of positions and names.
    """

    encrypted_args: Any = UNSET

    def perform(self, *args: Any) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class JobDescriptor:
    """Structural description of a job type.

    Attributes:
        name: Fully qualified job type name.
        parameter_names: Ordered positional parameter names of ``perform``.
        declaration: The raw ``encrypted_args`` declaration.
    """

    name: str
    parameter_names: tuple[str, ...] = ()
    declaration: Any = UNSET

    def parameter_index(self, name: str) -> int | None:
        """Return the position of a named parameter, or None if absent."""
        try:
            return self.parameter_names.index(name)
        except ValueError:
            return None


def job_type_name(job_class: type) -> str:
    """Return the dotted name a job class is enqueued under."""
    return f"{job_class.__module__}.{job_class.__qualname__}"


def perform_parameter_names(job_class: type) -> tuple[str, ...]:
    """Return the positional parameter names of a job class's ``perform``.

    ``self`` is excluded. Keyword-only and variadic parameters cannot be
    addressed by position and are skipped.
    """
    perform = getattr(job_class, "perform", None)
    if perform is None:
        return ()
    try:
        signature = inspect.signature(perform)
    except (TypeError, ValueError):
        return ()

    names = [p.name for p in signature.parameters.values() if p.kind in _POSITIONAL_KINDS]
    if inspect.isfunction(inspect.getattr_static(job_class, "perform", None)):
        # Plain function accessed on the class still lists ``self``
        names = names[1:]
    return tuple(names)


def describe(job_class: type) -> JobDescriptor:
    """Build a descriptor from a job class."""
    return JobDescriptor(
        name=job_type_name(job_class),
        parameter_names=perform_parameter_names(job_class),
        declaration=getattr(job_class, "encrypted_args", UNSET),
    )
