"""Validation framework for gating writes to a subject.

A `Validator` inspects a candidate schema together with the subject's existing
history and either returns normally (accept) or raises
`SchemaValidationError` (reject). Validators are attached to a subject with
`validate_with`, which wraps the subject in a `ValidatingSubject` decorator.
The decorator holds the subject's write lock from validation through append,
so a validator never sees a history that a concurrent write has since
changed.

History is always passed oldest first, in the order of
`Subject.all_entries()`.

Example:
    >>> from schemarepo.exceptions import SchemaValidationError
    >>> from schemarepo.validator import Validator, validate_with
    >>>
    >>> class NoShrinkValidator(Validator):
    ...     def validate(self, schema, entries):
    ...         if entries and len(schema) < len(entries[-1].schema):
    ...             raise SchemaValidationError("Schema may not shrink.")
    >>>
    >>> subject = validate_with(repository.register("orders"), NoShrinkValidator())
    >>> subject.register("a longer schema")
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import overload

from ..entry import SchemaEntry
from ..subject import Subject


class Validator(ABC):
    """Abstract base class for compatibility validators.

    Validators must not modify the subject. They may keep their own
    configuration but should otherwise be stateless, since the same instance
    can be attached to many subjects and called from many threads.

    Example:
        >>> class RejectEverything(Validator):
        ...     def validate(self, schema, entries):
        ...         raise SchemaValidationError("Registrations are closed.")
    """

    @abstractmethod
    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        """Check `schema` against the existing history of a subject.

        Args:
            schema: The candidate schema text.
            entries: Every entry currently in the subject, oldest first.

        Raises:
            SchemaValidationError: If the candidate must not be registered.
                The message should tell the caller why.
        """
        ...

    def shutdown(self) -> None:
        """Release resources such as worker threads. Does nothing by default."""
        return None


class ValidatingSubject(Subject):
    """Subject decorator that validates every write before delegating.

    Reads pass straight through to the wrapped subject. Writes hold the
    wrapped subject's write lock while the validator runs and the entry is
    appended. Any exception raised by the validator propagates unchanged and
    nothing is written.

    `register_if_latest` only validates when a write would actually happen:
    an idempotent match on the latest entry or a stale `latest` both return
    without calling the validator.

    Prefer `validate_with` over constructing this class directly.

    Args:
        subject: The subject to wrap.
        validator: The validator applied to every write.
    """

    def __init__(self, subject: Subject, validator: Validator):
        self._delegate = subject
        self._validator = validator

    @property
    def name(self) -> str:
        return self._delegate.name

    @property
    def write_lock(self) -> threading.RLock:
        return self._delegate.write_lock

    @property
    def delegate(self) -> Subject:
        """The wrapped subject."""
        return self._delegate

    @property
    def validator(self) -> Validator:
        """The validator applied to writes."""
        return self._validator

    def register(self, schema: str) -> SchemaEntry:
        with self.write_lock:
            self._validator.validate(schema, self._delegate.all_entries())
            return self._delegate.register(schema)

    def register_if_latest(
        self, schema: str, latest: SchemaEntry | None
    ) -> SchemaEntry | None:
        with self.write_lock:
            current = self._delegate.latest()
            if current is not None and current.same_schema(schema):
                return current
            if current != latest:
                return None
            self._validator.validate(schema, self._delegate.all_entries())
            return self._delegate.register_if_latest(schema, latest)

    def latest(self) -> SchemaEntry | None:
        return self._delegate.latest()

    def all_entries(self) -> Sequence[SchemaEntry]:
        return self._delegate.all_entries()

    def lookup_by_id(self, id: int | str) -> SchemaEntry | None:
        return self._delegate.lookup_by_id(id)

    def lookup_by_schema(self, schema: str) -> SchemaEntry | None:
        return self._delegate.lookup_by_schema(schema)

    def integral_keys(self) -> bool:
        return self._delegate.integral_keys()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._delegate!r}, "
            f"validator={self._validator.__class__.__name__})"
        )


@overload
def validate_with(subject: Subject, validator: Validator | None) -> Subject: ...


@overload
def validate_with(subject: None, validator: Validator | None) -> None: ...


def validate_with(
    subject: Subject | None, validator: Validator | None
) -> Subject | None:
    """Attach `validator` to `subject`.

    Args:
        subject: The subject to wrap, or None.
        validator: The validator to apply, or None for no validation.

    Returns:
        None if `subject` is None; `subject` itself if `validator` is None;
        otherwise a `ValidatingSubject` wrapping `subject`.
    """
    if subject is None:
        return None
    if validator is None:
        return subject
    return ValidatingSubject(subject, validator)
