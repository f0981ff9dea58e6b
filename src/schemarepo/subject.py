"""Subject contract and shared append-only write logic.

A subject is a named, ordered, append-only history of `SchemaEntry` values.
This module defines the abstract `Subject` interface implemented by every
backend and by `ValidatingSubject`, plus `AppendOnlySubject`, which holds the
write rules all shipped backends share:

- Registering the same schema text as the current latest entry is a no-op
  that returns the latest entry.
- `register_if_latest` only writes when the caller's `latest` equals the
  subject's current latest entry (`None` matches an empty subject). A stale
  `latest` yields `None` and never writes.
- Writes are serialized through a per-subject re-entrant lock.

Example:
    >>> from schemarepo.repositories import InMemoryRepository
    >>> subject = InMemoryRepository().register("orders")
    >>> first = subject.register_if_latest("v1", None)
    >>> subject.register_if_latest("v2", first).id
    2
    >>> subject.register_if_latest("v3", first) is None
    True
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence

from .entry import SchemaEntry


class Subject(ABC):
    """Abstract base class for subjects.

    History accessors return entries oldest first. `all_entries` returns an
    immutable snapshot, so it may be iterated any number of times and never
    observes later writes.
    """

    def __init__(self, name: str):
        self._name = name
        self._write_lock = threading.RLock()

    @property
    def name(self) -> str:
        """The subject name, unique within its repository."""
        return self._name

    @property
    def write_lock(self) -> threading.RLock:
        """Re-entrant lock held for the duration of every write."""
        return self._write_lock

    @abstractmethod
    def register(self, schema: str) -> SchemaEntry:
        """Register `schema` as the new latest entry.

        Args:
            schema: The schema text to register.

        Returns:
            The new entry, or the current latest entry if it already holds
            the same schema text.

        Raises:
            SchemaValidationError: If a validator attached to the subject
                rejects the schema.
        """
        raise NotImplementedError

    @abstractmethod
    def register_if_latest(
        self, schema: str, latest: SchemaEntry | None
    ) -> SchemaEntry | None:
        """Register `schema` only if `latest` is still the current latest entry.

        Args:
            schema: The schema text to register.
            latest: The caller's view of the latest entry, or None if the
                caller believes the subject is empty.

        Returns:
            The new entry; the current latest entry if it already holds the
            same schema text; or None if `latest` is stale.

        Raises:
            SchemaValidationError: If a write would occur and a validator
                attached to the subject rejects the schema.
        """
        raise NotImplementedError

    @abstractmethod
    def latest(self) -> SchemaEntry | None:
        """Return the most recent entry, or None if the subject is empty."""
        raise NotImplementedError

    @abstractmethod
    def all_entries(self) -> Sequence[SchemaEntry]:
        """Return a snapshot of every entry, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def lookup_by_id(self, id: int | str) -> SchemaEntry | None:
        """Return the entry with identifier `id`, or None if there is none."""
        raise NotImplementedError

    @abstractmethod
    def lookup_by_schema(self, schema: str) -> SchemaEntry | None:
        """Return the oldest entry holding `schema`, or None if there is none."""
        raise NotImplementedError

    @abstractmethod
    def integral_keys(self) -> bool:
        """Whether identifiers of this subject are integers."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class AppendOnlySubject(Subject):
    """Base class for storage backends.

    Subclasses store entries and implement `_append` and `all_entries`. The
    identifier and precondition logic lives here so every backend applies the
    same rules. `_append` is always called with `write_lock` held.
    """

    @abstractmethod
    def _append(self, entry: SchemaEntry) -> None:
        """Persist `entry` as the new latest entry."""
        raise NotImplementedError

    def register(self, schema: str) -> SchemaEntry:
        with self.write_lock:
            current = self.latest()
            if current is not None and current.same_schema(schema):
                return current
            return self._write(schema, current)

    def register_if_latest(
        self, schema: str, latest: SchemaEntry | None
    ) -> SchemaEntry | None:
        with self.write_lock:
            current = self.latest()
            if current is not None and current.same_schema(schema):
                return current
            if current != latest:
                return None
            return self._write(schema, current)

    def latest(self) -> SchemaEntry | None:
        entries = self.all_entries()
        return entries[-1] if entries else None

    def lookup_by_id(self, id: int | str) -> SchemaEntry | None:
        key = _parse_id(id)
        if key is None:
            return None
        for entry in self.all_entries():
            if entry.id == key:
                return entry
        return None

    def lookup_by_schema(self, schema: str) -> SchemaEntry | None:
        for entry in self.all_entries():
            if entry.same_schema(schema):
                return entry
        return None

    def integral_keys(self) -> bool:
        return True

    def _write(self, schema: str, current: SchemaEntry | None) -> SchemaEntry:
        entry = SchemaEntry(id=(current.id if current else 0) + 1, schema=schema)
        self._append(entry)
        return entry


def _parse_id(id: int | str) -> int | None:
    if isinstance(id, bool):
        return None
    if isinstance(id, int):
        return id
    try:
        return int(id)
    except (TypeError, ValueError):
        return None
