"""In-memory repository implementation.

Nothing is persisted; the repository and its subjects live as long as the
process holds a reference to them. This is the default backend and the one
used in tests.

Example:
    >>> from schemarepo.repositories import InMemoryRepository
    >>> from schemarepo.validator import AcceptAllValidator
    >>>
    >>> repository = InMemoryRepository()
    >>> orders = repository.register("orders", AcceptAllValidator())
    >>> entry = orders.register('{"type": "record", "name": "Order"}')
    >>> orders.latest() == entry
    True
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from ..entry import SchemaEntry
from ..subject import AppendOnlySubject, Subject
from ..validator import Validator, validate_with
from .base import Repository


class InMemorySubject(AppendOnlySubject):
    """Subject backed by a list of entries.

    Readers receive tuple snapshots, so iteration never races with appends.
    """

    def __init__(self, name: str):
        super().__init__(name)
        self._entries: tuple[SchemaEntry, ...] = ()

    def _append(self, entry: SchemaEntry) -> None:
        # Rebinding the tuple is atomic; readers see the old or the new history.
        self._entries = self._entries + (entry,)

    def all_entries(self) -> Sequence[SchemaEntry]:
        return self._entries


class InMemoryRepository(Repository):
    """Repository holding subjects in a dictionary.

    Args:
        subject_factory: Callable that builds the backing subject for a new
            name. Defaults to `InMemorySubject`.
        logger: Optional logger for repository operations. If None, uses
            the "schemarepo.repositories.memory" logger.
    """

    def __init__(
        self,
        subject_factory: Callable[[str], Subject] = InMemorySubject,
        logger: logging.Logger | None = None,
    ):
        self.logger = logger or logging.getLogger("schemarepo.repositories.memory")
        self._subject_factory = subject_factory
        self._subjects: dict[str, Subject] = {}
        self._lock = threading.Lock()

    def register(self, name: str, validator: Validator | None = None) -> Subject:
        self._validate_subject_name(name)
        with self._lock:
            existing = self._subjects.get(name)
            if existing is not None:
                if validator is not None:
                    self.logger.debug(
                        f"Subject '{name}' already exists. Ignoring supplied validator."
                    )
                return existing

            subject = validate_with(self._subject_factory(name), validator)
            self._subjects[name] = subject
            self.logger.info(f"Created subject '{name}'")
            return subject

    def lookup(self, name: str) -> Subject | None:
        return self._subjects.get(name)

    def subjects(self) -> list[Subject]:
        with self._lock:
            return list(self._subjects.values())
