"""Immutable schema entries stored in a subject's history."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SchemaEntry:
    """One identified version of a schema within a subject.

    Entries are created only by subject backends. Identifiers are subject-local
    integers assigned in registration order starting at 1.

    Two entries compare equal with `==` only when both `id` and `schema` match.
    Use `same_schema` to compare content alone.

    Args:
        id: Subject-local identifier.
        schema: The schema text as registered.
    """

    id: int
    schema: str

    def same_schema(self, other: SchemaEntry | str) -> bool:
        """Return True if `other` carries the same schema text, ignoring ids."""
        if isinstance(other, SchemaEntry):
            return self.schema == other.schema
        return self.schema == other

    def __str__(self) -> str:
        return f"{self.id}\t{self.schema}"
