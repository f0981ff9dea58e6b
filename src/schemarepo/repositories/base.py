"""Abstract repository interface for subject storage and retrieval."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..exceptions import InvalidSubjectNameError

if TYPE_CHECKING:
    from ..subject import Subject
    from ..validator import Validator

# Names that resolve to the repository directory or its parent
RESERVED_NAMES = frozenset({".", ".."})


class Repository(ABC):
    """Abstract base class for repository implementations.

    A repository is the namespace of subjects. It creates subjects on demand,
    looks them up by name and enumerates them. Subjects are never removed.

    Implementations must make `register` an atomic get-or-create: concurrent
    callers registering the same name all receive the same `Subject` instance.
    A validator passed for a subject that already exists is ignored; the
    subject keeps the validator it was created with.
    """

    # Characters not allowed in subject names (filesystem-unsafe)
    INVALID_NAME_CHARS = frozenset({"/", "\\", ":", "*", "?", "<", ">", "|", "\0"})

    @abstractmethod
    def register(self, name: str, validator: Validator | None = None) -> Subject:
        """Return the subject called `name`, creating it if it does not exist.

        Args:
            name: The subject name.
            validator: Validator to attach when the subject is created. Ignored
                if the subject already exists.

        Returns:
            The existing or newly created subject.

        Raises:
            InvalidSubjectNameError: If `name` is empty, is "." or "..", or
                contains invalid characters.
        """
        raise NotImplementedError

    @abstractmethod
    def lookup(self, name: str) -> Subject | None:
        """Return the subject called `name`, or None if it does not exist."""
        raise NotImplementedError

    @abstractmethod
    def subjects(self) -> list[Subject]:
        """Return a snapshot of all subjects, in creation order."""
        raise NotImplementedError

    def _validate_subject_name(self, name: str) -> None:
        """Validate that a subject name is usable by every backend.

        Raises:
            InvalidSubjectNameError: If name is empty, reserved, or contains
                invalid characters.
        """
        if not name:
            raise InvalidSubjectNameError("Subject name cannot be empty")

        if name in RESERVED_NAMES:
            raise InvalidSubjectNameError(
                f"Subject name '{name}' is reserved",
                suggestions=["Use a name that is not a relative path component"],
            )

        invalid_found = set(name) & self.INVALID_NAME_CHARS
        if invalid_found:
            chars_str = ", ".join(repr(c) for c in sorted(invalid_found))
            raise InvalidSubjectNameError(
                f"Subject name '{name}' contains invalid characters: {chars_str}"
            )
