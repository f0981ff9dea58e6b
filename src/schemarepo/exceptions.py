"""Custom schemarepo exceptions."""

from __future__ import annotations


class SchemaRepoError(Exception):
    """Base exception for all schemarepo-related errors.

    This is the root exception that all other schemarepo exceptions inherit
    from. It provides enhanced error reporting with suggestions for resolution.

    Attributes:
        suggestions: List of suggested fixes or actions.

    Example:
        >>> raise SchemaRepoError(
        ...     "Subject 'orders' could not be created",
        ...     suggestions=["Check the subject name", "Verify the base path"]
        ... )
    """

    def __init__(
        self,
        message: str,
        suggestions: list[str] | None = None,
    ):
        """Initialize a SchemaRepoError.

        Args:
            message: The error message.
            suggestions: Optional list of suggestions to fix the error.
        """
        super().__init__(message)
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        result = super().__str__()

        if self.suggestions:
            suggestions_text = "; ".join(self.suggestions)
            result += f" | {suggestions_text}"

        return result


# Validation Exceptions
class SchemaValidationError(SchemaRepoError):
    """A candidate schema was rejected by a validator.

    Raised by `Validator.validate` and propagated unchanged through every
    `ValidatingSubject` layer to the caller of `register` or
    `register_if_latest`. The subject is never modified when this is raised.
    """


class SchemaValidationTimeoutError(SchemaValidationError):
    """A validator did not complete within its time limit.

    Raised by `TimeoutValidator`. Treated exactly like any other rejection.
    """


# Repository Exceptions
class RepositoryError(SchemaRepoError):
    """Repository storage errors.

    Raised when a backend fails to read or write subjects or entries.
    """


class RepositoryConnectionError(RepositoryError):
    """The repository storage location is invalid or unreachable."""


class InvalidSubjectNameError(RepositoryError):
    """Subject name is empty or contains unsupported characters."""


# Dependency Exceptions
class MissingDependencyError(RepositoryConnectionError):
    """An optional package needed by the storage location is not installed.

    Raised, for example, when opening an "s3://" repository without `s3fs`.
    """


class DependencyVersionError(RepositoryConnectionError):
    """An installed optional package is older than the supported minimum."""


# Configuration Exceptions
class RepositoryConfigError(SchemaRepoError):
    """Invalid repository configuration.

    Raised when configuration values are missing, have the wrong type, or
    reference a backend or validator that cannot be resolved.
    """
