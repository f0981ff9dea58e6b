from .config import (
    RepositoryConfig,
    RepositoryContext,
    config_from_dict,
    config_from_yaml,
    config_from_yaml_string,
    create_context,
    create_repository,
)
from .entry import SchemaEntry
from .exceptions import SchemaRepoError, SchemaValidationError
from .repositories import FileSystemRepository, InMemoryRepository, Repository
from .subject import Subject
from .validator import ValidatingSubject, Validator, validate_with

__all__ = [
    "SchemaEntry",
    "Subject",
    "Repository",
    "InMemoryRepository",
    "FileSystemRepository",
    "Validator",
    "ValidatingSubject",
    "validate_with",
    "SchemaRepoError",
    "SchemaValidationError",
    "RepositoryConfig",
    "RepositoryContext",
    "config_from_dict",
    "config_from_yaml",
    "config_from_yaml_string",
    "create_context",
    "create_repository",
]
