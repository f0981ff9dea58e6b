"""Repository configuration and the context object built from it.

A `RepositoryConfig` names the storage backend and the validator strategy.
`create_context` turns it into a `RepositoryContext`, which is passed
explicitly to whatever serves the repository (a REST layer, a job, a test)
instead of living in module-level state.

Configuration can be loaded from YAML:

    backend: filesystem
    path: s3://bucket/schemas/
    validator: my_package.validators:BackwardCompatible
    validator_timeout: 5
    storage_options:
      profile: production

Example:
    >>> from schemarepo.config import config_from_yaml, create_context
    >>>
    >>> with create_context(config_from_yaml("repository.yaml")) as context:
    ...     orders = context.subject("orders")
    ...     orders.register('{"type": "record", "name": "Order"}')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import IO, Any, Literal, cast

import yaml

from .exceptions import RepositoryConfigError
from .repositories import FileSystemRepository, InMemoryRepository, Repository
from .subject import Subject
from .validator import TimeoutValidator, Validator, resolve_validator

BACKENDS = ("memory", "filesystem")


@dataclass(frozen=True)
class RepositoryConfig:
    """Configuration for building a repository.

    Args:
        backend: Storage backend. "memory" keeps everything in process,
            "filesystem" persists to `path` through fsspec. Defaults to "memory".
        path: Base path or URL for the filesystem backend. Required for
            "filesystem", must be unset for "memory".
        validator: Validator reference applied to subjects created through the
            context: a built-in alias ("accept_all", "reject_all") or an import
            path. None disables validation. Defaults to None.
        validator_timeout: Optional time limit in seconds for each validation.
            Requires `validator`.
        storage_options: Extra keyword arguments passed to fsspec.
    """

    backend: Literal["memory", "filesystem"] = "memory"
    path: str | None = None
    validator: str | None = None
    validator_timeout: float | None = None
    storage_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise RepositoryConfigError(
                f"backend must be one of {', '.join(repr(b) for b in BACKENDS)}, "
                f"got {self.backend!r}."
            )

        if self.backend == "filesystem" and not self.path:
            raise RepositoryConfigError("path is required for the filesystem backend.")
        if self.backend == "memory" and self.path:
            raise RepositoryConfigError("path is not supported by the memory backend.")
        if self.backend == "memory" and self.storage_options:
            raise RepositoryConfigError(
                "storage_options are not supported by the memory backend."
            )

        if self.validator_timeout is not None:
            if self.validator is None:
                raise RepositoryConfigError("validator_timeout requires a validator.")
            if isinstance(self.validator_timeout, bool) or not isinstance(
                self.validator_timeout, (int, float)
            ):
                raise RepositoryConfigError("validator_timeout must be a number.")
            if self.validator_timeout <= 0:
                raise RepositoryConfigError("validator_timeout must be positive.")

        if not isinstance(self.storage_options, dict):
            raise RepositoryConfigError("storage_options must be a mapping.")

    def build_validator(self) -> Validator | None:
        """Instantiate the configured validator, or None if there is none."""
        if self.validator is None:
            return None
        validator = resolve_validator(self.validator)
        if self.validator_timeout is not None:
            validator = TimeoutValidator(validator, timeout=self.validator_timeout)
        return validator


@dataclass(frozen=True)
class RepositoryContext:
    """A configured repository together with its validator.

    Args:
        repository: The repository serving subjects.
        validator: Validator attached to subjects created through `subject`.
    """

    repository: Repository
    validator: Validator | None = None

    def subject(self, name: str) -> Subject:
        """Return the subject called `name`, creating it with the configured validator."""
        return self.repository.register(name, self.validator)

    def lookup(self, name: str) -> Subject | None:
        return self.repository.lookup(name)

    def close(self) -> None:
        """Shut down the validator, releasing any worker threads it owns."""
        if self.validator is not None:
            self.validator.shutdown()

    def __enter__(self) -> RepositoryContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def config_from_dict(data: dict[str, Any]) -> RepositoryConfig:
    """Build a `RepositoryConfig` from a dictionary.

    Raises:
        RepositoryConfigError: If the dictionary has unknown keys or invalid values.
    """
    known = {f.name for f in fields(RepositoryConfig)}
    unknown = set(data) - known
    if unknown:
        raise RepositoryConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            suggestions=[f"Supported keys are: {', '.join(sorted(known))}"],
        )
    data = {k: v for k, v in data.items() if v is not None}
    return RepositoryConfig(**data)


def config_from_yaml_string(content: str) -> RepositoryConfig:
    """Build a `RepositoryConfig` from YAML content.

    An empty document yields the default configuration.

    Raises:
        RepositoryConfigError: If the YAML is invalid or does not parse to a
            dictionary.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RepositoryConfigError(f"Invalid configuration YAML: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RepositoryConfigError(
            "Loaded YAML content did not parse to a dictionary."
        )
    return config_from_dict(cast(dict[str, Any], data))


def config_from_yaml(source: str | Path | IO[str]) -> RepositoryConfig:
    """Build a `RepositoryConfig` from a YAML file path or text stream."""
    if isinstance(source, (str, Path)):
        return config_from_yaml_string(Path(source).read_text(encoding="utf-8"))
    return config_from_yaml_string(source.read())


def create_repository(
    config: RepositoryConfig, logger: logging.Logger | None = None
) -> Repository:
    """Instantiate the repository backend named by `config`."""
    if config.backend == "filesystem":
        return FileSystemRepository(
            cast(str, config.path), logger=logger, **config.storage_options
        )
    return InMemoryRepository(logger=logger)


def create_context(
    config: RepositoryConfig | None = None, logger: logging.Logger | None = None
) -> RepositoryContext:
    """Build a `RepositoryContext` from `config` (default configuration if None)."""
    config = config or RepositoryConfig()
    return RepositoryContext(
        repository=create_repository(config, logger=logger),
        validator=config.build_validator(),
    )
