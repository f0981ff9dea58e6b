"""FileSystem-based repository implementation using fsspec.

This module provides a durable repository that works across local
filesystems, S3, GCS and Azure Blob Storage.

Example:
    >>> from schemarepo.repositories import FileSystemRepository
    >>>
    >>> # Local filesystem
    >>> repository = FileSystemRepository("/path/to/repository")
    >>>
    >>> # S3 (requires s3fs)
    >>> repository = FileSystemRepository("s3://bucket/repository/")
    >>>
    >>> orders = repository.register("orders")
    >>> entry = orders.register('{"type": "record", "name": "Order"}')
    >>> print(f"Registered as id {entry.id}")
"""

from __future__ import annotations

# pyright: reportUnknownArgumentType=none, reportUnknownMemberType=none
# pyright: reportUnknownVariableType=none

import logging
import threading
import urllib.parse
from collections.abc import Callable, Sequence
from typing import Any

import fsspec  # type: ignore[import]
import yaml
from fsspec.utils import get_protocol  # type: ignore[import]

from .._dependencies import ensure_protocol_dependency
from ..entry import SchemaEntry
from ..exceptions import RepositoryConnectionError, RepositoryError
from ..subject import AppendOnlySubject, Subject
from ..validator import Validator, resolve_validator, validate_with, validator_reference
from .base import Repository

SUBJECT_FILE = "subject.yaml"
VERSIONS_DIR = "versions"


class FileSystemSubject(AppendOnlySubject):
    """Subject whose entries are stored as one YAML file per version.

    The full history is read when the subject is opened and kept in memory;
    every append writes its file before it becomes visible to readers.

    Args:
        name: The subject name.
        fs: The fsspec filesystem holding the subject.
        subject_path: Directory of the subject.
        entries: Entries already stored, oldest first.
        logger: Logger for subject operations.
    """

    def __init__(
        self,
        name: str,
        fs: Any,
        subject_path: str,
        entries: Sequence[SchemaEntry] = (),
        logger: logging.Logger | None = None,
    ):
        super().__init__(name)
        self.fs = fs
        self.subject_path = subject_path
        self.logger = logger or logging.getLogger("schemarepo.repositories.filesystem")
        self._entries: tuple[SchemaEntry, ...] = tuple(entries)

    @property
    def versions_path(self) -> str:
        return f"{self.subject_path}/{VERSIONS_DIR}"

    def all_entries(self) -> Sequence[SchemaEntry]:
        return self._entries

    def _append(self, entry: SchemaEntry) -> None:
        file_path = f"{self.versions_path}/{entry.id}.yaml"
        # Version files only appear complete; readers ignore the temporary name.
        tmp_path = f"{self.versions_path}/.{entry.id}.yaml.tmp"
        try:
            if self.fs.exists(file_path):
                raise RepositoryError(
                    f"Version {entry.id} of subject '{self.name}' already exists on disk",
                    suggestions=["Only one process may write to a repository path"],
                )
            self.fs.makedirs(self.versions_path, exist_ok=True)
            with self.fs.open(tmp_path, "w") as f:
                f.write(_serialize_entry(entry))
            self.fs.mv(tmp_path, file_path)
        except RepositoryError:
            raise
        except Exception as e:
            self._discard(tmp_path)
            raise RepositoryError(
                f"Failed to write version {entry.id} of subject '{self.name}': {e}"
            ) from e

        self._entries = self._entries + (entry,)
        self.logger.info(f"Registered '{self.name}' version {entry.id}")

    def _discard(self, path: str) -> None:
        """Remove a partially written file, logging if that fails too."""
        try:
            if self.fs.exists(path):
                self.fs.rm(path)
        except Exception as e:
            self.logger.warning(f"Could not remove partial file '{path}': {e}")


class FileSystemRepository(Repository):
    """Filesystem-based repository using fsspec for multi-cloud support.

    Stores subjects in a simple directory structure:

        {base_path}/
        └── {url_encoded_subject_name}/
            ├── subject.yaml
            └── versions/
                ├── 1.yaml
                ├── 2.yaml
                └── 3.yaml

    `subject.yaml` records the subject name and, when the subject was created
    with a validator, a reference to the validator class. The reference is
    resolved again when the repository is reopened so the subject keeps its
    validation.

    Thread Safety:
        Writes are serialized within one process. Concurrent writers in
        different processes are not coordinated; ensure only one process has
        write access to a repository path.

    Args:
        base_path: Base path for the repository. Can be local path or cloud URL:
            - Local: "/path/to/repository"
            - S3: "s3://bucket/repository/"
            - GCS: "gs://bucket/repository/"
            - Azure: "az://container/repository/"
        logger: Optional logger for repository operations. If None, uses
            the "schemarepo.repositories.filesystem" logger.
        validator_resolver: Callable turning a stored validator reference back
            into a validator. Defaults to `resolve_validator`.
        **fsspec_kwargs: Additional arguments passed to fsspec for authentication
            and configuration (e.g., profile="production" for S3).

    Raises:
        RepositoryConnectionError: If the base path is invalid or inaccessible.
        RepositoryError: If stored subjects cannot be read.
    """

    def __init__(
        self,
        base_path: str,
        logger: logging.Logger | None = None,
        validator_resolver: Callable[[str], Validator] = resolve_validator,
        **fsspec_kwargs: Any,
    ):
        self.logger = logger or logging.getLogger("schemarepo.repositories.filesystem")
        self._validator_resolver = validator_resolver

        ensure_protocol_dependency(get_protocol(base_path))
        try:
            fs_obj, resolved_base_path = fsspec.core.url_to_fs(base_path, **fsspec_kwargs)
            fs_obj.makedirs(resolved_base_path, exist_ok=True)
        except Exception as e:
            raise RepositoryConnectionError(
                f"Failed to connect to repository at '{base_path}': {e}"
            ) from e

        self.fs = fs_obj
        self.base_path = resolved_base_path.rstrip("/")
        self._subjects: dict[str, Subject] = {}
        self._lock = threading.Lock()

        self._load_subjects()
        self.logger.info(
            f"Initialized FileSystemRepository at: {self.base_path} "
            f"({len(self._subjects)} subjects)"
        )

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

            subject_path = self._subject_path(name)
            metadata: dict[str, Any] = {"name": name}
            if validator is not None:
                reference = validator_reference(validator)
                if reference is None:
                    self.logger.warning(
                        f"Validator {validator.__class__.__qualname__} for subject "
                        f"'{name}' cannot be referenced by import path and will not "
                        "be restored when the repository is reopened."
                    )
                else:
                    metadata["validator"] = reference

            try:
                self.fs.makedirs(f"{subject_path}/{VERSIONS_DIR}", exist_ok=True)
                with self.fs.open(f"{subject_path}/{SUBJECT_FILE}", "w") as f:
                    f.write(yaml.safe_dump(metadata, default_flow_style=False, sort_keys=False))
            except Exception as e:
                raise RepositoryError(f"Failed to create subject '{name}': {e}") from e

            subject = validate_with(
                FileSystemSubject(name, self.fs, subject_path, logger=self.logger),
                validator,
            )
            self._subjects[name] = subject
            self.logger.info(f"Created subject '{name}'")
            return subject

    def lookup(self, name: str) -> Subject | None:
        return self._subjects.get(name)

    def subjects(self) -> list[Subject]:
        """Return a snapshot of all subjects, sorted by name."""
        with self._lock:
            return [self._subjects[name] for name in sorted(self._subjects)]

    # Private helper methods

    def _subject_path(self, name: str) -> str:
        return f"{self.base_path}/{urllib.parse.quote(name, safe='')}"

    def _load_subjects(self) -> None:
        """Open every subject stored under the base path."""
        try:
            paths = self.fs.ls(self.base_path, detail=False)
        except Exception as e:
            raise RepositoryError(
                f"Failed to list subjects in '{self.base_path}': {e}"
            ) from e

        for path in paths:
            path = path.rstrip("/")
            metadata_path = f"{path}/{SUBJECT_FILE}"
            if not self.fs.exists(metadata_path):
                self.logger.debug(f"Skipping non-subject path: {path}")
                continue
            subject = self._open_subject(path, metadata_path)
            self._subjects[subject.name] = subject

    def _open_subject(self, subject_path: str, metadata_path: str) -> Subject:
        try:
            with self.fs.open(metadata_path, "r") as f:
                metadata = yaml.safe_load(f.read())
        except Exception as e:
            raise RepositoryError(
                f"Failed to read subject metadata '{metadata_path}': {e}"
            ) from e

        if not isinstance(metadata, dict) or not metadata.get("name"):
            raise RepositoryError(f"Invalid subject metadata in '{metadata_path}'")

        name = str(metadata["name"])
        validator = None
        if metadata.get("validator"):
            try:
                validator = self._validator_resolver(metadata["validator"])
            except Exception as e:
                raise RepositoryError(
                    f"Failed to restore validator for subject '{name}': {e}",
                    suggestions=["Pass a validator_resolver that can build it"],
                ) from e

        entries = self._read_entries(name, f"{subject_path}/{VERSIONS_DIR}")
        self.logger.debug(f"Opened subject '{name}' with {len(entries)} versions")
        return validate_with(
            FileSystemSubject(name, self.fs, subject_path, entries, logger=self.logger),
            validator,
        )

    def _read_entries(self, name: str, versions_path: str) -> list[SchemaEntry]:
        """Read all versions of a subject, oldest first."""
        try:
            if not self.fs.exists(versions_path):
                return []
            files = self.fs.ls(versions_path, detail=False)
        except Exception as e:
            raise RepositoryError(f"Failed to list versions for '{name}': {e}") from e

        versions: list[int] = []
        for file_path in files:
            filename = file_path.split("/")[-1]
            if filename.endswith(".yaml"):
                try:
                    versions.append(int(filename[:-5]))  # Remove .yaml extension
                except ValueError:
                    self.logger.warning(f"Skipping non-version file: {filename}")
        versions.sort()

        entries = []
        for version in versions:
            file_path = f"{versions_path}/{version}.yaml"
            try:
                with self.fs.open(file_path, "r") as f:
                    entry = _deserialize_entry(f.read())
            except Exception as e:
                raise RepositoryError(
                    f"Failed to read version {version} of '{name}': {e}"
                ) from e
            if entry.id != version:
                raise RepositoryError(
                    f"Version file '{file_path}' holds id {entry.id}, expected {version}"
                )
            entries.append(entry)
        return entries


def _serialize_entry(entry: SchemaEntry) -> str:
    return yaml.safe_dump(
        {"id": entry.id, "schema": entry.schema},
        default_flow_style=False,
        sort_keys=False,
    )


def _deserialize_entry(content: str) -> SchemaEntry:
    data = yaml.safe_load(content)
    if not isinstance(data, dict) or "id" not in data or "schema" not in data:
        raise ValueError("Version file must contain 'id' and 'schema' keys.")
    return SchemaEntry(id=int(data["id"]), schema=str(data["schema"]))
