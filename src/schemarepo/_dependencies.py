"""Lightweight, cached checks for optional storage dependencies."""

from __future__ import annotations

from functools import lru_cache
import importlib.metadata as md

from .exceptions import (
    DependencyVersionError,
    MissingDependencyError,
)

# fsspec protocols whose implementations live in separate distributions,
# with the oldest release supporting the fsspec floor in pyproject.toml
PROTOCOL_PACKAGES: dict[str, tuple[str, str]] = {
    "s3": ("s3fs", "2023.1.0"),
    "s3a": ("s3fs", "2023.1.0"),
    "gs": ("gcsfs", "2023.1.0"),
    "gcs": ("gcsfs", "2023.1.0"),
    "az": ("adlfs", "2023.1.0"),
    "abfs": ("adlfs", "2023.1.0"),
    "abfss": ("adlfs", "2023.1.0"),
}


@lru_cache(maxsize=None)
def _get_installed_version(package_name: str) -> str | None:
    """Return installed version for `package_name` or `None` if missing."""

    try:
        return md.version(package_name)
    except md.PackageNotFoundError:
        return None


def _normalize_version(version: str) -> tuple[int, ...]:
    """Normalize a dotted version string into a tuple of integers.

    Parsing stops at the first non-numeric segment, so "2024.3.1rc1" compares
    as (2024, 3).
    """

    parts: list[int] = []
    for token in version.split("."):
        if not token.isdigit():
            break
        parts.append(int(token))
    return tuple(parts)


def _meets_min_version(installed: str, minimum: str) -> bool:
    inst = _normalize_version(installed)
    minv = _normalize_version(minimum)
    if inst and minv:
        length = max(len(inst), len(minv))
        inst_pad = inst + (0,) * (length - len(inst))
        minv_pad = minv + (0,) * (length - len(minv))
        return inst_pad >= minv_pad
    return installed >= minimum


def _format_install_hint(package_name: str, min_version: str | None) -> str:
    constraint = f">= {min_version} " if min_version else ""
    return (
        f"Install with: 'pip install {package_name}{constraint}'. "
        f"Or using uv: 'uv add {package_name}{constraint}'."
    )


def ensure_dependency(package_name: str, min_version: str | None = None) -> None:
    """Ensure `package_name` is available and meets `min_version` if given.

    Raises:
        MissingDependencyError: When the required dependency is not available.
        DependencyVersionError: When the required dependency version is below the minimum.
    """

    installed = _get_installed_version(package_name)
    if installed is None:
        hint = _format_install_hint(package_name, min_version)
        needed = f" (>= {min_version})" if min_version else ""
        raise MissingDependencyError(
            f"Dependency '{package_name}'{needed} is required but not installed.\n{hint}"
        )

    if min_version and not _meets_min_version(installed, min_version):
        hint = _format_install_hint(package_name, min_version)
        raise DependencyVersionError(
            f"Dependency '{package_name}' must be >= {min_version}, "
            f"found {installed}.\n{hint}"
        )


def ensure_protocol_dependency(protocol: str) -> None:
    """Ensure the fsspec implementation for `protocol` is installed and recent enough.

    Protocols handled by fsspec itself (local paths, "memory", "file") need
    nothing extra.
    """

    requirement = PROTOCOL_PACKAGES.get(protocol)
    if requirement is not None:
        package_name, min_version = requirement
        ensure_dependency(package_name, min_version)
