"""Resolve validators from configuration strings.

A reference is either a built-in alias or an import path to a `Validator`
subclass that can be constructed without arguments:

- "accept_all", "reject_all"
- "my_package.validators.BackwardCompatible"
- "my_package.validators:BackwardCompatible"
"""

from __future__ import annotations

import importlib

from ..exceptions import RepositoryConfigError
from .core import Validator
from .rules import AcceptAllValidator, RejectAllValidator

BUILTIN_VALIDATORS: dict[str, type[Validator]] = {
    "accept_all": AcceptAllValidator,
    "reject_all": RejectAllValidator,
}


def resolve_validator(reference: str) -> Validator:
    """Instantiate the validator named by `reference`.

    Args:
        reference: A built-in alias or an import path.

    Returns:
        A new validator instance.

    Raises:
        RepositoryConfigError: If the reference cannot be imported, does not
            name a `Validator` subclass, or cannot be constructed without
            arguments.
    """
    if reference in BUILTIN_VALIDATORS:
        return BUILTIN_VALIDATORS[reference]()

    if ":" in reference:
        module_name, _, attr = reference.partition(":")
    else:
        module_name, _, attr = reference.rpartition(".")
    if not module_name or not attr:
        raise RepositoryConfigError(
            f"Invalid validator reference '{reference}'.",
            suggestions=[
                f"Use one of {sorted(BUILTIN_VALIDATORS)}",
                "Or use an import path such as 'package.module.ClassName'",
            ],
        )

    try:
        target = importlib.import_module(module_name)
        for part in attr.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise RepositoryConfigError(
            f"Cannot import validator '{reference}': {e}"
        ) from e

    if not (isinstance(target, type) and issubclass(target, Validator)):
        raise RepositoryConfigError(
            f"'{reference}' does not name a Validator subclass."
        )

    try:
        return target()
    except TypeError as e:
        raise RepositoryConfigError(
            f"Validator '{reference}' cannot be constructed without arguments: {e}"
        ) from e


def validator_reference(validator: Validator) -> str | None:
    """Return an import path for `validator`'s class.

    Returns None for classes that cannot be imported by name, such as classes
    defined inside a function.
    """
    cls = validator.__class__
    for alias, builtin in BUILTIN_VALIDATORS.items():
        if cls is builtin:
            return alias
    if "<locals>" in cls.__qualname__:
        return None
    return f"{cls.__module__}:{cls.__qualname__}"
