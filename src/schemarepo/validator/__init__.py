from .core import ValidatingSubject, Validator, validate_with
from .references import BUILTIN_VALIDATORS, resolve_validator, validator_reference
from .rules import (
    AcceptAllValidator,
    ChainValidator,
    RejectAllValidator,
    TimeoutValidator,
)

__all__ = [
    "Validator",
    "ValidatingSubject",
    "validate_with",
    "AcceptAllValidator",
    "RejectAllValidator",
    "ChainValidator",
    "TimeoutValidator",
    "BUILTIN_VALIDATORS",
    "resolve_validator",
    "validator_reference",
]
