"""Built-in validator strategies.

These validators carry no schema-format knowledge. They cover the common
deployment policies (open, closed, layered, time-limited) and serve as
examples for implementing compatibility validators.

Example:
    >>> from schemarepo.validator import ChainValidator, TimeoutValidator
    >>>
    >>> validator = TimeoutValidator(
    ...     ChainValidator([MyAvroBackwardValidator(), MyNamingValidator()]),
    ...     timeout=2.0,
    ... )
    >>> subject = repository.register("orders", validator)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from ..entry import SchemaEntry
from ..exceptions import SchemaValidationError, SchemaValidationTimeoutError
from .core import Validator


class AcceptAllValidator(Validator):
    """Accept every schema."""

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        return None


class RejectAllValidator(Validator):
    """Reject every schema, for subjects that are closed to new versions."""

    def __init__(self, reason: str = "Subject does not accept new schemas."):
        self.reason = reason

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        raise SchemaValidationError(self.reason)


class ChainValidator(Validator):
    """Run several validators in order.

    The first rejection propagates and the remaining validators are not run.

    Args:
        validators: Validators to apply, in order.
    """

    def __init__(self, validators: Iterable[Validator]):
        self.validators = list(validators)

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        for validator in self.validators:
            validator.validate(schema, entries)

    def shutdown(self) -> None:
        for validator in self.validators:
            validator.shutdown()


class TimeoutValidator(Validator):
    """Run a validator with a time limit.

    A validator that does not finish within `timeout` seconds is treated as a
    rejection and `SchemaValidationTimeoutError` is raised. The timed-out call
    keeps running on its worker thread until it returns; its result is
    discarded.

    Worker threads are not daemons, so the interpreter waits for running
    calls at exit. Call `shutdown` (or close the owning `RepositoryContext`)
    when the validator is no longer needed.

    Args:
        validator: The validator to run.
        timeout: Time limit in seconds. Must be positive.
        max_workers: Size of the worker pool shared by all calls through this
            instance.
    """

    def __init__(self, validator: Validator, timeout: float, max_workers: int = 4):
        if timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds.")
        self.validator = validator
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="schemarepo-validator"
        )

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        future = self._executor.submit(self.validator.validate, schema, entries)
        try:
            future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise SchemaValidationTimeoutError(
                f"{self.validator.__class__.__name__} did not complete within "
                f"{self.timeout} seconds.",
                suggestions=["Retry the registration", "Increase validator_timeout"],
            ) from e

    def shutdown(self) -> None:
        """Stop accepting calls and drop queued ones, then shut down the wrapped validator.

        Running calls are not interrupted.
        """
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.validator.shutdown()
