from __future__ import annotations

import threading
from collections.abc import Sequence

import pytest

from schemarepo.entry import SchemaEntry
from schemarepo.exceptions import SchemaValidationError, SchemaValidationTimeoutError
from schemarepo.validator.core import Validator
from schemarepo.validator.rules import (
    AcceptAllValidator,
    ChainValidator,
    RejectAllValidator,
    TimeoutValidator,
)

HISTORY = (SchemaEntry(1, "foo"), SchemaEntry(2, "bar"))


class CountingValidator(Validator):
    def __init__(self) -> None:
        self.count = 0

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        self.count += 1


class BlockingValidator(Validator):
    def __init__(self) -> None:
        self.release = threading.Event()

    def validate(self, schema: str, entries: Sequence[SchemaEntry]) -> None:
        self.release.wait(timeout=5)


class TestAcceptAllValidator:
    def test_accepts(self):
        AcceptAllValidator().validate("baz", HISTORY)


class TestRejectAllValidator:
    def test_rejects_with_default_reason(self):
        with pytest.raises(SchemaValidationError, match="does not accept"):
            RejectAllValidator().validate("baz", HISTORY)

    def test_rejects_with_custom_reason(self):
        with pytest.raises(SchemaValidationError, match="frozen"):
            RejectAllValidator("Subject is frozen.").validate("baz", ())


class TestChainValidator:
    def test_runs_all_validators(self):
        first, second = CountingValidator(), CountingValidator()
        ChainValidator([first, second]).validate("baz", HISTORY)
        assert (first.count, second.count) == (1, 1)

    def test_stops_at_first_rejection(self):
        after = CountingValidator()
        chain = ChainValidator([RejectAllValidator("nope"), after])
        with pytest.raises(SchemaValidationError, match="nope"):
            chain.validate("baz", HISTORY)
        assert after.count == 0

    def test_empty_chain_accepts(self):
        ChainValidator([]).validate("baz", HISTORY)


class TestTimeoutValidator:
    def test_passes_fast_validator(self):
        inner = CountingValidator()
        validator = TimeoutValidator(inner, timeout=1.0)
        validator.validate("baz", HISTORY)
        assert inner.count == 1
        validator.shutdown()

    def test_propagates_rejection(self):
        validator = TimeoutValidator(RejectAllValidator("nope"), timeout=1.0)
        with pytest.raises(SchemaValidationError, match="nope") as excinfo:
            validator.validate("baz", HISTORY)
        assert not isinstance(excinfo.value, SchemaValidationTimeoutError)
        validator.shutdown()

    def test_slow_validator_is_rejected(self):
        inner = BlockingValidator()
        validator = TimeoutValidator(inner, timeout=0.05)
        try:
            with pytest.raises(SchemaValidationTimeoutError) as excinfo:
                validator.validate("baz", HISTORY)
            assert isinstance(excinfo.value, SchemaValidationError)
            assert "BlockingValidator" in str(excinfo.value)
        finally:
            inner.release.set()
            validator.shutdown()

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_rejects_non_positive_timeout(self, timeout: float):
        with pytest.raises(ValueError):
            TimeoutValidator(AcceptAllValidator(), timeout=timeout)


class ShutdownRecorder(AcceptAllValidator):
    def __init__(self) -> None:
        self.shut_down = False

    def shutdown(self) -> None:
        self.shut_down = True


class TestShutdown:
    def test_default_shutdown_is_a_no_op(self):
        validator = AcceptAllValidator()
        validator.shutdown()
        validator.validate("baz", HISTORY)

    def test_chain_forwards_shutdown(self):
        first, second = ShutdownRecorder(), ShutdownRecorder()
        ChainValidator([first, second]).shutdown()
        assert first.shut_down and second.shut_down

    def test_timeout_validator_stops_pool_and_forwards(self):
        inner = ShutdownRecorder()
        validator = TimeoutValidator(inner, timeout=1.0)
        validator.shutdown()
        assert inner.shut_down
        with pytest.raises(RuntimeError):
            validator.validate("baz", HISTORY)
