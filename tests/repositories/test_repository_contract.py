"""Behavior every repository backend must share."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from schemarepo.entry import SchemaEntry
from schemarepo.exceptions import InvalidSubjectNameError, SchemaValidationError
from schemarepo.repositories import FileSystemRepository, InMemoryRepository, Repository
from schemarepo.subject import Subject
from schemarepo.validator import AcceptAllValidator, RejectAllValidator, ValidatingSubject


@pytest.fixture(params=["memory", "filesystem"])
def repository(request, tmp_path: Path) -> Repository:
    if request.param == "memory":
        return InMemoryRepository()
    return FileSystemRepository(str(tmp_path / "repo"))


class TestRegister:
    def test_creates_subject(self, repository: Repository):
        subject = repository.register("orders")
        assert subject.name == "orders"
        assert subject.latest() is None
        assert not isinstance(subject, ValidatingSubject)

    def test_returns_existing_subject(self, repository: Repository):
        first = repository.register("orders")
        assert repository.register("orders") is first

    def test_wraps_new_subject_with_validator(self, repository: Repository):
        subject = repository.register("orders", RejectAllValidator())
        assert isinstance(subject, ValidatingSubject)
        with pytest.raises(SchemaValidationError):
            subject.register("foo")
        assert subject.latest() is None

    def test_ignores_validator_for_existing_subject(self, repository: Repository):
        first = repository.register("orders", AcceptAllValidator())
        again = repository.register("orders", RejectAllValidator())
        assert again is first
        assert again.register("foo") is not None

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "a:b", "what?"])
    def test_rejects_invalid_names(self, repository: Repository, name: str):
        with pytest.raises(InvalidSubjectNameError):
            repository.register(name)

    def test_concurrent_creation_returns_one_instance(self, repository: Repository):
        barrier = threading.Barrier(8)
        results: list[Subject] = []
        lock = threading.Lock()

        def create() -> None:
            barrier.wait()
            subject = repository.register("orders")
            with lock:
                results.append(subject)

        threads = [threading.Thread(target=create) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(s is results[0] for s in results)
        assert len(repository.subjects()) == 1


class TestLookup:
    def test_unknown_subject(self, repository: Repository):
        assert repository.lookup("missing") is None

    def test_known_subject(self, repository: Repository):
        subject = repository.register("orders")
        assert repository.lookup("orders") is subject


class TestSubjects:
    def test_empty(self, repository: Repository):
        assert repository.subjects() == []

    def test_enumerates_all(self, repository: Repository):
        orders = repository.register("orders")
        customers = repository.register("customers")
        subjects = repository.subjects()
        assert {s.name for s in subjects} == {"orders", "customers"}
        assert orders in subjects and customers in subjects

    def test_is_restartable_snapshot(self, repository: Repository):
        repository.register("orders")
        snapshot = repository.subjects()
        repository.register("customers")
        assert [s.name for s in snapshot] == ["orders"]
        assert len(repository.subjects()) == 2


class TestRegistrationScenario:
    def test_always_valid(self, repository: Repository):
        sub = repository.register("sub", AcceptAllValidator())

        foo = sub.register_if_latest("foo", None)
        assert foo is not None
        bar = sub.register_if_latest("bar", foo)
        assert bar is not None
        assert sub.register_if_latest("nothing", None) is None
        baz = sub.register("baz")
        assert baz is not None

        assert [e.id for e in sub.all_entries()] == [1, 2, 3]
        assert repository.lookup("sub").latest() == baz  # type: ignore[union-attr]

    def test_never_valid(self, repository: Repository):
        sub = repository.register("sub", RejectAllValidator("no sir!"))
        with pytest.raises(SchemaValidationError):
            sub.register("foo")
        with pytest.raises(SchemaValidationError):
            sub.register_if_latest("foo", None)
        assert list(sub.all_entries()) == []


class TestConcurrentWrites:
    def test_only_one_register_if_latest_wins(self, repository: Repository):
        subject = repository.register("orders")
        barrier = threading.Barrier(2)
        results: dict[str, SchemaEntry | None] = {}

        def attempt(schema: str) -> None:
            barrier.wait()
            results[schema] = subject.register_if_latest(schema, None)

        threads = [threading.Thread(target=attempt, args=(s,)) for s in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [r for r in results.values() if r is not None]
        assert len(winners) == 1
        assert list(subject.all_entries()) == winners

    def test_concurrent_registers_get_unique_ids(self, repository: Repository):
        subject = repository.register("orders")
        threads = [
            threading.Thread(target=subject.register, args=(f"schema-{i}",))
            for i in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [e.id for e in subject.all_entries()]
        assert ids == list(range(1, 21))
