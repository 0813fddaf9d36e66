"""Tests for the data access layer."""

import threading
from datetime import timedelta

import pytest

from src.database import Database
from src.exceptions import ConstraintViolation, DataUnavailable
from src.models.todo import Todo
from src.models.user import User
from src.repository import Repository
from src.services.auth import utcnow


@pytest.fixture
def user(repo):
    return repo.insert(User, {"email": "owner@example.com", "password_hash": "fake"})


def test_select_no_match_returns_empty_list(repo):
    assert repo.select(User, {"email": "missing@example.com"}) == []


def test_insert_populates_generated_fields(repo):
    user = repo.insert(User, {"email": "a@example.com", "password_hash": "fake", "name": "A"})
    assert user.id is not None
    assert user.created_at is not None
    assert user.updated_at is not None


def test_insert_duplicate_unique_value(repo, user):
    with pytest.raises(ConstraintViolation):
        repo.insert(User, {"email": "owner@example.com", "password_hash": "other"})
    assert repo.count(User) == 1


def test_insert_missing_foreign_key(repo):
    with pytest.raises(ConstraintViolation):
        repo.insert(Todo, {"owner_id": 987654, "title": "Orphan"})


def test_insert_missing_not_null(repo, user):
    with pytest.raises(ConstraintViolation):
        repo.insert(Todo, {"owner_id": user.id, "title": None})


def test_select_is_ordered(repo, user):
    for title in ("b", "c", "a"):
        repo.insert(Todo, {"owner_id": user.id, "title": title})

    assert [todo.title for todo in repo.select(Todo)] == ["b", "c", "a"]
    assert [todo.title for todo in repo.select(Todo, order_by="title")] == ["a", "b", "c"]
    assert [todo.title for todo in repo.select(Todo, order_by="-title")] == ["c", "b", "a"]


def test_select_filters(repo, user):
    repo.insert(Todo, {"owner_id": user.id, "title": "done", "completed": True})
    repo.insert(Todo, {"owner_id": user.id, "title": "open"})

    assert [t.title for t in repo.select(Todo, {"completed": True})] == ["done"]
    assert [t.title for t in repo.select(Todo, {"title": ["open", "other"]})] == ["open"]
    assert [t.title for t in repo.select(Todo, {"description": None}, order_by="title")] == [
        "done",
        "open",
    ]
    assert [t.title for t in repo.select(Todo, {"title__ne": "done"})] == ["open"]


def test_select_comparison_lookups(repo, user):
    now = utcnow()
    two_days_ago = now - timedelta(days=2)
    repo.insert(Todo, {"owner_id": user.id, "title": "old", "completed_at": two_days_ago})
    repo.insert(Todo, {"owner_id": user.id, "title": "new", "completed_at": now})

    older = repo.select(Todo, {"completed_at__lt": now - timedelta(days=1)})
    assert [t.title for t in older] == ["old"]
    assert repo.count(Todo, {"completed_at__gte": now - timedelta(days=1)}) == 1


def test_unknown_column_is_rejected(repo):
    with pytest.raises(ValueError):
        repo.select(User, {"emial": "x"})
    with pytest.raises(ValueError):
        repo.select(User, {"email__like": "x"})
    with pytest.raises(ValueError):
        repo.insert(User, {"email": "x@example.com", "password_hash": "x", "is_admin": True})


def test_filter_values_are_bound_parameters(repo, user):
    hostile = "owner@example.com' OR '1'='1"
    assert repo.select(User, {"email": hostile}) == []


def test_update_returns_affected_count(repo, user):
    repo.insert(Todo, {"owner_id": user.id, "title": "one"})
    repo.insert(Todo, {"owner_id": user.id, "title": "two"})

    assert repo.update(Todo, {"owner_id": user.id}, {"completed": True}) == 2
    assert repo.update(Todo, {"title": "missing"}, {"completed": True}) == 0
    assert repo.count(Todo, {"completed": True}) == 2


def test_delete_twice(repo, user):
    todo_id = repo.insert(Todo, {"owner_id": user.id, "title": "gone"}).id

    assert repo.delete(Todo, {"id": todo_id}) == 1
    assert repo.delete(Todo, {"id": todo_id}) == 0


def test_get(repo, user):
    assert repo.get(User, {"id": user.id}).email == "owner@example.com"
    assert repo.get(User, {"id": user.id + 1000}) is None


def test_transaction_commits_together(repo, user):
    with repo.transaction():
        repo.insert(Todo, {"owner_id": user.id, "title": "first"})
        repo.insert(Todo, {"owner_id": user.id, "title": "second"})

    assert repo.count(Todo) == 2


def test_transaction_rolls_back_on_constraint_violation(repo, user):
    """A failing later step leaves nothing from earlier steps behind."""
    with pytest.raises(ConstraintViolation):
        with repo.transaction():
            repo.insert(Todo, {"owner_id": user.id, "title": "first"})
            repo.update(Todo, {"owner_id": user.id}, {"completed": True})
            repo.insert(User, {"email": "owner@example.com", "password_hash": "dup"})

    assert repo.count(Todo) == 0


def test_transaction_rolls_back_on_any_error(repo, user):
    with pytest.raises(RuntimeError):
        with repo.transaction():
            repo.insert(Todo, {"owner_id": user.id, "title": "first"})
            raise RuntimeError("boom")

    assert repo.count(Todo) == 0


def test_nested_transaction_joins_outer(repo, user):
    with pytest.raises(RuntimeError):
        with repo.transaction():
            with repo.transaction():
                repo.insert(Todo, {"owner_id": user.id, "title": "inner"})
            raise RuntimeError("outer fails after inner block")

    assert repo.count(Todo) == 0


def test_writes_outside_transaction_commit_immediately(database, repo, user):
    repo.insert(Todo, {"owner_id": user.id, "title": "visible"})

    other = database.session()
    try:
        assert Repository(other).count(Todo) == 1
    finally:
        other.close()


def test_concurrent_inserts_with_same_unique_value(database):
    """Exactly one of two racing inserts wins; the other is a constraint violation."""
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def worker():
        session = database.session()
        repo = Repository(session)
        try:
            barrier.wait()
            with repo.transaction():
                repo.insert(User, {"email": "race@example.com", "password_hash": "fake"})
            outcome = "inserted"
        except ConstraintViolation:
            outcome = "conflict"
        finally:
            session.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "inserted"]


def test_unreachable_store_raises_data_unavailable(tmp_path):
    database = Database(f"sqlite:///{tmp_path}/missing-dir/nowhere.db")
    try:
        with pytest.raises(DataUnavailable):
            database.ping()

        session = database.session()
        try:
            with pytest.raises(DataUnavailable):
                Repository(session).select(User)
        finally:
            session.close()
    finally:
        database.dispose()
