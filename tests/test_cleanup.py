"""Tests for the periodic auth cleanup task."""

from datetime import timedelta
from unittest.mock import patch

from src.celery_app import app as celery_app
from src.models.session import UserSession
from src.models.user import User
from src.services.auth import utcnow
from src.tasks import cleanup


def test_run_purge_removes_expired_sessions(database, repo):
    user = repo.insert(User, {"email": "sleepy@example.com", "password_hash": "fake"})
    now = utcnow()
    repo.insert(
        UserSession,
        {"user_id": user.id, "token_id": "old", "expires_at": now - timedelta(days=1)},
    )
    repo.insert(
        UserSession,
        {"user_id": user.id, "token_id": "new", "expires_at": now + timedelta(days=1)},
    )

    result = cleanup.run_purge(database)

    assert result == {"sessions": 1, "verifications": 0}
    repo.session.expire_all()
    assert [s.token_id for s in repo.select(UserSession)] == ["new"]


def test_task_uses_worker_database(database):
    with patch.object(cleanup, "get_worker_database", return_value=database):
        result = cleanup.purge_expired_auth_records.run()
    assert result == {"sessions": 0, "verifications": 0}


def test_purge_is_scheduled():
    schedule = celery_app.conf.beat_schedule
    assert any(
        entry["task"] == "src.tasks.cleanup.purge_expired_auth_records"
        for entry in schedule.values()
    )
