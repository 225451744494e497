"""
Tests for UserStore updates racing on one account, against a file-backed
SQLite database so each worker has its own connection.
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from spark_therapy.auth.models import User, UserRole
from spark_therapy.auth.store import UserStore
from spark_therapy.core.security import hash_refresh_token
from spark_therapy.database import Base

WORKERS = 8


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=WORKERS,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


def _seed_user(session_factory, **fields) -> int:
    with session_factory() as db:
        user = UserStore(db).create(
            name="Race Parent",
            email="race@example.com",
            password_hash="unused",
            role=UserRole.PARENT,
            **fields
        )
        return user.id


def _run_concurrently(session_factory, user_id, work):
    """Call ``work(store, user)`` from WORKERS threads released together."""
    barrier = threading.Barrier(WORKERS)
    results = [None] * WORKERS
    errors = []

    def worker(index):
        with session_factory() as db:
            store = UserStore(db)
            user = store.find_by_id(user_id)
            barrier.wait()
            try:
                results[index] = work(store, user)
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    return results


def test_simultaneous_failures_are_all_counted(file_sessions):
    user_id = _seed_user(file_sessions)

    _run_concurrently(
        file_sessions,
        user_id,
        lambda store, user: store.register_failed_login(user, max_attempts=100, lock_duration=timedelta(hours=2))
    )

    with file_sessions() as db:
        user = db.get(User, user_id)
        assert user.failed_login_attempts == WORKERS
        assert user.lock_until is None


def test_simultaneous_failures_past_threshold_lock_the_account(file_sessions):
    user_id = _seed_user(file_sessions)

    _run_concurrently(
        file_sessions,
        user_id,
        lambda store, user: store.register_failed_login(user, max_attempts=3, lock_duration=timedelta(hours=2))
    )

    with file_sessions() as db:
        user = db.get(User, user_id)
        assert user.failed_login_attempts == WORKERS
        assert user.is_locked


def test_simultaneous_rotations_have_one_winner(file_sessions):
    presented = hash_refresh_token("refresh-token-v1")
    user_id = _seed_user(file_sessions, refresh_token_hash=presented)

    wins = _run_concurrently(
        file_sessions,
        user_id,
        lambda store, user: store.rotate_refresh_token(
            user,
            presented_hash=presented,
            new_hash=hash_refresh_token(f"refresh-token-{threading.get_ident()}")
        )
    )

    assert wins.count(True) == 1
    assert wins.count(False) == WORKERS - 1

    with file_sessions() as db:
        assert db.get(User, user_id).refresh_token_hash != presented
