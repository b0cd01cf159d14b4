# Overview: Locking and retry primitives used around ledger mutations.

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Hashable, Iterable

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import ContentionError, NotFoundError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def load_for_update(session, model, record_id: int, label: str, *, for_update: bool = True):
    """
    Re-read a transaction record, optionally with a row lock.

    populate_existing() discards any stale copy in the identity map so the
    lifecycle check always sees the committed status.
    """
    q = session.query(model).filter(model.id == record_id).populate_existing()
    if for_update:
        q = lock_for_update(q)
    record = q.first()
    if record is None:
        raise NotFoundError(f"{label} {record_id} not found")
    return record


def configured_attempts() -> int:
    return int(current_app.config.get("DB_RETRY_ATTEMPTS", 3))


class KeyLockRegistry:
    """
    One lock per ledger key, shared by every request thread of an app.

    Lives on the Flask app (app.extensions["ledger_locks"]) rather than at
    module level so separate apps (and tests) never share lock state.
    Acquisition is bounded: on timeout the caller gets ContentionError.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[Hashable], timeout: float | None = None):
        """
        Acquire every key's lock, in sorted order, for the duration of the block.

        Sorting gives all callers the same acquisition order, so two
        multi-key holders (e.g. opposite-direction transfers) cannot deadlock.
        """
        wait = self.timeout if timeout is None else timeout
        acquired: list[threading.Lock] = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if not lock.acquire(timeout=wait):
                    raise ContentionError(f"Timed out after {wait}s waiting for ledger key {key}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work with retry on contention.

    Retries on ContentionError (lock timeout, conditional update lost) and on
    raw OperationalError / StaleDataError. Exhausted retries surface as
    ContentionError so callers can tell them apart from hard faults.
    Domain errors such as InsufficientStock are never retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except ContentionError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise ContentionError(f"Database contention after {attempts} attempts: {exc}") from exc
        time.sleep(backoff_base * (2 ** attempt))
