import json
import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

import mysql.connector

from backend.hiring.config import DB_CONFIG, STORE_CONFIG
from backend.hiring.models import (
    CANDIDATE_STATUSES,
    CHANGE_DELETED,
    CHANGE_INSERTED,
    CHANGE_UPDATED,
    STATUS_NEW,
    Candidate,
    clean_skills,
    utcnow,
)
from backend.hiring.realtime import ChangeFeed

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A candidate store operation failed."""


class CandidateNotFound(StorageError):
    """No candidate with that id for that owner."""


class CandidateStore:
    """
    Candidate persistence scoped by owner.

    Subclasses implement the _insert/_update_status/_delete/list_by_owner
    primitives; this base publishes a change event after each successful
    mutation.
    """

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed or ChangeFeed()

    def insert(
        self,
        owner_id: str,
        *,
        full_name: str,
        applied_position: str,
        skills: Sequence[str],
        matching_score: int,
        resume_url: Optional[str] = None,
    ) -> Candidate:
        candidate = Candidate(
            id=str(uuid4()),
            user_id=owner_id,
            full_name=full_name.strip(),
            applied_position=applied_position.strip(),
            status=STATUS_NEW,
            resume_url=resume_url or None,
            skills=clean_skills(list(skills or [])),
            matching_score=matching_score,
            created_at=self.now(),
        )
        stored = self._insert(candidate)
        self.feed.publish(CHANGE_INSERTED, stored)
        return stored

    def update_status(self, owner_id: str, candidate_id: str, status: str) -> Candidate:
        if status not in CANDIDATE_STATUSES:
            raise ValueError(f"Unknown status: {status}")
        updated = self._update_status(owner_id, candidate_id, status)
        self.feed.publish(CHANGE_UPDATED, updated)
        return updated

    def delete(self, owner_id: str, candidate_id: str) -> Candidate:
        removed = self._delete(owner_id, candidate_id)
        self.feed.publish(CHANGE_DELETED, removed)
        return removed

    def now(self):
        return utcnow()

    def list_by_owner(self, owner_id: str) -> List[Candidate]:
        raise NotImplementedError

    def _insert(self, candidate: Candidate) -> Candidate:
        raise NotImplementedError

    def _update_status(self, owner_id: str, candidate_id: str, status: str) -> Candidate:
        raise NotImplementedError

    def _delete(self, owner_id: str, candidate_id: str) -> Candidate:
        raise NotImplementedError


# ------------------------------------------------------
# IN-MEMORY STORE
# ------------------------------------------------------
class InMemoryCandidateStore(CandidateStore):
    def __init__(self, feed: Optional[ChangeFeed] = None, clock: Optional[Callable] = None):
        super().__init__(feed)
        self._clock = clock
        self._lock = threading.Lock()
        self._rows: Dict[str, Candidate] = {}

    def now(self):
        return self._clock() if self._clock else utcnow()

    def add(self, candidate: Candidate) -> Candidate:
        """Put a fully built record in place (seeding, imports)."""
        with self._lock:
            self._rows[candidate.id] = candidate
        return candidate

    def list_by_owner(self, owner_id: str) -> List[Candidate]:
        with self._lock:
            return [c for c in self._rows.values() if c.user_id == owner_id]

    def _insert(self, candidate: Candidate) -> Candidate:
        return self.add(candidate)

    def _get_owned(self, owner_id: str, candidate_id: str) -> Candidate:
        current = self._rows.get(candidate_id)
        if not current or current.user_id != owner_id:
            raise CandidateNotFound(candidate_id)
        return current

    def _update_status(self, owner_id: str, candidate_id: str, status: str) -> Candidate:
        with self._lock:
            updated = replace(self._get_owned(owner_id, candidate_id), status=status)
            self._rows[candidate_id] = updated
            return updated

    def _delete(self, owner_id: str, candidate_id: str) -> Candidate:
        with self._lock:
            self._get_owned(owner_id, candidate_id)
            return self._rows.pop(candidate_id)


# ------------------------------------------------------
# MySQL STORE
# ------------------------------------------------------
CANDIDATES_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS candidates (
        id CHAR(36) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        full_name VARCHAR(255) NOT NULL,
        applied_position VARCHAR(255) NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'New',
        resume_url TEXT NULL,
        skills JSON NULL,
        matching_score INT NOT NULL DEFAULT 0,
        created_at DATETIME(3) NOT NULL,
        INDEX idx_candidates_user (user_id)
    )
"""

CANDIDATE_COLUMNS = (
    "id, user_id, full_name, applied_position, status, resume_url, skills, matching_score, created_at"
)


class MySQLCandidateStore(CandidateStore):
    def __init__(self, config: Optional[dict] = None, feed: Optional[ChangeFeed] = None):
        super().__init__(feed)
        self.config = dict(config or DB_CONFIG)
        self._schema_ready = False

    def connect(self):
        """Open a connection using the configured DB settings."""
        try:
            return mysql.connector.connect(**self.config)
        except mysql.connector.Error as exc:
            logger.error("Unable to connect to MySQL: %s", exc)
            raise StorageError("Database unavailable") from exc

    def ensure_schema(self):
        if self._schema_ready:
            return
        self._execute(CANDIDATES_TABLE_SQL, ())
        self._schema_ready = True

    def _execute(self, query, params, fetch=None):
        db = self.connect()
        cursor = None
        try:
            cursor = db.cursor(dictionary=True)
            cursor.execute(query, params)
            if fetch == "all":
                result = cursor.fetchall() or []
            elif fetch == "one":
                result = cursor.fetchone()
            else:
                result = cursor.rowcount
            db.commit()
            return result
        except mysql.connector.Error as exc:
            logger.exception("MySQL query failed")
            raise StorageError(str(exc)) from exc
        finally:
            if cursor is not None:
                cursor.close()
            db.close()

    def _fetch_owned(self, owner_id: str, candidate_id: str) -> Candidate:
        row = self._execute(
            f"SELECT {CANDIDATE_COLUMNS} FROM candidates WHERE id = %s AND user_id = %s",
            (candidate_id, owner_id),
            fetch="one",
        )
        if not row:
            raise CandidateNotFound(candidate_id)
        return Candidate.from_row(row)

    def list_by_owner(self, owner_id: str) -> List[Candidate]:
        self.ensure_schema()
        rows = self._execute(
            f"SELECT {CANDIDATE_COLUMNS} FROM candidates WHERE user_id = %s ORDER BY created_at DESC",
            (owner_id,),
            fetch="all",
        )
        return [Candidate.from_row(row) for row in rows]

    def _insert(self, candidate: Candidate) -> Candidate:
        self.ensure_schema()
        self._execute(
            f"INSERT INTO candidates ({CANDIDATE_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                candidate.id,
                candidate.user_id,
                candidate.full_name,
                candidate.applied_position,
                candidate.status,
                candidate.resume_url,
                json.dumps(list(candidate.skills), ensure_ascii=False),
                candidate.matching_score,
                candidate.created_at.replace(tzinfo=None),
            ),
        )
        return candidate

    def _update_status(self, owner_id: str, candidate_id: str, status: str) -> Candidate:
        self.ensure_schema()
        current = self._fetch_owned(owner_id, candidate_id)
        self._execute(
            "UPDATE candidates SET status = %s WHERE id = %s AND user_id = %s",
            (status, candidate_id, owner_id),
        )
        return replace(current, status=status)

    def _delete(self, owner_id: str, candidate_id: str) -> Candidate:
        self.ensure_schema()
        current = self._fetch_owned(owner_id, candidate_id)
        self._execute(
            "DELETE FROM candidates WHERE id = %s AND user_id = %s",
            (candidate_id, owner_id),
        )
        return current


def create_store(backend: Optional[str] = None) -> CandidateStore:
    backend = (backend or STORE_CONFIG["backend"]).lower()
    if backend == "mysql":
        return MySQLCandidateStore()
    if backend == "memory":
        return InMemoryCandidateStore()
    raise ValueError(f"Unknown candidate store backend: {backend}")
