from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Dict, Iterator, List, Optional

import duckdb

from ..schemas.chat import ChatSession, Message


_COLUMNS = (
    "id, user_id, year, semester, subject, regulation, unit, "
    "created_at, document_references, messages"
)


class SessionStore:
    """Persists chat sessions in DuckDB.

    Document references are written once on create. Updates rewrite the
    whole transcript column and nothing else.
    """

    def __init__(self, connection: duckdb.DuckDBPyConnection) -> None:
        self._connection = connection.cursor()
        self._lock = Lock()
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock:
            self._connection.execute("CREATE SEQUENCE IF NOT EXISTS chat_session_seq")
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    seq BIGINT DEFAULT nextval('chat_session_seq'),
                    id VARCHAR PRIMARY KEY,
                    user_id VARCHAR NOT NULL,
                    year VARCHAR NOT NULL,
                    semester VARCHAR NOT NULL,
                    subject VARCHAR NOT NULL,
                    regulation VARCHAR NOT NULL,
                    unit VARCHAR NOT NULL,
                    created_at VARCHAR NOT NULL,
                    document_references VARCHAR NOT NULL,
                    messages VARCHAR NOT NULL
                )
                """
            )

    @staticmethod
    def _dump_messages(messages: List[Message]) -> str:
        return json.dumps([message.model_dump(mode="json") for message in messages])

    @staticmethod
    def _from_row(row: tuple) -> ChatSession:
        return ChatSession(
            id=row[0],
            user_id=row[1],
            year=row[2],
            semester=row[3],
            subject=row[4],
            regulation=row[5],
            unit=row[6],
            created_at=datetime.fromisoformat(row[7]),
            document_references=json.loads(row[8]),
            messages=[Message.model_validate(item) for item in json.loads(row[9])],
        )

    def create(self, session: ChatSession) -> ChatSession:
        with self._lock:
            self._connection.execute(
                f"INSERT INTO chat_sessions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    session.id,
                    session.user_id,
                    session.year,
                    session.semester,
                    session.subject,
                    session.regulation,
                    session.unit,
                    session.created_at.isoformat(),
                    json.dumps(session.document_references),
                    self._dump_messages(session.messages),
                ],
            )
        return session

    def get(self, session_id: str, user_id: Optional[str] = None) -> Optional[ChatSession]:
        query = f"SELECT {_COLUMNS} FROM chat_sessions WHERE id = ?"
        params = [session_id]
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        with self._lock:
            row = self._connection.execute(query, params).fetchone()
        return self._from_row(row) if row else None

    def save_messages(self, session: ChatSession) -> None:
        with self._lock:
            self._connection.execute(
                "UPDATE chat_sessions SET messages = ? WHERE id = ?",
                [self._dump_messages(session.messages), session.id],
            )

    def list_for_user(self, user_id: str) -> List[ChatSession]:
        with self._lock:
            rows = self._connection.execute(
                f"SELECT {_COLUMNS} FROM chat_sessions WHERE user_id = ? "
                "ORDER BY created_at DESC, seq DESC",
                [user_id],
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            return self._connection.execute("SELECT COUNT(*) FROM chat_sessions").fetchone()[0]


class SessionLocks:
    """Hands out one lock per session id so questions on a session run one at a time.

    An entry lives only while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[str, Lock] = {}
        self._holders: Dict[str, int] = {}

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(session_id, Lock())
            self._holders[session_id] = self._holders.get(session_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[session_id] -= 1
                if self._holders[session_id] == 0:
                    del self._holders[session_id]
                    del self._locks[session_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
