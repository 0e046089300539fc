"""Session persistence backends."""
from __future__ import annotations

from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Protocol

from config.settings import settings
from interview_session.errors import NotFound
from interview_session.models import InterviewSession, SessionState

from .migrate import migrate
from .sqlite import get_conn


class SessionStore(Protocol):  # Durable keyed session storage
    def get(self, session_id: str) -> InterviewSession: ...

    def put(self, session: InterviewSession) -> None: ...

    def list_unfinished_by_resume(self, resume_id: str) -> List[InterviewSession]: ...


class InMemorySessionStore:  # Thread-safe in-memory store handing out snapshots
    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = RLock()

    def get(self, session_id: str) -> InterviewSession:
        with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                raise NotFound(f"session '{session_id}' not found")
            return stored.model_copy(deep=True)

    def put(self, session: InterviewSession) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy(deep=True)

    def list_unfinished_by_resume(self, resume_id: str) -> List[InterviewSession]:
        with self._lock:
            matches = [
                item.model_copy(deep=True)
                for item in self._sessions.values()
                if item.resume_id == resume_id and item.state != SessionState.COMPLETED
            ]
        return sorted(matches, key=lambda item: item.created_at, reverse=True)

    def list_recent(self, limit: int = 20) -> List[InterviewSession]:
        with self._lock:
            items = [item.model_copy(deep=True) for item in self._sessions.values()]
        return sorted(items, key=lambda item: item.updated_at, reverse=True)[:limit]


class SqliteSessionStore:  # SQLite-backed store, one JSON payload per session
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = str(path) if path is not None else None
        migrate(self._path or settings.DB_PATH)

    def get(self, session_id: str) -> InterviewSession:
        with get_conn(self._path) as conn:
            row = conn.execute(
                "SELECT payload_json FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            raise NotFound(f"session '{session_id}' not found")
        return InterviewSession.model_validate_json(row["payload_json"])

    def put(self, session: InterviewSession) -> None:
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO interview_sessions (
                    session_id,
                    resume_id,
                    state,
                    pointer,
                    question_count,
                    created_at,
                    updated_at,
                    payload_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    state = excluded.state,
                    pointer = excluded.pointer,
                    updated_at = excluded.updated_at,
                    payload_json = excluded.payload_json
                """,
                (
                    session.id,
                    session.resume_id,
                    session.state.value,
                    session.pointer,
                    session.question_count,
                    session.created_at.isoformat(),
                    session.updated_at.isoformat(),
                    session.model_dump_json(),
                ),
            )

    def list_unfinished_by_resume(self, resume_id: str) -> List[InterviewSession]:
        with get_conn(self._path) as conn:
            rows = conn.execute(
                """
                SELECT payload_json FROM interview_sessions
                WHERE resume_id = ? AND state != ?
                ORDER BY created_at DESC
                """,
                (resume_id, SessionState.COMPLETED.value),
            ).fetchall()
        return [InterviewSession.model_validate_json(row["payload_json"]) for row in rows]

    def list_recent(self, limit: int = 20) -> List[InterviewSession]:
        with get_conn(self._path) as conn:
            rows = conn.execute(
                "SELECT payload_json FROM interview_sessions ORDER BY updated_at DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [InterviewSession.model_validate_json(row["payload_json"]) for row in rows]


__all__ = ["InMemorySessionStore", "SessionStore", "SqliteSessionStore"]
