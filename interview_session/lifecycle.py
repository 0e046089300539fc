"""Session creation, question sequencing and state transitions.

Every mutation of a session happens inside :meth:`SessionLifecycleManager.guarded`,
an exclusive region keyed by session id. Independent sessions never share a
lock. The region loads a fresh copy from the store and only writes it back when
the body exits cleanly, so a failed mutation leaves the stored session as it was.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional, Set, Tuple
from uuid import uuid4

from config.settings import settings
from observability import log_event

from .errors import Conflict, InsufficientData, InvalidRequest, InvalidState, NotFound
from .models import AnswerRecord, InterviewSession, Question, Report, SessionOptions, SessionState, utcnow
from .questions import QuestionSource

logger = logging.getLogger(__name__)

ReportBuilder = Callable[[InterviewSession], Report]


@dataclass
class _SessionGuard:  # Lock plus in-flight grading indices for one session
    lock: threading.Lock = field(default_factory=threading.Lock)
    in_flight: Set[int] = field(default_factory=set)
    users: int = 0


class SessionLifecycleManager:  # Owns session state transitions
    def __init__(
        self,
        store,
        question_source: QuestionSource,
        *,
        report_builder: Optional[ReportBuilder] = None,
        min_questions: Optional[int] = None,
        max_questions: Optional[int] = None,
    ) -> None:
        self._store = store
        self._questions = question_source
        self._report_builder = report_builder
        self._min_questions = min_questions if min_questions is not None else settings.MIN_QUESTION_COUNT
        self._max_questions = max_questions if max_questions is not None else settings.MAX_QUESTION_COUNT
        self._guards: Dict[str, _SessionGuard] = {}
        self._guards_lock = threading.Lock()
        self._unfinished_by_resume: Dict[str, str] = {}
        self._index_lock = threading.Lock()

    @property
    def store(self):
        return self._store

    def set_report_builder(self, builder: ReportBuilder) -> None:
        self._report_builder = builder

    # ------------------------------------------------------------------ locking

    @property
    def tracked_sessions(self) -> int:
        """Number of sessions currently holding a lock table entry."""
        with self._guards_lock:
            return len(self._guards)

    @contextmanager
    def _hold(self, session_id: str) -> Iterator[_SessionGuard]:
        """Lock ``session_id``; the table entry lives while held or while grading is in flight."""

        with self._guards_lock:
            guard = self._guards.get(session_id)
            if guard is None:
                guard = _SessionGuard()
                self._guards[session_id] = guard
            guard.users += 1
        try:
            with guard.lock:
                yield guard
        finally:
            with self._guards_lock:
                guard.users -= 1
                if guard.users == 0 and not guard.in_flight:
                    self._guards.pop(session_id, None)

    @contextmanager
    def _locked(self, session_id: str, *, allow_completed: bool) -> Iterator[Tuple[_SessionGuard, InterviewSession]]:
        with self._hold(session_id) as guard:
            session = self._store.get(session_id)
            if session.is_completed and not allow_completed:
                raise InvalidState(f"session '{session_id}' is already completed")
            before = session.model_copy(deep=True)
            yield guard, session
            if session != before:
                session.updated_at = utcnow()
                self._store.put(session)

    @contextmanager
    def guarded(self, session_id: str, *, allow_completed: bool = False) -> Iterator[InterviewSession]:
        """Exclusive region for one session; persists the session on clean exit."""

        with self._locked(session_id, allow_completed=allow_completed) as (_, session):
            yield session

    # --------------------------------------------------------------- resume index

    def _lookup_unfinished(self, resume_id: str) -> Optional[str]:  # Caller holds the index lock
        session_id = self._unfinished_by_resume.get(resume_id)
        if session_id is not None:
            try:
                if not self._store.get(session_id).is_completed:
                    return session_id
            except NotFound:
                pass
            del self._unfinished_by_resume[resume_id]
            return None
        candidates = self._store.list_unfinished_by_resume(resume_id)
        if not candidates:
            return None
        self._unfinished_by_resume[resume_id] = candidates[0].id
        return candidates[0].id

    def _release_resume(self, session: InterviewSession) -> None:
        with self._index_lock:
            if self._unfinished_by_resume.get(session.resume_id) == session.id:
                del self._unfinished_by_resume[session.resume_id]

    # ------------------------------------------------------------------ lifecycle

    def create_session(
        self,
        resume_id: str,
        question_count: int,
        options: Optional[SessionOptions] = None,
    ) -> InterviewSession:
        if not self._min_questions <= question_count <= self._max_questions:
            raise InvalidRequest(
                f"question_count must be between {self._min_questions} and {self._max_questions}"
            )
        options = options or SessionOptions()
        with self._index_lock:
            existing = self._lookup_unfinished(resume_id)
            if existing is not None:
                raise Conflict(f"resume '{resume_id}' already has unfinished session '{existing}'")
            questions = self._questions.questions(question_count, options)
            session = InterviewSession(
                id=uuid4().hex,
                resume_id=resume_id,
                questions=questions,
                options=options,
            )
            self._store.put(session)
            self._unfinished_by_resume[resume_id] = session.id
        log_event("session_created", session.id, resume_id=resume_id, state=session.state.value)
        return session

    def get_session(self, session_id: str) -> InterviewSession:
        return self._store.get(session_id)

    def get_current_question(self, session_id: str) -> Question:
        with self.guarded(session_id) as session:
            question = session.current_question()
            if question is None:
                raise InvalidState(f"session '{session_id}' has no remaining questions")
            if session.state == SessionState.CREATED:
                session.state = SessionState.IN_PROGRESS
                log_event("session_started", session_id, state=session.state.value)
        return question

    def find_unfinished_session(self, resume_id: str) -> InterviewSession:
        with self._index_lock:
            session_id = self._lookup_unfinished(resume_id)
        if session_id is None:
            raise NotFound(f"no unfinished session for resume '{resume_id}'")
        return self._store.get(session_id)

    def complete_interview(self, session_id: str) -> InterviewSession:
        with self.guarded(session_id, allow_completed=True) as session:
            if session.is_completed:
                return session.model_copy(deep=True)
            self._complete(session)
        snapshot = session.model_copy(deep=True)
        self._release_resume(snapshot)
        return snapshot

    def _complete(self, session: InterviewSession) -> None:  # Caller holds the session lock
        session.state = SessionState.COMPLETED
        session.completed_at = utcnow()
        if session.report is None and self._report_builder is not None:
            try:
                session.report = self._report_builder(session)
            except InsufficientData:
                logger.info("Session %s completed without scored answers; no report", session.id)
        log_event(
            "session_completed",
            session.id,
            state=session.state.value,
            pointer=session.pointer,
            outcome="report" if session.report is not None else "no_report",
        )

    # ---------------------------------------------------------- answer write-back

    def begin_grading(self, session_id: str, question_index: int) -> Question:
        """Claim ``question_index`` for grading; the claim must be released with :meth:`finish_grading`."""

        with self._locked(session_id, allow_completed=False) as (guard, session):
            _check_index(session, question_index)
            record = session.answers.get(question_index)
            if record is not None and not record.is_draft:
                raise Conflict(f"question {question_index} already answered")
            if question_index in guard.in_flight:
                raise Conflict(f"question {question_index} is already being graded")
            guard.in_flight.add(question_index)
            return session.questions[question_index]

    def finish_grading(self, session_id: str, question_index: int) -> None:
        with self._hold(session_id) as guard:
            guard.in_flight.discard(question_index)

    def record_answer(self, session_id: str, question_index: int, record: AnswerRecord) -> InterviewSession:
        # State guards are re-checked here; the session may have changed during grading
        with self.guarded(session_id) as session:
            _check_index(session, question_index)
            existing = session.answers.get(question_index)
            if existing is not None and not existing.is_draft:
                raise Conflict(f"question {question_index} already answered")
            session.answers[question_index] = record
            session.report = None
            if session.state == SessionState.CREATED:
                session.state = SessionState.IN_PROGRESS
            if question_index == session.pointer:
                _advance_pointer(session)
            if session.options.auto_complete and session.pointer >= session.question_count:
                self._complete(session)
        snapshot = session.model_copy(deep=True)
        if snapshot.is_completed:
            self._release_resume(snapshot)
        return snapshot

    def save_draft(self, session_id: str, question_index: int, answer_text: str) -> InterviewSession:
        with self.guarded(session_id) as session:
            _check_index(session, question_index)
            existing = session.answers.get(question_index)
            if existing is not None and not existing.is_draft:
                raise Conflict(f"question {question_index} already answered")
            if existing is None or existing.answer_text != answer_text:
                session.answers[question_index] = AnswerRecord(answer_text=answer_text)
                session.report = None
        return session.model_copy(deep=True)


def _check_index(session: InterviewSession, question_index: int) -> None:
    if not 0 <= question_index < session.question_count:
        raise InvalidRequest(
            f"question_index {question_index} out of range for {session.question_count} questions"
        )


def _advance_pointer(session: InterviewSession) -> None:
    graded = set(session.graded_indices())
    pointer = session.pointer + 1
    while pointer < session.question_count and pointer in graded:
        pointer += 1
    session.pointer = min(pointer, session.question_count)


__all__ = ["ReportBuilder", "SessionLifecycleManager"]
