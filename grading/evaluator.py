from __future__ import annotations  # Answer submission: grade, repair, record

import logging
from typing import Optional

from pydantic import BaseModel

from config.settings import settings
from interview_session.errors import MalformedGradingOutput, TransientGradingFailure
from interview_session.lifecycle import SessionLifecycleManager
from interview_session.models import AnswerRecord, InterviewSession, Question, SessionState, utcnow
from observability import log_event, span

from .client import GradingClient
from .normalizer import NormalizedGrade, RepairNormalizer
from .prompts import build_grading_prompt

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3  # one grading call plus two repair rounds


class SubmitResult(BaseModel):  # Outcome of a graded submission
    session_id: str
    question_index: int
    record: AnswerRecord
    degraded: bool
    pointer: int
    total_questions: int
    state: SessionState
    next_question: Optional[Question] = None


def _round1(value: float) -> float:
    return float(f"{value:.1f}")


def _clamp_score(value: float) -> float:
    return _round1(min(100.0, max(0.0, value)))


class AnswerEvaluator:  # Grades answers without holding the session lock
    def __init__(
        self,
        manager: SessionLifecycleManager,
        client: GradingClient,
        *,
        normalizer: Optional[RepairNormalizer] = None,
        degraded_feedback: Optional[str] = None,
    ) -> None:
        self._manager = manager
        self._client = client
        self._normalizer = normalizer or RepairNormalizer(client)
        self._degraded_feedback = degraded_feedback or settings.DEGRADED_FEEDBACK

    def submit_answer(self, session_id: str, question_index: int, answer_text: str) -> SubmitResult:
        question = self._manager.begin_grading(session_id, question_index)
        try:
            prompt = build_grading_prompt(question, answer_text)
            with span("grade_answer", session_id, question_index=question_index):
                record = self._grade(session_id, prompt, answer_text)
            session = self._manager.record_answer(session_id, question_index, record)
        finally:
            self._manager.finish_grading(session_id, question_index)
        log_event(
            "answer_graded" if record.is_scored else "answer_degraded",
            session_id,
            level=logging.INFO if record.is_scored else logging.WARNING,
            question_index=question_index,
            attempts=record.attempts,
            score=record.parsed_score,
            pointer=session.pointer,
        )
        return self._result(session, question_index, record)

    def save_answer(self, session_id: str, question_index: int, answer_text: str) -> InterviewSession:
        session = self._manager.save_draft(session_id, question_index, answer_text)
        log_event("answer_saved", session_id, question_index=question_index, pointer=session.pointer)
        return session

    def _grade(self, session_id: str, prompt: str, answer_text: str) -> AnswerRecord:
        """Spend at most ``MAX_ATTEMPTS`` rounds; a failed grading call uses up a round."""

        remaining = MAX_ATTEMPTS
        last_raw = ""
        while remaining > 0:
            used = MAX_ATTEMPTS - remaining
            try:
                raw = self._client.grade(prompt)
            except TransientGradingFailure as exc:
                remaining -= 1
                logger.warning("Grading call failed for session %s (%d left): %s", session_id, remaining, exc)
                continue
            last_raw = raw
            try:
                graded = self._normalizer.normalize(prompt, raw, repair_rounds=remaining - 1)
            except MalformedGradingOutput as exc:
                logger.warning("Grader output unusable for session %s after %d attempts", session_id, used + exc.attempts)
                return self._degraded(answer_text, exc.raw_text or last_raw)
            return self._scored(answer_text, graded, attempts=used + graded.attempts)
        return self._degraded(answer_text, last_raw)

    def _scored(self, answer_text: str, graded: NormalizedGrade, *, attempts: int) -> AnswerRecord:
        output = graded.output
        return AnswerRecord(
            answer_text=answer_text,
            raw_grader_response=graded.raw_text,
            parsed_score=_clamp_score(output.score),
            feedback=output.feedback.strip(),
            strengths=[item.strip() for item in output.strengths if item.strip()],
            improvements=[item.strip() for item in output.improvements if item.strip()],
            attempts=attempts,
            graded_at=utcnow(),
        )

    def _degraded(self, answer_text: str, raw: str) -> AnswerRecord:
        return AnswerRecord(
            answer_text=answer_text,
            raw_grader_response=raw,
            parsed_score=None,
            feedback=self._degraded_feedback,
            attempts=MAX_ATTEMPTS,
            graded_at=utcnow(),
        )

    def _result(self, session: InterviewSession, question_index: int, record: AnswerRecord) -> SubmitResult:
        next_question = None if session.is_completed else session.current_question()
        return SubmitResult(
            session_id=session.id,
            question_index=question_index,
            record=record,
            degraded=record.is_degraded,
            pointer=session.pointer,
            total_questions=session.question_count,
            state=session.state,
            next_question=next_question,
        )


__all__ = ["AnswerEvaluator", "MAX_ATTEMPTS", "SubmitResult"]
