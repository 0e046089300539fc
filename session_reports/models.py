from __future__ import annotations  # Read-only projections served by the detail endpoints

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from interview_session.models import InterviewSession, Report, SessionState

AnswerStatus = Literal["scored", "degraded", "draft", "unanswered"]


class AnswerDetail(BaseModel):  # One question with whatever the candidate gave for it
    index: int
    prompt: str
    category: str = ""
    topic_hints: List[str] = Field(default_factory=list)
    answer_text: Optional[str] = None
    score: Optional[float] = None
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    attempts: int = 0
    status: AnswerStatus
    graded_at: Optional[datetime] = None


class InterviewDetail(BaseModel):  # Session header, answers and report in one payload
    session_id: str
    resume_id: str
    state: SessionState
    pointer: int
    total_questions: int
    created_at: datetime
    completed_at: Optional[datetime] = None
    answers: List[AnswerDetail]
    report: Optional[Report] = None


def _status(session: InterviewSession, index: int) -> AnswerStatus:
    record = session.answers.get(index)
    if record is None:
        return "unanswered"
    if record.is_draft:
        return "draft"
    return "scored" if record.is_scored else "degraded"


def project_detail(session: InterviewSession) -> InterviewDetail:
    answers: List[AnswerDetail] = []
    for question in session.questions:
        record = session.answers.get(question.index)
        answers.append(
            AnswerDetail(
                index=question.index,
                prompt=question.prompt,
                category=question.category,
                topic_hints=list(question.topic_hints),
                answer_text=record.answer_text if record is not None else None,
                score=record.parsed_score if record is not None else None,
                feedback=record.feedback if record is not None else "",
                strengths=list(record.strengths) if record is not None else [],
                improvements=list(record.improvements) if record is not None else [],
                attempts=record.attempts if record is not None else 0,
                status=_status(session, question.index),
                graded_at=record.graded_at if record is not None else None,
            )
        )
    return InterviewDetail(
        session_id=session.id,
        resume_id=session.resume_id,
        state=session.state,
        pointer=session.pointer,
        total_questions=session.question_count,
        created_at=session.created_at,
        completed_at=session.completed_at,
        answers=answers,
        report=session.report,
    )


__all__ = ["AnswerDetail", "AnswerStatus", "InterviewDetail", "project_detail"]
