"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from config.settings import settings
from interview_session.models import InterviewSession, Question, SessionState


class CreateSessionReq(BaseModel):
    resume_id: Union[int, str]
    question_count: int = Field(default_factory=lambda: settings.DEFAULT_QUESTION_COUNT)
    auto_complete: bool = False
    resume_text: str = ""
    topics: List[str] = Field(default_factory=list)


class AnswerReq(BaseModel):
    session_id: str
    question_index: int = Field(ge=0)
    answer_text: str


class SessionResp(BaseModel):
    session_id: str
    resume_id: str
    state: SessionState
    pointer: int
    total_questions: int
    questions: List[Question]
    answered_indices: List[int] = Field(default_factory=list)
    draft_indices: List[int] = Field(default_factory=list)
    has_report: bool = False
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: InterviewSession) -> "SessionResp":
        return cls(
            session_id=session.id,
            resume_id=session.resume_id,
            state=session.state,
            pointer=session.pointer,
            total_questions=session.question_count,
            questions=list(session.questions),
            answered_indices=session.graded_indices(),
            draft_indices=sorted(index for index, record in session.answers.items() if record.is_draft),
            has_report=session.report is not None,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )


class QuestionResp(BaseModel):
    session_id: str
    question: Question
    question_index: int
    total_questions: int


class SaveAnswerResp(BaseModel):
    session_id: str
    question_index: int
    saved: bool = True
    pointer: int
