from __future__ import annotations  # Interview session domain models

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):  # Lifecycle states, no backward edges
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Question(BaseModel):  # Interview question, frozen once the session exists
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    prompt: str
    topic_hints: List[str] = Field(default_factory=list)
    category: str = ""


class SessionOptions(BaseModel):  # Per-session creation options
    auto_complete: bool = False
    resume_text: str = ""
    topics: List[str] = Field(default_factory=list)


class AnswerRecord(BaseModel):  # Candidate answer plus derived grading outcome
    answer_text: str
    raw_grader_response: str = ""
    parsed_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    attempts: int = Field(default=0, ge=0)
    saved_at: datetime = Field(default_factory=utcnow)
    graded_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.graded_at is None

    @property
    def is_degraded(self) -> bool:
        return self.graded_at is not None and self.parsed_score is None

    @property
    def is_scored(self) -> bool:
        return self.parsed_score is not None


ScoreStatus = Literal["scored", "degraded", "unanswered"]


class QuestionScore(BaseModel):  # Per-question line of a report
    index: int
    prompt: str
    category: str = ""
    score: Optional[float] = None
    feedback: str = ""
    status: ScoreStatus


class Report(BaseModel):  # Aggregated, cached interview report
    session_id: str
    question_scores: List[QuestionScore]
    overall_score: float
    summary: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    unanswered_indices: List[int] = Field(default_factory=list)
    degraded_indices: List[int] = Field(default_factory=list)
    answered_count: int = 0
    total_questions: int = 0
    strategy: str = "mean"
    generated_at: datetime = Field(default_factory=utcnow)


class InterviewSession(BaseModel):  # Persisted session aggregate
    id: str
    resume_id: str
    questions: List[Question]
    pointer: int = Field(default=0, ge=0)
    answers: Dict[int, AnswerRecord] = Field(default_factory=dict)
    state: SessionState = SessionState.CREATED
    options: SessionOptions = Field(default_factory=SessionOptions)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    report: Optional[Report] = None

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def is_completed(self) -> bool:
        return self.state == SessionState.COMPLETED

    def current_question(self) -> Optional[Question]:
        if self.pointer < len(self.questions):
            return self.questions[self.pointer]
        return None

    def graded_indices(self) -> List[int]:
        return sorted(index for index, record in self.answers.items() if not record.is_draft)


__all__ = [
    "AnswerRecord",
    "InterviewSession",
    "Question",
    "QuestionScore",
    "Report",
    "ScoreStatus",
    "SessionOptions",
    "SessionState",
    "utcnow",
]
