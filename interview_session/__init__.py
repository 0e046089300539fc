from __future__ import annotations  # Interview session package exports

from .errors import (
    Conflict,
    InsufficientData,
    InterviewError,
    InvalidRequest,
    InvalidState,
    MalformedGradingOutput,
    NotFound,
    RenderFailed,
    TransientGradingFailure,
)
from .models import AnswerRecord, InterviewSession, Question, QuestionScore, Report, SessionOptions, SessionState
from .questions import QuestionBankSource, QuestionSource
from .lifecycle import SessionLifecycleManager

__all__ = [
    "AnswerRecord",
    "Conflict",
    "InsufficientData",
    "InterviewError",
    "InterviewSession",
    "InvalidRequest",
    "InvalidState",
    "MalformedGradingOutput",
    "NotFound",
    "Question",
    "QuestionBankSource",
    "QuestionScore",
    "QuestionSource",
    "RenderFailed",
    "Report",
    "SessionLifecycleManager",
    "SessionOptions",
    "SessionState",
    "TransientGradingFailure",
]
