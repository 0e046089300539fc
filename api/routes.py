"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, HTTPException, Response

from api.schemas import AnswerReq, CreateSessionReq, QuestionResp, SaveAnswerResp, SessionResp
from grading import SubmitResult
from interview_session.errors import (
    Conflict,
    InsufficientData,
    InterviewError,
    InvalidRequest,
    InvalidState,
    NotFound,
    RenderFailed,
)
from interview_session.models import Report, SessionOptions
from services.container import get_container
from session_reports import InterviewDetail, default_filename


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")

_STATUS = [
    (NotFound, 404),
    (Conflict, 409),
    (InvalidRequest, 400),
    (InvalidState, 409),
    (InsufficientData, 422),
    (RenderFailed, 500),
]


def _raise_http(exc: InterviewError) -> NoReturn:
    for kind, status in _STATUS:
        if isinstance(exc, kind):
            raise HTTPException(status_code=status, detail=exc.to_dict()) from exc
    logger.error("Unmapped interview error: %s", exc)
    raise HTTPException(status_code=502, detail=exc.to_dict()) from exc


@router.post("/session", response_model=SessionResp)
def create_session(req: CreateSessionReq) -> SessionResp:
    options = SessionOptions(auto_complete=req.auto_complete, resume_text=req.resume_text, topics=req.topics)
    try:
        session = get_container().manager.create_session(str(req.resume_id), req.question_count, options)
    except InterviewError as exc:
        _raise_http(exc)
    return SessionResp.from_session(session)


@router.get("/session/{session_id}", response_model=SessionResp)
def get_session(session_id: str) -> SessionResp:
    try:
        session = get_container().manager.get_session(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return SessionResp.from_session(session)


@router.get("/session/{session_id}/question", response_model=QuestionResp)
def get_current_question(session_id: str) -> QuestionResp:
    manager = get_container().manager
    try:
        question = manager.get_current_question(session_id)
        total = manager.get_session(session_id).question_count
    except InterviewError as exc:
        _raise_http(exc)
    return QuestionResp(session_id=session_id, question=question, question_index=question.index, total_questions=total)


@router.get("/unfinished/{resume_id}", response_model=SessionResp)
def find_unfinished_session(resume_id: str) -> SessionResp:
    try:
        session = get_container().manager.find_unfinished_session(resume_id)
    except InterviewError as exc:
        _raise_http(exc)
    return SessionResp.from_session(session)


@router.post("/answer", response_model=SubmitResult)
def submit_answer(req: AnswerReq) -> SubmitResult:
    logger.info("Submit answer session=%s question=%d", req.session_id, req.question_index)
    try:
        return get_container().evaluator.submit_answer(req.session_id, req.question_index, req.answer_text)
    except InterviewError as exc:
        _raise_http(exc)


@router.post("/save-answer", response_model=SaveAnswerResp)
def save_answer(req: AnswerReq) -> SaveAnswerResp:
    try:
        session = get_container().evaluator.save_answer(req.session_id, req.question_index, req.answer_text)
    except InterviewError as exc:
        _raise_http(exc)
    return SaveAnswerResp(session_id=session.id, question_index=req.question_index, pointer=session.pointer)


@router.post("/{session_id}/complete", response_model=SessionResp)
def complete_interview(session_id: str) -> SessionResp:
    logger.info("Complete interview session=%s", session_id)
    try:
        session = get_container().manager.complete_interview(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return SessionResp.from_session(session)


@router.get("/{session_id}/report", response_model=Report)
def get_report(session_id: str) -> Report:
    try:
        return get_container().aggregator.generate_report(session_id)
    except InterviewError as exc:
        _raise_http(exc)


@router.get("/{session_id}/detail", response_model=InterviewDetail)
def get_interview_detail(session_id: str) -> InterviewDetail:
    try:
        return get_container().history.get_interview_detail(session_id)
    except InterviewError as exc:
        _raise_http(exc)


@router.get("/{session_id}/export")
def export_report(session_id: str) -> Response:
    try:
        payload = get_container().history.export_report(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    headers = {"Content-Disposition": f'attachment; filename="{default_filename(session_id)}"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)
