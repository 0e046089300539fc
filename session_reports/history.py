from __future__ import annotations  # Detail and export boundary over finished sessions

import logging
from typing import Protocol

from interview_session.errors import InsufficientData, RenderFailed
from interview_session.lifecycle import SessionLifecycleManager
from observability import log_event

from .aggregator import ReportAggregator
from .models import InterviewDetail, project_detail

logger = logging.getLogger(__name__)


class PdfRenderer(Protocol):  # Turns a detail projection into document bytes
    def render(self, detail: InterviewDetail) -> bytes: ...


class InterviewHistoryService:  # Read-only views plus export delegation
    def __init__(self, manager: SessionLifecycleManager, aggregator: ReportAggregator, renderer: PdfRenderer) -> None:
        self._manager = manager
        self._aggregator = aggregator
        self._renderer = renderer

    def get_interview_detail(self, session_id: str) -> InterviewDetail:
        session = self._manager.get_session(session_id)
        if session.report is None:
            try:
                self._aggregator.generate_report(session_id)
            except InsufficientData:
                logger.info("Detail for session %s served without report", session_id)
            session = self._manager.get_session(session_id)
        return project_detail(session)

    def export_report(self, session_id: str) -> bytes:
        self._aggregator.generate_report(session_id)
        detail = project_detail(self._manager.get_session(session_id))
        try:
            payload = self._renderer.render(detail)
        except Exception as exc:  # noqa: BLE001
            logger.error("PDF rendering failed for session %s: %s", session_id, exc)
            raise RenderFailed(f"could not render report for session '{session_id}'") from exc
        log_event("report_exported", session_id, outcome=f"{len(payload)} bytes")
        return payload


__all__ = ["InterviewHistoryService", "PdfRenderer"]
