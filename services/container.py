"""Wiring of stores, grader, aggregator and renderer for the HTTP layer."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config.registry import GRADER_KEY, RENDERER_KEY, get_model
from config.settings import settings
from grading import AnswerEvaluator, GradingClient, LlmGradingClient
from interview_session import QuestionBankSource, QuestionSource, SessionLifecycleManager
from session_reports import FpdfReportRenderer, InterviewHistoryService, PdfRenderer, ReportAggregator
from storage.sessions import InMemorySessionStore, SessionStore, SqliteSessionStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    manager: SessionLifecycleManager
    evaluator: AnswerEvaluator
    aggregator: ReportAggregator
    history: InterviewHistoryService


def _default_store() -> SessionStore:
    if settings.STORE_BACKEND == "memory":
        return InMemorySessionStore()
    return SqliteSessionStore(Path(settings.DB_PATH))


def _default_question_source() -> QuestionSource:
    if settings.QUESTION_BANK_PATH:
        return QuestionBankSource.from_file(Path(settings.QUESTION_BANK_PATH))
    return QuestionBankSource()


def _default_grader() -> GradingClient:
    try:
        return get_model(GRADER_KEY)
    except KeyError:
        logger.info("No grader bound; loading routes from %s", settings.APP_CONFIG_PATH)
        return LlmGradingClient.from_config(Path(settings.APP_CONFIG_PATH))


def _default_renderer() -> PdfRenderer:
    try:
        return get_model(RENDERER_KEY)
    except KeyError:
        return FpdfReportRenderer()


def build_container(
    *,
    store: Optional[SessionStore] = None,
    question_source: Optional[QuestionSource] = None,
    grader: Optional[GradingClient] = None,
    renderer: Optional[PdfRenderer] = None,
    strategy: Optional[str] = None,
) -> ServiceContainer:
    """Assemble the services; unspecified collaborators come from settings and the registry."""

    manager = SessionLifecycleManager(store or _default_store(), question_source or _default_question_source())
    aggregator = ReportAggregator(manager, strategy=strategy)
    manager.set_report_builder(aggregator.build)
    evaluator = AnswerEvaluator(manager, grader or _default_grader())
    history = InterviewHistoryService(manager, aggregator, renderer or _default_renderer())
    return ServiceContainer(manager=manager, evaluator=evaluator, aggregator=aggregator, history=history)


_CONTAINER: Optional[ServiceContainer] = None
_CONTAINER_GUARD = threading.Lock()


def get_container() -> ServiceContainer:
    global _CONTAINER
    with _CONTAINER_GUARD:
        if _CONTAINER is None:
            _CONTAINER = build_container()
        return _CONTAINER


def reset_container(container: Optional[ServiceContainer] = None) -> None:
    """Drop the cached container, or install ``container`` in its place."""

    global _CONTAINER
    with _CONTAINER_GUARD:
        _CONTAINER = container


__all__ = ["ServiceContainer", "build_container", "get_container", "reset_container"]
