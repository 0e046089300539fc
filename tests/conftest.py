import json
import os
import sys
import tempfile
import threading
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import GRADER_KEY, RENDERER_KEY, bind_model, unbind_model
from interview_session import QuestionBankSource, SessionLifecycleManager
from interview_session.errors import TransientGradingFailure
from services.container import build_container, reset_container
from session_reports import FpdfReportRenderer
from storage.sessions import InMemorySessionStore


def _grade_json(score, feedback="Solid answer.", strengths=None, improvements=None):
    return json.dumps(
        {
            "score": score,
            "feedback": feedback,
            "strengths": ["clear structure"] if strengths is None else strengths,
            "improvements": ["more detail"] if improvements is None else improvements,
        }
    )


class ScriptedGrader:
    """Grader replaying queued replies; an exception instance in a queue is raised."""

    def __init__(self, replies=None, repairs=None, default=None):
        self.replies = list(replies or [])
        self.repairs = list(repairs or [])
        self.default = default if default is not None else _grade_json(75)
        self.grade_calls = 0
        self.repair_calls = 0
        self._lock = threading.Lock()

    def _next(self, queue):
        with self._lock:
            item = queue.pop(0) if queue else self.default
        if isinstance(item, Exception):
            raise item
        return item

    def grade(self, prompt):
        with self._lock:
            self.grade_calls += 1
        return self._next(self.replies)

    def repair(self, prompt, broken_text):
        with self._lock:
            self.repair_calls += 1
        return self._next(self.repairs)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        reset_container()
        unbind_model(GRADER_KEY)
        unbind_model(RENDERER_KEY)
        td.cleanup()


@pytest.fixture
def grade_reply():
    return _grade_json


@pytest.fixture
def scripted_grader():
    return ScriptedGrader


@pytest.fixture
def transient():
    return lambda: TransientGradingFailure("grader offline")


@pytest.fixture
def manager():
    return SessionLifecycleManager(InMemorySessionStore(), QuestionBankSource())


@pytest.fixture
def grader():
    return ScriptedGrader()


@pytest.fixture
def container(grader):
    built = build_container(
        store=InMemorySessionStore(),
        grader=grader,
        renderer=FpdfReportRenderer(unicode_fonts=False),
    )
    reset_container(built)
    return built


@pytest.fixture
def fake_models(grader):
    bind_model(GRADER_KEY, grader)
    bind_model(RENDERER_KEY, FpdfReportRenderer(unicode_fonts=False))
    return grader
