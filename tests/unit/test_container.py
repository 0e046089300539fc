from config.registry import GRADER_KEY, bind_model
from config.settings import settings
from services.container import build_container, get_container, reset_container
from storage.sessions import InMemorySessionStore, SqliteSessionStore


def test_container_uses_bound_grader(fake_models):
    container = get_container()
    session = container.manager.create_session("r1", 1)
    container.evaluator.submit_answer(session.id, 0, "answer")
    assert fake_models.grade_calls == 1
    assert isinstance(container.manager.store, SqliteSessionStore)
    assert get_container() is container


def test_memory_backend(monkeypatch, grader):
    monkeypatch.setattr(settings, "STORE_BACKEND", "memory")
    bind_model(GRADER_KEY, grader)
    container = build_container()
    assert isinstance(container.manager.store, InMemorySessionStore)


def test_reset_container_installs_instance(container, grader):
    assert get_container() is container
    reset_container()
    replacement = build_container(store=InMemorySessionStore(), grader=grader)
    reset_container(replacement)
    assert get_container() is replacement
