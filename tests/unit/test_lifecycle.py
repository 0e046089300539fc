import random
import threading

import pytest

from interview_session import QuestionBankSource, SessionLifecycleManager
from interview_session.errors import Conflict, InvalidRequest, InvalidState, NotFound
from interview_session.questions import DEFAULT_BANK
from config.settings import Settings
from interview_session.models import AnswerRecord, SessionState, utcnow
from storage.sessions import InMemorySessionStore


def _graded(score=70.0):
    return AnswerRecord(answer_text="answer", parsed_score=score, attempts=1, graded_at=utcnow())


def test_create_session_starts_created(manager):
    session = manager.create_session("42", 3)
    assert session.state == SessionState.CREATED
    assert session.pointer == 0
    assert [q.index for q in session.questions] == [0, 1, 2]
    assert manager.get_session(session.id) == session


@pytest.mark.parametrize("count", [0, 11])
def test_question_count_bounds(manager, count):
    with pytest.raises(InvalidRequest) as excinfo:
        manager.create_session("42", count)
    assert "between 1 and 10" in excinfo.value.message


def test_second_unfinished_session_conflicts(manager):
    first = manager.create_session("42", 3)
    with pytest.raises(Conflict):
        manager.create_session("42", 2)
    manager.complete_interview(first.id)
    second = manager.create_session("42", 2)
    assert second.id != first.id


def test_conflict_detected_across_managers_sharing_store():
    store = InMemorySessionStore()
    first = SessionLifecycleManager(store, QuestionBankSource())
    second = SessionLifecycleManager(store, QuestionBankSource())
    session = first.create_session("7", 2)

    with pytest.raises(Conflict):
        second.create_session("7", 2)
    assert second.find_unfinished_session("7").id == session.id


def test_current_question_moves_to_in_progress(manager):
    session = manager.create_session("42", 3)
    question = manager.get_current_question(session.id)
    assert question.index == 0
    assert manager.get_current_question(session.id) == question
    assert manager.get_session(session.id).state == SessionState.IN_PROGRESS


def test_unknown_session_not_found(manager):
    with pytest.raises(NotFound):
        manager.get_session("missing")
    with pytest.raises(NotFound):
        manager.get_current_question("missing")
    with pytest.raises(NotFound):
        manager.complete_interview("missing")


def test_find_unfinished_session(manager):
    session = manager.create_session("42", 3)
    assert manager.find_unfinished_session("42").id == session.id
    with pytest.raises(NotFound):
        manager.find_unfinished_session("43")
    manager.complete_interview(session.id)
    with pytest.raises(NotFound):
        manager.find_unfinished_session("42")


def test_complete_is_idempotent(manager):
    session = manager.create_session("42", 3)
    first = manager.complete_interview(session.id)
    second = manager.complete_interview(session.id)
    assert first.state == SessionState.COMPLETED
    assert second.completed_at == first.completed_at


def test_completed_session_rejects_mutation(manager):
    session = manager.create_session("42", 3)
    manager.complete_interview(session.id)
    with pytest.raises(InvalidState):
        manager.get_current_question(session.id)
    with pytest.raises(InvalidState):
        manager.save_draft(session.id, 0, "late")
    with pytest.raises(InvalidState):
        manager.begin_grading(session.id, 0)
    assert manager.get_session(session.id).state == SessionState.COMPLETED


def test_pointer_skips_already_graded(manager):
    session = manager.create_session("42", 4)
    after_out_of_order = manager.record_answer(session.id, 1, _graded())
    assert after_out_of_order.pointer == 0
    after_current = manager.record_answer(session.id, 0, _graded())
    assert after_current.pointer == 2


def test_pointer_stops_at_question_count(manager):
    session = manager.create_session("42", 2)
    manager.record_answer(session.id, 0, _graded())
    final = manager.record_answer(session.id, 1, _graded())
    assert final.pointer == 2
    assert final.state == SessionState.IN_PROGRESS
    with pytest.raises(InvalidState):
        manager.get_current_question(session.id)


def test_begin_grading_claims_index(manager):
    session = manager.create_session("42", 2)
    question = manager.begin_grading(session.id, 0)
    assert question.index == 0
    with pytest.raises(Conflict):
        manager.begin_grading(session.id, 0)
    manager.finish_grading(session.id, 0)
    assert manager.begin_grading(session.id, 0).index == 0


def test_failed_mutation_leaves_store_untouched(manager):
    session = manager.create_session("42", 2)
    with pytest.raises(RuntimeError):
        with manager.guarded(session.id) as live:
            live.pointer = 1
            raise RuntimeError("boom")
    assert manager.get_session(session.id).pointer == 0


def test_identical_draft_is_noop(manager):
    session = manager.create_session("42", 2)
    first = manager.save_draft(session.id, 0, "text")
    second = manager.save_draft(session.id, 0, "text")
    assert first.answers[0].saved_at == second.answers[0].saved_at
    assert second.updated_at == first.updated_at


def test_default_bounds_fit_question_bank():
    assert Settings(_env_file=None).MAX_QUESTION_COUNT <= len(DEFAULT_BANK)


def test_unknown_ids_leave_no_lock_entries(manager):
    for index in range(200):
        with pytest.raises(NotFound):
            manager.get_current_question(f"unknown-{index}")
    assert manager.tracked_sessions == 0


def test_lock_entries_released_after_use(manager):
    session = manager.create_session("42", 2)
    manager.get_current_question(session.id)
    manager.save_draft(session.id, 0, "draft")
    manager.complete_interview(session.id)
    assert manager.tracked_sessions == 0


def test_lock_entry_kept_while_grading_in_flight(manager):
    session = manager.create_session("42", 2)
    manager.begin_grading(session.id, 0)
    assert manager.tracked_sessions == 1
    with pytest.raises(Conflict):
        manager.begin_grading(session.id, 0)
    manager.finish_grading(session.id, 0)
    assert manager.tracked_sessions == 0


def test_concurrent_create_for_same_resume():
    manager = SessionLifecycleManager(InMemorySessionStore(), QuestionBankSource())
    barrier = threading.Barrier(8)
    created, conflicts = [], []

    def _create():
        barrier.wait(5)
        try:
            created.append(manager.create_session("shared", 2))
        except Conflict:
            conflicts.append(True)

    threads = [threading.Thread(target=_create) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5)

    assert len(created) == 1
    assert len(conflicts) == 7
    assert manager.find_unfinished_session("shared").id == created[0].id
    assert len(manager.store.list_unfinished_by_resume("shared")) == 1


@pytest.mark.parametrize("seed", range(5))
def test_pointer_monotonic_over_mixed_writes(manager, seed):
    rng = random.Random(seed)
    count = 5
    session = manager.create_session(f"resume-{seed}", count)
    previous = 0
    for step in range(40):
        index = rng.randrange(count)
        try:
            if rng.random() < 0.5:
                current = manager.record_answer(session.id, index, _graded(rng.uniform(0, 100)))
            else:
                current = manager.save_draft(session.id, index, f"draft {step}")
        except Conflict:
            current = manager.get_session(session.id)
        assert previous <= current.pointer <= count
        assert all(i in current.graded_indices() for i in range(current.pointer))
        previous = current.pointer
