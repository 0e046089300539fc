import pytest

from interview_session.errors import InsufficientData
from interview_session.models import AnswerRecord, InterviewSession, Question, SessionState, utcnow
from session_reports.aggregator import answered_ratio_score, build_report, mean_score, resolve_strategy


def _session(scores, count=None):
    count = count if count is not None else len(scores)
    questions = [Question(index=i, prompt=f"Q{i}") for i in range(count)]
    answers = {}
    for index, score in enumerate(scores):
        if score == "draft":
            answers[index] = AnswerRecord(answer_text="draft")
        elif score is not None:
            answers[index] = AnswerRecord(
                answer_text="a", parsed_score=score, strengths=["clarity"], improvements=["depth"], attempts=1, graded_at=utcnow()
            )
        else:
            answers[index] = AnswerRecord(answer_text="a", feedback="grading unavailable", attempts=3, graded_at=utcnow())
    return InterviewSession(id="s1", resume_id="r1", questions=questions, answers=answers)


def test_mean_of_scored_answers():
    report = build_report(_session([70, 80, 90]))
    assert report.overall_score == 80.0
    assert report.unanswered_indices == []
    assert report.answered_count == 3
    assert report.strengths == ["clarity"]


def test_unanswered_and_degraded_flagged():
    report = build_report(_session([80, None, "draft"], count=5))
    assert report.overall_score == 80.0
    assert report.unanswered_indices == [1, 2, 3, 4]
    assert report.degraded_indices == [1]
    assert [row.status for row in report.question_scores] == ["scored", "degraded", "unanswered", "unanswered", "unanswered"]


def test_no_scores_is_insufficient():
    with pytest.raises(InsufficientData):
        build_report(_session([None, "draft"], count=3))


def test_answered_ratio_strategy():
    report = build_report(_session([80, 60], count=4), answered_ratio_score, strategy_name="answered_ratio")
    assert report.overall_score == 35.0
    assert report.strategy == "answered_ratio"


def test_resolve_strategy():
    assert resolve_strategy("mean") is mean_score
    with pytest.raises(ValueError):
        resolve_strategy("median")


def test_report_cached_until_answer_changes(container, grader):
    manager, evaluator, aggregator = container.manager, container.evaluator, container.aggregator
    session = manager.create_session("r1", 3)
    evaluator.submit_answer(session.id, 0, "first")

    report = aggregator.generate_report(session.id)
    calls = grader.grade_calls
    assert aggregator.generate_report(session.id).generated_at == report.generated_at
    assert grader.grade_calls == calls
    assert grader.repair_calls == 0

    evaluator.save_answer(session.id, 1, "draft")
    assert manager.get_session(session.id).report is None
    regenerated = aggregator.generate_report(session.id)
    assert regenerated.generated_at >= report.generated_at
    assert regenerated.unanswered_indices == [1, 2]


def test_completion_builds_report(container, grader, grade_reply):
    grader.replies = [grade_reply(70), grade_reply(90)]
    manager, evaluator = container.manager, container.evaluator
    session = manager.create_session("r1", 5)
    evaluator.submit_answer(session.id, 0, "a")
    evaluator.submit_answer(session.id, 1, "b")

    completed = manager.complete_interview(session.id)

    assert completed.state == SessionState.COMPLETED
    assert completed.report.overall_score == 80.0
    assert completed.report.unanswered_indices == [2, 3, 4]
    assert container.aggregator.generate_report(session.id) == completed.report


def test_completion_without_scores_has_no_report(container):
    session = container.manager.create_session("r1", 2)
    completed = container.manager.complete_interview(session.id)
    assert completed.state == SessionState.COMPLETED
    assert completed.report is None
    with pytest.raises(InsufficientData):
        container.aggregator.generate_report(session.id)
