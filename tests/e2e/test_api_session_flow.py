from fastapi.testclient import TestClient

from api_server import app


client = TestClient(app)


def _create(resume_id=1, count=3):
    resp = client.post("/api/interview/session", json={"resume_id": resume_id, "question_count": count})
    assert resp.status_code == 200
    return resp.json()


def test_full_flow(fake_models, grade_reply):
    fake_models.replies = [grade_reply(78, strengths=["names trade-offs"])]

    session = _create()
    assert session["state"] == "CREATED"
    assert session["total_questions"] == 3
    session_id = session["session_id"]

    question = client.get(f"/api/interview/session/{session_id}/question")
    assert question.status_code == 200
    assert question.json()["question_index"] == 0
    assert client.get(f"/api/interview/session/{session_id}").json()["state"] == "IN_PROGRESS"

    answer = client.post(
        "/api/interview/answer",
        json={"session_id": session_id, "question_index": 0, "answer_text": "Chaining keeps lookups O(1) on average."},
    )
    assert answer.status_code == 200
    body = answer.json()
    assert body["record"]["parsed_score"] == 78
    assert body["pointer"] == 1
    assert body["next_question"]["index"] == 1

    saved = client.post(
        "/api/interview/save-answer",
        json={"session_id": session_id, "question_index": 1, "answer_text": "Processes have separate"},
    )
    assert saved.status_code == 200
    assert saved.json()["pointer"] == 1

    completed = client.post(f"/api/interview/{session_id}/complete")
    assert completed.status_code == 200
    assert completed.json()["state"] == "COMPLETED"
    assert completed.json()["has_report"] is True

    report = client.get(f"/api/interview/{session_id}/report").json()
    assert report["overall_score"] == 78.0
    assert report["unanswered_indices"] == [1, 2]
    assert report["strengths"] == ["names trade-offs"]

    detail = client.get(f"/api/interview/{session_id}/detail").json()
    assert [entry["status"] for entry in detail["answers"]] == ["scored", "draft", "unanswered"]

    export = client.get(f"/api/interview/{session_id}/export")
    assert export.status_code == 200
    assert export.headers["content-type"] == "application/pdf"
    assert f"mock-interview-report-{session_id}.pdf" in export.headers["content-disposition"]
    assert export.content.startswith(b"%PDF")


def test_unfinished_lookup_and_conflict(fake_models):
    session = _create(resume_id="cv-9", count=2)

    found = client.get("/api/interview/unfinished/cv-9")
    assert found.status_code == 200
    assert found.json()["session_id"] == session["session_id"]

    duplicate = client.post("/api/interview/session", json={"resume_id": "cv-9", "question_count": 2})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["kind"] == "conflict"

    client.post(f"/api/interview/{session['session_id']}/complete")
    assert client.get("/api/interview/unfinished/cv-9").status_code == 404


def test_error_mapping(fake_models):
    missing = client.get("/api/interview/session/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["detail"]["kind"] == "not_found"

    bad_count = client.post("/api/interview/session", json={"resume_id": 5, "question_count": 0})
    assert bad_count.status_code == 400

    session_id = _create(resume_id=6, count=2)["session_id"]
    out_of_range = client.post(
        "/api/interview/answer", json={"session_id": session_id, "question_index": 5, "answer_text": "x"}
    )
    assert out_of_range.status_code == 400
    assert out_of_range.json()["detail"]["kind"] == "invalid_request"

    no_scores = client.get(f"/api/interview/{session_id}/report")
    assert no_scores.status_code == 422
    assert no_scores.json()["detail"]["kind"] == "insufficient_data"

    client.post(f"/api/interview/{session_id}/complete")
    late = client.post("/api/interview/answer", json={"session_id": session_id, "question_index": 0, "answer_text": "x"})
    assert late.status_code == 409
    assert late.json()["detail"]["kind"] == "invalid_state"


def test_degraded_grading_still_succeeds(fake_models):
    fake_models.replies = ["not json"]
    fake_models.repairs = ["still not json"]
    session_id = _create(resume_id=7, count=1)["session_id"]

    answer = client.post(
        "/api/interview/answer", json={"session_id": session_id, "question_index": 0, "answer_text": "x"}
    )
    assert answer.status_code == 200
    assert answer.json()["degraded"] is True
    assert answer.json()["record"]["feedback"] == "grading unavailable"


def test_health():
    assert client.get("/api/health").json() == {"status": "ok"}
