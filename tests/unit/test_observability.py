import logging

from observability import log_event, span
from observability.logger import _format_human


def test_human_format_orders_known_fields():
    line = _format_human({"kind": "answer_graded", "session_id": "s1", "score": 80.0, "question_index": 0, "extra": 1})
    assert line == "session=s1 kind=answer_graded question_index=0 score=80.0"


def test_log_event_reaches_handler():
    records = []

    class _Collector(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger = logging.getLogger("interview.events")
    handler = _Collector()
    logger.addHandler(handler)
    try:
        log_event("session_created", "s1", resume_id="42")
        with span("grade_answer", "s1", question_index=2):
            pass
    finally:
        logger.removeHandler(handler)

    messages = [record.getMessage() for record in records]
    assert "session=s1 kind=session_created resume_id=42" in messages
    assert any("node=grade_answer" in message and "question_index=2" in message for message in messages)
