from grading.prompts import build_grading_prompt, build_repair_prompt
from interview_session.models import Question


def test_multiline_answer_keeps_prompt_unindented():
    question = Question(index=0, prompt="Explain hashing.", topic_hints=["data structures"])
    prompt = build_grading_prompt(question, "First line\nsecond line\n  indented third")

    lines = prompt.splitlines()
    assert lines[0] == "Question #1 (general)"
    assert lines[1] == "Topic hints: data structures"
    assert "Candidate answer:\nFirst line\nsecond line\n  indented third" in prompt
    assert not any(line.startswith("        ") for line in lines)


def test_answer_with_braces_is_inserted_verbatim():
    question = Question(index=2, prompt="Show a dict literal.", category="python")
    prompt = build_grading_prompt(question, '{"key": 1}')
    assert prompt.startswith("Question #3 (python)")
    assert '{"key": 1}' in prompt


def test_empty_answer_marked():
    prompt = build_grading_prompt(Question(index=0, prompt="Q"), "   ")
    assert "(no answer given)" in prompt


def test_repair_prompt_carries_broken_text():
    prompt = build_repair_prompt("original request", "{broken")
    assert prompt.startswith("Your previous reply")
    assert "original request" in prompt
    assert prompt.endswith("{broken")
