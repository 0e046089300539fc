from __future__ import annotations  # Prompt builders for the answer grader

from textwrap import dedent

from interview_session.models import Question

GRADER_SYSTEM_PROMPT = (
    "You are a strict technical interviewer grading one answer. "
    "Reply with a single JSON object and nothing else."
)


def build_grading_prompt(question: Question, answer_text: str) -> str:  # Deterministic for a given question/answer
    hints = ", ".join(question.topic_hints) or "(none)"
    answer = answer_text.strip() or "(no answer given)"
    return dedent(
        """
        Question #{number} ({category})
        Topic hints: {hints}

        Question:
        {prompt}

        Candidate answer:
        {answer}

        Grade the answer and return a JSON object with exactly these fields:
        - score: integer from 0 to 100.
        - feedback: two or three sentences on correctness and depth.
        - strengths: list of short phrases, may be empty.
        - improvements: list of short phrases, may be empty.
        An empty or off-topic answer scores 0.
        """
    ).strip().format(
        number=question.index + 1,
        category=question.category or "general",
        hints=hints,
        prompt=question.prompt,
        answer=answer,
    )


def build_repair_prompt(prompt: str, broken_text: str) -> str:  # Ask the grader to fix its own reply
    return dedent(
        """
        Your previous reply to the grading request below could not be parsed.
        Return the same grading as a single valid JSON object with the fields
        score (0-100 number), feedback (string), strengths (list of strings),
        improvements (list of strings). No markdown, no commentary.

        --- GRADING REQUEST
        {prompt}

        --- PREVIOUS REPLY
        {broken}
        """
    ).strip().format(prompt=prompt, broken=broken_text[:4000])


__all__ = ["GRADER_SYSTEM_PROMPT", "build_grading_prompt", "build_repair_prompt"]
