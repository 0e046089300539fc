"""Question sources feeding new sessions.

Question *content* generation lives outside this service; a source only has
to return an ordered, stable list of :class:`Question` objects.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Protocol, Sequence

from pydantic import BaseModel, Field, TypeAdapter

from .errors import InvalidRequest
from .models import Question, SessionOptions

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):  # Supplies the ordered question list at creation
    def questions(self, count: int, options: SessionOptions) -> List[Question]: ...


class BankEntry(BaseModel):  # Question bank row before indexing
    prompt: str
    category: str = "general"
    topic_hints: List[str] = Field(default_factory=list)


DEFAULT_BANK: List[BankEntry] = [
    BankEntry(
        prompt="Walk me through a project on your resume you are most proud of. What was your role and what did you deliver?",
        category="project",
        topic_hints=["ownership", "impact"],
    ),
    BankEntry(
        prompt="How does a hash map handle collisions, and how does that affect lookup complexity?",
        category="fundamentals",
        topic_hints=["data structures", "complexity"],
    ),
    BankEntry(
        prompt="Explain the difference between a process and a thread. When would you choose one over the other?",
        category="fundamentals",
        topic_hints=["concurrency", "operating systems"],
    ),
    BankEntry(
        prompt="What isolation levels does a relational database offer, and which anomalies does each one prevent?",
        category="database",
        topic_hints=["transactions", "isolation"],
    ),
    BankEntry(
        prompt="How would you design a cache in front of a slow service? Cover invalidation and consistency.",
        category="system design",
        topic_hints=["caching", "consistency"],
    ),
    BankEntry(
        prompt="Describe how you would diagnose a production endpoint whose latency suddenly doubled.",
        category="operations",
        topic_hints=["observability", "debugging"],
    ),
    BankEntry(
        prompt="What happens between typing a URL in the browser and the page rendering?",
        category="networking",
        topic_hints=["dns", "tcp", "http"],
    ),
    BankEntry(
        prompt="How do you make a message consumer idempotent when the broker delivers at least once?",
        category="distributed systems",
        topic_hints=["messaging", "idempotency"],
    ),
    BankEntry(
        prompt="Tell me about a time you disagreed with a technical decision. How was it resolved?",
        category="behavioral",
        topic_hints=["communication", "collaboration"],
    ),
    BankEntry(
        prompt="How would you design rate limiting for a public API? Compare at least two algorithms.",
        category="system design",
        topic_hints=["rate limiting", "token bucket"],
    ),
]


class QuestionBankSource:  # Deterministic selection from a static question bank
    def __init__(self, bank: Sequence[BankEntry] | None = None) -> None:
        self._bank = list(bank) if bank is not None else list(DEFAULT_BANK)

    @classmethod
    def from_file(cls, path: Path) -> "QuestionBankSource":
        entries = TypeAdapter(List[BankEntry]).validate_python(json.loads(path.read_text(encoding="utf-8")))
        logger.info("Loaded %d bank questions from %s", len(entries), path)
        return cls(entries)

    def questions(self, count: int, options: SessionOptions) -> List[Question]:
        if count > len(self._bank):
            raise InvalidRequest(f"question bank holds {len(self._bank)} questions, {count} requested")
        wanted = {topic.lower() for topic in options.topics}

        def _matches(entry: BankEntry) -> bool:
            labels = {entry.category.lower(), *(hint.lower() for hint in entry.topic_hints)}
            return bool(wanted & labels)

        # Topic matches first, bank order otherwise
        preferred = [entry for entry in self._bank if wanted and _matches(entry)]
        rest = [entry for entry in self._bank if entry not in preferred]
        chosen = (preferred + rest)[:count]
        return [
            Question(index=index, prompt=entry.prompt, topic_hints=list(entry.topic_hints), category=entry.category)
            for index, entry in enumerate(chosen)
        ]


__all__ = ["BankEntry", "DEFAULT_BANK", "QuestionBankSource", "QuestionSource"]
