"""Repair pipeline for grader replies.

Graders are asked for a JSON object but frequently wrap it in markdown fences,
append commentary, or stop mid-object. Parsing runs as a fixed sequence of
stages, each a plain function of the text it receives:

1. ``strict``    – ``json.loads`` + schema validation of the raw reply.
2. ``syntactic`` – strip fences, cut trailing prose, close open strings and
   brackets, drop trailing commas, then parse again.
3. ``remote``    – one ``GradingClient.repair`` round-trip, then parse the
   reply (strict, falling back to syntactic).

Scores that are not numbers, or that fall outside [0, 100] by more than the
configured tolerance, fail the stage rather than being clamped here.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from config.settings import settings
from interview_session.errors import MalformedGradingOutput, TransientGradingFailure

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?(.*?)(?:```|$)", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSERS = {"{": "}", "[": "]"}


class GraderOutput(BaseModel):  # Structured grader verdict
    score: float = Field(validation_alias=AliasChoices("score", "overall_score", "overallScore"))
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        if math.isnan(value) or math.isinf(value):
            raise ValueError("score must be finite")
        return value

    @field_validator("feedback", mode="before")
    @classmethod
    def _text_feedback(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return " ".join(str(item) for item in value)
        return value

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


@dataclass
class NormalizedGrade:  # Successful parse plus where it came from
    output: GraderOutput
    raw_text: str
    stage: str
    attempts: int


# --------------------------------------------------------------------- transforms


def strip_code_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return text.strip()


def extract_object(text: str) -> str:
    """Return the first top-level ``{...}`` block, dropping prose around it.

    An object that never closes is returned up to the end of the text.
    """

    start = text.find("{")
    if start < 0:
        return text
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        char = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[start : pos + 1]
    return text[start:]


def balance_brackets(text: str) -> str:
    """Close an unterminated string and any open objects or arrays."""

    stack: List[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in "}]" and stack:
            stack.pop()
    suffix = '"' if in_string else ""
    suffix += "".join(_CLOSERS[opener] for opener in reversed(stack))
    return text + suffix


def drop_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def syntactic_repair(raw: str) -> str:
    text = strip_code_fences(raw)
    text = extract_object(text)
    text = balance_brackets(text.rstrip())
    return drop_trailing_commas(text)


def parse_strict(raw: str, *, tolerance: Optional[float] = None) -> Optional[GraderOutput]:
    """Parse ``raw`` as a grader verdict, or return ``None``."""

    slack = settings.SCORE_TOLERANCE if tolerance is None else tolerance
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        output = GraderOutput.model_validate(data)
    except ValidationError as exc:
        logger.debug("Grader output failed validation: %s", exc)
        return None
    if not -slack <= output.score <= 100.0 + slack:
        logger.debug("Grader score %s outside accepted range", output.score)
        return None
    return output


# ----------------------------------------------------------------------- pipeline

Stage = Callable[[str, str], Tuple[Optional[GraderOutput], str]]


class RepairNormalizer:  # Runs the parse stages within a repair budget
    def __init__(self, client, *, tolerance: Optional[float] = None) -> None:
        self._client = client
        self._tolerance = settings.SCORE_TOLERANCE if tolerance is None else tolerance

    def strict(self, prompt: str, raw: str) -> Tuple[Optional[GraderOutput], str]:
        return parse_strict(raw, tolerance=self._tolerance), raw

    def syntactic(self, prompt: str, raw: str) -> Tuple[Optional[GraderOutput], str]:
        repaired = syntactic_repair(raw)
        return parse_strict(repaired, tolerance=self._tolerance), repaired

    def remote(self, prompt: str, raw: str) -> Tuple[Optional[GraderOutput], str]:
        try:
            fixed = self._client.repair(prompt, raw)
        except TransientGradingFailure as exc:
            logger.warning("Remote repair call failed: %s", exc)
            return None, raw
        output, text = self.strict(prompt, fixed)
        if output is None:
            output, text = self.syntactic(prompt, fixed)
        return output, text

    def stages(self) -> List[Tuple[str, Stage]]:
        return [("strict", self.strict), ("syntactic", self.syntactic), ("remote", self.remote)]

    def normalize(self, prompt: str, raw: str, *, repair_rounds: int = 2) -> NormalizedGrade:
        """Parse ``raw``, spending at most ``repair_rounds`` repair stages.

        Raises:
            MalformedGradingOutput: when every stage within the budget fails.
        """

        stages = self.stages()[: 1 + max(0, repair_rounds)]
        last_text = raw
        for attempt, (name, stage) in enumerate(stages, start=1):
            output, text = stage(prompt, raw)
            if output is not None:
                if attempt > 1:
                    logger.info("Grader output recovered by %s stage", name)
                return NormalizedGrade(output=output, raw_text=text, stage=name, attempts=attempt)
            last_text = text
        raise MalformedGradingOutput(
            "grader output could not be parsed",
            attempts=len(stages),
            raw_text=last_text,
        )


__all__ = [
    "GraderOutput",
    "NormalizedGrade",
    "RepairNormalizer",
    "balance_brackets",
    "drop_trailing_commas",
    "extract_object",
    "parse_strict",
    "strip_code_fences",
    "syntactic_repair",
]
