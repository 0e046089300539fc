from __future__ import annotations  # Grading package exports

from .client import GradingClient, LlmGradingClient
from .evaluator import MAX_ATTEMPTS, AnswerEvaluator, SubmitResult
from .normalizer import GraderOutput, NormalizedGrade, RepairNormalizer, parse_strict, syntactic_repair
from .prompts import build_grading_prompt, build_repair_prompt

__all__ = [
    "AnswerEvaluator",
    "GraderOutput",
    "GradingClient",
    "LlmGradingClient",
    "MAX_ATTEMPTS",
    "NormalizedGrade",
    "RepairNormalizer",
    "SubmitResult",
    "build_grading_prompt",
    "build_repair_prompt",
    "parse_strict",
    "syntactic_repair",
]
