"""Report aggregation over a session's answer records."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from config.settings import settings
from interview_session.errors import InsufficientData
from interview_session.lifecycle import SessionLifecycleManager
from interview_session.models import InterviewSession, QuestionScore, Report
from observability import log_event

logger = logging.getLogger(__name__)

ScoringStrategy = Callable[[Sequence[float], int], float]

MAX_HIGHLIGHTS = 5


def _round1(value: float) -> float:
    """Round a float to one decimal place with stable formatting."""
    return float(f"{value:.1f}")


def mean_score(scores: Sequence[float], total_questions: int) -> float:
    """Plain mean over scored answers; unanswered questions do not count."""
    return sum(scores) / len(scores)


def answered_ratio_score(scores: Sequence[float], total_questions: int) -> float:
    """Mean scaled by the share of questions that received a score."""
    if total_questions <= 0:
        return 0.0
    return mean_score(scores, total_questions) * len(scores) / total_questions


STRATEGIES: Dict[str, ScoringStrategy] = {
    "mean": mean_score,
    "answered_ratio": answered_ratio_score,
}


def resolve_strategy(name: str) -> ScoringStrategy:
    try:
        return STRATEGIES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown scoring strategy '{name}'; expected one of {sorted(STRATEGIES)}") from exc


def _band(overall: float) -> str:
    if overall >= 85:
        return "excellent"
    if overall >= 70:
        return "good"
    if overall >= 50:
        return "fair"
    return "needs improvement"


def _unique(items: Sequence[str], limit: int) -> List[str]:
    seen: List[str] = []
    for item in items:
        key = item.strip()
        if key and key.lower() not in {entry.lower() for entry in seen}:
            seen.append(key)
        if len(seen) >= limit:
            break
    return seen


def _question_scores(session: InterviewSession) -> List[QuestionScore]:
    rows: List[QuestionScore] = []
    for question in session.questions:
        record = session.answers.get(question.index)
        if record is not None and record.is_scored:
            status = "scored"
        elif record is not None and record.is_degraded:
            status = "degraded"
        else:
            status = "unanswered"
        rows.append(
            QuestionScore(
                index=question.index,
                prompt=question.prompt,
                category=question.category,
                score=record.parsed_score if status == "scored" else None,
                feedback=record.feedback if record is not None and status != "unanswered" else "",
                status=status,
            )
        )
    return rows


def _narrative(rows: Sequence[QuestionScore], overall: float, total: int) -> str:
    scored = [row for row in rows if row.status == "scored"]
    best = max(scored, key=lambda row: (row.score, -row.index))
    worst = min(scored, key=lambda row: (row.score, row.index))
    parts = [
        f"Scored {len(scored)} of {total} questions with an overall score of {overall:.1f}/100 ({_band(overall)}).",
    ]
    if len(scored) > 1:
        parts.append(f"Strongest answer: Q{best.index + 1} ({best.score:.0f}).")
        parts.append(f"Weakest answer: Q{worst.index + 1} ({worst.score:.0f}).")
    unanswered = sum(1 for row in rows if row.status == "unanswered")
    degraded = sum(1 for row in rows if row.status == "degraded")
    if unanswered:
        parts.append(f"{unanswered} question(s) were not answered.")
    if degraded:
        parts.append(f"{degraded} answer(s) could not be graded.")
    return " ".join(parts)


def build_report(session: InterviewSession, strategy: ScoringStrategy = mean_score, *, strategy_name: str = "mean") -> Report:
    """Aggregate ``session`` into a report.

    Raises:
        InsufficientData: if no answer carries a parsed score.
    """

    rows = _question_scores(session)
    scores = [row.score for row in rows if row.score is not None]
    if not scores:
        raise InsufficientData(f"session '{session.id}' has no scored answers")
    total = session.question_count
    overall = _round1(min(100.0, max(0.0, strategy(scores, total))))
    records = [session.answers[row.index] for row in rows if row.status == "scored"]
    return Report(
        session_id=session.id,
        question_scores=rows,
        overall_score=overall,
        summary=_narrative(rows, overall, total),
        strengths=_unique([item for record in records for item in record.strengths], MAX_HIGHLIGHTS),
        improvements=_unique([item for record in records for item in record.improvements], MAX_HIGHLIGHTS),
        unanswered_indices=[row.index for row in rows if row.status != "scored"],
        degraded_indices=[row.index for row in rows if row.status == "degraded"],
        answered_count=len(scores),
        total_questions=total,
        strategy=strategy_name,
    )


class ReportAggregator:  # Cached report generation per session
    def __init__(self, manager: SessionLifecycleManager, *, strategy: Optional[str] = None) -> None:
        self._manager = manager
        self._strategy_name = strategy or settings.SCORING_STRATEGY
        self._strategy = resolve_strategy(self._strategy_name)

    @property
    def strategy_name(self) -> str:
        return self._strategy_name

    def build(self, session: InterviewSession) -> Report:
        return build_report(session, self._strategy, strategy_name=self._strategy_name)

    def generate_report(self, session_id: str) -> Report:
        with self._manager.guarded(session_id, allow_completed=True) as session:
            if session.report is not None:
                logger.debug("Report cache hit for session %s", session_id)
                return session.report
            report = self.build(session)
            session.report = report
        log_event(
            "report_generated",
            session_id,
            score=report.overall_score,
            outcome=f"{report.answered_count}/{report.total_questions}",
        )
        return report


__all__ = [
    "STRATEGIES",
    "ReportAggregator",
    "ScoringStrategy",
    "answered_ratio_score",
    "build_report",
    "mean_score",
    "resolve_strategy",
]
