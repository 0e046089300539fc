from __future__ import annotations  # Session report package exports

from .aggregator import STRATEGIES, ReportAggregator, build_report, resolve_strategy
from .history import InterviewHistoryService, PdfRenderer
from .models import AnswerDetail, InterviewDetail, project_detail
from .pdf import FpdfReportRenderer, default_filename

__all__ = [
    "AnswerDetail",
    "FpdfReportRenderer",
    "InterviewDetail",
    "InterviewHistoryService",
    "PdfRenderer",
    "ReportAggregator",
    "STRATEGIES",
    "build_report",
    "default_filename",
    "project_detail",
    "resolve_strategy",
]
