from __future__ import annotations  # Styled PDF rendering for interview reports

import math
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .models import AnswerDetail, InterviewDetail


DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background
WARN = (200, 90, 40)  # Degraded / unanswered marker


def _format_datetime(value: Optional[datetime]) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _score_value(value: Optional[float]) -> str:  # Format 0-100 score for display
    if value is None:
        return "N/A"
    return f"{value:.1f}/100"


def _calc_text_height(pdf: FPDF, width: float, text: str, line_height: float) -> float:  # Estimate multi-cell height
    if not text:
        return line_height
    lines = pdf.multi_cell(width, line_height, text, dry_run=True, output="LINES")
    if isinstance(lines, (list, tuple)):
        return line_height * max(1, len(lines))
    return max(1, math.ceil(len(text) / 90)) * line_height


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args, accent: Tuple[int, int, int] = ACCENT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Mock Interview Report"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_unicode_font(self) -> None:
        try:
            self.add_font("DejaVu", "", DEJAVU_SANS)
            self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        except (OSError, RuntimeError):  # font files missing on this host
            return
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("…", "...")
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def header(self) -> None:  # Render header banner
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_font(self.font_bold, "B", 16)
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, 20, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 6)
            self.multi_cell(usable, 8, self.prepare_text(self.header_title))
            self.set_text_color(*TEXT)
            self.ln(4)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.multi_cell(usable, 6, self.prepare_text(self.header_title))
            mark = self.get_y()
            self.set_draw_color(*self.accent)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
    pdf.cell(0, 9, pdf.prepare_text(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Draw two-column metadata
    col = _effective_width(pdf) / 2.0
    line = 6
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(col, line, pdf.prepare_text(left[0]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, pdf.prepare_text(right[0]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        pdf.cell(col, line, pdf.prepare_text(left[1]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, pdf.prepare_text(right[1]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _bullets(pdf: ReportPDF, items: Sequence[str], empty: str) -> None:
    bullet = "•" if pdf.supports_unicode else "-"
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_regular, "", 11)
    if not items:
        pdf.set_text_color(*MUTED)
        pdf.multi_cell(_effective_width(pdf), 6, pdf.prepare_text(empty))
        pdf.set_text_color(*TEXT)
        pdf.ln(2)
        return
    pdf.set_text_color(*TEXT)
    for item in items:
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(_effective_width(pdf), 6, pdf.prepare_text(f"{bullet} {item}"))
    pdf.ln(2)


def _render_overall(pdf: ReportPDF, detail: InterviewDetail) -> None:  # Highlight box with overall score
    report = detail.report
    if report is None:
        return
    width = _effective_width(pdf)
    top = pdf.get_y()
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, top, width, 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, top + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.cell(width - 12, 6, pdf.prepare_text(f"Overall score ({report.strategy})"))
    pdf.set_xy(pdf.l_margin, top + 4)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 14)
    pdf.cell(width - 6, 8, _score_value(report.overall_score), align="R")
    pdf.set_y(top + 20)
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf.font_regular, "", 11)
    pdf.multi_cell(width, 6, pdf.prepare_text(report.summary))
    pdf.ln(2)


def _render_score_table(pdf: ReportPDF, answers: Sequence[AnswerDetail]) -> None:  # Per-question score table
    width = _effective_width(pdf)
    headers = ["#", "Category", "Score", "Status"]
    widths = [width * 0.08, width * 0.44, width * 0.24, width * 0.24]
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf.font_bold, "B", 10)
    for idx, title in enumerate(headers):
        pdf.cell(widths[idx], 8, title, align="L", fill=True)
    pdf.ln(8)
    pdf.set_font(pdf.font_regular, "", 10)
    for idx, entry in enumerate(answers):
        fill = idx % 2 == 0
        if fill:
            pdf.set_fill_color(247, 250, 255)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.cell(widths[0], 7, str(entry.index + 1), fill=fill)
        pdf.cell(widths[1], 7, pdf.prepare_text(entry.category or "general"), fill=fill)
        pdf.cell(widths[2], 7, _score_value(entry.score), fill=fill)
        if entry.status != "scored":
            pdf.set_text_color(*WARN)
        pdf.cell(widths[3], 7, entry.status, fill=fill)
        pdf.ln(7)
    pdf.set_text_color(*TEXT)
    pdf.ln(2)


def _render_answer(pdf: ReportPDF, entry: AnswerDetail) -> None:  # Question, answer and feedback block
    width = _effective_width(pdf)
    line = 5.5
    question = f"Q{entry.index + 1}: {entry.prompt.strip()}"
    answer = f"A: {(entry.answer_text or '-').strip()}"
    feedback = f"Feedback: {entry.feedback.strip() or '-'}"
    block = sum(
        _calc_text_height(pdf, width - 4, pdf.prepare_text(text), line) for text in (question, answer, feedback)
    ) + 6
    if pdf.get_y() + block > pdf.page_break_trigger:
        pdf.add_page()
    origin_y = pdf.get_y()
    pdf.set_fill_color(248, 249, 255)
    pdf.rect(pdf.l_margin, origin_y, width, block, style="F")
    pdf.set_xy(pdf.l_margin + 2, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.multi_cell(width - 4, line, pdf.prepare_text(question))
    pdf.set_x(pdf.l_margin + 2)
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.multi_cell(width - 4, line, pdf.prepare_text(answer))
    pdf.set_x(pdf.l_margin + 2)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 9)
    pdf.multi_cell(width - 4, line, pdf.prepare_text(feedback))
    bottom = max(pdf.get_y(), origin_y + block)
    pdf.set_y(bottom + 3)
    pdf.set_text_color(*TEXT)


class FpdfReportRenderer:  # PdfRenderer implementation built on fpdf2
    def __init__(self, *, unicode_fonts: bool = True) -> None:
        self._unicode_fonts = unicode_fonts

    def render(self, detail: InterviewDetail) -> bytes:
        pdf = ReportPDF()
        if self._unicode_fonts:
            pdf.use_unicode_font()
        pdf.header_title = f"Mock Interview Report - {detail.session_id[:8]}"
        pdf.set_margins(15, 26, 15)
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()

        _section_title(pdf, "Session Overview")
        answered = sum(1 for entry in detail.answers if entry.status in ("scored", "degraded"))
        _meta_block(
            pdf,
            [
                ("Session ID", detail.session_id),
                ("Resume ID", detail.resume_id),
                ("State", detail.state.value),
                ("Answered", f"{answered}/{detail.total_questions}"),
                ("Created", _format_datetime(detail.created_at)),
                ("Completed", _format_datetime(detail.completed_at)),
            ],
        )

        _section_title(pdf, "Overall Result")
        if detail.report is None:
            _bullets(pdf, [], "No scored answers; overall result unavailable.")
        else:
            _render_overall(pdf, detail)
            _section_title(pdf, "Strengths")
            _bullets(pdf, detail.report.strengths, "No strengths recorded.")
            _section_title(pdf, "Areas to Improve")
            _bullets(pdf, detail.report.improvements, "No improvement areas recorded.")

        _section_title(pdf, "Question Scores")
        _render_score_table(pdf, detail.answers)

        _section_title(pdf, "Question & Answer Transcript")
        for entry in detail.answers:
            _render_answer(pdf, entry)

        output = pdf.output()
        return bytes(output)


def default_filename(session_id: str) -> str:
    return f"mock-interview-report-{session_id}.pdf"


__all__ = ["FpdfReportRenderer", "ReportPDF", "default_filename"]
