from fpdf import FPDF
from fpdf.enums import XPos, YPos

from ..models.analysis import AnalysisReport

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MARGIN = 20
_TEXT_WIDTH = 170  # A4 width (210) minus margins

_UNICODE_REPLACEMENTS = {
    "\u2014": "--",   # em dash
    "\u2013": "-",    # en dash
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
    "\u00a0": " ",
    "\u2022": "-",    # bullet
}

SCENARIO_LABELS = {
    "romance": "Romance scam",
    "marketplace": "Marketplace scam (Kijiji/FB etc.)",
    "cra_tax": "CRA tax scam",
    "highway407_toll": "Highway 407 toll scam",
    "pig_butchering": "Investment scam (pig butchering)",
    "unknown": "Unknown / unclear",
}

CATEGORY_LABELS = {
    "verify_identity": "Verify identity",
    "payment_safety": "Payment safety",
    "safe_meeting": "Safe meeting",
    "official_verification": "Official verification",
    "stop_contact": "Stop contact",
    "reporting": "Reporting",
}


def _sanitize(text: str) -> str:
    for char, repl in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, repl)
    return text.encode("latin-1", errors="ignore").decode("latin-1")


def _level_color(level: str) -> tuple[int, int, int]:
    return {
        "low":    (34, 139, 34),
        "medium": (210, 120, 0),
        "high":   (200, 30, 30),
    }.get(level, (0, 0, 0))


def _divider(pdf: FPDF) -> None:
    pdf.set_draw_color(200, 200, 200)
    pdf.line(_MARGIN, pdf.get_y(), 210 - _MARGIN, pdf.get_y())
    pdf.ln(6)


def _heading(pdf: FPDF, text: str) -> None:
    pdf.set_font("Helvetica", "B", 12)
    pdf.set_text_color(15, 15, 15)
    pdf.cell(_TEXT_WIDTH, 7, text=text, align="L")
    pdf.ln(8)


def _block(pdf: FPDF, text: str) -> None:
    pdf.multi_cell(
        _TEXT_WIDTH, 5.5, text=_sanitize(text), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT
    )


def _paragraph(pdf: FPDF, text: str, size: float = 10, indent: str = "") -> None:
    pdf.set_font("Helvetica", "", size)
    pdf.set_text_color(50, 50, 50)
    _block(pdf, f"{indent}{text}")


def _bullets(pdf: FPDF, items: list[str], indent: str = "  ") -> None:
    for item in items:
        _paragraph(pdf, item, size=9.5, indent=f"{indent}-  ")


# ---------------------------------------------------------------------------
# PDF class
# ---------------------------------------------------------------------------

class _ReportPDF(FPDF):
    def footer(self) -> None:
        self.set_y(-14)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(170, 170, 170)
        self.cell(0, 10, f"ScamCheck  |  Page {self.page_no()}", align="C")


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------

def render_report_pdf(report: AnalysisReport) -> bytes:
    pdf = _ReportPDF(format="A4")
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.set_margins(_MARGIN, _MARGIN, _MARGIN)
    pdf.add_page()

    # ── Title ──────────────────────────────────────────────────────────────
    pdf.set_font("Helvetica", "B", 20)
    pdf.set_text_color(15, 15, 15)
    pdf.cell(_TEXT_WIDTH, 10, text="Scam Risk Report", align="L")
    pdf.ln(12)

    # ── Scenario / risk / confidence ───────────────────────────────────────
    pdf.set_font("Helvetica", "", 11)
    pdf.set_text_color(60, 60, 60)
    scenario = SCENARIO_LABELS.get(report.scenario, report.scenario)
    pdf.cell(_TEXT_WIDTH, 6, text=f"Scenario: {scenario}", align="L")
    pdf.ln(6)

    r, g, b = _level_color(report.risk_level)
    pdf.set_font("Helvetica", "B", 11)
    pdf.set_text_color(r, g, b)
    confidence_pct = round(report.confidence * 100)
    pdf.cell(
        _TEXT_WIDTH,
        6,
        text=f"Risk: {report.risk_level.upper()}  (confidence {confidence_pct}%)",
        align="L",
    )
    pdf.ln(8)

    _divider(pdf)

    # ── Summary ────────────────────────────────────────────────────────────
    if report.summary:
        _heading(pdf, "Summary")
        _paragraph(pdf, report.summary, size=11)
        pdf.ln(4)

    # ── Red flags ──────────────────────────────────────────────────────────
    if report.red_flags:
        _heading(pdf, "Red flags")
        for flag in report.red_flags:
            r, g, b = _level_color(flag.severity)
            pdf.set_font("Helvetica", "B", 10)
            pdf.set_text_color(r, g, b)
            _block(pdf, f"[{flag.severity}] {flag.title}")
            _paragraph(pdf, flag.description)
            _bullets(pdf, flag.evidence)
            pdf.ln(3)

    # ── Inconsistencies ────────────────────────────────────────────────────
    if report.inconsistencies:
        _heading(pdf, "Inconsistencies")
        for item in report.inconsistencies:
            pdf.set_font("Helvetica", "B", 10)
            pdf.set_text_color(30, 30, 30)
            _block(pdf, f"{item.type.title()}: {item.description}")
            _paragraph(pdf, f"Why it matters: {item.why_it_matters}")
            if item.suggested_questions:
                _paragraph(pdf, "Questions to ask:")
                _bullets(pdf, item.suggested_questions)
            pdf.ln(3)

    # ── Next steps ─────────────────────────────────────────────────────────
    if report.next_steps:
        _heading(pdf, "Next steps")
        for step in report.next_steps:
            pdf.set_font("Helvetica", "B", 10)
            pdf.set_text_color(30, 30, 30)
            pdf.cell(_TEXT_WIDTH, 6, text=CATEGORY_LABELS.get(step.category, step.category), align="L")
            pdf.ln(6)
            _bullets(pdf, step.steps)
            pdf.ln(2)

    # ── Safety notes ───────────────────────────────────────────────────────
    if report.safety_notes:
        _divider(pdf)
        _heading(pdf, "Safety notes")
        _bullets(pdf, report.safety_notes, indent="")

    return bytes(pdf.output())
