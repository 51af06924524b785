"""
DOCX Report Builder - audit readiness report as a Word document.

Summary key-value table, risk factors, ranked gap table, category
performance table and the chart images from chart_generator.
Consistent styling: Calibri 10pt, header row shaded, thin borders.
"""

import base64
import io
import logging
from datetime import datetime
from typing import List, Optional

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls
from docx.shared import Cm, Inches, Pt, RGBColor

from backend.readiness.chart_generator import generate_all_charts
from backend.readiness.context import ENGINE_VERSION, RiskClassification, ScoreResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Styling helpers
# ---------------------------------------------------------------------------

_HEADER_BG = "4472C4"
_HEADER_TEXT = RGBColor(0xFF, 0xFF, 0xFF)
_BODY_TEXT = RGBColor(0x1A, 0x1A, 0x2E)
_BORDER_COLOR = "BFBFBF"
_FONT_NAME = "Calibri"
_FONT_SIZE = Pt(10)

_STATUS_FILL = {"red": "F8CBAD", "amber": "FFE699", "green": "C6E0B4"}


def _style_table(table):
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    tbl = table._tbl
    borders = parse_xml(
        f'<w:tblBorders {nsdecls("w")}>'
        f'  <w:top w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'  <w:left w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'  <w:bottom w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'  <w:right w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'  <w:insideH w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'  <w:insideV w:val="single" w:sz="4" w:space="0" w:color="{_BORDER_COLOR}"/>'
        f'</w:tblBorders>'
    )
    tbl.tblPr.append(borders)


def _shade(cell, fill: str):
    cell._tc.get_or_add_tcPr().append(
        parse_xml(f'<w:shd {nsdecls("w")} w:fill="{fill}" w:val="clear"/>')
    )


def _set_cell_text(cell, text: str, bold: bool = False, color: RGBColor = _BODY_TEXT):
    cell.text = ""
    run = cell.paragraphs[0].add_run(str(text))
    run.font.name = _FONT_NAME
    run.font.size = _FONT_SIZE
    run.font.color.rgb = color
    run.bold = bold


def _add_grid_table(doc: Document, headers: List[str], rows: List[List[str]]) -> None:
    table = doc.add_table(rows=len(rows) + 1, cols=len(headers))
    _style_table(table)
    for i, header in enumerate(headers):
        cell = table.rows[0].cells[i]
        _set_cell_text(cell, header, bold=True, color=_HEADER_TEXT)
        _shade(cell, _HEADER_BG)
    for r, row in enumerate(rows, start=1):
        for c, value in enumerate(row):
            _set_cell_text(table.rows[r].cells[c], value)


def _add_kv_table(doc: Document, title: str, rows: List[tuple]) -> None:
    doc.add_heading(title, level=2)
    table = doc.add_table(rows=len(rows), cols=2)
    _style_table(table)
    for i, (key, value) in enumerate(rows):
        _set_cell_text(table.rows[i].cells[0], key, bold=True)
        _set_cell_text(table.rows[i].cells[1], str(value) if value not in (None, "") else "N/A")
    for row in table.rows:
        row.cells[0].width = Cm(6)


# ---------------------------------------------------------------------------
# Report sections
# ---------------------------------------------------------------------------

def _summary(doc: Document, result: ScoreResult,
             classification: Optional[RiskClassification]) -> None:
    ra = result.risk_assessment
    rows = [
        ("Readiness Score", f"{result.score}%"),
        ("Raw Weighted Score", f"{result.raw_score}%"),
        ("Status", result.status.value.upper()),
        ("Critical Failures", ", ".join(result.critical_failures) or "None"),
        ("Questions Answered", result.answered_count),
        ("Overall Risk", ra.overall_risk.value),
        ("Compliance Maturity", ra.compliance_maturity.value),
    ]
    if classification:
        rows.append(("Device Risk Level", classification.level.value))
        rows.append(("Classification Basis", classification.justification))
    _add_kv_table(doc, "Assessment Summary", rows)
    status_cell = doc.tables[-1].rows[2].cells[1]
    _shade(status_cell, _STATUS_FILL[result.status.value])


def _gap_table(doc: Document, result: ScoreResult) -> None:
    doc.add_heading("Ranked Compliance Gaps", level=2)
    if not result.gaps:
        doc.add_paragraph("No gaps identified.")
        return
    rows = [[str(i), g.question_id, g.clause_ref, g.clause_title,
             f"{g.deficit:.2f}", "Yes" if g.critical else "No"]
            for i, g in enumerate(result.gaps, start=1)]
    _add_grid_table(doc, ["#", "Question", "Clause", "Category", "Deficit", "Critical"], rows)


def _category_table(doc: Document, result: ScoreResult) -> None:
    doc.add_heading("Category Performance", level=2)
    rows = [[f.category, f"{f.weight:.1f}", f"{f.actual_score:.2f}", f"{f.performance:.0f}%"]
            for f in result.weighted_breakdown.weighting_factors]
    _add_grid_table(doc, ["Category", "Weight", "Achieved", "Performance"], rows)


def _risk_factors(doc: Document, result: ScoreResult) -> None:
    doc.add_heading("Risk Factors", level=2)
    factors = result.risk_assessment.risk_factors
    if not factors:
        doc.add_paragraph("No significant risk factors identified.")
    for factor in factors:
        doc.add_paragraph(
            f"{factor.description} (impact {factor.impact:.0f}, likelihood {factor.likelihood.value})",
            style="List Bullet",
        )
    doc.add_heading("Mitigation Priority", level=2)
    for item in result.risk_assessment.mitigation_priority:
        doc.add_paragraph(item, style="List Number")


def _charts(doc: Document, result: ScoreResult) -> None:
    charts = generate_all_charts(result)
    if not charts:
        return
    doc.add_heading("Charts", level=1)
    for chart in charts:
        p_title = doc.add_paragraph()
        run = p_title.add_run(chart["title"])
        run.bold = True
        run.font.size = _FONT_SIZE
        run.font.name = _FONT_NAME
        doc.add_picture(io.BytesIO(base64.b64decode(chart["base64_png"])), width=Inches(5.5))
        doc.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER


def build_docx_report(result: ScoreResult,
                      classification: Optional[RiskClassification] = None,
                      include_charts: bool = True,
                      generated_at: Optional[datetime] = None) -> bytes:
    """Render the report and return the .docx bytes."""
    doc = Document()
    title = doc.add_heading("Audit Readiness Report", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    stamp = doc.add_paragraph()
    stamp.add_run(
        f"Generated: {(generated_at or datetime.now()).strftime('%d %B %Y')}"
        f" | Engine {ENGINE_VERSION}"
    ).italic = True
    stamp.alignment = WD_ALIGN_PARAGRAPH.CENTER

    _summary(doc, result, classification)
    _risk_factors(doc, result)
    _gap_table(doc, result)
    _category_table(doc, result)
    if include_charts:
        _charts(doc, result)

    buf = io.BytesIO()
    doc.save(buf)
    logger.info("Built DOCX report (%d gaps, charts=%s)", len(result.gaps), include_charts)
    return buf.getvalue()
