"""
report_builder.py — PDF and Excel exports for boundary analysis.

Generates:
- Boundary Report PDF (selection summary, statistics, per-grade cards, trend chart, data table)
- Excel Export        (saved calculations sheet, chart data sheet)

PDFs are A4, print-ready with app name / date footer.
"""

import io
from datetime import datetime
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm, mm
from reportlab.platypus import (
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from core.grading import GRADE_ORDER, session_label, sort_grades


# ── Colour palette ──────────────────────────────────────────────────

BRAND_DARK  = colors.HexColor("#1a1a2e")
BRAND_ACCENT = colors.HexColor("#0f3460")
LIGHT_GREY  = colors.HexColor("#f5f5f5")
WHITE       = colors.white

GRADE_COLORS = {
    "A*": "#16a34a",
    "A": "#2563eb",
    "B": "#9333ea",
    "C": "#ea580c",
    "D": "#f39c12",
    "E": "#e94560",
    "U": "#7f8c8d",
}


# ── Helpers ─────────────────────────────────────────────────────────

def _footer(canvas, doc, app_name: str):
    """Draw app name and date in the page footer."""
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    footer_text = f"{app_name} — Generated {datetime.now().strftime('%d %B %Y, %H:%M')}"
    canvas.drawString(2 * cm, 1.2 * cm, footer_text)
    canvas.drawRightString(A4[0] - 2 * cm, 1.2 * cm, f"Page {doc.page}")
    canvas.restoreState()


def _chart_to_image(fig, width=15 * cm, height=8 * cm) -> Image:
    """Convert a matplotlib figure to a ReportLab Image."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return Image(buf, width=width, height=height)


def _row_label(row: Dict[str, Any]) -> str:
    return f"{row['year']} {session_label(row['session'])}"


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


def _styles():
    """Return custom paragraph styles."""
    ss = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "CustomTitle", parent=ss["Title"],
            fontSize=24, leading=30, textColor=BRAND_DARK,
            spaceAfter=4 * mm,
        ),
        "subtitle": ParagraphStyle(
            "CustomSubtitle", parent=ss["Normal"],
            fontSize=13, leading=17, textColor=BRAND_ACCENT,
            spaceAfter=4 * mm,
        ),
        "heading": ParagraphStyle(
            "CustomHeading", parent=ss["Heading2"],
            fontSize=14, leading=18, textColor=BRAND_DARK,
            spaceBefore=6 * mm, spaceAfter=3 * mm,
        ),
        "body": ParagraphStyle(
            "CustomBody", parent=ss["Normal"],
            fontSize=10, leading=14, textColor=colors.black,
            spaceAfter=3 * mm,
        ),
        "center": ParagraphStyle(
            "CenterBody", parent=ss["Normal"],
            fontSize=10, leading=14, alignment=TA_CENTER,
        ),
    }


def _make_table(data: List[List], col_widths=None, header_color=BRAND_DARK):
    """Create a styled table."""
    style_cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), WHITE),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("FONTSIZE", (0, 1), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [WHITE, LIGHT_GREY]),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    t = Table(data, colWidths=col_widths, repeatRows=1)
    t.setStyle(TableStyle(style_cmds))
    return t


def _grades_in_rows(chart_rows: List[Dict[str, Any]]) -> List[str]:
    grades = set()
    for row in chart_rows:
        grades.update(row.get("values", {}).keys())
    return sort_grades(g for g in grades if g in GRADE_ORDER)


def _boundary_trend_chart(chart_rows: List[Dict[str, Any]]) -> Optional[Image]:
    """Line chart of each grade's threshold across the selected papers."""
    if not chart_rows:
        return None

    labels = [_row_label(r) for r in chart_rows]
    fig, ax = plt.subplots(figsize=(8, 4))
    for grade in _grades_in_rows(chart_rows):
        points = [(i, r["values"][grade]) for i, r in enumerate(chart_rows) if grade in r["values"]]
        if not points:
            continue
        xs, ys = zip(*points)
        ax.plot(xs, ys, marker="o", linewidth=2, markersize=5,
                color=GRADE_COLORS.get(grade, "#0f3460"), label=f"Grade {grade}")

    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=35, ha="right", fontsize=8)
    ax.set_ylabel("Raw mark", fontsize=10)
    ax.set_title("Grade Boundary Trend", fontsize=12, fontweight="bold", pad=12)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.legend(fontsize=8, frameon=False)
    fig.tight_layout()
    return _chart_to_image(fig)


# ═══════════════════════════════════════════════════════════════════
# 1. BOUNDARY REPORT PDF
# ═══════════════════════════════════════════════════════════════════

def generate_boundary_report_pdf(
    output_path: str,
    app_name: str,
    selection: Dict[str, Any],
    analysis: Dict[str, Any],
    grade_cards: List[Dict[str, Any]],
    chart_rows: List[Dict[str, Any]],
):
    """Generate a grade boundary analysis report PDF."""
    st = _styles()
    story = []

    story.append(Paragraph(app_name, st["title"]))
    story.append(Paragraph("Grade Boundary Analysis", st["subtitle"]))
    story.append(Paragraph(datetime.now().strftime("%d %B %Y"), st["body"]))

    years = ", ".join(str(y) for y in selection.get("years", [])) or "-"
    sessions = ", ".join(session_label(s) for s in selection.get("sessions", [])) or "-"
    grades = ", ".join(selection.get("grades", [])) or "-"
    story.append(Paragraph(
        f"<b>Grades:</b> {grades} &nbsp; <b>Years:</b> {years} &nbsp; "
        f"<b>Sessions:</b> {sessions} &nbsp; <b>Mode:</b> {selection.get('mode', 'separate')}",
        st["body"],
    ))

    # ── Summary ────────────────────────────────────────────────────
    story.append(Paragraph("1) Summary Statistics", st["heading"]))
    mn, mx = analysis.get("min", {}), analysis.get("max", {})
    summary_data = [
        ["Metric", "Value"],
        ["Lowest boundary", f"{_fmt(mn.get('value'))} ({_fmt(mn.get('year'))} {_fmt(mn.get('session'))})"],
        ["Highest boundary", f"{_fmt(mx.get('value'))} ({_fmt(mx.get('year'))} {_fmt(mx.get('session'))})"],
        ["Average", _fmt(analysis.get("average"))],
        ["Most common", _fmt(analysis.get("mode"))],
        ["Trend", str(analysis.get("trend", "stable")).title()],
        ["Safety target", _fmt(analysis.get("safety_margin"))],
        ["Observations", _fmt(analysis.get("observation_count"))],
    ]
    story.append(_make_table(summary_data, col_widths=[6 * cm, 8 * cm]))
    story.append(Spacer(1, 3 * mm))
    story.append(Paragraph(analysis.get("trend_description", ""), st["body"]))
    story.append(Paragraph(analysis.get("safety_recommendation", ""), st["body"]))

    # ── Per-grade cards ────────────────────────────────────────────
    if grade_cards:
        story.append(Paragraph("2) Individual Grade Analysis", st["heading"]))
        card_data = [["Grade", "Min", "Max", "Average", "Mode", "Trend", "Target"]]
        for card in grade_cards:
            card_data.append([
                card.get("grade", "?"),
                _fmt(card.get("min", {}).get("value")),
                _fmt(card.get("max", {}).get("value")),
                _fmt(card.get("average")),
                _fmt(card.get("mode")),
                str(card.get("trend", "stable")).title(),
                _fmt(card.get("safety_margin")),
            ])
        story.append(_make_table(card_data))

    # ── Chart + data table ─────────────────────────────────────────
    chart = _boundary_trend_chart(chart_rows)
    if chart:
        story.append(Paragraph("3) Boundary Trend", st["heading"]))
        story.append(chart)

        grade_cols = _grades_in_rows(chart_rows)
        table_data = [["Paper"] + [f"Grade {g}" for g in grade_cols]]
        for row in chart_rows:
            table_data.append([_row_label(row)] + [_fmt(row["values"].get(g)) for g in grade_cols])
        story.append(Spacer(1, 3 * mm))
        story.append(_make_table(table_data))
    else:
        story.append(Paragraph("No boundary data matches this selection.", st["center"]))

    doc = SimpleDocTemplate(
        output_path,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2.5 * cm,
    )
    doc.build(
        story,
        onFirstPage=lambda c, d: _footer(c, d, app_name),
        onLaterPages=lambda c, d: _footer(c, d, app_name),
    )


# ═══════════════════════════════════════════════════════════════════
# 2. EXCEL EXPORT
# ═══════════════════════════════════════════════════════════════════

def generate_excel_export(
    output_path: str,
    app_name: str,
    calculations: List[Dict[str, Any]],
    chart_rows: Optional[List[Dict[str, Any]]] = None,
):
    """Export saved calculations (and optionally boundary chart data) to Excel."""
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )
    grade_fills = {
        g: PatternFill(start_color=c.lstrip("#"), end_color=c.lstrip("#"), fill_type="solid")
        for g, c in GRADE_COLORS.items()
    }

    def _style_sheet(ws, grade_col_idx: Optional[int] = None):
        """Apply formatting to a worksheet."""
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")
            cell.border = thin_border

        for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
            for cell in row:
                cell.border = thin_border
                cell.alignment = Alignment(horizontal="center")
            if grade_col_idx:
                grade_cell = row[grade_col_idx - 1]
                fill = grade_fills.get(str(grade_cell.value))
                if fill:
                    grade_cell.fill = fill
                    grade_cell.font = Font(bold=True, color="FFFFFF")

        ws.freeze_panes = "A2"

        for col_cells in ws.columns:
            max_len = max(len(str(cell.value or "")) for cell in col_cells)
            ws.column_dimensions[col_cells[0].column_letter].width = min(max_len + 4, 30)

    wb = Workbook()

    # ── Sheet 1: Saved calculations ────────────────────────────────
    ws_calc = wb.active
    ws_calc.title = "Saved Calculations"
    ws_calc.sheet_properties.tabColor = "1a1a2e"
    ws_calc.append(["Year", "Session", "Raw Mark", "Grade", "UMS", "Saved At", "ID"])
    for calc in calculations:
        ws_calc.append([
            calc.get("year"),
            session_label(calc.get("session", "")),
            calc.get("raw_mark"),
            calc.get("grade"),
            calc.get("ums"),
            calc.get("timestamp"),
            calc.get("id"),
        ])
    _style_sheet(ws_calc, grade_col_idx=4)

    # ── Sheet 2: Boundary chart data ───────────────────────────────
    if chart_rows:
        grade_cols = _grades_in_rows(chart_rows)
        ws_chart = wb.create_sheet(title="Boundaries")
        ws_chart.sheet_properties.tabColor = "0f3460"
        ws_chart.append(["Year", "Session"] + [f"Grade {g}" for g in grade_cols])
        for row in chart_rows:
            ws_chart.append(
                [row["year"], session_label(row["session"])]
                + [row["values"].get(g) for g in grade_cols]
            )
        _style_sheet(ws_chart)

    wb.properties.creator = app_name
    wb.save(output_path)
