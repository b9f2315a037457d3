"""
Document Renderer

Renders export payloads to binary documents:
- PDF via reportlab platypus, with an optional per-report bar chart
- Excel via openpyxl, one worksheet per report

The payload is the JSON-compatible dict built by BudgetReportExporter, so
amounts arrive as strings and are converted back for display.
"""

import re
from xml.sax.saxutils import escape
from decimal import Decimal, InvalidOperation
from io import BytesIO
from typing import Any, Optional

import structlog
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.graphics.charts.barcharts import VerticalBarChart
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .exceptions import ValidationError
from .export import collect_tables, flatten_fields

logger = structlog.get_logger()

HEADER_COLOR = "#2c5282"
TITLE_COLOR = "#1a365d"
ROW_ALT_COLOR = "#edf2f7"

# Fields tried, in order, for the spend value plotted per category row
SPEND_FIELDS = ("spent_amount", "actual", "total_spent", "projected_spend")
ALLOCATION_FIELDS = ("allocated_amount", "budgeted")

MAX_TABLE_COLUMNS = 6
SHEET_TITLE_LIMIT = 31
INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _label(key: str) -> str:
    return key.split(".")[-1].replace("_", " ").title()


def chart_series(report: dict[str, Any]) -> Optional[tuple[list[str], list[float], list[float]]]:
    """
    Pick the first category table with spend figures for charting.

    Returns:
        (category names, spend, allocation), or None when the report has no
        category rows
    """
    tables: list[tuple[str, list[dict[str, Any]]]] = []
    collect_tables("", report, tables)
    for _, rows in tables:
        first = rows[0]
        if "category_name" not in first:
            continue
        spend_key = next((k for k in SPEND_FIELDS if k in first), None)
        if spend_key is None:
            continue
        alloc_key = next((k for k in ALLOCATION_FIELDS if k in first), None)
        names = [str(r["category_name"]) for r in rows]
        spend = [float(_to_decimal(r.get(spend_key)) or 0) for r in rows]
        allocation = [
            float(_to_decimal(r.get(alloc_key)) or 0) if alloc_key else 0.0 for r in rows
        ]
        return names, spend, allocation
    return None


class DocumentRenderer:
    """
    Render export payloads as PDF or Excel documents.

    Example:
        renderer = DocumentRenderer()
        pdf_bytes = renderer.render(payload, "pdf", include_charts=True)
    """

    def render(
        self,
        payload: dict[str, Any],
        format: str,
        *,
        include_charts: bool = False,
    ) -> bytes:
        """
        Render a payload.

        Args:
            payload: Export payload (report_type, generated_at, date_range, reports)
            format: "pdf" or "excel"
            include_charts: Add a spend chart per report (PDF only)

        Returns:
            Document bytes
        """
        if format == "pdf":
            data = self._render_pdf(payload, include_charts)
        elif format == "excel":
            data = self._render_excel(payload)
        else:
            raise ValidationError(
                f"Unsupported render format: {format}",
                field="format",
                value=format,
                constraint="pdf or excel",
            )

        logger.debug(
            "budget_report_rendered",
            format=format,
            report_count=len(payload.get("reports", [])),
            size_bytes=len(data),
        )
        return data

    # =========================================================================
    # PDF
    # =========================================================================

    def _render_pdf(self, payload: dict[str, Any], include_charts: bool) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=0.75 * inch,
            leftMargin=0.75 * inch,
            topMargin=0.75 * inch,
            bottomMargin=0.75 * inch,
        )

        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=styles['Heading1'],
            fontSize=18,
            spaceAfter=20,
            alignment=TA_CENTER,
            textColor=colors.HexColor(TITLE_COLOR),
        ))
        styles.add(ParagraphStyle(
            name='SectionHeading',
            parent=styles['Heading2'],
            fontSize=14,
            spaceAfter=12,
            spaceBefore=20,
            textColor=colors.HexColor(HEADER_COLOR),
        ))
        styles.add(ParagraphStyle(
            name='CellText',
            parent=styles['Normal'],
            fontSize=8,
            leading=10,
        ))

        elements = []
        elements.append(Paragraph("BUDGET ANALYTICS REPORT", styles['ReportTitle']))

        date_range = payload.get("date_range", {})
        header_data = [
            ["Report Type:", _display(payload.get("report_type")).replace("_", " ").title()],
            ["Period:", f"{date_range.get('start_date', '')} to {date_range.get('end_date', '')}"],
            ["Generated:", _display(payload.get("generated_at"))],
        ]
        header_table = Table(header_data, colWidths=[1.5 * inch, 4 * inch])
        header_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
            ('ALIGN', (1, 0), (1, -1), 'LEFT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        elements.append(header_table)

        reports = payload.get("reports", [])
        if not reports:
            elements.append(Spacer(1, 0.3 * inch))
            elements.append(Paragraph("No reports matched the export options.", styles['Normal']))

        for index, entry in enumerate(reports):
            if index:
                elements.append(PageBreak())
            elements.extend(self._pdf_report(entry, styles, include_charts))

        doc.build(elements)
        return buffer.getvalue()

    def _pdf_report(self, entry: dict[str, Any], styles, include_charts: bool) -> list:
        report = entry["report"]
        elements = []

        title = f"{report.get('budget_name', entry['budget_id'])} - {_label(entry['kind'])}"
        elements.append(Paragraph(escape(title), styles['SectionHeading']))

        fields: list[tuple[str, Any]] = []
        flatten_fields("", report, fields)
        summary_data = [[_label(key) + ":", _display(value)] for key, value in fields]
        if summary_data:
            summary_table = Table(summary_data, colWidths=[2.5 * inch, 3.5 * inch])
            summary_table.setStyle(TableStyle([
                ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 9),
                ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
            ]))
            elements.append(summary_table)

        if include_charts:
            series = chart_series(report)
            if series is not None:
                elements.append(Spacer(1, 0.2 * inch))
                elements.append(self._bar_chart(*series))

        tables: list[tuple[str, list[dict[str, Any]]]] = []
        collect_tables("", report, tables)
        for name, rows in tables:
            columns = [
                k for k, v in rows[0].items() if not isinstance(v, (dict, list))
            ][:MAX_TABLE_COLUMNS]
            if not columns:
                continue
            elements.append(Paragraph(_label(name), styles['SectionHeading']))
            data = [[_label(c) for c in columns]]
            for row in rows:
                data.append([
                    Paragraph(escape(_display(row.get(c))), styles['CellText']) for c in columns
                ])
            table = Table(data, repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(HEADER_COLOR)),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 8),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor(ROW_ALT_COLOR)]),
                ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
                ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ]))
            elements.append(table)

        return elements

    def _bar_chart(
        self,
        names: list[str],
        spend: list[float],
        allocation: list[float],
    ) -> Drawing:
        drawing = Drawing(6 * inch, 2.5 * inch)
        chart = VerticalBarChart()
        chart.x = 0.5 * inch
        chart.y = 0.4 * inch
        chart.width = 5.2 * inch
        chart.height = 1.9 * inch
        chart.data = [allocation, spend]
        chart.categoryAxis.categoryNames = [n[:12] for n in names]
        chart.categoryAxis.labels.fontSize = 7
        chart.valueAxis.valueMin = 0
        chart.valueAxis.labels.fontSize = 7
        chart.bars[0].fillColor = colors.HexColor(ROW_ALT_COLOR)
        chart.bars[1].fillColor = colors.HexColor(HEADER_COLOR)
        drawing.add(chart)
        return drawing

    # =========================================================================
    # EXCEL
    # =========================================================================

    def _render_excel(self, payload: dict[str, Any]) -> bytes:
        wb = Workbook()
        overview = wb.active
        overview.title = "Overview"

        date_range = payload.get("date_range", {})
        overview.append(["Report Type", _display(payload.get("report_type"))])
        overview.append(["Start Date", _display(date_range.get("start_date"))])
        overview.append(["End Date", _display(date_range.get("end_date"))])
        overview.append(["Generated At", _display(payload.get("generated_at"))])
        overview.append(["Reports", len(payload.get("reports", []))])
        for row in overview.iter_rows(min_col=1, max_col=1):
            row[0].font = Font(bold=True)

        for index, entry in enumerate(payload.get("reports", []), start=1):
            ws = wb.create_sheet(self._sheet_title(index, entry))
            self._fill_sheet(ws, entry)

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def _sheet_title(self, index: int, entry: dict[str, Any]) -> str:
        """Index prefix keeps titles unique after truncation."""
        title = INVALID_SHEET_CHARS.sub("-", f"{index} {entry['kind']} {entry['budget_id']}")
        return title[:SHEET_TITLE_LIMIT]

    def _fill_sheet(self, ws, entry: dict[str, Any]) -> None:
        report = entry["report"]
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill("solid", fgColor=HEADER_COLOR.lstrip("#"))

        fields: list[tuple[str, Any]] = []
        flatten_fields("", report, fields)
        for key, value in fields:
            ws.append([key, self._cell(value)])
            ws.cell(row=ws.max_row, column=1).font = Font(bold=True)

        tables: list[tuple[str, list[dict[str, Any]]]] = []
        collect_tables("", report, tables)
        for name, rows in tables:
            columns = [k for k, v in rows[0].items() if not isinstance(v, (dict, list))]
            if not columns:
                continue
            ws.append([])
            ws.append([name])
            ws.cell(row=ws.max_row, column=1).font = Font(bold=True)
            ws.append(columns)
            for cell in ws[ws.max_row]:
                cell.font = header_font
                cell.fill = header_fill
            for row in rows:
                ws.append([self._cell(row.get(c)) for c in columns])

        ws.column_dimensions["A"].width = 36

    def _cell(self, value: Any) -> Any:
        """Numeric strings become numbers so spreadsheets can sum them."""
        if value is None:
            return ""
        if isinstance(value, str) and NUMERIC.match(value):
            return float(value)
        return value


__all__ = ["DocumentRenderer", "chart_series"]
