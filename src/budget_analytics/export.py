"""
Report export.

Builds one or more reports for a set of budgets, filters them by category
and detail level, and serializes the result as JSON, CSV, Excel or PDF.
Excel and PDF bytes come from an injected Renderer.
"""

import asyncio
import csv
import io
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

import structlog
from pydantic import BaseModel, Field

from .exceptions import ValidationError
from .interfaces import Renderer
from .models.reports import BaseReport, ReportPeriod, ReportType
from .reports import BudgetReportBuilder, validate_range

logger = structlog.get_logger()


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}

EXTENSIONS = {
    ExportFormat.JSON: "json",
    ExportFormat.CSV: "csv",
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.PDF: "pdf",
}

# Expansion of ReportType.ALL
ALL_REPORT_KINDS = (ReportType.PERFORMANCE, ReportType.VARIANCE)

DETAIL_KEYS = frozenset({"transactions", "daily_progress"})
CATEGORY_ID_LIST_KEYS = frozenset({"significant_variances"})


class ExportOptions(BaseModel):
    """Caller-supplied export options."""

    format: ExportFormat = ExportFormat.JSON
    report_type: ReportType = ReportType.ALL
    date_range: ReportPeriod
    budget_ids: Optional[list[str]] = Field(
        default=None,
        description="Budgets to export; every budget the user owns when None",
    )
    categories: Optional[list[str]] = Field(
        default=None,
        description="Restrict category-level rows to these ids",
    )
    include_charts: bool = False
    include_details: bool = True


class ExportResult(BaseModel):
    """Serialized export."""

    data: Union[dict[str, Any], str, bytes]
    format: str = Field(description="MIME type of data")
    filename: str


ReportBuilderFn = Callable[[str, str, Any, Any], Awaitable[BaseReport]]


def filter_payload(
    value: Any,
    categories: Optional[set[str]],
    include_details: bool,
) -> Any:
    """
    Recursively drop detail keys and out-of-scope category rows.

    A row is category-level when it is a dict with a ``category_id`` key.
    Rows whose ``category_id`` is None (budget-level insights) are kept.
    """
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not include_details and key in DETAIL_KEYS:
                continue
            if categories is not None and key in CATEGORY_ID_LIST_KEYS and isinstance(item, list):
                result[key] = [c for c in item if c in categories]
                continue
            result[key] = filter_payload(item, categories, include_details)
        return result

    if isinstance(value, list):
        rows = []
        for item in value:
            if (
                categories is not None
                and isinstance(item, dict)
                and "category_id" in item
                and item["category_id"] is not None
                and item["category_id"] not in categories
            ):
                continue
            rows.append(filter_payload(item, categories, include_details))
        return rows

    return value


def flatten_fields(prefix: str, value: dict[str, Any], out: list[tuple[str, Any]]) -> None:
    """Collect scalar fields as dotted key/value pairs, skipping lists."""
    for key, item in value.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(item, dict):
            flatten_fields(name, item, out)
        elif not isinstance(item, list):
            out.append((name, item))


def collect_tables(
    prefix: str,
    value: dict[str, Any],
    out: list[tuple[str, list[dict[str, Any]]]],
) -> None:
    for key, item in value.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(item, dict):
            collect_tables(name, item, out)
        elif isinstance(item, list) and item and all(isinstance(row, dict) for row in item):
            out.append((name, item))


def payload_to_csv(payload: dict[str, Any]) -> str:
    """
    Serialize an export payload as CSV.

    Each report becomes a section: a header row, key/value rows for its
    scalar fields, then one block per list of rows with a column header.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(["report_type", payload["report_type"]])
    writer.writerow(["generated_at", payload["generated_at"]])
    writer.writerow(["start_date", payload["date_range"]["start_date"]])
    writer.writerow(["end_date", payload["date_range"]["end_date"]])

    for entry in payload["reports"]:
        report = entry["report"]
        writer.writerow([])
        writer.writerow(["report", entry["kind"], entry["budget_id"]])

        fields: list[tuple[str, Any]] = []
        flatten_fields("", report, fields)
        for key, item in fields:
            writer.writerow([key, "" if item is None else item])

        tables: list[tuple[str, list[dict[str, Any]]]] = []
        collect_tables("", report, tables)
        for name, rows in tables:
            columns = [k for k, v in rows[0].items() if not isinstance(v, (dict, list))]
            writer.writerow([])
            writer.writerow([name])
            writer.writerow(columns)
            for row in rows:
                writer.writerow(["" if row.get(c) is None else row.get(c) for c in columns])

    return buffer.getvalue()


class BudgetReportExporter:
    """
    Export budget reports in the requested format.

    Example:
        exporter = BudgetReportExporter(builder, renderer=DocumentRenderer())
        result = await exporter.export_budget_report(
            user_id,
            ExportOptions(
                format=ExportFormat.CSV,
                report_type=ReportType.VARIANCE,
                date_range=ReportPeriod(start_date=start, end_date=end),
            ),
        )
    """

    def __init__(
        self,
        builder: BudgetReportBuilder,
        renderer: Optional[Renderer] = None,
    ):
        """
        Initialize the exporter.

        Args:
            builder: Report builder used for every report kind
            renderer: Renderer for Excel and PDF output
        """
        self.builder = builder
        self.renderer = renderer
        self._dispatch: dict[ReportType, ReportBuilderFn] = {
            ReportType.PERFORMANCE: builder.performance,
            ReportType.BUDGET_VS_ACTUAL: builder.budget_vs_actual,
            ReportType.TREND: builder.trend_analysis,
            ReportType.VARIANCE: builder.variance_analysis,
            ReportType.FORECAST: builder.forecast,
            ReportType.BREAKDOWN: builder.category_breakdown,
        }

    def report_kinds(self, report_type: ReportType) -> tuple[ReportType, ...]:
        if report_type == ReportType.ALL:
            return ALL_REPORT_KINDS
        return (report_type,)

    async def build_payload(self, user_id: str, options: ExportOptions) -> dict[str, Any]:
        """Build every requested report and wrap them in the export payload."""
        period = options.date_range
        validate_range(period.start_date, period.end_date)

        if options.budget_ids is None:
            budgets = await self.builder.engine.list_budgets(user_id)
            budget_ids = [b.id for b in budgets]
        else:
            budget_ids = list(options.budget_ids)

        jobs = [
            (budget_id, kind)
            for budget_id in budget_ids
            for kind in self.report_kinds(options.report_type)
        ]
        reports = await asyncio.gather(
            *(
                self._dispatch[kind](user_id, budget_id, period.start_date, period.end_date)
                for budget_id, kind in jobs
            )
        )

        categories = set(options.categories) if options.categories is not None else None
        return {
            "report_type": options.report_type.value,
            "generated_at": self.builder.clock().isoformat(),
            "date_range": period.model_dump(mode="json"),
            "reports": [
                {
                    "kind": kind.value,
                    "budget_id": budget_id,
                    "report": filter_payload(
                        report.model_dump(mode="json"), categories, options.include_details
                    ),
                }
                for (budget_id, kind), report in zip(jobs, reports)
            ],
        }

    def filename(self, options: ExportOptions) -> str:
        day = self.builder.clock().date().isoformat()
        return f"budget-report-{options.report_type.value}-{day}.{EXTENSIONS[options.format]}"

    async def export_budget_report(self, user_id: str, options: ExportOptions) -> ExportResult:
        """
        Build and serialize the requested reports.

        Raises:
            ValidationError: Inverted date range, or a binary format with no
                renderer configured
            BudgetNotFoundError, AccessDeniedError: An explicitly requested
                budget could not be loaded
        """
        if options.format in (ExportFormat.EXCEL, ExportFormat.PDF) and self.renderer is None:
            raise ValidationError(
                f"No renderer configured for {options.format.value} export",
                field="format",
                value=options.format.value,
            )

        payload = await self.build_payload(user_id, options)

        data: Union[dict[str, Any], str, bytes]
        if options.format == ExportFormat.JSON:
            data = payload
        elif options.format == ExportFormat.CSV:
            data = payload_to_csv(payload)
        else:
            # reportlab and openpyxl are synchronous; keep them off the event loop
            data = await asyncio.to_thread(
                self.renderer.render,
                payload,
                options.format.value,
                include_charts=options.include_charts,
            )

        result = ExportResult(
            data=data,
            format=MIME_TYPES[options.format],
            filename=self.filename(options),
        )
        logger.info(
            "budget_report_exported",
            user_id=user_id,
            format=options.format.value,
            report_type=options.report_type.value,
            report_count=len(payload["reports"]),
            filename=result.filename,
        )
        return result


__all__ = [
    "ExportFormat",
    "ExportOptions",
    "ExportResult",
    "BudgetReportExporter",
    "filter_payload",
    "flatten_fields",
    "collect_tables",
    "payload_to_csv",
]
