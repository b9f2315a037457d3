"""Tests for the PDF and Excel renderer."""

import io

import pytest
from openpyxl import load_workbook

from budget_analytics.exceptions import ValidationError
from budget_analytics.export import ExportFormat, ExportOptions
from budget_analytics.models import ReportPeriod, ReportType
from budget_analytics.rendering import DocumentRenderer, chart_series

from conftest import JAN_END, JAN_START, USER_ID


@pytest.fixture
def payload() -> dict:
    return {
        "report_type": "performance",
        "generated_at": "2024-02-01T12:00:00+00:00",
        "date_range": {"start_date": "2024-01-01", "end_date": "2024-01-31"},
        "reports": [
            {
                "kind": "performance",
                "budget_id": "budget123",
                "report": {
                    "budget_name": "Food & Home",
                    "performance": {"total_spent": "3000", "status": "under"},
                    "category_performance": [
                        {
                            "category_id": "cat1",
                            "category_name": "Groceries",
                            "allocated_amount": "2000",
                            "spent_amount": "1500",
                        }
                    ],
                },
            }
        ],
    }


class TestDocumentRenderer:
    """Test suite for DocumentRenderer."""

    def test_pdf(self, payload):
        data = DocumentRenderer().render(payload, "pdf")

        assert data.startswith(b"%PDF")

    def test_pdf_with_chart(self, payload):
        data = DocumentRenderer().render(payload, "pdf", include_charts=True)

        assert data.startswith(b"%PDF")

    def test_pdf_without_reports(self, payload):
        payload["reports"] = []

        assert DocumentRenderer().render(payload, "pdf").startswith(b"%PDF")

    def test_excel_sheet_per_report(self, payload):
        data = DocumentRenderer().render(payload, "excel")

        workbook = load_workbook(io.BytesIO(data))
        assert workbook.sheetnames == ["Overview", "1 performance budget123"]
        sheet = workbook["1 performance budget123"]
        values = [row[:2] for row in sheet.iter_rows(values_only=True)]
        assert ("performance.total_spent", 3000) in values
        assert ("category_performance", None) in values

    def test_unsupported_format(self, payload):
        with pytest.raises(ValidationError):
            DocumentRenderer().render(payload, "docx")

    def test_chart_series(self, payload):
        names, spend, allocation = chart_series(payload["reports"][0]["report"])

        assert names == ["Groceries"]
        assert spend == [1500.0]
        assert allocation == [2000.0]

    def test_chart_series_without_categories(self):
        assert chart_series({"performance": {"total_spent": "1"}}) is None


class TestRenderedExport:
    """End-to-end export through the default renderer."""

    @pytest.mark.asyncio
    async def test_excel_export(self, store, query, categories, settings, clock):
        from budget_analytics.service import BudgetAnalyticsService

        service = BudgetAnalyticsService(store, query, categories, settings=settings, clock=clock)

        result = await service.export_budget_report(
            USER_ID,
            ExportOptions(
                format=ExportFormat.EXCEL,
                report_type=ReportType.ALL,
                date_range=ReportPeriod(start_date=JAN_START, end_date=JAN_END),
            ),
        )

        workbook = load_workbook(io.BytesIO(result.data))
        assert len(workbook.sheetnames) == 3

    @pytest.mark.asyncio
    async def test_pdf_export(self, store, query, categories, settings, clock):
        from budget_analytics.service import BudgetAnalyticsService

        service = BudgetAnalyticsService(store, query, categories, settings=settings, clock=clock)

        result = await service.export_budget_report(
            USER_ID,
            ExportOptions(
                format=ExportFormat.PDF,
                report_type=ReportType.BREAKDOWN,
                date_range=ReportPeriod(start_date=JAN_START, end_date=JAN_END),
                include_charts=True,
            ),
        )

        assert result.data.startswith(b"%PDF")
        assert result.filename == "budget-report-breakdown-2024-02-01.pdf"
