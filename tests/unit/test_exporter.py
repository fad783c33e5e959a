"""
Unit tests for the export engine.
"""

import csv
import io
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from app.models.api_response import NotificationLevel
from app.services.exporter import (
    CSV_HEADERS,
    ExportFormat,
    ExportScope,
    ExportService,
    export_filename,
    to_csv,
    to_pdf,
    truncate_title,
)
from app.services.notifications import NotificationCenter


def _read_csv(text):
    return list(csv.reader(io.StringIO(text)))


class TestCsv:
    """Test delimited text export."""

    def test_header_row(self):
        """Test that an empty export still carries the header."""
        rows = _read_csv(to_csv([]))

        assert rows == [CSV_HEADERS]

    def test_every_field_is_quoted(self, make_record):
        text = to_csv([make_record()])

        for line in text.splitlines():
            assert line.startswith('"') and line.endswith('"')

    def test_special_characters_round_trip(self, make_record):
        """Test that commas, quotes and line breaks survive a CSV reader."""
        title = 'Timeout, "again"'
        description = "Line one\nLine two, with comma"
        record = make_record(title=title, description=description, error_code='E"1')

        rows = _read_csv(to_csv([record]))

        assert len(rows) == 2
        assert rows[1][CSV_HEADERS.index("Title")] == title
        assert rows[1][CSV_HEADERS.index("Description")] == description
        assert rows[1][CSV_HEADERS.index("Error Code")] == 'E"1'

    def test_row_values(self, make_record):
        record = make_record(
            7,
            severity="critical",
            status="resolved",
            tags=["db", "prod"],
            occurrences=4,
            assigned_to="Ana Silva",
            resolved_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        )

        row = dict(zip(CSV_HEADERS, _read_csv(to_csv([record]))[1]))

        assert row["ID"] == "err-7"
        assert row["Severity"] == "critical"
        assert row["Status"] == "resolved"
        assert row["Tags"] == "db; prod"
        assert row["Occurrences"] == "4"
        assert row["Assignee"] == "Ana Silva"
        assert row["Created At"] == "2024-01-01"
        assert row["Resolved At"] == "2024-01-02"
        assert row["Error Code"] == ""

    def test_keeps_input_order(self, make_record):
        records = [make_record(2), make_record(0), make_record(1)]

        rows = _read_csv(to_csv(records))

        assert [row[0] for row in rows[1:]] == ["err-2", "err-0", "err-1"]

    def test_custom_date_format(self, make_record):
        rows = _read_csv(to_csv([make_record()], date_format="%d/%m/%Y %H:%M"))

        assert rows[1][CSV_HEADERS.index("Created At")] == "01/01/2024 12:00"


class TestPdf:
    """Test PDF report export."""

    def test_produces_pdf(self, make_record):
        content = to_pdf([make_record(i) for i in range(3)], title="Error Report")

        assert content.startswith(b"%PDF")

    def test_empty_report(self):
        assert to_pdf([]).startswith(b"%PDF")

    def test_many_records(self, make_record):
        """Test that a report longer than one page builds."""
        records = [make_record(i, title="x" * 80) for i in range(200)]

        content = to_pdf(records)

        assert content.startswith(b"%PDF")
        assert len(content) > len(to_pdf(records[:1]))

    def test_markup_in_title_is_escaped(self, make_record):
        assert to_pdf([make_record()], title="Errors <b>& co").startswith(b"%PDF")

    def test_truncate_title(self):
        assert truncate_title("short") == "short"
        assert truncate_title("x" * 30) == "x" * 30
        truncated = truncate_title("x" * 31)
        assert len(truncated) == 30
        assert truncated.endswith("...")


class TestExportService:
    """Test artifact building and failure reporting."""

    NOW = datetime(2024, 5, 17, 9, 30)

    @pytest.fixture
    def notifications(self):
        return NotificationCenter()

    @pytest.fixture
    def service(self, notifications):
        return ExportService(notifications)

    def test_csv_artifact(self, service, notifications, make_record):
        artifact = service.export([make_record()], ExportFormat.CSV, ExportScope.ALL, self.NOW)

        assert artifact.filename == "errors-all-2024-05-17.csv"
        assert artifact.media_type.startswith("text/csv")
        assert artifact.content.decode("utf-8").startswith('"ID"')
        assert [n.message for n in notifications.pending()] == ["CSV export complete"]

    def test_pdf_artifact(self, service, make_record):
        artifact = service.export([make_record()], "pdf", "filtered", self.NOW)

        assert artifact.filename == "errors-filtered-2024-05-17.pdf"
        assert artifact.media_type == "application/pdf"
        assert artifact.content.startswith(b"%PDF")

    def test_failure_is_reported(self, service, notifications, make_record):
        """Test that a serialization failure becomes a notification, not an exception."""
        with patch("app.services.exporter.to_pdf", side_effect=RuntimeError("font missing")):
            artifact = service.export([make_record()], ExportFormat.PDF, now=self.NOW)

        assert artifact is None
        pending = notifications.pending()
        assert [n.level for n in pending] == [NotificationLevel.ERROR]
        assert pending[0].message == "Export failed. Please try again."

    def test_notification_goes_to_exporting_user(self, service, notifications, make_record):
        service.export([make_record()], ExportFormat.CSV, now=self.NOW, user_id="user-1")

        assert [n.message for n in notifications.pending("user-1")] == ["CSV export complete"]
        assert notifications.pending() == []

    def test_export_filename(self):
        assert export_filename(ExportFormat.PDF, ExportScope.ALL, self.NOW) == "errors-all-2024-05-17.pdf"
