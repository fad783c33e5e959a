"""
Export engine for error records.

Two targets over any record subset (the whole list or the filtered view):
- delimited text (CSV) with every field quoted, for re-import
- a tabular PDF report with counts by severity and status

Both are pure transformations of the records into bytes; neither touches the
repository.
"""

import csv
import io
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.models.error import ErrorRecord, ErrorStats
from app.services.notifications import NotificationCenter
from app.utils.logging import get_logger, log_error_with_context
from app.utils.metrics import emit_metric


logger = get_logger(__name__)

CSV_HEADERS = [
    "ID",
    "Title",
    "Description",
    "Severity",
    "Status",
    "System",
    "Error Code",
    "Assignee",
    "Tags",
    "Occurrences",
    "Created At",
    "Last Occurrence",
    "Resolved At",
]
TAG_SEPARATOR = "; "

PDF_HEADERS = ["Title", "Severity", "Status", "System", "Occurrences", "Created At"]
PDF_COLUMN_WIDTHS = [50 * mm, 25 * mm, 25 * mm, 30 * mm, 20 * mm, 25 * mm]
TITLE_MAX_LENGTH = 30
ELLIPSIS = "..."

# Header row color
PRIMARY_COLOR = colors.Color(41 / 255, 128 / 255, 185 / 255)


class ExportFormat(str, Enum):
    """Export file format."""

    CSV = "csv"
    PDF = "pdf"


class ExportScope(str, Enum):
    """Which record set is exported."""

    ALL = "all"
    FILTERED = "filtered"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.PDF: "application/pdf",
}


class ExportArtifact(BaseModel):
    """A generated file ready for download."""

    filename: str
    content: bytes
    media_type: str


def _format_date(value: Optional[datetime], date_format: str) -> str:
    return value.strftime(date_format) if value else ""


def truncate_title(title: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Shorten a title to ``max_length`` characters, ending in an ellipsis."""
    if len(title) <= max_length:
        return title
    return title[: max_length - len(ELLIPSIS)] + ELLIPSIS


def csv_row(record: ErrorRecord, date_format: str) -> List[str]:
    return [
        record.id,
        record.title,
        record.description,
        record.severity.value,
        record.status.value,
        record.system,
        record.error_code or "",
        record.assigned_to or "",
        TAG_SEPARATOR.join(record.tags),
        str(record.occurrences),
        _format_date(record.timestamp, date_format),
        _format_date(record.last_occurrence, date_format),
        _format_date(record.resolved_at, date_format),
    ]


def to_csv(records: Iterable[ErrorRecord], date_format: str = "%Y-%m-%d") -> str:
    """
    Serialize records as CSV.

    Every field is quoted and embedded quotes are doubled, so values with
    commas, quotes or line breaks survive a round trip through a CSV reader.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(csv_row(record, date_format))
    return buffer.getvalue()


def to_pdf(
    records: Sequence[ErrorRecord],
    generated_at: Optional[datetime] = None,
    title: str = "Error Report",
    date_format: str = "%Y-%m-%d",
) -> bytes:
    """
    Render records as a paginated PDF report.

    The report holds a title block, the generation time, totals by severity
    and by status, and one table row per record. The table header repeats on
    every page.
    """
    generated_at = generated_at or datetime.now()
    stats = ErrorStats.from_records(records)

    styles = getSampleStyleSheet()
    buffer = io.BytesIO()
    document = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=title,
    )

    story = [
        Paragraph(escape(title), styles["Title"]),
        Paragraph(f"Generated at: {generated_at.strftime(date_format)}", styles["Normal"]),
        Paragraph(f"Total errors: {stats.total}", styles["Normal"]),
        Paragraph(
            f"Critical: {stats.critical} | High: {stats.high} | "
            f"Medium: {stats.medium} | Low: {stats.low}",
            styles["Normal"],
        ),
        Paragraph(
            f"Open: {stats.open} | Investigating: {stats.investigating} | "
            f"Resolved: {stats.resolved} | Closed: {stats.closed}",
            styles["Normal"],
        ),
        Spacer(1, 6 * mm),
    ]

    table_data = [PDF_HEADERS] + [
        [
            truncate_title(record.title),
            record.severity.value,
            record.status.value,
            record.system,
            str(record.occurrences),
            _format_date(record.timestamp, date_format),
        ]
        for record in records
    ]
    table = Table(table_data, colWidths=PDF_COLUMN_WIDTHS, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("TOPPADDING", (0, 0), (-1, -1), 2),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
                ("LEFTPADDING", (0, 0), (-1, -1), 2),
                ("RIGHTPADDING", (0, 0), (-1, -1), 2),
            ]
        )
    )
    story.append(table)

    document.build(story)
    return buffer.getvalue()


def export_filename(fmt: ExportFormat, scope: ExportScope, today: Optional[datetime] = None) -> str:
    today = today or datetime.now()
    return f"errors-{scope.value}-{today.strftime('%Y-%m-%d')}.{fmt.value}"


class ExportService:
    """Builds downloadable artifacts and reports failures as notifications."""

    def __init__(
        self,
        notifications: NotificationCenter,
        date_format: str = "%Y-%m-%d",
        report_title: str = "Error Report",
    ):
        self.notifications = notifications
        self.date_format = date_format
        self.report_title = report_title

    def export(
        self,
        records: Sequence[ErrorRecord],
        fmt: ExportFormat,
        scope: ExportScope = ExportScope.FILTERED,
        now: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> Optional[ExportArtifact]:
        """
        Serialize records to the requested format.

        Returns:
            The artifact, or None if serialization failed
        """
        now = now or datetime.now()
        fmt = ExportFormat(fmt)
        scope = ExportScope(scope)

        try:
            if fmt == ExportFormat.CSV:
                content = to_csv(records, self.date_format).encode("utf-8")
            else:
                content = to_pdf(records, now, self.report_title, self.date_format)
        except Exception as e:
            log_error_with_context(
                logger, "Export failed", e,
                operation="export", user_id=user_id, format=fmt.value, scope=scope.value,
            )
            self.notifications.error("Export failed. Please try again.", user_id)
            return None

        emit_metric("export_records", len(records), format=fmt.value, scope=scope.value)
        self.notifications.success(f"{fmt.value.upper()} export complete", user_id)
        return ExportArtifact(
            filename=export_filename(fmt, scope, now),
            content=content,
            media_type=MEDIA_TYPES[fmt],
        )
