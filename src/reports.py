"""
reports.py

Report assembly and export for journal entries.

The assembler turns a filtered list of entries into labelled, flattened
rows (statuses, priorities and categories resolved to their display
labels here, never by a serializer), optionally grouped and accompanied
by summary statistics.  The serializers then render those rows:

  docx  – python-docx, landscape, one table per group
  xlsx  – openpyxl, one sheet for all rows, optional stats and group sheets
  csv   – UTF-8 with BOM so spreadsheet tools detect the encoding
  json  – metadata, statistics and raw entry fields
"""

from __future__ import annotations

import csv
import io
import json
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pytz
from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt
from openpyxl import Workbook
from openpyxl.styles import Font

from filters import EntryFilter
from model import EntryStatus, GroupBy, JournalEntry, Priority, ReferenceIndex

STATUS_LABELS: Dict[str, str] = {
    EntryStatus.DRAFT.value: "Черновик",
    EntryStatus.ACTIVE.value: "Активная",
    EntryStatus.CANCELLED.value: "Отменена",
}

PRIORITY_LABELS: Dict[str, str] = {
    Priority.LOW.value: "Низкий",
    Priority.MEDIUM.value: "Средний",
    Priority.HIGH.value: "Высокий",
    Priority.CRITICAL.value: "Критический",
}

ALL_ENTRIES_GROUP = "Все записи"
DEFAULT_TITLE = "Отчет по событиям оперативного журнала"
DESCRIPTION_PREVIEW_CHARS = 100
SHEET_NAME_LIMIT = 31

# Column headers of the flattened row, in output order.
COLUMNS: List[Tuple[str, str]] = [
    ("timestamp", "Дата/Время"),
    ("category", "Категория"),
    ("title", "Заголовок"),
    ("description", "Описание"),
    ("status", "Статус"),
    ("priority", "Приоритет"),
    ("author", "Автор"),
    ("equipment", "Оборудование"),
    ("location", "Местоположение"),
    ("cancelled_at", "Дата отмены"),
    ("cancelled_by", "Отменил"),
    ("cancel_reason", "Причина отмены"),
]

CSV_COLUMNS = COLUMNS[:9]
GROUP_SHEET_COLUMNS = [c for c in COLUMNS if c[0] in
                       ("timestamp", "title", "description", "status", "priority", "author")]
DOCX_COLUMNS = COLUMNS[:8]
DOCX_WIDTHS = [12, 12, 20, 25, 8, 8, 10, 5]   # percent of table width

_SHEET_NAME_INVALID = re.compile(r"[\[\]:*?/\\]")


class ReportFormat(str, Enum):
    DOCX = "docx"
    XLSX = "xlsx"
    CSV = "csv"
    JSON = "json"


MEDIA_TYPES: Dict[ReportFormat, str] = {
    ReportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ReportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.CSV: "text/csv; charset=utf-8",
    ReportFormat.JSON: "application/json",
}


def status_label(status) -> str:
    value = getattr(status, "value", status)
    return STATUS_LABELS.get(value, value)


def priority_label(priority) -> str:
    value = getattr(priority, "value", priority)
    return PRIORITY_LABELS.get(value, value)


def format_datetime(value: Optional[datetime], tz: pytz.BaseTzInfo) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime("%d.%m.%Y %H:%M")


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


# ---------------------------------------------------------------------------
# Report input
# ---------------------------------------------------------------------------


@dataclass
class ReportOptions:
    title: str = DEFAULT_TITLE
    include_stats: bool = True
    include_filters: bool = True
    group_by: GroupBy = GroupBy.NONE


@dataclass
class ReportData:
    entries: List[JournalEntry]
    refs: ReferenceIndex
    generated_by: str
    filters: EntryFilter = field(default_factory=EntryFilter)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tz: pytz.BaseTzInfo = pytz.utc


@dataclass
class ReportStats:
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: Dict[str, int]


@dataclass
class ReportFile:
    filename: str
    media_type: str
    content: bytes


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def group_key(entry: JournalEntry, group_by: GroupBy, refs: ReferenceIndex,
              tz: pytz.BaseTzInfo) -> str:
    if group_by == GroupBy.CATEGORY:
        return refs.category_label(entry)
    if group_by == GroupBy.STATUS:
        return status_label(entry.status)
    if group_by == GroupBy.PRIORITY:
        return priority_label(entry.priority)
    if group_by == GroupBy.DATE:
        created = entry.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return format_date(created.astimezone(tz).date())
    return ALL_ENTRIES_GROUP


def assemble(
    entries: List[JournalEntry],
    group_by: GroupBy,
    refs: Optional[ReferenceIndex] = None,
    tz: Optional[pytz.BaseTzInfo] = None,
) -> List[Tuple[str, List[JournalEntry]]]:
    """
    Group entries by the display label of `group_by`.

    Groups appear in the order their first entry appears, and entries
    keep their input order inside each group.  GroupBy.NONE yields a
    single group holding every entry.
    """
    refs = refs or ReferenceIndex()
    tz = tz or pytz.utc
    group_by = GroupBy(group_by)
    if group_by == GroupBy.NONE:
        return [(ALL_ENTRIES_GROUP, list(entries))]

    groups: Dict[str, List[JournalEntry]] = {}
    for entry in entries:
        groups.setdefault(group_key(entry, group_by, refs, tz), []).append(entry)
    return list(groups.items())


def compute_stats(entries: List[JournalEntry], refs: ReferenceIndex) -> ReportStats:
    return ReportStats(
        total=len(entries),
        by_status=dict(Counter(e.status.value for e in entries)),
        by_priority=dict(Counter(e.priority.value for e in entries)),
        by_category=dict(Counter(refs.category_label(e) for e in entries)),
    )


def entry_row(entry: JournalEntry, refs: ReferenceIndex, tz: pytz.BaseTzInfo) -> Dict[str, str]:
    """Flatten an entry into display strings keyed by column id."""
    return {
        "timestamp": format_datetime(entry.created_at, tz),
        "category": refs.category_label(entry),
        "title": entry.title,
        "description": entry.description,
        "status": status_label(entry.status),
        "priority": priority_label(entry.priority),
        "author": entry.author_name,
        "equipment": refs.equipment_name(entry) or "",
        "location": refs.location_name(entry) or "",
        "cancelled_at": format_datetime(entry.cancelled_at, tz),
        "cancelled_by": entry.cancelled_by or "",
        "cancel_reason": entry.cancel_reason or "",
    }


def describe_filters(criteria: EntryFilter, refs: ReferenceIndex) -> List[str]:
    """Human-readable lines for the filters applied to a report."""
    lines = []
    for key, value in criteria.active_fields().items():
        if key == "search_text":
            lines.append(f"Поиск: {value}")
        elif key == "date_from":
            lines.append(f"Дата от: {format_date(value)}")
        elif key == "date_to":
            lines.append(f"Дата до: {format_date(value)}")
        elif key == "status":
            lines.append(f"Статус: {status_label(value)}")
        elif key == "priority":
            lines.append(f"Приоритет: {priority_label(value)}")
        elif key == "category_id" and value in refs.categories:
            lines.append(f"Категория: {refs.categories[value].name}")
        elif key == "equipment_id" and value in refs.equipment:
            lines.append(f"Оборудование: {refs.equipment[value].name}")
        elif key == "location_id" and value in refs.locations:
            lines.append(f"Местоположение: {refs.locations[value].name}")
        else:
            lines.append(f"{key}: {value}")
    return lines


def report_filename(
    fmt: ReportFormat,
    generated_at: datetime,
    tz: pytz.BaseTzInfo = pytz.utc,
) -> str:
    """File name dated by the local calendar day of `generated_at`."""
    if generated_at.tzinfo is None:
        generated_at = generated_at.replace(tzinfo=timezone.utc)
    return f"отчет_{generated_at.astimezone(tz).date().isoformat()}.{fmt.value}"


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


def _truncate(text: str, limit: int = DESCRIPTION_PREVIEW_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _sheet_name(name: str) -> str:
    return _SHEET_NAME_INVALID.sub("_", name)[:SHEET_NAME_LIMIT] or "_"


def to_docx(data: ReportData, options: ReportOptions) -> bytes:
    document = Document()
    section = document.sections[0]
    section.orientation = WD_ORIENT.LANDSCAPE
    section.page_width, section.page_height = section.page_height, section.page_width
    for side in ("top_margin", "right_margin", "bottom_margin", "left_margin"):
        setattr(section, side, Inches(1))

    heading = document.add_heading(options.title, level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    document.add_paragraph(f"Сформирован: {format_datetime(data.generated_at, data.tz)}")
    document.add_paragraph(f"Автор: {data.generated_by}")

    filter_lines = describe_filters(data.filters, data.refs)
    if options.include_filters and filter_lines:
        document.add_heading("Примененные фильтры:", level=2)
        for line in filter_lines:
            document.add_paragraph(f"• {line}")

    if options.include_stats:
        stats = compute_stats(data.entries, data.refs)
        document.add_heading("Статистика:", level=2)
        document.add_paragraph().add_run(f"Всего записей: {stats.total}").bold = True
        for status, count in stats.by_status.items():
            document.add_paragraph(f"{status_label(status)}: {count}")
        for priority, count in stats.by_priority.items():
            document.add_paragraph(f"{priority_label(priority)}: {count}")

    for group_name, entries in assemble(data.entries, options.group_by, data.refs, data.tz):
        if options.group_by != GroupBy.NONE:
            document.add_heading(f"{group_name} ({len(entries)})", level=2)

        table = document.add_table(rows=1, cols=len(DOCX_COLUMNS))
        table.style = "Table Grid"
        usable_width = section.page_width - section.left_margin - section.right_margin
        for cell, (_, header), percent in zip(table.rows[0].cells, DOCX_COLUMNS, DOCX_WIDTHS):
            cell.text = header
            cell.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.CENTER
            cell.width = int(usable_width * percent / 100)

        for entry in entries:
            row = entry_row(entry, data.refs, data.tz)
            row["description"] = _truncate(row["description"])
            cells = table.add_row().cells
            for cell, (key, _) in zip(cells, DOCX_COLUMNS):
                cell.text = row[key]
                for run in cell.paragraphs[0].runs:
                    run.font.size = Pt(9)

        document.add_paragraph("")

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _write_sheet(sheet, columns, rows: List[Dict[str, object]]) -> None:
    sheet.append([header for _, header in columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append([row[key] for key, _ in columns])


def to_xlsx(data: ReportData, options: ReportOptions) -> bytes:
    workbook = Workbook()
    main = workbook.active
    main.title = "Записи"
    _write_sheet(main, COLUMNS, [entry_row(e, data.refs, data.tz) for e in data.entries])

    if options.include_stats:
        stats = compute_stats(data.entries, data.refs)
        sheet = workbook.create_sheet("Статистика")
        stat_rows = [{"name": "Всего записей", "value": stats.total}]
        stat_rows += [{"name": f"Статус: {status_label(k)}", "value": v}
                      for k, v in stats.by_status.items()]
        stat_rows += [{"name": f"Приоритет: {priority_label(k)}", "value": v}
                      for k, v in stats.by_priority.items()]
        stat_rows += [{"name": f"Категория: {k}", "value": v}
                      for k, v in stats.by_category.items()]
        _write_sheet(sheet, [("name", "Показатель"), ("value", "Значение")], stat_rows)

    if options.group_by != GroupBy.NONE:
        for group_name, entries in assemble(data.entries, options.group_by, data.refs, data.tz):
            sheet = workbook.create_sheet(_sheet_name(group_name))
            _write_sheet(sheet, GROUP_SHEET_COLUMNS,
                         [entry_row(e, data.refs, data.tz) for e in entries])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def to_csv(data: ReportData, options: ReportOptions) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([header for _, header in CSV_COLUMNS])
    for entry in data.entries:
        row = entry_row(entry, data.refs, data.tz)
        writer.writerow([row[key] for key, _ in CSV_COLUMNS])
    return ("\ufeff" + buffer.getvalue()).encode("utf-8")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def to_json(data: ReportData, options: ReportOptions) -> bytes:
    stats = compute_stats(data.entries, data.refs) if options.include_stats else None
    payload = {
        "metadata": {
            "title": options.title,
            "generated_at": data.generated_at.isoformat(),
            "generated_by": data.generated_by,
            "filters": {k: str(getattr(v, "value", v))
                        for k, v in data.filters.active_fields().items()},
            "total_entries": len(data.entries),
        },
        "statistics": stats.__dict__ if stats else None,
        "entries": [
            {
                "id": str(e.id),
                "timestamp": _iso(e.created_at),
                "category": data.refs.category_label(e),
                "title": e.title,
                "description": e.description,
                "status": e.status.value,
                "priority": e.priority.value,
                "author": e.author_name,
                "equipment": data.refs.equipment_name(e),
                "location": data.refs.location_name(e),
                "cancelled_at": _iso(e.cancelled_at),
                "cancelled_by": e.cancelled_by,
                "cancel_reason": e.cancel_reason,
            }
            for e in data.entries
        ],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")


_SERIALIZERS = {
    ReportFormat.DOCX: to_docx,
    ReportFormat.XLSX: to_xlsx,
    ReportFormat.CSV: to_csv,
    ReportFormat.JSON: to_json,
}


def render(fmt: ReportFormat, data: ReportData, options: ReportOptions) -> ReportFile:
    fmt = ReportFormat(fmt)
    return ReportFile(
        filename=report_filename(fmt, data.generated_at, data.tz),
        media_type=MEDIA_TYPES[fmt],
        content=_SERIALIZERS[fmt](data, options),
    )
