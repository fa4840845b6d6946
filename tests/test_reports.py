"""
Tests for report assembly and the docx / xlsx / csv / json serializers
"""
import csv
import io
import json
from datetime import date, datetime, timezone

import pytest
import pytz
from docx import Document
from openpyxl import load_workbook

from filters import EntryFilter
from model import Category, EntryStatus, GroupBy, Priority, ReferenceIndex
from reports import (
    ALL_ENTRIES_GROUP,
    MEDIA_TYPES,
    ReportData,
    ReportFormat,
    ReportOptions,
    assemble,
    compute_stats,
    describe_filters,
    entry_row,
    render,
    report_filename,
)

MOSCOW = pytz.timezone("Europe/Moscow")


@pytest.fixture
def category():
    return Category(code="emergency", name="Аварийные ситуации")


@pytest.fixture
def refs(category):
    return ReferenceIndex.build(categories=[category])


@pytest.fixture
def entries(make_entry, category):
    return [
        make_entry(title="Срабатывание защиты", category_id=category.id,
                   status=EntryStatus.ACTIVE, priority=Priority.CRITICAL),
        make_entry(title="Обход", category="other", status=EntryStatus.DRAFT),
        make_entry(title="Замена лампы", category_id=category.id,
                   status=EntryStatus.CANCELLED, priority=Priority.LOW,
                   description="д" * 150,
                   cancelled_at=datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc),
                   cancelled_by="Иванов", cancel_reason="Ошибка"),
    ]


@pytest.fixture
def data(entries, refs):
    return ReportData(
        entries=entries,
        refs=refs,
        generated_by="Иванов",
        filters=EntryFilter(status=EntryStatus.ACTIVE, search_text="защита"),
        generated_at=datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc),
        tz=MOSCOW,
    )


class TestAssemble:
    """Grouping and statistics"""

    def test_no_grouping_yields_single_group(self, entries, refs):
        assert assemble(entries, GroupBy.NONE, refs) == [(ALL_ENTRIES_GROUP, entries)]

    def test_groups_follow_first_appearance(self, entries, refs):
        groups = assemble(entries, GroupBy.CATEGORY, refs)

        assert [name for name, _ in groups] == ["Аварийные ситуации", "Прочие события"]
        assert groups[0][1] == [entries[0], entries[2]]

    def test_group_by_status_uses_labels(self, entries, refs):
        names = [name for name, _ in assemble(entries, GroupBy.STATUS, refs)]
        assert names == ["Активная", "Черновик", "Отменена"]

    def test_group_by_date_uses_local_day(self, make_entry):
        late = make_entry(created_at=datetime(2024, 3, 10, 22, 0, tzinfo=timezone.utc))
        assert assemble([late], GroupBy.DATE, tz=MOSCOW)[0][0] == "11.03.2024"

    def test_stats_count_by_status_priority_and_category(self, entries, refs):
        stats = compute_stats(entries, refs)

        assert stats.total == 3
        assert stats.by_status == {"active": 1, "draft": 1, "cancelled": 1}
        assert stats.by_priority == {"critical": 1, "medium": 1, "low": 1}
        assert stats.by_category == {"Аварийные ситуации": 2, "Прочие события": 1}

    def test_entry_row_is_labelled(self, entries, refs):
        row = entry_row(entries[2], refs, MOSCOW)

        assert row["status"] == "Отменена"
        assert row["priority"] == "Низкий"
        assert row["category"] == "Аварийные ситуации"
        assert row["timestamp"] == "10.03.2024 12:00"
        assert row["cancelled_at"] == "10.03.2024 15:00"
        assert row["equipment"] == ""

    def test_describe_filters(self, refs, category):
        lines = describe_filters(
            EntryFilter(category_id=category.id, date_from=date(2024, 3, 1)), refs
        )
        assert lines == ["Категория: Аварийные ситуации", "Дата от: 01.03.2024"]

    def test_filename_carries_date_and_extension(self):
        generated = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)
        assert report_filename(ReportFormat.XLSX, generated) == "отчет_2024-03-10.xlsx"

    def test_filename_uses_local_calendar_day(self):
        late_evening_utc = datetime(2024, 3, 10, 22, 30, tzinfo=timezone.utc)
        moscow = pytz.timezone("Europe/Moscow")

        assert report_filename(ReportFormat.CSV, late_evening_utc, moscow) == "отчет_2024-03-11.csv"
        assert report_filename(ReportFormat.CSV, late_evening_utc) == "отчет_2024-03-10.csv"


class TestSerializers:
    """Rendered report contents"""

    def test_csv_has_bom_and_labelled_rows(self, data):
        report = render(ReportFormat.CSV, data, ReportOptions())

        assert report.content.startswith(b"\xef\xbb\xbf")
        rows = list(csv.reader(io.StringIO(report.content.decode("utf-8-sig"))))
        assert rows[0][0] == "Дата/Время"
        assert len(rows) == 4
        assert rows[1][4] == "Активная"
        assert report.media_type == MEDIA_TYPES[ReportFormat.CSV]

    def test_json_metadata_and_entries(self, data):
        report = render(ReportFormat.JSON, data, ReportOptions(title="Смена"))
        payload = json.loads(report.content.decode("utf-8"))

        assert payload["metadata"]["title"] == "Смена"
        assert payload["metadata"]["total_entries"] == 3
        assert payload["metadata"]["filters"] == {"status": "active", "search_text": "защита"}
        assert payload["statistics"]["total"] == 3
        assert payload["entries"][2]["cancel_reason"] == "Ошибка"
        assert report.filename == "отчет_2024-03-10.json"

    def test_json_without_stats(self, data):
        report = render(ReportFormat.JSON, data, ReportOptions(include_stats=False))
        assert json.loads(report.content)["statistics"] is None

    def test_xlsx_sheets(self, data):
        report = render(ReportFormat.XLSX, data, ReportOptions(group_by=GroupBy.CATEGORY))
        workbook = load_workbook(io.BytesIO(report.content))

        assert workbook.sheetnames == ["Записи", "Статистика", "Аварийные ситуации", "Прочие события"]
        assert workbook["Записи"].max_row == 4
        assert workbook["Статистика"]["B2"].value == 3

    def test_xlsx_group_sheet_names_are_truncated(self, make_entry):
        long_name = Category(code="long", name="Очень длинное название категории журнала")
        data = ReportData(
            entries=[make_entry(category_id=long_name.id)],
            refs=ReferenceIndex.build(categories=[long_name]),
            generated_by="Иванов",
        )
        report = render(ReportFormat.XLSX, data, ReportOptions(include_stats=False,
                                                               group_by=GroupBy.CATEGORY))
        sheetnames = load_workbook(io.BytesIO(report.content)).sheetnames

        assert sheetnames == ["Записи", long_name.name[:31]]

    def test_docx_contains_title_and_truncated_description(self, data):
        report = render(ReportFormat.DOCX, data, ReportOptions(title="Отчет за смену"))
        document = Document(io.BytesIO(report.content))

        assert document.paragraphs[0].text == "Отчет за смену"
        assert len(document.tables) == 1
        table = document.tables[0]
        assert len(table.rows) == 4
        assert table.rows[3].cells[3].text == "д" * 100 + "..."

    def test_docx_one_table_per_group(self, data):
        report = render(ReportFormat.DOCX, data, ReportOptions(group_by=GroupBy.STATUS))
        assert len(Document(io.BytesIO(report.content)).tables) == 3
