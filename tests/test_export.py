"""Tests for CSV rendering and the file exporter."""

import csv
import io

import pytest

from review_scraper import CsvExporter, ExportTransportError, ItemRecord
from review_scraper.export import BOM, to_csv


RECORDS = [
    ItemRecord(username="Alice", date="2024-03-01", rating="4", title="Great", content="Loved it"),
    ItemRecord(username="Bob", date="", rating="2.5", title='The "best"', content="Line one\nline two, really"),
]


class TestToCsv:

    def test_starts_with_bom_and_header(self):
        text = to_csv(RECORDS)
        assert text.startswith(BOM)
        assert text[len(BOM):].split("\n")[0] == '"username","date","rating","title","content"'

    def test_every_field_is_quoted(self):
        first_row = to_csv(RECORDS).split("\n")[1]
        assert first_row == '"Alice","2024-03-01","4","Great","Loved it"'

    def test_quotes_are_doubled(self):
        assert '"The ""best"""' in to_csv(RECORDS)

    def test_matches_csv_module_output(self):
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["username", "date", "rating", "title", "content"])
        writer.writerows(record.as_row() for record in RECORDS)
        assert to_csv(RECORDS) == BOM + buf.getvalue().rstrip("\n")

    def test_no_trailing_newline(self):
        assert to_csv(RECORDS).endswith('"Line one\nline two, really"')

    def test_empty_record_list(self):
        assert to_csv([]) == BOM + '"username","date","rating","title","content"'

    def test_standard_csv_reader_recovers_fields(self):
        reader = csv.reader(io.StringIO(to_csv(RECORDS)[len(BOM):]))
        rows = list(reader)
        assert rows[0] == ["username", "date", "rating", "title", "content"]
        assert rows[2] == ["Bob", "", "2.5", 'The "best"', "Line one\nline two, really"]


class TestCsvExporter:

    def test_writes_file(self, tmp_path):
        exporter = CsvExporter(str(tmp_path / "out"))
        path = exporter.export(RECORDS, page_count=1, total_count=2)

        assert path.startswith(str(tmp_path / "out"))
        assert path.endswith(".csv")
        data = open(path, "rb").read()
        assert data.startswith(b"\xef\xbb\xbf")
        assert "Alice" in data.decode("utf-8-sig")

    def test_falls_back_when_primary_fails(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        exporter = CsvExporter(str(blocker / "out"), fallback_dir=str(tmp_path / "fallback"))

        path = exporter.export(RECORDS, page_count=1, total_count=2)

        assert path.startswith(str(tmp_path / "fallback"))

    def test_raises_when_all_destinations_fail(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        exporter = CsvExporter(str(blocker / "a"), fallback_dir=str(blocker / "b"))

        with pytest.raises(ExportTransportError):
            exporter.export(RECORDS, page_count=1, total_count=2)
