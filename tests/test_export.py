"""
Single-submission exports and multi-submission dataset exports.
"""
import csv
import io
import json
import re

import pytest
from openpyxl import load_workbook

from meal.services.dataset_export import DATASET_HEADERS, METADATA_HEADERS, export_dataset
from meal.services.export import (
    ExportError, MealExportService, export_submission, export_to_csv, export_to_html_report,
    export_to_json, export_to_pdf, js_string, sanitize_form_data,
)
from meal.services.parser import parse_submission
from meal.services.types import ExportOptions

PLACEHOLDER_RE = re.compile(r"^\[.*removed.*KB\]$")


@pytest.fixture
def heavy_submission():
    return parse_submission({
        "id": "abc-123",
        "form_name": "BIODATA",
        "submitted_at": "2025-03-14T09:26:53Z",
        "data": {
            "name": "Moyo, Tariro",
            "photo": "data:image/jpeg;base64," + "A" * 20000,
            "blob": "B" * 12000,
            "remarks": 'said "hello"\nthen left',
            "consent": True,
        },
        "metadata": {"referer": "https://sirtis.example.org/meal", "origin": "https://sirtis.example.org"},
    })


# ---------- helpers ----------
class TestHelpers:
    @pytest.mark.parametrize("value, expected", [
        (None, ""), (True, "true"), (False, "false"), (3, "3"), (1.5, "1.5"),
        ({"a": [1, 2]}, '{"a":[1,2]}'), (["x", "y"], '["x","y"]'), ("text", "text"),
        (12.0, "12"), (-3.0, "-3"),
    ])
    def test_js_string(self, value, expected):
        assert js_string(value) == expected

    def test_sanitize_keeps_every_key(self):
        data = {"photo": "p" * 3000, "big": "x" * 11000, "small": "ok", "n": 5}
        out = sanitize_form_data(data)
        assert set(out) == set(data)
        assert out["photo"] == "[Photo data removed - 3 KB]"
        assert out["big"] == "[Large data removed - 11 KB]"
        assert out["small"] == "ok" and out["n"] == 5
        assert data["photo"] == "p" * 3000

    def test_sanitize_threshold(self, settings):
        settings.MEAL_LARGE_FIELD_THRESHOLD = 10
        assert PLACEHOLDER_RE.match(sanitize_form_data({"x": "y" * 11})["x"])
        assert sanitize_form_data({"x": "y" * 11}, threshold=100)["x"] == "y" * 11


# ---------- JSON ----------
class TestJsonExport:
    def test_photo_and_large_fields_removed(self, heavy_submission):
        result = export_to_json(heavy_submission, ExportOptions())
        payload = json.loads(result.content)
        assert PLACEHOLDER_RE.match(payload["formData"]["photo"])
        assert payload["formData"]["blob"] == "[Large data removed - 12 KB]"
        assert payload["formData"]["name"] == "Moyo, Tariro"
        assert payload["formData"]["hasPhoto"] is True
        assert "metadata" not in payload
        assert result.content_type == "application/json"

    def test_include_photos_keeps_data(self, heavy_submission):
        payload = json.loads(export_to_json(heavy_submission, ExportOptions(include_photos=True)).content)
        assert payload["formData"]["photo"].startswith("data:image/jpeg;base64,AAAA")
        assert payload["formData"]["blob"] == "B" * 12000

    def test_include_metadata(self, heavy_submission):
        payload = json.loads(export_to_json(heavy_submission, ExportOptions(include_metadata=True)).content)
        assert payload["metadata"] == {
            "referer": "https://sirtis.example.org/meal",
            "origin": "https://sirtis.example.org",
            "gpsSource": "None",
            "gpsAccuracy": None,
        }

    def test_payload_fields(self, heavy_submission):
        payload = json.loads(export_to_json(heavy_submission).content)
        assert payload["submissionId"] == "abc-123"
        assert payload["submittedAt"] == "14/03/2025, 09:26:53"
        assert payload["submittedBy"] == "Moyo, Tariro"
        assert payload["attachmentTypes"] == ["Photo (JPEG)"]
        assert payload["deviceInfo"]["platform"] == "Unknown"

    def test_filenames(self, heavy_submission):
        assert re.match(r"^submission_abc-123_\d{4}-\d{2}-\d{2}\.json$", export_to_json(heavy_submission).filename)
        assert export_to_json(heavy_submission, ExportOptions(filename="mine.json")).filename == "mine.json"


# ---------- CSV ----------
class TestCsvExport:
    def test_one_header_and_one_row(self, heavy_submission):
        result = export_to_csv(heavy_submission)
        text = result.content.decode("utf-8")
        rows = list(csv.reader(io.StringIO(text)))
        assert len(rows) == 2
        header, row = rows
        assert len(header) == len(row)
        values = dict(zip(header, row))
        assert values["Submitted By"] == "Moyo, Tariro"
        assert values["Form_name"] == "Moyo, Tariro"
        assert values["Form_remarks"] == 'said "hello"\nthen left'
        assert values["Form_consent"] == "true"
        assert values["Coordinates"] == ""
        assert values["Attachment Types"] == "Photo (JPEG)"
        assert "Form_photo" not in header and "Form_hasPhoto" not in header
        assert result.filename.endswith(".csv")
        assert result.content_type == "text/csv"

    def test_commas_are_quoted(self, heavy_submission):
        text = export_to_csv(heavy_submission).content.decode("utf-8")
        assert '"Moyo, Tariro"' in text.splitlines()[1]
        assert '"said ""hello""' in text

    def test_whole_number_floats_have_no_decimal_part(self):
        parsed = parse_submission({"id": "1", "data": {"weight": 12.0, "height": 1.5}})
        text = export_to_csv(parsed).content.decode("utf-8")
        values = dict(zip(*csv.reader(io.StringIO(text))))
        assert values["Form_weight"] == "12"
        assert values["Form_height"] == "1.5"

    def test_no_attachments(self):
        text = export_to_csv(parse_submission({"id": "1"})).content.decode("utf-8")
        values = dict(zip(*csv.reader(io.StringIO(text))))
        assert values["Attachment Types"] == "None"
        assert values["Attachments Count"] == "0"


# ---------- HTML / PDF ----------
class TestReports:
    def test_html_report(self, biodata_raw):
        biodata_raw["data"]["household_members"] = 5
        biodata_raw["data"]["favourite_service"] = "<script>alert(1)</script>"
        result = export_to_html_report(parse_submission(biodata_raw))
        html = result.content.decode("utf-8")
        assert result.content_type.startswith("text/html")
        assert result.filename.endswith(".html")
        assert f"MEAL Submission Report - {biodata_raw['id']}" in html
        assert "Personal Information" in html
        assert "Demographic Information" in html
        assert "household members" in html
        assert "Harare Province" in html
        assert "iOS 18" in html
        assert "SAYWHAT Organization" in html
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_pdf_rendered_from_report(self, biodata_raw, fake_weasyprint):
        result = export_to_pdf(parse_submission(biodata_raw))
        assert result.content.startswith(b"%PDF")
        assert result.content_type == "application/pdf"
        assert result.filename.endswith(".pdf")

    def test_pdf_failure_raises_export_error(self, biodata_raw, broken_weasyprint):
        with pytest.raises(ExportError, match="PDF rendering failed"):
            export_to_pdf(parse_submission(biodata_raw))


# ---------- dispatch ----------
class TestDispatch:
    @pytest.mark.parametrize("fmt, ext", [("json", "json"), ("csv", "csv"), ("html", "html")])
    def test_export_submission(self, heavy_submission, fmt, ext):
        result = export_submission(heavy_submission, ExportOptions(format=fmt))
        assert result.filename.endswith(f".{ext}")
        assert result.content

    def test_unknown_format(self, heavy_submission):
        with pytest.raises(ExportError, match="Unsupported format"):
            export_submission(heavy_submission, ExportOptions(format="docx"))

    def test_as_response(self, heavy_submission):
        resp = export_to_csv(heavy_submission, ExportOptions(filename="x.csv")).as_response()
        assert resp["Content-Type"] == "text/csv"
        assert resp["Content-Disposition"] == 'attachment; filename="x.csv"'

    @pytest.mark.parametrize("filename, expected", [
        ('a"b.json', 'attachment; filename="a\\"b.json"'),
        ("rapport_\u00e9t\u00e9.json", "attachment; filename*=utf-8''rapport_%C3%A9t%C3%A9.json"),
        ("a\nb.json", 'attachment; filename="ab.json"'),
    ])
    def test_content_disposition_is_well_formed(self, heavy_submission, filename, expected):
        resp = export_to_json(heavy_submission, ExportOptions(filename=filename)).as_response()
        assert resp["Content-Disposition"] == expected

    def test_class_entry_points(self, heavy_submission):
        assert MealExportService.export_to_csv(heavy_submission).content == export_to_csv(heavy_submission).content

    @pytest.mark.parametrize("data, expected", [
        ({"format": "CSV", "includePhotos": "true", "include_metadata": "1"}, ("csv", True, True)),
        ({"include_photos": "no", "includeMetadata": "off"}, ("json", False, False)),
        ({"format": "", "filename": "a.json"}, ("json", False, False)),
    ])
    def test_options_from_mapping(self, data, expected):
        opts = ExportOptions.from_mapping(data)
        assert (opts.format, opts.include_photos, opts.include_metadata) == expected

    def test_options_overrides(self):
        assert ExportOptions.from_mapping({"format": "pdf"}, format="html").format == "html"


# ---------- dataset ----------
class TestDatasetExport:
    def test_csv_quotes_everything(self, biodata_raw):
        result = export_dataset([biodata_raw, {"id": "2"}], "csv")
        lines = result.content.decode("utf-8").splitlines()
        assert len(lines) == 3
        assert lines[0].startswith('"Submission ID","Form Name"')
        rows = list(csv.reader(io.StringIO(result.content.decode("utf-8"))))
        values = dict(zip(rows[0], rows[1]))
        assert values["Email"] == "officer@saywhat.example.org"
        assert values["GPS Accuracy"] == "12.5"
        assert values["City"] == "Harare"
        assert values["Has Attachments"] == "Yes"
        assert dict(zip(rows[0], rows[2]))["GPS Accuracy"] == "N/A"
        assert re.match(r"^meal-export-\d{4}-\d{2}-\d{2}\.csv$", result.filename)

    def test_xlsx(self, biodata_raw):
        for fmt in ("xlsx", "excel"):
            result = export_dataset([biodata_raw], fmt)
            assert result.filename.endswith(".xlsx")
            ws = load_workbook(io.BytesIO(result.content)).active
            assert ws.title == "MEAL submissions"
            assert ws.max_row == 2
            assert [c.value for c in ws[1]] == DATASET_HEADERS

    def test_json_with_metadata(self, biodata_raw):
        result = export_dataset([biodata_raw], "json", include_metadata=True)
        rows = json.loads(result.content)
        assert list(rows[0]) == DATASET_HEADERS + METADATA_HEADERS
        assert json.loads(rows[0]["Metadata"])["form_version"] == "2.1"

    def test_empty_selection(self):
        lines = export_dataset([], "csv").content.decode("utf-8").splitlines()
        assert len(lines) == 1

    def test_unsupported(self):
        with pytest.raises(ExportError):
            export_dataset([], "pdf")
