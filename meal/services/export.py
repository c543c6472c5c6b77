# meal/services/export.py
"""
Single-submission exports: JSON, CSV, HTML report and PDF report.

Each function is stateless and returns an ExportResult; turning it into a
download is left to ExportResult.as_response().
"""
from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.http import content_disposition_header

from .categories import CATEGORY_LABELS, categorize_form_data
from .formatting import format_datetime
from .types import ExportOptions, ParsedSubmission

logger = logging.getLogger(__name__)

DEFAULT_LARGE_FIELD_THRESHOLD = 10000

CONTENT_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "html": "text/html; charset=utf-8",
    "pdf": "application/pdf",
}


class ExportError(RuntimeError):
    """Unsupported export format or a report that could not be rendered."""


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    filename: str
    content_type: str

    def as_response(self) -> HttpResponse:
        resp = HttpResponse(self.content, content_type=self.content_type)
        # header values cannot carry control characters
        name = "".join(ch for ch in self.filename if ch.isprintable())
        resp["Content-Disposition"] = content_disposition_header(True, name)
        return resp


# ---------- Helpers ----------
def _kb(length: int) -> int:
    return int(length / 1024 + 0.5)


def js_string(value: Any) -> str:
    """String form of a JSON value as a browser would print it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def default_filename(submission: ParsedSubmission, ext: str) -> str:
    return f"submission_{submission.id}_{timezone.now().date().isoformat()}.{ext}"


def _filename(submission: ParsedSubmission, options: ExportOptions, ext: str) -> str:
    return options.filename or default_filename(submission, ext)


def large_field_threshold() -> int:
    return int(getattr(settings, "MEAL_LARGE_FIELD_THRESHOLD", DEFAULT_LARGE_FIELD_THRESHOLD))


def sanitize_form_data(form_data: Dict[str, Any], threshold: Optional[int] = None) -> Dict[str, Any]:
    """Replaces binary-sized strings with a placeholder, keeping every key."""
    threshold = large_field_threshold() if threshold is None else threshold
    sanitized = dict(form_data)

    photo = sanitized.get("photo")
    if photo:
        sanitized["photo"] = f"[Photo data removed - {_kb(len(str(photo)))} KB]"

    for key, value in sanitized.items():
        if isinstance(value, str) and len(value) > threshold:
            sanitized[key] = f"[Large data removed - {_kb(len(value))} KB]"
    return sanitized


# ---------- JSON ----------
def build_json_payload(submission: ParsedSubmission, options: ExportOptions) -> Dict[str, Any]:
    form_data = submission.form_data.as_dict()
    payload: Dict[str, Any] = {
        "submissionId": submission.id,
        "formName": submission.form_name,
        "submittedAt": submission.submitted_at,
        "submittedBy": submission.display_submitter,
        "status": submission.status,
        "location": submission.location,
        "coordinates": submission.coordinates,
        "country": submission.country,
        "region": submission.region,
        "city": submission.city,
        "ipAddress": submission.ip_address,
        "deviceInfo": submission.device_info.to_dict(),
        "attachments": submission.attachments,
        "attachmentTypes": list(submission.attachment_types),
        "dataSize": submission.data_size,
        "completionTime": submission.completion_time,
        "submissionSource": submission.submission_source,
        "formVersion": submission.form_version,
        "timestamp": submission.timestamp,
        "formData": form_data if options.include_photos else sanitize_form_data(form_data),
    }
    if options.include_metadata:
        payload["metadata"] = {
            "referer": submission.referer,
            "origin": submission.origin,
            "gpsSource": submission.gps_source,
            "gpsAccuracy": submission.gps_accuracy,
        }
    return payload


def export_to_json(submission: ParsedSubmission, options: Optional[ExportOptions] = None) -> ExportResult:
    options = options or ExportOptions(format="json")
    text = json.dumps(build_json_payload(submission, options), indent=2, ensure_ascii=False, default=str)
    return ExportResult(text.encode("utf-8"), _filename(submission, options, "json"), CONTENT_TYPES["json"])


# ---------- CSV ----------
def flatten_submission(submission: ParsedSubmission) -> Dict[str, Any]:
    device = submission.device_info
    flat: Dict[str, Any] = {
        "Submission ID": submission.id,
        "Form Name": submission.form_name,
        "Submitted At": submission.submitted_at,
        "Submitted By": submission.display_submitter,
        "Status": submission.status,
        "Location": submission.location,
        "Coordinates": submission.coordinates,
        "Country": submission.country,
        "Region": submission.region,
        "City": submission.city,
        "IP Address": submission.ip_address,
        "Device Platform": device.platform or "Unknown",
        "Device OS": device.os or "Unknown",
        "Device Browser": device.browser or "Unknown",
        "Attachments Count": submission.attachments,
        "Attachment Types": ", ".join(submission.attachment_types) or "None",
        "Data Size": submission.data_size,
        "Completion Time": submission.completion_time,
        "Submission Source": submission.submission_source,
        "Form Version": submission.form_version,
        "Timestamp": submission.timestamp,
    }

    for key, value in submission.form_data.items():
        if key in ("photo", "hasPhoto"):
            continue
        if value is None or value == "":
            continue
        flat[f"Form_{key}"] = js_string(value)
    return flat


def export_to_csv(submission: ParsedSubmission, options: Optional[ExportOptions] = None) -> ExportResult:
    """One header row and exactly one data row."""
    options = options or ExportOptions(format="csv")
    flat = flatten_submission(submission)

    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(list(flat.keys()))
    w.writerow([js_string(v) for v in flat.values()])
    return ExportResult(buf.getvalue().encode("utf-8"), _filename(submission, options, "csv"), CONTENT_TYPES["csv"])


# ---------- HTML / PDF report ----------
def report_sections(submission: ParsedSubmission) -> List[Tuple[str, List[Tuple[str, str]]]]:
    """Non-empty form data buckets as (title, [(label, value), ...])."""
    sections = []
    for bucket, fields in categorize_form_data(submission.form_data.as_dict()).items():
        rows = [(key.replace("_", " "), js_string(value)) for key, value in fields.items()]
        if rows:
            sections.append((CATEGORY_LABELS.get(bucket, "Information"), rows))
    return sections


def render_report_html(submission: ParsedSubmission) -> str:
    ctx = {
        "s": submission,
        "device": submission.device_info,
        "attachment_types": ", ".join(submission.attachment_types) or "None",
        "sections": report_sections(submission),
        "generated_at": format_datetime(timezone.now()),
        "organization": getattr(settings, "MEAL_ORGANIZATION_NAME", "SAYWHAT Organization"),
    }
    return render_to_string("meal/submission_report.html", ctx)


def export_to_html_report(submission: ParsedSubmission, options: Optional[ExportOptions] = None) -> ExportResult:
    options = options or ExportOptions(format="html")
    html = render_report_html(submission)
    return ExportResult(html.encode("utf-8"), _filename(submission, options, "html"), CONTENT_TYPES["html"])


def export_to_pdf(submission: ParsedSubmission, options: Optional[ExportOptions] = None) -> ExportResult:
    options = options or ExportOptions(format="pdf")
    html = render_report_html(submission)
    try:
        from weasyprint import HTML
        pdf_bytes = HTML(string=html).write_pdf()
    except Exception as e:
        raise ExportError(f"PDF rendering failed: {e}") from e
    return ExportResult(pdf_bytes, _filename(submission, options, "pdf"), CONTENT_TYPES["pdf"])


EXPORTERS = {
    "json": export_to_json,
    "csv": export_to_csv,
    "html": export_to_html_report,
    "pdf": export_to_pdf,
}


def export_submission(submission: ParsedSubmission, options: ExportOptions) -> ExportResult:
    exporter = EXPORTERS.get(options.format)
    if exporter is None:
        raise ExportError(f"Unsupported format: {options.format}")
    result = exporter(submission, options)
    logger.info(f"Exported submission {submission.id} as {options.format} ({len(result.content)} bytes)")
    return result


class MealExportService:
    """Class-style entry points kept for callers of the original API."""

    export_to_json = staticmethod(export_to_json)
    export_to_csv = staticmethod(export_to_csv)
    export_to_html_report = staticmethod(export_to_html_report)
    export_to_pdf = staticmethod(export_to_pdf)
