# meal/services/dataset_export.py
"""Multi-submission exports (one row per submission): csv, xlsx, json."""
from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Dict, Iterable, List

from django.utils import timezone
from openpyxl import Workbook

from .export import ExportError, ExportResult
from .parser import parse_submission

logger = logging.getLogger(__name__)

DATASET_HEADERS = [
    "Submission ID", "Form Name", "Project", "Submitted At", "Submitted By", "Email",
    "Latitude", "Longitude", "GPS Accuracy", "Device Platform", "Device OS", "Device Browser",
    "IP Address", "Country", "Region", "City", "Status", "Data Size", "Has Attachments",
]
METADATA_HEADERS = ["Raw Data", "Metadata", "Device Info"]

DATASET_FORMATS = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "json": "application/json",
}


def _dumps(value: Any) -> str:
    return json.dumps(value or {}, separators=(",", ":"), ensure_ascii=False, default=str)


def dataset_row(raw: Dict[str, Any], include_metadata: bool = False) -> Dict[str, Any]:
    parsed = parse_submission(raw)
    device = parsed.device_info
    row = {
        "Submission ID": parsed.id,
        "Form Name": raw.get("form_name") or "",
        "Project": raw.get("project_name") or "",
        "Submitted At": parsed.submitted_at,
        "Submitted By": raw.get("submitted_by") or "",
        "Email": raw.get("user_email") or "",
        "Latitude": raw.get("latitude") if raw.get("latitude") is not None else "",
        "Longitude": raw.get("longitude") if raw.get("longitude") is not None else "",
        "GPS Accuracy": parsed.gps_accuracy if parsed.gps_accuracy is not None else "N/A",
        "Device Platform": device.platform,
        "Device OS": device.os,
        "Device Browser": device.browser,
        "IP Address": parsed.ip_address,
        "Country": parsed.country,
        "Region": parsed.region,
        "City": parsed.city,
        "Status": parsed.status,
        "Data Size": parsed.data_size,
        "Has Attachments": "Yes" if parsed.attachments else "No",
    }
    if include_metadata:
        row["Raw Data"] = _dumps(raw.get("data"))
        row["Metadata"] = _dumps(raw.get("metadata"))
        row["Device Info"] = _dumps(raw.get("device_info"))
    return row


def export_dataset(raws: Iterable[Dict[str, Any]], fmt: str, include_metadata: bool = False) -> ExportResult:
    fmt = (fmt or "").lower()
    if fmt == "excel":
        fmt = "xlsx"
    if fmt not in DATASET_FORMATS:
        raise ExportError(f"Unsupported format: {fmt}")

    headers = DATASET_HEADERS + (METADATA_HEADERS if include_metadata else [])
    rows: List[Dict[str, Any]] = [dataset_row(r, include_metadata) for r in raws]
    filename = f"meal-export-{timezone.now().date().isoformat()}.{fmt}"

    if fmt == "csv":
        buf = io.StringIO()
        w = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        w.writerow(headers)
        for r in rows:
            w.writerow([r[h] for h in headers])
        content = buf.getvalue().encode("utf-8")
    elif fmt == "xlsx":
        wb = Workbook(); ws = wb.active
        ws.title = "MEAL submissions"
        ws.append(headers)
        for r in rows:
            ws.append([r[h] for h in headers])
        bio = io.BytesIO(); wb.save(bio)
        content = bio.getvalue()
    else:
        content = json.dumps(rows, indent=2, ensure_ascii=False, default=str).encode("utf-8")

    logger.info(f"Dataset export: {len(rows)} submission(s) as {fmt}")
    return ExportResult(content, filename, DATASET_FORMATS[fmt])
