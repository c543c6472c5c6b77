# meal/services/parser.py
"""
Raw MEAL submission -> ParsedSubmission.

Every extraction is a short priority chain, first match wins, and every chain
ends on a default value: parsing never raises on malformed input.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from .categories import categorize_form_data
from .device import (
    detect_browser, detect_mobile, detect_os, detect_platform, detect_tablet,
)
from .formatting import format_datetime, format_field_value
from .location import LocationResolver, infer_location
from .types import UNKNOWN, DeviceInfo, FormData, ParsedSubmission

ANONYMOUS = "Anonymous"

# Fields kept from the answers even when they hold objects.
COMMON_FIELDS = (
    "age", "sex", "name", "surname", "district", "national_id", "nationalId",
    "email", "phone", "address", "city", "country", "region", "postal_code",
    "date_of_birth", "gender", "occupation", "education", "income",
    "family_size", "household_members", "children_count",
    "latitude", "longitude", "coordinates", "location",
    "timestamp", "date", "time", "datetime",
    "status", "priority", "category", "type",
    "description", "notes", "comments", "feedback",
    "rating", "score", "value", "amount", "quantity",
    "unit", "measurement", "dimensions",
    "file", "document", "attachment", "image", "video",
    "signature", "consent", "agreement", "terms",
)

# Answers that hold an uploaded file; each counts as one attachment.
FILE_FIELDS = ("photo", "document", "file", "attachment", "image")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _text(value: Any, default: str = UNKNOWN) -> str:
    if _is_empty(value):
        return default
    return str(value)


# ---------- GPS ----------
def extract_gps(raw: Dict[str, Any], form_data: Dict[str, Any]) -> Tuple[Optional[str], Optional[float], str]:
    """Returns (coordinates, accuracy, source)."""
    if raw.get("latitude") and raw.get("longitude"):
        return f"{raw['latitude']}, {raw['longitude']}", None, "Database"

    if form_data.get("gps_location"):
        gps = _as_dict(form_data["gps_location"])
        if gps.get("lat") and gps.get("lng"):
            return f"{gps['lat']}, {gps['lng']}", gps.get("accuracy") or None, "Form Data"
    elif form_data.get("gps"):
        gps = _as_dict(form_data["gps"])
        if gps.get("latitude") and gps.get("longitude"):
            return f"{gps['latitude']}, {gps['longitude']}", gps.get("accuracy") or None, "Form Data"

    return None, None, "None"


# ---------- Device ----------
def extract_device_info(device_info: Dict[str, Any], form_data: Dict[str, Any]) -> DeviceInfo:
    form_device = _as_dict(form_data.get("device_info"))
    user_agent = device_info.get("user_agent") or form_device.get("userAgent")
    platform_hint = device_info.get("platform") or form_device.get("platform") or user_agent

    return DeviceInfo(
        platform=detect_platform(platform_hint),
        browser=detect_browser(user_agent),
        os=detect_os(user_agent),
        user_agent=_text(user_agent),
        language=_text(device_info.get("language") or form_device.get("language")),
        screen_resolution=_text(device_info.get("screen_resolution")),
        timezone=_text(device_info.get("timezone")),
        connection_type=_text(device_info.get("connection_type")),
        is_mobile=detect_mobile(user_agent),
        is_tablet=detect_tablet(user_agent),
    )


# ---------- Identity ----------
def extract_ip_address(metadata: Dict[str, Any], form_data: Dict[str, Any]) -> str:
    ip = metadata.get("ip_address")
    if ip and ip != UNKNOWN:
        return str(ip)
    if form_data.get("ip_address"):
        return str(form_data["ip_address"])
    return UNKNOWN


def extract_submitter_name(form_data: Dict[str, Any]) -> str:
    name, surname = form_data.get("name"), form_data.get("surname")
    if name and surname:
        return f"{name} {surname}"
    if name:
        return str(name)
    if surname:
        return str(surname)
    return ANONYMOUS


def extract_submitter(raw: Dict[str, Any], form_data: Dict[str, Any]) -> str:
    for key in ("user_email", "submitted_by"):
        value = raw.get(key)
        if value and value != ANONYMOUS:
            return str(value)
    return extract_submitter_name(form_data)


# ---------- Size & attachments ----------
def calculate_data_size(data: Any) -> str:
    if not data:
        return "0 KB"
    size = len(json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str))
    tenths = _js_round(size / 1024 * 10)
    if tenths % 10 == 0:
        return f"{tenths // 10} KB"
    return f"{tenths / 10} KB"


def _js_round(x: float) -> int:
    # half-up, as Math.round does; Python's round() is banker's rounding
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def count_attachments(attachments: Any, form_data: Dict[str, Any]) -> int:
    count = 0
    if isinstance(attachments, (list, tuple)):
        count += len(attachments)
    elif isinstance(attachments, dict):
        count += len(attachments)
    for field in FILE_FIELDS:
        if form_data.get(field):
            count += 1
    return count


def photo_type(photo: Any) -> str:
    if isinstance(photo, str):
        if photo.startswith("data:image/jpeg"):
            return "Photo (JPEG)"
        if photo.startswith("data:image/png"):
            return "Photo (PNG)"
    return "Photo"


def extract_attachment_types(attachments: Any, form_data: Dict[str, Any]) -> Tuple[str, ...]:
    types: List[str] = []
    if form_data.get("photo"):
        types.append(photo_type(form_data["photo"]))

    if isinstance(attachments, (list, tuple)):
        for item in attachments:
            if not isinstance(item, dict):
                continue
            if item.get("type"):
                types.append(str(item["type"]))
            elif item.get("mimeType"):
                types.append(str(item["mimeType"]))
            elif item.get("filename"):
                ext = str(item["filename"]).rsplit(".", 1)[-1].lower()
                if ext:
                    types.append(f"File ({ext.upper()})")
    elif isinstance(attachments, dict):
        for item in attachments.values():
            if not isinstance(item, dict):
                continue
            if item.get("type"):
                types.append(str(item["type"]))
            elif item.get("mimeType"):
                types.append(str(item["mimeType"]))

    return tuple(dict.fromkeys(types))


# ---------- Form answers ----------
def extract_form_data(form_data: Dict[str, Any]) -> FormData:
    fields: Dict[str, Any] = {}
    for key in COMMON_FIELDS:
        if not _is_empty(form_data.get(key)):
            fields[key] = form_data[key]

    for key, value in form_data.items():
        if key in COMMON_FIELDS or key == "photo" or _is_empty(value):
            continue
        if isinstance(value, (dict, list, tuple)):
            continue
        fields[key] = value

    photo = form_data.get("photo") or None
    return FormData(has_photo=bool(photo), photo=photo, fields=fields)


# ---------- Entry point ----------
def parse_submission(raw: Any, resolver: Optional[LocationResolver] = None) -> ParsedSubmission:
    raw = _as_dict(raw)
    metadata = _as_dict(raw.get("metadata"))
    device_info = _as_dict(raw.get("device_info"))
    form_data = _as_dict(raw.get("data"))

    coordinates, accuracy, gps_source = extract_gps(raw, form_data)
    place = infer_location(metadata, form_data, coordinates, resolver)

    return ParsedSubmission(
        id=_text(raw.get("id"), ""),
        form_name=_text(raw.get("form_name"), "Unknown Form"),
        project_name=_text(raw.get("project_name"), "No Project"),
        submitted_at=format_datetime(raw.get("submitted_at")),
        ip_address=extract_ip_address(metadata, form_data),
        location=place.location,
        country=place.country,
        region=place.region,
        city=place.city,
        coordinates=coordinates,
        gps_accuracy=accuracy,
        gps_source=gps_source,
        device_info=extract_device_info(device_info, form_data),
        data_size=calculate_data_size(raw.get("data")),
        attachments=count_attachments(raw.get("attachments"), form_data),
        attachment_types=extract_attachment_types(raw.get("attachments"), form_data),
        completion_time=_text(metadata.get("completion_time")),
        submitted_by=extract_submitter(raw, form_data),
        submitted_by_name=extract_submitter_name(form_data),
        status=_text(metadata.get("status"), "completed"),
        submission_source=_text(metadata.get("submission_source"), "Web Form"),
        form_version=_text(metadata.get("form_version"), "1.0"),
        referer=_text(metadata.get("referer")),
        origin=_text(metadata.get("origin")),
        timestamp=_text(metadata.get("timestamp") or raw.get("submitted_at")),
        form_data=extract_form_data(form_data),
    )


class MealSubmissionParser:
    """Class-style entry points kept for callers of the original API."""

    parse_submission = staticmethod(parse_submission)
    categorize_form_data = staticmethod(categorize_form_data)
    format_field_value = staticmethod(format_field_value)
