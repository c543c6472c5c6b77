# meal/services/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

UNKNOWN = "Unknown"

EXPORT_FORMATS = ("json", "csv", "html", "pdf")


@dataclass(frozen=True)
class DeviceInfo:
    platform: str = UNKNOWN
    browser: str = UNKNOWN
    os: str = UNKNOWN
    user_agent: str = UNKNOWN
    language: str = UNKNOWN
    screen_resolution: str = UNKNOWN
    timezone: str = UNKNOWN
    connection_type: str = UNKNOWN
    is_mobile: bool = False
    is_tablet: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "browser": self.browser,
            "os": self.os,
            "userAgent": self.user_agent,
            "language": self.language,
            "screenResolution": self.screen_resolution,
            "timezone": self.timezone,
            "connectionType": self.connection_type,
            "isMobile": self.is_mobile,
            "isTablet": self.is_tablet,
        }


@dataclass(frozen=True)
class FormData:
    """
    Dynamic answers of a submission.
    - has_photo / photo : the one field shape every form shares
    - fields            : every other retained answer, passed through as-is
    """
    has_photo: bool = False
    photo: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"hasPhoto": self.has_photo, "photo": self.photo, **self.fields}

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.as_dict().items())

    def get(self, key: str, default: Any = None) -> Any:
        return self.as_dict().get(key, default)


@dataclass(frozen=True)
class ParsedSubmission:
    id: str = ""
    form_name: str = "Unknown Form"
    project_name: str = "No Project"
    submitted_at: str = UNKNOWN
    ip_address: str = UNKNOWN
    location: str = "Unknown Location"
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    coordinates: Optional[str] = None
    gps_accuracy: Optional[float] = None
    gps_source: str = "None"
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    data_size: str = "0 KB"
    attachments: int = 0
    attachment_types: Tuple[str, ...] = ()
    completion_time: str = UNKNOWN
    submitted_by: str = "Anonymous"
    submitted_by_name: str = "Anonymous"
    status: str = "completed"
    submission_source: str = "Web Form"
    form_version: str = "1.0"
    referer: str = UNKNOWN
    origin: str = UNKNOWN
    timestamp: str = UNKNOWN
    form_data: FormData = field(default_factory=FormData)

    @property
    def display_submitter(self) -> str:
        return self.submitted_by_name or self.submitted_by

    def to_dict(self) -> Dict[str, Any]:
        """Display shape consumed by the UI (camelCase keys)."""
        return {
            "id": self.id,
            "formName": self.form_name,
            "projectName": self.project_name,
            "submittedAt": self.submitted_at,
            "ipAddress": self.ip_address,
            "location": self.location,
            "country": self.country,
            "region": self.region,
            "city": self.city,
            "coordinates": self.coordinates,
            "gpsAccuracy": self.gps_accuracy,
            "gpsSource": self.gps_source,
            "deviceInfo": self.device_info.to_dict(),
            "dataSize": self.data_size,
            "attachments": self.attachments,
            "attachmentTypes": list(self.attachment_types),
            "completionTime": self.completion_time,
            "submittedBy": self.submitted_by,
            "submittedByName": self.submitted_by_name,
            "status": self.status,
            "submissionSource": self.submission_source,
            "formVersion": self.form_version,
            "referer": self.referer,
            "origin": self.origin,
            "timestamp": self.timestamp,
            "formData": self.form_data.as_dict(),
        }


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class ExportOptions:
    format: str = "json"
    include_photos: bool = False
    include_metadata: bool = False
    filename: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> "ExportOptions":
        """Accepts both the camelCase keys of the UI and snake_case query params."""
        def pick(*keys):
            for k in keys:
                if k in data and data[k] not in (None, ""):
                    return data[k]
            return None

        values = {
            "format": str(pick("format") or cls.format).lower(),
            "include_photos": _flag(pick("includePhotos", "include_photos")),
            "include_metadata": _flag(pick("includeMetadata", "include_metadata")),
            "filename": pick("filename"),
        }
        values.update(overrides)
        return cls(**values)
