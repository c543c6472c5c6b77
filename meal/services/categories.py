# meal/services/categories.py
from __future__ import annotations

from typing import Any, Dict, Mapping

# Bucket order is also the display order of the report.
CATEGORY_FIELDS = (
    ("personal", ("name", "surname", "age", "sex", "gender", "date_of_birth", "national_id", "nationalId")),
    ("contact", ("email", "phone", "address", "city", "country", "region", "postal_code")),
    ("location", ("latitude", "longitude", "coordinates", "location", "district")),
    ("demographic", ("occupation", "education", "income", "family_size", "household_members", "children_count")),
    ("assessment", ("rating", "score", "value", "amount", "quantity", "status", "priority", "category", "type")),
    ("technical", ("timestamp", "date", "time", "datetime", "unit", "measurement", "dimensions")),
    ("attachments", ("photo", "file", "document", "attachment", "image", "video", "signature")),
)

CATEGORY_LABELS = {
    "personal": "Personal Information",
    "contact": "Contact Information",
    "location": "Location Information",
    "demographic": "Demographic Information",
    "assessment": "Assessment Data",
    "technical": "Technical Data",
    "attachments": "Attachments",
    "other": "Other Information",
}

_BUCKET_OF = {name: bucket for bucket, names in CATEGORY_FIELDS for name in names}


def bucket_for(key: str) -> str:
    return _BUCKET_OF.get(key, "other")


def categorize_form_data(form_data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Splits form answers into the fixed display buckets; empty answers are dropped."""
    categories: Dict[str, Dict[str, Any]] = {bucket: {} for bucket, _ in CATEGORY_FIELDS}
    categories["other"] = {}
    if not form_data:
        return categories

    for key, value in form_data.items():
        if value is None or value == "":
            continue
        categories[bucket_for(key)][key] = value
    return categories
