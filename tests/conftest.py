import sys
import types
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 18_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/18.0 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ANDROID_TABLET_UA = (
    "Mozilla/5.0 (Linux; Android 13; SM-X700 Tablet) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)


@pytest.fixture
def biodata_raw():
    """A complete BIODATA-style submission as returned by the submissions API."""
    return {
        "id": "4f6c2a1e-0000-4000-8000-000000000001",
        "form_name": "BIODATA",
        "project_name": "Youth SRHR",
        "submitted_at": "2025-03-14T09:26:53Z",
        "data": {
            "name": "Tariro",
            "surname": "Moyo",
            "age": 24,
            "sex": "F",
            "district": "Harare",
            "phone": "+263771000000",
            "gps_location": {"lat": -17.8292, "lng": 31.0522, "accuracy": 12.5},
            "photo": "data:image/jpeg;base64,/9j/4AAQSkZJRg",
            "favourite_service": "counselling",
        },
        "metadata": {
            "ip_address": "196.27.0.10",
            "completion_time": "95",
            "form_version": "2.1",
            "referer": "https://sirtis.example.org/meal",
            "origin": "https://sirtis.example.org",
        },
        "device_info": {
            "user_agent": IPHONE_UA,
            "language": "en-GB",
            "screen_resolution": "390x844",
            "timezone": "Africa/Harare",
            "connection_type": "4g",
        },
        "attachments": [{"filename": "consent.pdf"}],
        "user_email": "officer@saywhat.example.org",
        "submitted_by": "Field Officer",
    }


@pytest.fixture
def fake_weasyprint(monkeypatch):
    """Installs a stand-in `weasyprint` module whose HTML renders a fake PDF."""
    class _HTML:
        def __init__(self, string=None, **kwargs):
            self.string = string

        def write_pdf(self):
            return b"%PDF-1.7\n" + self.string.encode("utf-8")[:64]

    module = types.ModuleType("weasyprint")
    module.HTML = _HTML
    monkeypatch.setitem(sys.modules, "weasyprint", module)
    return module


@pytest.fixture
def broken_weasyprint(monkeypatch):
    """A `weasyprint` whose renderer fails, as on hosts without Pango."""
    class _HTML:
        def __init__(self, string=None, **kwargs):
            pass

        def write_pdf(self):
            raise OSError("cannot load library 'libpango-1.0-0'")

    module = types.ModuleType("weasyprint")
    module.HTML = _HTML
    monkeypatch.setitem(sys.modules, "weasyprint", module)
    return module


@pytest.fixture
def meal_form(db):
    from meal.models import MealForm
    return MealForm.objects.create(name="BIODATA", slug="biodata", project_name="Youth SRHR")


@pytest.fixture
def make_submission(db, meal_form):
    from meal.models import MealSubmission

    def _make(**kwargs):
        defaults = {
            "form": meal_form,
            "submitted_at": datetime(2025, 3, 14, 9, 26, 53, tzinfo=dt_timezone.utc),
            "data": {"name": "Tariro", "surname": "Moyo", "district": "Harare"},
            "metadata": {"ip_address": "196.27.0.10"},
            "device_info": {"user_agent": IPHONE_UA},
            "submitted_by": "Field Officer",
        }
        defaults.update(kwargs)
        return MealSubmission.objects.create(**defaults)

    return _make


@pytest.fixture
def harare_submission(make_submission):
    return make_submission(latitude=Decimal("-17.8292000"), longitude=Decimal("31.0522000"))


@pytest.fixture
def meal_admin_user(db, django_user_model):
    from django.contrib.auth.models import Group
    user = django_user_model.objects.create_user(username="meal_admin", password="pw")
    user.groups.add(Group.objects.create(name="MEAL_ADMIN"))
    return user


@pytest.fixture
def plain_user(db, django_user_model):
    return django_user_model.objects.create_user(username="enumerator", password="pw")
