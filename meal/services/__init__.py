from .types import DeviceInfo, ExportOptions, FormData, ParsedSubmission  # noqa: F401
from .parser import MealSubmissionParser, parse_submission  # noqa: F401
from .categories import categorize_form_data  # noqa: F401
