# meal/views.py
import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .decorators import group_required
from .filters import MealSubmissionFilter
from .models import MealSubmission
from .serializers import DatasetExportSerializer
from .services.categories import categorize_form_data
from .services.dataset_export import export_dataset
from .services.export import ExportError, export_submission, export_to_html_report
from .services.types import EXPORT_FORMATS, ExportOptions

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


def _filtered_submissions(params):
    params = dict(params.items())
    if params.get("project") == "all":
        params.pop("project")
    qs = MealSubmission.objects.select_related("form").order_by("-submitted_at")
    return MealSubmissionFilter(params, queryset=qs).qs


def _limit(value, default, ceiling):
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(n, ceiling))


# ---------- API: parsed submissions ----------
@api_view(["GET"])
def submission_list(request):
    ceiling = settings.MEAL_EXPORT_MAX_ROWS
    limit = _limit(request.GET.get("limit"), min(DEFAULT_LIST_LIMIT, ceiling), ceiling)
    subs = _filtered_submissions(request.GET)[:limit]
    data = [s.parsed().to_dict() for s in subs]
    return Response({"success": True, "data": data, "total": len(data)})


@api_view(["GET"])
def submission_detail(request, pk):
    sub = get_object_or_404(MealSubmission.objects.select_related("form"), pk=pk)
    parsed = sub.parsed()
    return Response({
        "success": True,
        "data": parsed.to_dict(),
        "categories": categorize_form_data(parsed.form_data.as_dict()),
    })


# ---------- Single submission download ----------
@login_required
@require_GET
def submission_export(request, pk):
    sub = get_object_or_404(MealSubmission.objects.select_related("form"), pk=pk)
    options = ExportOptions.from_mapping(request.GET)
    if options.format not in EXPORT_FORMATS:
        return JsonResponse({"success": False, "error": f"Unsupported format: {options.format}"}, status=400)

    parsed = sub.parsed()
    try:
        result = export_submission(parsed, options)
    except ExportError as e:
        # only the PDF renderer can fail here: hand out the HTML report under its real extension
        logger.warning(f"PDF export of {sub.pk} failed, serving HTML report instead: {e}")
        result = export_to_html_report(parsed, ExportOptions(format="html"))
    return result.as_response()


# ---------- Dataset export ----------
@api_view(["POST"])
@group_required(setting="MEAL_EXPORT_GROUPS")
def dataset_export(request):
    ser = DatasetExportSerializer(data=request.data)
    if not ser.is_valid():
        return Response({"success": False, "error": "Unsupported format", "details": ser.errors}, status=400)

    params = {k: v for k, v in ser.validated_data.items() if k in ("project", "form") and v}
    qs = _filtered_submissions(params)[: settings.MEAL_EXPORT_MAX_ROWS]
    try:
        result = export_dataset(
            (s.as_raw() for s in qs),
            ser.validated_data["format"],
            include_metadata=ser.validated_data["includeMetadata"],
        )
    except ExportError as e:
        logger.error(f"MEAL export error: {e}")
        return Response({"success": False, "error": "Failed to generate export"}, status=500)
    return result.as_response()

