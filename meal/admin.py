# meal/admin.py
from django.contrib import admin, messages
from django.urls import reverse
from django.utils.html import format_html, format_html_join

from .models import MealForm, MealSubmission
from .services.dataset_export import export_dataset
from .services.export import ExportError


# ---------- MealForm ----------
@admin.register(MealForm)
class MealFormAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "version", "project_name", "enabled", "updated_at")
    list_filter = ("enabled",)
    search_fields = ("name", "slug", "project_name")
    prepopulated_fields = {"slug": ("name",)}


# ---------- MealSubmission ----------
@admin.register(MealSubmission)
class MealSubmissionAdmin(admin.ModelAdmin):
    list_display = ("id", "form", "submitted_at", "submitted_by", "location_display",
                    "device_display", "attachments_display", "export_links")
    list_filter = ("form", "submitted_at")
    search_fields = ("id", "submitted_by", "user_email", "project_name")
    readonly_fields = ("received_at", "parsed_preview")
    actions = ["export_selected_csv"]

    def _parsed(self, obj):
        # one parse per row instance; the changelist asks for it in several columns
        if not hasattr(obj, "_parsed_cache"):
            obj._parsed_cache = obj.parsed()
        return obj._parsed_cache

    def location_display(self, obj):
        p = self._parsed(obj)
        return f"{p.location} ({p.country})"
    location_display.short_description = "Location"

    def device_display(self, obj):
        d = self._parsed(obj).device_info
        return f"{d.platform} / {d.os} / {d.browser}"
    device_display.short_description = "Device"

    def attachments_display(self, obj):
        p = self._parsed(obj)
        return f"{p.attachments} ({', '.join(p.attachment_types) or 'None'})"
    attachments_display.short_description = "Attachments"

    def export_links(self, obj):
        url = reverse("meal:submission_export", args=[obj.pk])
        return format_html(
            '<a href="{0}?format=json">JSON</a> | <a href="{0}?format=csv">CSV</a> | '
            '<a href="{0}?format=html">HTML</a> | <a href="{0}?format=pdf">PDF</a>',
            url,
        )
    export_links.short_description = "Export"

    def parsed_preview(self, obj):
        if obj.pk is None:
            return "-"
        p = self._parsed(obj)
        rows = [
            ("Submitted", p.submitted_at),
            ("By", p.display_submitter),
            ("Location", p.location),
            ("Country / Region / City", f"{p.country} / {p.region} / {p.city}"),
            ("GPS source", p.gps_source),
            ("IP address", p.ip_address),
            ("Device", f"{p.device_info.platform} / {p.device_info.os} / {p.device_info.browser}"),
            ("Data size", p.data_size),
        ]
        return format_html("<table>{}</table>", format_html_join("", "<tr><th>{}</th><td>{}</td></tr>", rows))
    parsed_preview.short_description = "Parsed submission"

    # --- Bulk action: CSV of the selection ---
    def export_selected_csv(self, request, queryset):
        try:
            result = export_dataset((s.as_raw() for s in queryset.select_related("form")), "csv")
        except ExportError as e:
            messages.error(request, f"Export failed: {e}")
            return None
        return result.as_response()

    export_selected_csv.short_description = "Export selected submissions (CSV)"
