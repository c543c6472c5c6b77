# meal/models.py
import uuid

from django.db import models


# ---------- MEAL form ----------
class MealForm(models.Model):
    name = models.CharField(max_length=150)
    slug = models.SlugField(unique=True)
    version = models.CharField(max_length=32, default="1.0")
    project_name = models.CharField(max_length=200, blank=True)
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "MEAL form"
        verbose_name_plural = "MEAL forms"
        ordering = ("name",)

    def __str__(self):
        return f"{self.name} ({self.slug})"


# ---------- Raw submission (stored as received) ----------
class MealSubmission(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    form = models.ForeignKey(
        MealForm, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="submissions",
    )
    project_name = models.CharField(max_length=200, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    data = models.JSONField(default=dict, blank=True)           # form answers
    metadata = models.JSONField(default=dict, blank=True)       # ip, location, completion time...
    device_info = models.JSONField(default=dict, blank=True)
    attachments = models.JSONField(null=True, blank=True)       # list or object
    user_email = models.EmailField(blank=True)
    submitted_by = models.CharField(max_length=150, blank=True)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "MEAL submission"
        verbose_name_plural = "MEAL submissions"
        ordering = ("-submitted_at",)
        indexes = [
            models.Index(fields=["submitted_at"], name="meal_sub_submitted_idx"),
            models.Index(fields=["form", "submitted_at"], name="meal_sub_form_submitted_idx"),
        ]

    def __str__(self):
        form = self.form.name if self.form_id else "No form"
        return f"{form} - {self.pk}"

    def as_raw(self) -> dict:
        """Record in the loose shape the submission parser reads."""
        return {
            "id": str(self.pk),
            "form_name": self.form.name if self.form_id else None,
            "project_name": self.project_name or (self.form.project_name if self.form_id else None) or None,
            "submitted_at": self.submitted_at,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "data": self.data or {},
            "metadata": self.metadata or {},
            "device_info": self.device_info or {},
            "attachments": self.attachments,
            "user_email": self.user_email or None,
            "submitted_by": self.submitted_by or None,
        }

    def parsed(self):
        from .services.parser import parse_submission
        return parse_submission(self.as_raw())
