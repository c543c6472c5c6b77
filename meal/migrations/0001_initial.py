import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MealForm",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("slug", models.SlugField(unique=True)),
                ("version", models.CharField(default="1.0", max_length=32)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("enabled", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "MEAL form",
                "verbose_name_plural": "MEAL forms",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="MealSubmission",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("latitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("data", models.JSONField(blank=True, default=dict)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("device_info", models.JSONField(blank=True, default=dict)),
                ("attachments", models.JSONField(blank=True, null=True)),
                ("user_email", models.EmailField(blank=True, max_length=254)),
                ("submitted_by", models.CharField(blank=True, max_length=150)),
                ("received_at", models.DateTimeField(auto_now_add=True)),
                ("form", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="submissions", to="meal.mealform",
                )),
            ],
            options={
                "verbose_name": "MEAL submission",
                "verbose_name_plural": "MEAL submissions",
                "ordering": ("-submitted_at",),
                "indexes": [
                    models.Index(fields=["submitted_at"], name="meal_sub_submitted_idx"),
                    models.Index(fields=["form", "submitted_at"], name="meal_sub_form_submitted_idx"),
                ],
            },
        ),
    ]
