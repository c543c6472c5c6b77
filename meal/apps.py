from django.apps import AppConfig


class MealConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "meal"
    verbose_name = "MEAL (Monitoring, Evaluation, Accountability, Learning)"
