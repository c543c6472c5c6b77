# meal/urls.py
from django.urls import path

from . import views

app_name = "meal"
urlpatterns = [
    path("submissions/", views.submission_list, name="submission_list"),
    path("submissions/<uuid:pk>/", views.submission_detail, name="submission_detail"),
    path("submissions/<uuid:pk>/export/", views.submission_export, name="submission_export"),
    path("export/", views.dataset_export, name="dataset_export"),
]
