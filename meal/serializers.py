from rest_framework import serializers

from .services.dataset_export import DATASET_FORMATS


class DatasetExportSerializer(serializers.Serializer):
    format = serializers.ChoiceField(choices=sorted(list(DATASET_FORMATS) + ["excel"]))
    project = serializers.CharField(required=False, allow_blank=True)
    form = serializers.CharField(required=False, allow_blank=True)
    includeMetadata = serializers.BooleanField(required=False, default=False)
