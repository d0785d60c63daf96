# billing/serializers.py

from rest_framework import serializers


class ReturnUrlSerializer(serializers.Serializer):
    returnUrl = serializers.URLField(required=False, allow_blank=True)
