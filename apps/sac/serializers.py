"""
Serializers for sac app.

Input Serializers:
    CSVUploadSerializer - Uploaded file or pasted CSV text
    ReportQuerySerializer - Report day

Response Serializers:
    ImportRowResultSerializer / UserImportResultSerializer /
    BoothImportResultSerializer - Import summaries
    DashboardStatsSerializer - SAC dashboard totals
"""

from django.utils import timezone
from rest_framework import serializers

MAX_UPLOAD_BYTES = 2 * 1024 * 1024


# =============================================================================
# Input Serializers
# =============================================================================

class CSVUploadSerializer(serializers.Serializer):
    """
    Either a multipart ``file`` or the CSV as ``text``.
    """

    file = serializers.FileField(required=False)
    text = serializers.CharField(required=False, trim_whitespace=False)

    def validate_file(self, value):
        if value.size > MAX_UPLOAD_BYTES:
            raise serializers.ValidationError('File is too large (2 MB max)')
        return value

    def validate(self, attrs):
        if not attrs.get('file') and not attrs.get('text'):
            raise serializers.ValidationError('Upload a CSV file or send its text')
        return attrs

    def get_text(self):
        """CSV content as text, decoding uploads as UTF-8 or Latin-1."""
        upload = self.validated_data.get('file')
        if upload is None:
            return self.validated_data['text']
        raw = upload.read()
        try:
            return raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            return raw.decode('latin-1')


class ReportQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)

    def validate(self, attrs):
        attrs.setdefault('date', timezone.localdate())
        return attrs


# =============================================================================
# Response Serializers
# =============================================================================

class ImportRowResultSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    status = serializers.ChoiceField(choices=['created', 'product_added', 'skipped', 'error'])
    message = serializers.CharField()


class UserImportResultSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    created = serializers.IntegerField()
    skipped = serializers.IntegerField()
    failed = serializers.IntegerField()
    results = ImportRowResultSerializer(many=True)


class BoothImportResultSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    booths_created = serializers.IntegerField()
    products_created = serializers.IntegerField()
    skipped = serializers.IntegerField()
    failed = serializers.IntegerField()
    results = ImportRowResultSerializer(many=True)


class DashboardStatsSerializer(serializers.Serializer):
    user_count = serializers.IntegerField()
    booth_count = serializers.IntegerField()
    total_balance_cents = serializers.IntegerField()
    total_sales_cents = serializers.IntegerField()
    total_funds_cents = serializers.IntegerField()
    total_refunds_cents = serializers.IntegerField()
    transaction_count = serializers.IntegerField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
