from rest_framework import serializers
from .models import SalesReport


class SalesReportSerializer(serializers.ModelSerializer):
    uploaded_by_name = serializers.CharField(source='uploaded_by.username', read_only=True, default=None)

    class Meta:
        model = SalesReport
        fields = ['id', 'filename', 'row_count', 'start_date', 'end_date', 'total_revenue',
                  'uploaded_by_name', 'created_at']
