from rest_framework import serializers


class ReportQuerySerializer(serializers.Serializer):
    store = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    weeks = serializers.IntegerField(required=False, min_value=1, max_value=52)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)
    delivery_partner = serializers.UUIDField(required=False)
