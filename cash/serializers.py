from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from dentastock.serializers import ClientIdMixin
from .models import CashTransaction


class CashTransactionSerializer(ClientIdMixin, serializers.ModelSerializer):
    """Serializer for cash register movements"""

    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = CashTransaction
        fields = [
            'id',
            'date',
            'description',
            'amount',
            'type',
            'type_display',
            'category',
            'created_by',
            'created_by_username',
            'created_at',
        ]
        read_only_fields = ['created_by', 'created_at']

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Description is required")
        return value

    def validate_category(self, value):
        return value.strip() or settings.DENTASTOCK_DEFAULT_CASH_CATEGORY

    def create(self, validated_data):
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
        return super().create(validated_data)


class CashSummarySerializer(serializers.Serializer):
    income = serializers.DecimalField(max_digits=14, decimal_places=2)
    expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)
