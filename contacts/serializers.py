from rest_framework import serializers

from dentastock.serializers import ClientIdMixin
from .models import Entity


class EntitySerializer(ClientIdMixin, serializers.ModelSerializer):
    """Serializer for clients and suppliers"""

    type_display = serializers.CharField(source='get_type_display', read_only=True)
    invoice_count = serializers.SerializerMethodField()

    class Meta:
        model = Entity
        fields = [
            'id',
            'name',
            'type',
            'type_display',
            'email',
            'phone',
            'address',
            'invoice_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_invoice_count(self, obj):
        return obj.invoices.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_type(self, value):
        if self.instance is not None and value != self.instance.type and self.instance.is_in_use:
            raise serializers.ValidationError(
                "Type cannot change once the entity appears on invoices"
            )
        return value
