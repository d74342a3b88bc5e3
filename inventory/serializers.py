from django.db import transaction
from rest_framework import serializers

from dentastock.serializers import ClientIdMixin
from .models import Category, Product, StockEntry


def _request_user(context):
    request = context.get('request')
    return request.user if request is not None else None


class CategorySerializer(ClientIdMixin, serializers.ModelSerializer):
    """Serializer for Category model"""

    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'product_count', 'created_at']
        read_only_fields = ['created_at']

    def get_product_count(self, obj):
        return obj.products.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name is required")
        return value


class ProductSerializer(ClientIdMixin, serializers.ModelSerializer):
    """Full serializer for products, with derived stock and expiry fields"""

    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    stock = serializers.IntegerField(required=False, min_value=0)
    stock_status = serializers.CharField(read_only=True)
    days_to_expiry = serializers.IntegerField(read_only=True)
    expiry_status = serializers.CharField(read_only=True)
    inventory_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'sku',
            'category',
            'category_name',
            'price',
            'cost',
            'stock',
            'min_stock',
            'expiry_date',
            'stock_status',
            'days_to_expiry',
            'expiry_status',
            'inventory_value',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_sku(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("SKU is required")
        clash = Product.objects.filter(sku__iexact=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError(f"A product with SKU {value} already exists")
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Product name is required")
        return value

    def create(self, validated_data):
        """Create product and initial stock entry"""
        stock = validated_data.pop('stock', 0)

        with transaction.atomic():
            product = super().create(validated_data)
            if stock > 0:
                product.adjust_stock(
                    stock,
                    entry_type='initial',
                    unit_price=product.cost,
                    notes="Initial stock entry via API",
                    user=_request_user(self.context),
                )

        return product

    def update(self, instance, validated_data):
        """
        Update product and create adjustment entry if stock changed.

        The stock column is never written by the plain save: the change
        requested against the loaded value is applied as a delta through
        adjust_stock, on top of whatever other movements happened meanwhile.
        """
        validated_data.pop('id', None)
        old_stock = instance.stock
        new_stock = validated_data.pop('stock', old_stock)

        with transaction.atomic():
            for field, value in validated_data.items():
                setattr(instance, field, value)
            instance.save(update_fields=[*validated_data, 'updated_at'])

            if new_stock != old_stock:
                instance.adjust_stock(
                    new_stock - old_stock,
                    entry_type='adjustment',
                    unit_price=instance.cost,
                    notes=f"Stock adjustment via API: {old_stock} -> {new_stock}",
                    user=_request_user(self.context),
                )
            else:
                instance.refresh_from_db(fields=['stock'])

        return instance


class StockEntrySerializer(serializers.ModelSerializer):
    """Read-only serializer for the stock audit trail"""

    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    entry_type_display = serializers.CharField(source='get_entry_type_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = StockEntry
        fields = [
            'id',
            'product',
            'product_name',
            'product_sku',
            'quantity',
            'entry_type',
            'entry_type_display',
            'unit_price',
            'total_amount',
            'reference_id',
            'notes',
            'created_by',
            'created_by_username',
            'created_at',
        ]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    """Manual stock movement on a single product (count corrections, returns...)"""

    ENTRY_TYPES = [
        choice for choice in StockEntry.ENTRY_TYPE_CHOICES if choice[0] != 'initial'
    ]

    quantity = serializers.IntegerField(help_text="Signed change: positive adds stock")
    entry_type = serializers.ChoiceField(choices=ENTRY_TYPES, default='adjustment')
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    reference_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        quantity = data['quantity']
        entry_type = data['entry_type']

        if quantity == 0:
            raise serializers.ValidationError({'quantity': 'Quantity cannot be zero'})

        if entry_type in ['purchase', 'return'] and quantity < 0:
            raise serializers.ValidationError({
                'quantity': 'Quantity must be positive for purchases and returns'
            })

        if entry_type == 'sale' and quantity > 0:
            raise serializers.ValidationError({
                'quantity': 'Quantity must be negative for sales'
            })

        return data

    def save(self, product):
        return product.adjust_stock(
            self.validated_data['quantity'],
            entry_type=self.validated_data['entry_type'],
            unit_price=self.validated_data.get('unit_price'),
            reference_id=self.validated_data.get('reference_id', ''),
            notes=self.validated_data.get('notes', ''),
            user=_request_user(self.context),
        )
