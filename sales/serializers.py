from rest_framework import serializers

from contacts.models import Entity
from dentastock.serializers import ClientIdMixin
from inventory.models import Product
from .models import Invoice, InvoiceItem
from .services import invoice_service


def _request_user(context):
    request = context.get('request')
    return request.user if request is not None else None


class InvoiceItemSerializer(serializers.ModelSerializer):
    """
    Invoice line. Only ``product`` and ``quantity`` are required; name,
    unit price and cost default to the product's current values.
    """

    id = serializers.UUIDField(required=False)
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = InvoiceItem
        fields = ['id', 'product', 'product_name', 'quantity', 'unit_price', 'cost', 'total']
        read_only_fields = ['total']

    def validate_id(self, value):
        if InvoiceItem.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Invoice item with this id already exists.")
        return value


class InvoiceSerializer(ClientIdMixin, serializers.ModelSerializer):
    """Serializer used to post invoices and to read them back"""

    items = InvoiceItemSerializer(many=True)
    number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    entity = serializers.PrimaryKeyRelatedField(
        queryset=Entity.objects.all(), required=False, allow_null=True
    )
    entity_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(choices=Invoice.STATUS_CHOICES, required=False)
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    is_proforma = serializers.BooleanField(read_only=True)
    cost_of_goods = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    profit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True, allow_null=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Invoice
        fields = [
            'id',
            'number',
            'date',
            'type',
            'type_display',
            'entity',
            'entity_name',
            'items',
            'subtotal',
            'total',
            'paid_amount',
            'balance_due',
            'status',
            'status_display',
            'is_proforma',
            'cost_of_goods',
            'profit',
            'created_by',
            'created_by_username',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['subtotal', 'total', 'created_by', 'created_at', 'updated_at']
        extra_kwargs = {'date': {'required': False}}

    def validate_number(self, value):
        value = value.strip()
        if value and Invoice.objects.filter(number=value).exists():
            raise serializers.ValidationError(f"Invoice number {value} is already used")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("An invoice needs at least one item")
        return value

    def validate(self, data):
        """Validate invoice data"""
        entity = data.get('entity')
        invoice_type = data.get('type')

        if entity is not None and entity.type != invoice_service.expected_entity_type(invoice_type):
            raise serializers.ValidationError({
                'entity': f"A {invoice_type} invoice needs a "
                          f"{invoice_service.expected_entity_type(invoice_type)}"
            })

        if entity is None and not data.get('entity_name', '').strip():
            raise serializers.ValidationError({
                'entity_name': 'A client or supplier is required'
            })

        return data

    def create(self, validated_data):
        return invoice_service.post_invoice(
            invoice_type=validated_data['type'],
            items=validated_data['items'],
            user=_request_user(self.context),
            entity=validated_data.get('entity'),
            entity_name=validated_data.get('entity_name', '').strip(),
            number=validated_data.get('number') or None,
            date=validated_data.get('date'),
            paid_amount=validated_data.get('paid_amount', 0),
            status=validated_data.get('status'),
            invoice_id=validated_data.get('id'),
        )


class InvoiceUpdateSerializer(serializers.ModelSerializer):
    """Header-only changes to a posted invoice"""

    entity = serializers.PrimaryKeyRelatedField(
        queryset=Entity.objects.all(), required=False, allow_null=True
    )
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = Invoice
        fields = list(invoice_service.HEADER_FIELDS)
        extra_kwargs = {
            'number': {'required': False},
            'date': {'required': False},
            'entity_name': {'required': False},
            'status': {'required': False},
        }

    def validate(self, data):
        if 'items' in self.initial_data:
            raise serializers.ValidationError({
                'items': 'Invoice items cannot be changed after posting'
            })
        new_type = self.initial_data.get('type')
        if new_type is not None and new_type != self.instance.type:
            raise serializers.ValidationError({
                'type': 'Invoice type cannot be changed after posting'
            })
        return data

    def update(self, instance, validated_data):
        return invoice_service.update_invoice(instance, validated_data, user=_request_user(self.context))


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be positive")
        return value


class CartLineSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField()


class PosCheckoutSerializer(serializers.Serializer):
    """Point-of-sale cart: a client and ``{product, quantity}`` lines"""

    id = serializers.UUIDField(required=False)
    entity = serializers.PrimaryKeyRelatedField(queryset=Entity.objects.all(), allow_null=True)
    cart = CartLineSerializer(many=True)

    def validate_id(self, value):
        if Invoice.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Invoice with this id already exists.")
        return value

    def validate_entity(self, value):
        if value is None:
            raise serializers.ValidationError("Select a client before checkout")
        if value.type != Entity.CLIENT:
            raise serializers.ValidationError(f"{value.name} is not a client")
        return value

    def save(self):
        return invoice_service.pos_checkout(
            self.validated_data['entity'],
            self.validated_data['cart'],
            user=_request_user(self.context),
            invoice_id=self.validated_data.get('id'),
        )
