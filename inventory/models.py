import logging
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.db.models import F, Q
from django.utils import timezone

from dentastock.exceptions import InsufficientStock

logger = logging.getLogger(__name__)


def inventory_setting(key):
    return settings.INVENTORY_CONFIG[key]


# ============================================
# CATEGORY
# ============================================

class Category(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'

    def __str__(self):
        return self.name


# ============================================
# PRODUCT
# ============================================

class ProductQuerySet(models.QuerySet):

    def search(self, term):
        return self.filter(Q(name__icontains=term) | Q(sku__icontains=term))

    def out_of_stock(self):
        return self.filter(stock__lte=0)

    def low_stock(self):
        """Everything at or below its reorder level, out-of-stock included."""
        return self.filter(stock__lte=F('min_stock'))

    def in_stock(self):
        return self.filter(stock__gt=F('min_stock'))

    def with_stock_status(self, status):
        if status == 'out':
            return self.out_of_stock()
        if status == 'low':
            return self.low_stock().filter(stock__gt=0)
        if status == 'in':
            return self.in_stock()
        return self

    def expiring(self, days=None):
        """Products expiring within ``days``, already expired ones included."""
        if days is None:
            days = inventory_setting('EXPIRY_WARNING_DAYS')
        limit = timezone.localdate() + timedelta(days=days)
        return self.filter(expiry_date__isnull=False, expiry_date__lte=limit)


class Product(models.Model):
    STOCK_STATUS_CHOICES = [
        ('out', 'Out of stock'),
        ('low', 'Low stock'),
        ('in', 'In stock'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, unique=True, help_text="Barcode or reference code")
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='products',
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Selling price",
    )
    cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Purchase price",
    )
    stock = models.IntegerField(default=0)
    min_stock = models.PositiveIntegerField(default=10, help_text="Reorder level")
    expiry_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ['name']
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        indexes = [
            models.Index(fields=['expiry_date'], name='product_expiry_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def stock_status(self):
        if self.stock <= 0:
            return 'out'
        if self.stock <= self.min_stock:
            return 'low'
        return 'in'

    @property
    def days_to_expiry(self):
        if not self.expiry_date:
            return None
        return (self.expiry_date - timezone.localdate()).days

    @property
    def expiry_status(self):
        days = self.days_to_expiry
        if days is None:
            return None
        if days <= 0:
            return 'expired'
        if days <= inventory_setting('EXPIRY_WARNING_DAYS'):
            return 'expiring'
        return 'ok'

    @property
    def inventory_value(self):
        return self.cost * self.stock

    @property
    def is_in_use(self):
        return self.invoice_items.exists()

    def adjust_stock(self, quantity_change, entry_type='adjustment', unit_price=None,
                     reference_id='', notes='', user=None):
        """
        Apply a signed stock change and record it as a StockEntry.

        The product row is locked for the duration of the change so that
        concurrent invoices cannot both read the same starting stock.
        Raises InsufficientStock when the result would go below zero and
        negative stock is disabled.
        """
        if unit_price is None:
            unit_price = self.price if entry_type == 'sale' else self.cost

        with transaction.atomic():
            locked = Product.objects.select_for_update().get(pk=self.pk)
            new_stock = locked.stock + quantity_change

            if new_stock < 0 and not inventory_setting('ALLOW_NEGATIVE_STOCK'):
                logger.warning(
                    f"Stock change refused for {locked.sku}: "
                    f"{locked.stock} {quantity_change:+d} would go negative"
                )
                raise InsufficientStock({
                    'stock': f"Insufficient stock for {locked.name}. "
                             f"Available: {locked.stock}, requested: {abs(quantity_change)}"
                })

            locked.stock = new_stock
            locked.save(update_fields=['stock', 'updated_at'])

            entry = StockEntry.objects.create(
                product=locked,
                quantity=quantity_change,
                entry_type=entry_type,
                unit_price=unit_price,
                total_amount=abs(quantity_change) * unit_price,
                reference_id=reference_id or '',
                notes=notes or '',
                created_by=user if user is not None and user.is_authenticated else None,
            )

        self.stock = locked.stock
        self.updated_at = locked.updated_at
        return entry


# ============================================
# STOCK ENTRY
# ============================================

class StockEntry(models.Model):
    """Audit record of a single stock movement."""

    ENTRY_TYPE_CHOICES = [
        ('initial', 'Initial stock'),
        ('sale', 'Sale'),
        ('purchase', 'Purchase'),
        ('adjustment', 'Adjustment'),
        ('return', 'Return'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_entries')
    quantity = models.IntegerField(help_text="Positive for stock in, negative for stock out")
    entry_type = models.CharField(max_length=20, choices=ENTRY_TYPE_CHOICES)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    reference_id = models.CharField(max_length=100, blank=True, help_text="Invoice number or other reference")
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='stock_entries',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Stock Entry'
        verbose_name_plural = 'Stock Entries'

    def __str__(self):
        return f"{self.get_entry_type_display()}: {self.quantity:+d} {self.product.name}"

    @property
    def is_stock_in(self):
        return self.quantity > 0

    @property
    def is_stock_out(self):
        return self.quantity < 0

    @property
    def absolute_quantity(self):
        return abs(self.quantity)
