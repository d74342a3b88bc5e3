import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


# ============================================
# INVOICE
# ============================================

class Invoice(models.Model):
    SALE = 'sale'
    PURCHASE = 'purchase'
    TYPE_CHOICES = [
        (SALE, 'Sale'),
        (PURCHASE, 'Purchase'),
    ]

    DRAFT = 'draft'
    PENDING = 'pending'
    PAID = 'paid'
    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (PENDING, 'Pending'),
        (PAID, 'Paid'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    number = models.CharField(max_length=50, unique=True)
    date = models.DateTimeField(default=timezone.now)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    entity = models.ForeignKey(
        'contacts.Entity',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='invoices',
    )
    entity_name = models.CharField(max_length=200, blank=True, help_text="Client or supplier name at posting time")
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    paid_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='invoices',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = 'Invoice'
        verbose_name_plural = 'Invoices'
        indexes = [
            models.Index(fields=['type', 'date'], name='invoice_type_date_idx'),
        ]

    def __str__(self):
        return f"{self.number} - {self.entity_name or 'N/A'}"

    @staticmethod
    def resolve_status(total, paid_amount, requested=None):
        """Drafts stay drafts; everything else is paid once fully settled."""
        if requested == Invoice.DRAFT:
            return Invoice.DRAFT
        return Invoice.PAID if paid_amount >= total else Invoice.PENDING

    @property
    def is_sale(self):
        return self.type == self.SALE

    @property
    def balance_due(self):
        return max(self.total - self.paid_amount, Decimal('0.00'))

    @property
    def is_proforma(self):
        return self.is_sale and self.paid_amount < self.total

    @property
    def cost_of_goods(self):
        return sum((item.cost * item.quantity for item in self.items.all()), Decimal('0.00'))

    @property
    def profit(self):
        if not self.is_sale:
            return None
        return self.total - self.cost_of_goods

    @property
    def stock_direction(self):
        """-1 when posting takes goods out of stock, +1 when it brings them in."""
        return -1 if self.is_sale else 1


# ============================================
# INVOICE ITEM
# ============================================

class InvoiceItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'inventory.Product',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='invoice_items',
    )
    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), help_text="Unit cost at posting time")
    total = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        verbose_name = 'Invoice Item'
        verbose_name_plural = 'Invoice Items'

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"

    @property
    def cost_total(self):
        return self.cost * self.quantity
