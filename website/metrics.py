"""
Dashboard figures.

All amounts are computed in the database from posted invoices, so they
match what the invoice list shows regardless of pagination.
"""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from cash.models import CashTransaction
from inventory.models import Product
from sales.models import Invoice, InvoiceItem

ZERO = Decimal('0.00')


def _total(queryset, field='total'):
    return queryset.aggregate(total=Sum(field))['total'] or ZERO


def cost_of_goods_sold():
    line_cost = ExpressionWrapper(F('cost') * F('quantity'), output_field=DecimalField(max_digits=16, decimal_places=2))
    return (
        InvoiceItem.objects
        .filter(invoice__type=Invoice.SALE)
        .aggregate(total=Sum(line_cost))['total'] or ZERO
    )


def sales_series(days=None):
    """Daily sales totals for the last ``days`` days, oldest first."""
    days = days or settings.DENTASTOCK_SALES_SERIES_LENGTH
    start = timezone.localdate() - timedelta(days=days - 1)

    rows = (
        Invoice.objects
        .filter(type=Invoice.SALE, date__date__gte=start)
        .annotate(day=TruncDate('date'))
        .values('day')
        .annotate(amount=Sum('total'))
        .order_by('day')
    )
    return [{'date': row['day'].isoformat(), 'amount': row['amount']} for row in rows]


def stock_distribution(limit=5):
    return [
        {'name': product.name, 'stock': product.stock}
        for product in Product.objects.order_by('name')[:limit]
    ]


def dashboard_metrics():
    sales = Invoice.objects.filter(type=Invoice.SALE)
    total_sales = _total(sales)
    total_purchases = _total(Invoice.objects.filter(type=Invoice.PURCHASE))
    cogs = cost_of_goods_sold()

    return {
        'total_sales': total_sales,
        'total_purchases': total_purchases,
        'cost_of_goods_sold': cogs,
        'profit': total_sales - cogs,
        'receivables': total_sales - _total(sales, 'paid_amount'),
        'low_stock_count': Product.objects.low_stock().count(),
        'expiring_count': Product.objects.expiring().count(),
        'total_products': Product.objects.count(),
        'cash': CashTransaction.objects.summary(),
        'sales_series': sales_series(),
        'stock_distribution': stock_distribution(),
        'currency': settings.DENTASTOCK_CURRENCY,
    }
