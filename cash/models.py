import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, Sum
from django.utils import timezone


def default_category():
    return settings.DENTASTOCK_DEFAULT_CASH_CATEGORY


class CashTransactionQuerySet(models.QuerySet):

    def income(self):
        return self.filter(type=CashTransaction.INCOME)

    def expenses(self):
        return self.filter(type=CashTransaction.EXPENSE)

    def search(self, term):
        return self.filter(Q(description__icontains=term) | Q(category__icontains=term))

    def summary(self):
        """Income, expenses and the resulting register balance."""
        totals = self.aggregate(
            income=Sum('amount', filter=Q(type=CashTransaction.INCOME)),
            expenses=Sum('amount', filter=Q(type=CashTransaction.EXPENSE)),
        )
        income = totals['income'] or Decimal('0.00')
        expenses = totals['expenses'] or Decimal('0.00')
        return {
            'income': income,
            'expenses': expenses,
            'balance': income - expenses,
        }


class CashTransaction(models.Model):
    INCOME = 'income'
    EXPENSE = 'expense'
    TYPE_CHOICES = [
        (INCOME, 'Income'),
        (EXPENSE, 'Expense'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    date = models.DateTimeField(default=timezone.now)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    category = models.CharField(max_length=100, default=default_category)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='cash_transactions',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CashTransactionQuerySet.as_manager()

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = 'Cash Transaction'
        verbose_name_plural = 'Cash Transactions'

    def __str__(self):
        sign = '+' if self.type == self.INCOME else '-'
        return f"{sign}{self.amount} {self.description}"

    @property
    def signed_amount(self):
        return self.amount if self.type == self.INCOME else -self.amount
