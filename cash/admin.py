from django.conf import settings
from django.contrib import admin
from django.utils.html import format_html

from inventory.admin import export_to_csv
from .models import CashTransaction


@admin.register(CashTransaction)
class CashTransactionAdmin(admin.ModelAdmin):
    list_display = ['date', 'description', 'category', 'amount_display', 'created_by']
    list_filter = ['type', 'category', 'date']
    search_fields = ['description', 'category']
    readonly_fields = ['created_by', 'created_at']
    date_hierarchy = 'date'
    actions = [export_to_csv]

    def amount_display(self, obj):
        color = '#10b981' if obj.type == CashTransaction.INCOME else '#ef4444'
        sign = '+' if obj.type == CashTransaction.INCOME else '-'
        return format_html(
            '<strong style="color: {};">{}{} {}</strong>',
            color,
            sign,
            f"{float(obj.amount):,.2f}",
            settings.DENTASTOCK_CURRENCY
        )
    amount_display.short_description = 'Amount'
    amount_display.admin_order_field = 'amount'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
