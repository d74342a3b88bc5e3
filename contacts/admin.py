from django.contrib import admin
from django.utils.html import format_html

from inventory.admin import export_to_csv
from .models import Entity


@admin.register(Entity)
class EntityAdmin(admin.ModelAdmin):
    list_display = ['name', 'type_badge', 'email', 'phone', 'invoice_count', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['name', 'email', 'phone']
    actions = [export_to_csv]

    def type_badge(self, obj):
        colors = {'client': '#007bff', 'supplier': '#28a745'}
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            colors.get(obj.type, '#6c757d'),
            obj.get_type_display()
        )
    type_badge.short_description = 'Type'
    type_badge.admin_order_field = 'type'

    def invoice_count(self, obj):
        return obj.invoices.count()
    invoice_count.short_description = 'Invoices'
