# sales/admin.py - INVOICES ARE READ-ONLY ONCE POSTED

from django.conf import settings
from django.contrib import admin, messages
from django.utils.html import format_html
from django.db import transaction

from inventory.admin import export_to_csv
from .models import Invoice, InvoiceItem


# ============================================
# INLINE ADMIN FOR INVOICE ITEMS
# ============================================

class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    can_delete = False

    fields = ['product', 'product_name', 'quantity', 'unit_price', 'cost', 'total']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# MAIN INVOICE ADMIN
# ============================================

@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    inlines = [InvoiceItemInline]

    list_display = [
        'number',
        'date',
        'type_badge',
        'entity_name',
        'item_count_display',
        'total_amount_display',
        'paid_amount',
        'status_badge',
    ]
    list_filter = ['type', 'status', 'date']
    search_fields = ['number', 'entity_name']
    readonly_fields = [
        'number',
        'type',
        'entity',
        'subtotal',
        'total',
        'created_by',
        'created_at',
        'updated_at',
    ]
    fieldsets = (
        ('Invoice Info', {'fields': ('number', 'date', 'type', 'status')}),
        ('Client / Supplier', {'fields': ('entity', 'entity_name')}),
        ('Totals', {
            'fields': ('subtotal', 'total', 'paid_amount'),
            'description': 'Automatically calculated from items'
        }),
        ('Metadata', {'fields': ('created_by', 'created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
    date_hierarchy = 'date'
    actions = [export_to_csv, 'recalculate_status_action']

    def has_add_permission(self, request):
        # Invoices are posted through the API so stock moves with them
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('items')

    def save_model(self, request, obj, form, change):
        obj.status = Invoice.resolve_status(obj.total, obj.paid_amount, obj.status)
        super().save_model(request, obj, form, change)

    def delete_queryset(self, request, queryset):
        """Delete one by one so each invoice restores its stock"""
        deleted_count = 0
        with transaction.atomic():
            for invoice in queryset:
                invoice.delete()
                deleted_count += 1

        self.message_user(
            request,
            f"Deleted {deleted_count} invoice(s) and restored their stock.",
            messages.SUCCESS
        )

    # ============================================
    # DISPLAY METHODS
    # ============================================

    def type_badge(self, obj):
        colors = {'sale': '#10b981', 'purchase': '#3b82f6'}
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 12px; font-size: 11px; font-weight: bold;">{}</span>',
            colors.get(obj.type, '#6b7280'),
            obj.get_type_display().upper()
        )
    type_badge.short_description = 'Type'
    type_badge.admin_order_field = 'type'

    def item_count_display(self, obj):
        count = len(obj.items.all())
        return format_html(
            '<strong>{}</strong> item{}',
            count,
            's' if count != 1 else ''
        )
    item_count_display.short_description = 'Items'

    def total_amount_display(self, obj):
        amount = f"{float(obj.total):,.2f}"
        return format_html(
            '<strong style="color: #10b981;">{} {}</strong>',
            amount,
            settings.DENTASTOCK_CURRENCY
        )
    total_amount_display.short_description = 'Total'
    total_amount_display.admin_order_field = 'total'

    def status_badge(self, obj):
        colors = {
            'draft': '#6b7280',
            'pending': '#fbbf24',
            'paid': '#10b981',
        }
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 12px; font-size: 11px; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#6b7280'),
            obj.status.upper()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    # ============================================
    # ADMIN ACTIONS
    # ============================================

    @admin.action(description='Recalculate status from paid amount')
    def recalculate_status_action(self, request, queryset):
        changed = 0
        for invoice in queryset:
            new_status = Invoice.resolve_status(invoice.total, invoice.paid_amount, invoice.status)
            if new_status != invoice.status:
                invoice.status = new_status
                invoice.save(update_fields=['status', 'updated_at'])
                changed += 1

        self.message_user(request, f"Updated status of {changed} invoice(s).", messages.SUCCESS)
