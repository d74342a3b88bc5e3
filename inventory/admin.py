from django.conf import settings
from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse
from django.db.models import Sum
from django.http import HttpResponse
import csv

from .models import Category, Product, StockEntry


def money(amount):
    return f"{float(amount or 0):,.2f} {settings.DENTASTOCK_CURRENCY}"


# ============================================
# CUSTOM ACTIONS
# ============================================

def export_to_csv(modeladmin, request, queryset):
    """Export selected items to CSV"""
    opts = modeladmin.model._meta
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename={opts.verbose_name_plural}.csv'

    writer = csv.writer(response)
    fields = [field for field in opts.get_fields() if not field.many_to_many and not field.one_to_many]

    # Write headers
    writer.writerow([field.verbose_name for field in fields])

    # Write data
    for obj in queryset:
        writer.writerow([getattr(obj, field.name) for field in fields])

    return response
export_to_csv.short_description = "Export to CSV"


# ============================================
# INLINE ADMINS
# ============================================

class StockEntryInline(admin.TabularInline):
    model = StockEntry
    extra = 0
    can_delete = False
    readonly_fields = [
        'quantity',
        'entry_type',
        'unit_price',
        'total_amount',
        'reference_id',
        'created_by',
        'created_at',
    ]
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ['sku', 'name', 'stock', 'min_stock', 'expiry_date']
    show_change_link = True


# ============================================
# CATEGORY ADMIN
# ============================================

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'product_count', 'total_inventory_value']
    search_fields = ['name']
    inlines = [ProductInline]
    actions = [export_to_csv]

    def product_count(self, obj):
        count = obj.products.count()
        url = reverse('admin:inventory_product_changelist') + f'?category__id__exact={obj.id}'
        return format_html('<a href="{}">{} products</a>', url, count)
    product_count.short_description = 'Products'

    def total_inventory_value(self, obj):
        total = sum(p.inventory_value for p in obj.products.all())
        return format_html('<strong>{}</strong>', money(total))
    total_inventory_value.short_description = 'Inventory Value'


# ============================================
# PRODUCT ADMIN
# ============================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        'sku',
        'name',
        'category_link',
        'stock_display',
        'stock_badge',
        'expiry_badge',
        'pricing_info',
    ]
    list_filter = ['category', 'expiry_date', 'created_at']
    search_fields = ['sku', 'name']
    readonly_fields = ['stock', 'created_at', 'updated_at', 'inventory_summary']

    fieldsets = (
        ('Basic Information', {'fields': ('name', 'sku', 'category')}),
        ('Inventory', {'fields': ('stock', 'min_stock', 'expiry_date')}),
        ('Pricing', {'fields': ('price', 'cost')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
        ('Summary', {'fields': ('inventory_summary',), 'classes': ('collapse',)}),
    )

    inlines = [StockEntryInline]
    actions = [export_to_csv]
    list_per_page = 50

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('category')

    def category_link(self, obj):
        if obj.category:
            url = reverse('admin:inventory_category_change', args=[obj.category.id])
            return format_html('<a href="{}">{}</a>', url, obj.category.name)
        return '-'
    category_link.short_description = 'Category'
    category_link.admin_order_field = 'category__name'

    def stock_display(self, obj):
        colors = {'in': '#28a745', 'low': '#ffc107', 'out': '#dc3545'}
        return format_html(
            '<span style="color: {}; font-weight: bold;">{} / {}</span>',
            colors[obj.stock_status], obj.stock, obj.min_stock
        )
    stock_display.short_description = 'Stock / Min'
    stock_display.admin_order_field = 'stock'

    def stock_badge(self, obj):
        colors = {'in': '#28a745', 'low': '#ffc107', 'out': '#dc3545'}
        labels = dict(Product.STOCK_STATUS_CHOICES)
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px; font-size: 11px;">{}</span>',
            colors[obj.stock_status],
            labels[obj.stock_status].upper()
        )
    stock_badge.short_description = 'Status'

    def expiry_badge(self, obj):
        status = obj.expiry_status
        if status is None:
            return '-'
        colors = {'expired': '#dc3545', 'expiring': '#ffc107', 'ok': '#6c757d'}
        label = 'EXPIRED' if status == 'expired' else obj.expiry_date.isoformat()
        if status == 'expiring':
            label = f"{obj.days_to_expiry}d left"
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px; font-size: 11px;">{}</span>',
            colors[status], label
        )
    expiry_badge.short_description = 'Expiry'
    expiry_badge.admin_order_field = 'expiry_date'

    def pricing_info(self, obj):
        return format_html(
            'Cost: <strong>{}</strong><br>Price: <strong>{}</strong>',
            money(obj.cost),
            money(obj.price)
        )
    pricing_info.short_description = 'Pricing'

    def inventory_summary(self, obj):
        totals = {
            entry_type: obj.stock_entries.filter(entry_type=entry_type).aggregate(
                total=Sum('quantity'))['total'] or 0
            for entry_type, _ in StockEntry.ENTRY_TYPE_CHOICES
        }
        return format_html(
            "Initial: {} | Purchased: {} | Sold: {} | Returned: {} | Adjusted: {}<br>"
            "<strong>Current Stock Value: {}</strong>",
            totals['initial'],
            totals['purchase'],
            abs(totals['sale']),
            totals['return'],
            totals['adjustment'],
            money(obj.inventory_value),
        )
    inventory_summary.short_description = 'Inventory Summary'


# ============================================
# STOCK ENTRY ADMIN
# ============================================

@admin.register(StockEntry)
class StockEntryAdmin(admin.ModelAdmin):
    list_display = [
        'created_at',
        'product_link',
        'entry_type_badge',
        'quantity_display',
        'unit_price',
        'total_amount',
        'reference_id',
        'created_by',
    ]
    list_filter = ['entry_type', 'created_at', 'product__category']
    search_fields = ['product__sku', 'product__name', 'reference_id', 'notes']
    date_hierarchy = 'created_at'
    list_per_page = 100
    actions = [export_to_csv]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('product', 'created_by')

    def product_link(self, obj):
        url = reverse('admin:inventory_product_change', args=[obj.product.id])
        return format_html('<a href="{}">{} ({})</a>', url, obj.product.name, obj.product.sku)
    product_link.short_description = 'Product'
    product_link.admin_order_field = 'product__name'

    def entry_type_badge(self, obj):
        colors = {
            'initial': '#6f42c1',
            'purchase': '#28a745',
            'sale': '#dc3545',
            'return': '#17a2b8',
            'adjustment': '#ffc107',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px; font-size: 11px;">{}</span>',
            colors.get(obj.entry_type, '#6c757d'),
            obj.get_entry_type_display().upper()
        )
    entry_type_badge.short_description = 'Type'
    entry_type_badge.admin_order_field = 'entry_type'

    def quantity_display(self, obj):
        color = '#28a745' if obj.is_stock_in else '#dc3545'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, f"{obj.quantity:+d}")
    quantity_display.short_description = 'Quantity'
    quantity_display.admin_order_field = 'quantity'


# ============================================
# ADMIN SITE CUSTOMIZATION
# ============================================

admin.site.site_header = "DentaStock Administration"
admin.site.site_title = "DentaStock Admin"
