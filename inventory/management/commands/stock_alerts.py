from django.core.management.base import BaseCommand

from inventory.models import Product, inventory_setting


class Command(BaseCommand):
    help = 'List products at or below their reorder level and products nearing expiry'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Expiry window in days (defaults to INVENTORY_CONFIG EXPIRY_WARNING_DAYS)',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days is None:
            days = inventory_setting('EXPIRY_WARNING_DAYS')

        low_stock = Product.objects.low_stock().order_by('stock', 'name')
        expiring = Product.objects.expiring(days).order_by('expiry_date')

        self.stdout.write(self.style.WARNING(f"Low stock ({low_stock.count()}):"))
        for product in low_stock:
            line = f"  {product.sku:<15} {product.name:<40} {product.stock:>5} / {product.min_stock}"
            if product.stock_status == 'out':
                self.stdout.write(self.style.ERROR(line + "  OUT"))
            else:
                self.stdout.write(line)

        self.stdout.write(self.style.WARNING(f"\nExpiring within {days} days ({expiring.count()}):"))
        for product in expiring:
            label = 'EXPIRED' if product.days_to_expiry <= 0 else f"{product.days_to_expiry}d left"
            self.stdout.write(f"  {product.sku:<15} {product.name:<40} {product.expiry_date}  {label}")

        if not low_stock and not expiring:
            self.stdout.write(self.style.SUCCESS('\n✅ No stock alerts.'))
