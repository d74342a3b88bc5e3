from django.db.models.signals import post_save, pre_save, post_delete
from django.dispatch import receiver
from .models import Product, StockEntry, inventory_setting
import logging

logger = logging.getLogger(__name__)


# ============================================
# PRODUCT SIGNALS
# ============================================

@receiver(pre_save, sender=Product)
def product_pre_save(sender, instance, **kwargs):
    """Normalise the SKU before it hits the unique index."""
    if instance.sku:
        instance.sku = instance.sku.strip()


@receiver(post_save, sender=Product)
def product_post_save(sender, instance, created, **kwargs):
    if created:
        logger.info(
            f"Product created: {instance.sku} - {instance.name} "
            f"(Category: {instance.category.name if instance.category else 'None'}, "
            f"Stock: {instance.stock})"
        )
    else:
        logger.debug(
            f"Product updated: {instance.sku} - {instance.name} "
            f"(Status: {instance.stock_status}, Stock: {instance.stock})"
        )


@receiver(post_save, sender=Product)
def check_low_stock_alert(sender, instance, **kwargs):
    """
    Log alerts when a product reaches its reorder level.

    Products created empty are not reported; the alert only fires once
    a product is actually being stocked or sold.
    """
    if not inventory_setting('ENABLE_STOCK_ALERTS'):
        return

    if kwargs.get('created') and instance.stock == 0:
        return

    if instance.stock_status == 'low':
        logger.warning(
            f"LOW STOCK ALERT: {instance.name} ({instance.sku}) "
            f"has only {instance.stock} units remaining (min {instance.min_stock})"
        )
    elif instance.stock_status == 'out':
        logger.error(
            f"OUT OF STOCK: {instance.name} ({instance.sku}) "
            f"is out of stock (stock {instance.stock})"
        )


# ============================================
# STOCK ENTRY SIGNALS
# ============================================

@receiver(post_save, sender=StockEntry)
def create_audit_trail(sender, instance, created, **kwargs):
    """
    Log every stock movement to the inventory audit log.
    """
    if not created:
        return

    product = instance.product
    direction = "IN" if instance.is_stock_in else "OUT"
    logger.info(
        f"[STOCK MOVEMENT] {direction} | "
        f"Type: {instance.get_entry_type_display()} | "
        f"Product: {product.sku} ({product.name}) | "
        f"Quantity: {instance.quantity} | "
        f"Unit Price: {instance.unit_price} | "
        f"Total: {instance.total_amount} | "
        f"Reference: {instance.reference_id or 'N/A'} | "
        f"User: {instance.created_by.username if instance.created_by else 'System'} | "
        f"New Stock: {product.stock}"
    )

    if product.stock < 0:
        logger.warning(
            f"NEGATIVE STOCK ALERT: Product {product.sku} "
            f"has negative stock: {product.stock}"
        )


@receiver(post_delete, sender=StockEntry)
def log_stock_entry_deletion(sender, instance, **kwargs):
    """Stock entries only disappear together with their product."""
    logger.warning(
        f"[AUDIT ALERT] Stock Entry DELETED: "
        f"ID: {instance.id} | "
        f"Type: {instance.entry_type} | "
        f"Product ID: {instance.product_id} | "
        f"Quantity: {instance.quantity}"
    )
