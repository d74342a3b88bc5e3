# sales/signals.py - AUDIT LOGGING AND DELETE HANDLING

from django.db.models.signals import post_save, pre_delete, post_delete
from django.dispatch import receiver
import logging

from sales.models import Invoice
from sales.services.invoice_service import reverse_invoice_stock

logger = logging.getLogger(__name__)


# ============================================
# INVOICE CREATION SIGNAL
# ============================================

@receiver(post_save, sender=Invoice)
def log_invoice_status(sender, instance, created, **kwargs):
    """Log status of new invoices and header changes."""
    if created:
        logger.info(
            f"[INVOICE MONITOR] Invoice {instance.number} created | "
            f"Type: {instance.type} | "
            f"Entity: {instance.entity_name or 'N/A'} | "
            f"Status: {instance.status}"
        )
    else:
        logger.debug(
            f"[INVOICE MONITOR] Invoice {instance.number} saved | "
            f"Paid: {instance.paid_amount}/{instance.total} | Status: {instance.status}"
        )


# ============================================
# INVOICE DELETION SIGNALS - RESTORE STOCK
# ============================================

@receiver(pre_delete, sender=Invoice)
def restore_stock_on_invoice_deletion(sender, instance, **kwargs):
    """
    Reverse the stock movements of an invoice before it is deleted.

    Runs while the items still exist. A refused stock change raises and
    aborts the deletion.
    """
    logger.info(
        f"[PRE-DELETE] Invoice {instance.number} prepared for deletion | "
        f"Items to restore: {instance.items.count()}"
    )
    reverse_invoice_stock(instance)


@receiver(post_delete, sender=Invoice)
def log_invoice_deletion(sender, instance, **kwargs):
    logger.warning(
        f"[AUDIT ALERT] Invoice DELETED: {instance.number} | "
        f"Type: {instance.type} | Total: {instance.total} | "
        f"Entity: {instance.entity_name or 'N/A'}"
    )
