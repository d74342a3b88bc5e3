from django.conf import settings
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import CashTransaction
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=CashTransaction)
def log_cash_transaction(sender, instance, created, **kwargs):
    if not created:
        return
    logger.info(
        f"[CASH] {instance.get_type_display()} | "
        f"Amount: {instance.amount} {settings.DENTASTOCK_CURRENCY} | "
        f"Category: {instance.category} | "
        f"Description: {instance.description} | "
        f"User: {instance.created_by.username if instance.created_by else 'System'}"
    )


@receiver(post_delete, sender=CashTransaction)
def log_cash_transaction_deletion(sender, instance, **kwargs):
    logger.warning(
        f"[AUDIT ALERT] Cash transaction DELETED: {instance.id} | "
        f"Type: {instance.type} | Amount: {instance.amount} | "
        f"Description: {instance.description}"
    )
