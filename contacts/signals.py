from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import Entity
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Entity)
def entity_post_save(sender, instance, created, **kwargs):
    if created:
        logger.info(f"{instance.get_type_display()} created: {instance.name} ({instance.id})")
    else:
        logger.debug(f"{instance.get_type_display()} updated: {instance.name} ({instance.id})")


@receiver(post_delete, sender=Entity)
def entity_post_delete(sender, instance, **kwargs):
    logger.info(f"{instance.get_type_display()} deleted: {instance.name} ({instance.id})")
