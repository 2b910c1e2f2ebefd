# clientapp/signals.py
import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Member
from .services import invalidate_client_stats

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Member)
def refresh_stats_on_member_save(sender, instance, created, **kwargs):
    invalidate_client_stats()

    if created and instance.parent_id:
        logger.debug(
            "Member %s joined under %s on the %s side",
            instance.member_id, instance.parent_id, instance.position,
        )


@receiver(post_delete, sender=Member)
def refresh_stats_on_member_delete(sender, instance, **kwargs):
    invalidate_client_stats()
