import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Profile

logger = logging.getLogger("accounts")


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def sync_profile_with_user(sender, instance, created, **kwargs):
    """Give every newly registered user a voter profile and keep its email current."""
    if created:
        full_name = instance.get_full_name() or None
        Profile.objects.create(user=instance, email=instance.email, full_name=full_name)
        logger.info(f"Profile created for user: {instance.username}")
        return
    updated = Profile.objects.filter(pk=instance.pk).exclude(email=instance.email).update(email=instance.email)
    if updated:
        logger.info(f"Profile email updated for user: {instance.username}")
