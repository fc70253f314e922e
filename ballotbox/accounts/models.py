import logging

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models

logger = logging.getLogger("accounts")


class User(AbstractUser):
    def __str__(self):
        return self.username

    def save(self, *args, **kwargs):
        if self.pk and User.objects.filter(pk=self.pk).exists():
            logger.info(f"Login updated for user -> {self.username}")
        else:
            logger.info(f"Saving user: {self.username}")
        super().save(*args, **kwargs)


class Profile(models.Model):
    """
    Voter profile - one per registered user, sharing the user's primary key.

    Created by the post_save signal on User and never edited by the ballot
    itself. Whether the voter has voted is derived from the votes table.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="profile",
    )
    email = models.EmailField(blank=True)
    full_name = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.full_name or self.email or str(self.pk)
