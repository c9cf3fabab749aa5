"""Custom user model for the IT asset registry."""

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver


class CustomUser(AbstractUser):
    """IT personnel account with display name and position."""

    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human-readable name shown on assignments and audit rows",
    )
    middle_name = models.CharField(max_length=150, blank=True)
    position = models.CharField(
        max_length=150,
        blank=True,
        help_text="Job title or department shown next to the name",
    )
    email = models.EmailField("email address", blank=False, unique=True)

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    @property
    def identity(self):
        """Stable identity string recorded in audit rows."""
        return self.email or self.username

    def get_display_name(self):
        """Return display_name, else "First M. Last", else the username."""
        if self.display_name:
            return self.display_name
        middle = self.middle_name.strip()
        if middle:
            middle = f"{middle[0].upper()}."
        full = " ".join(
            part for part in (self.first_name, middle, self.last_name) if part
        )
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()


@receiver(post_save, sender=CustomUser)
@receiver(post_delete, sender=CustomUser)
def invalidate_personnel_directory(sender, instance, **kwargs):
    """Drop the cached personnel directory when a user changes."""
    from assets.services.directory import PersonnelDirectory

    PersonnelDirectory.invalidate()
