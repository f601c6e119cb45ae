from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

SITECONFIG_CACHE_KEY = "siteconfig_instance"


class SiteConfiguration(models.Model):
    """
    Deployment-wide settings edited in the admin.

    Holds the lifecycle thresholds so they can be changed without a deploy;
    the reconciliation runner looks them up on every pass.
    """

    registry_name = models.CharField(max_length=200)
    registry_abbreviation = models.CharField(
        max_length=20, blank=True, help_text="Short abbreviation (e.g. OSCA)"
    )

    # Lifecycle policy
    inactivity_to_archive_days = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Days without a payment or check-in after which an active member is archived.",
    )
    archived_to_deceased_days = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Days a member must stay archived before being inferred deceased.",
    )
    reactivation_window_days = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Activity at most this many days old reactivates an archived member.",
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Site Configuration"
        verbose_name_plural = "Site Configuration"

    def clean(self):
        if SiteConfiguration.objects.exclude(id=self.id).exists():
            raise ValidationError("Only one SiteConfiguration instance allowed.")

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

        # Clear cache when configuration changes
        cache.delete(SITECONFIG_CACHE_KEY)

    def delete(self, *args, **kwargs):
        """Override delete to clear cache."""
        cache.delete(SITECONFIG_CACHE_KEY)
        super().delete(*args, **kwargs)

    def get_lifecycle_thresholds(self):
        from members.lifecycle.types import Thresholds

        return Thresholds.from_days(
            inactivity_to_archive=self.inactivity_to_archive_days,
            archived_to_deceased=self.archived_to_deceased_days,
            reactivation_window=self.reactivation_window_days,
        )

    def __str__(self):
        return f"Site Configuration for {self.registry_name}"
