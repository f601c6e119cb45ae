import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SiteConfiguration",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("registry_name", models.CharField(max_length=200)),
                (
                    "registry_abbreviation",
                    models.CharField(
                        blank=True, help_text="Short abbreviation (e.g. OSCA)", max_length=20
                    ),
                ),
                (
                    "inactivity_to_archive_days",
                    models.PositiveIntegerField(
                        help_text="Days without a payment or check-in after which an active member is archived.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "archived_to_deceased_days",
                    models.PositiveIntegerField(
                        help_text="Days a member must stay archived before being inferred deceased.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "reactivation_window_days",
                    models.PositiveIntegerField(
                        help_text="Activity at most this many days old reactivates an archived member.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Site Configuration",
                "verbose_name_plural": "Site Configuration",
            },
        ),
    ]
