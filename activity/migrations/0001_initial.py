from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ActivityRecord",
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
                ("membership_identifier", models.CharField(db_index=True, max_length=50)),
                (
                    "kind",
                    models.CharField(
                        choices=[("payment", "Payment"), ("checkin", "Biometric check-in")],
                        max_length=10,
                    ),
                ),
                (
                    "occurred_at",
                    models.CharField(
                        help_text="Timestamp as reported by the producer (ISO-8601 or epoch milliseconds).",
                        max_length=64,
                    ),
                ),
                (
                    "source_reference",
                    models.CharField(
                        blank=True,
                        help_text="Producer's identifier for this record (receipt number, scan id).",
                        max_length=100,
                    ),
                ),
                ("received_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ["-received_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("source_reference", ""), _negated=True),
                        fields=("kind", "source_reference"),
                        name="unique_activity_source_reference",
                    )
                ],
            },
        ),
    ]
