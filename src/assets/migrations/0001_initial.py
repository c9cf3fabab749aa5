import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("functional", "Functional"),
    ("under_maintenance", "Under Maintenance"),
    ("defective", "Defective"),
    ("unserviceable", "Unserviceable"),
]

OPERATIONAL_PERIOD_CHOICES = [
    ("perpetual", "Perpetual"),
    ("subscription", "Subscription"),
    ("trial", "Trial"),
    ("oem", "OEM"),
    ("open_source", "Open Source"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Asset",
            fields=[
                (
                    "record_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "asset_id",
                    models.CharField(
                        blank=True,
                        help_text="User-facing code encoded in the QR label",
                        max_length=100,
                        unique=True,
                    ),
                ),
                ("asset_name", models.CharField(max_length=200)),
                ("category", models.CharField(blank=True, max_length=100)),
                (
                    "sub_type",
                    models.CharField(
                        blank=True,
                        help_text=(
                            "Asset Type for 'Asset', License Type for "
                            "'License'"
                        ),
                        max_length=100,
                    ),
                ),
                (
                    "serial_number",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "operational_period",
                    models.CharField(
                        blank=True,
                        choices=OPERATIONAL_PERIOD_CHOICES,
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        default="functional",
                        max_length=20,
                    ),
                ),
                ("purchase_date", models.DateField(blank=True, null=True)),
                (
                    "renewal_date",
                    models.DateField(
                        blank=True,
                        help_text=(
                            "Ignored for non-expiring operational periods"
                        ),
                        null=True,
                    ),
                ),
                ("generate_qr", models.BooleanField(default=False)),
                (
                    "qr_image",
                    models.ImageField(
                        blank=True, null=True, upload_to="qrcodes/"
                    ),
                ),
                (
                    "canonical_url",
                    models.CharField(
                        blank=True,
                        help_text="Locator encoded in the QR; stable once set",
                        max_length=500,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(default=1, editable=False),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "updated_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "assigned_personnel",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        help_text=(
                            "Weak reference; a removed user shows as the "
                            "raw id"
                        ),
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="assigned_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status"], name="idx_asset_status"
                    ),
                    models.Index(
                        fields=["category"], name="idx_asset_category"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StatusChangeEvent",
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
                (
                    "changed_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "changed_by_identity",
                    models.CharField(blank=True, max_length=255),
                ),
                (
                    "from_status",
                    models.CharField(choices=STATUS_CHOICES, max_length=20),
                ),
                (
                    "to_status",
                    models.CharField(choices=STATUS_CHOICES, max_length=20),
                ),
                ("reason", models.TextField(blank=True)),
                (
                    "maintained_by",
                    models.CharField(
                        blank=True,
                        help_text="Set only when maintenance is completed",
                        max_length=255,
                    ),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="assets.asset",
                    ),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["changed_at", "pk"],
                "indexes": [
                    models.Index(
                        fields=["asset", "changed_at"],
                        name="idx_history_asset_time",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportedIssue",
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
                ("asset_record_id", models.UUIDField(db_index=True)),
                ("asset_code", models.CharField(blank=True, max_length=100)),
                ("asset_name", models.CharField(blank=True, max_length=200)),
                (
                    "condition",
                    models.CharField(
                        choices=[
                            ("damaged", "Damaged"),
                            ("under_maintenance", "Under Maintenance"),
                            ("defective", "Defective"),
                            ("unserviceable", "Unserviceable"),
                        ],
                        max_length=20,
                    ),
                ),
                ("description", models.TextField()),
                (
                    "image",
                    models.ImageField(
                        blank=True, null=True, upload_to="reports/"
                    ),
                ),
                (
                    "reporter_identity",
                    models.CharField(blank=True, max_length=255),
                ),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "reported_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reported_issues",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ArchivedAsset",
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
                ("original_record_id", models.UUIDField(unique=True)),
                ("asset_id", models.CharField(blank=True, max_length=100)),
                ("asset_name", models.CharField(blank=True, max_length=200)),
                ("category", models.CharField(blank=True, max_length=100)),
                ("sub_type", models.CharField(blank=True, max_length=100)),
                (
                    "serial_number",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "operational_period",
                    models.CharField(
                        blank=True,
                        choices=OPERATIONAL_PERIOD_CHOICES,
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        blank=True, choices=STATUS_CHOICES, max_length=20
                    ),
                ),
                (
                    "assigned_personnel",
                    models.CharField(
                        blank=True,
                        help_text=(
                            "Raw id of the user assigned at deletion time"
                        ),
                        max_length=64,
                    ),
                ),
                ("purchase_date", models.DateField(blank=True, null=True)),
                ("renewal_date", models.DateField(blank=True, null=True)),
                ("generate_qr", models.BooleanField(default=False)),
                (
                    "qr_image",
                    models.ImageField(
                        blank=True, null=True, upload_to="qrcodes/"
                    ),
                ),
                (
                    "canonical_url",
                    models.CharField(blank=True, max_length=500),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                (
                    "created_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                (
                    "updated_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("history", models.JSONField(blank=True, default=list)),
                (
                    "deleted_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("deleted_by", models.CharField(max_length=255)),
                (
                    "deleted_by_identity",
                    models.CharField(blank=True, max_length=255),
                ),
                ("deletion_reason", models.TextField()),
            ],
            options={
                "verbose_name": "archived asset",
                "ordering": ["-deleted_at"],
            },
        ),
    ]
