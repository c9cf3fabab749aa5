"""Models for the IT asset registry."""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.db.models.functions import Coalesce
from django.utils import timezone

ASSET_TYPES = [
    "Furniture and Fixture",
    "Desktop",
    "Laptop",
    "Printer",
    "Server",
    "Machinery/Equipment",
    "Infrastructure",
    "Vehicles/Transport",
]

LICENSE_TYPES = [
    "Software License",
    "Business License",
    "Government License",
    "General License",
]

# Operational periods whose renewal date never drives expiry
NON_EXPIRING_PERIODS = frozenset({"perpetual", "oem", "open_source"})


class AssetQuerySet(models.QuerySet):
    """Shared queryset builders for Asset."""

    def with_related(self):
        return self.select_related(
            "assigned_personnel", "created_by", "updated_by"
        )

    def with_report_counts(self):
        """Annotate ``report_count`` from the reported-issue ledger."""
        counts = (
            ReportedIssue.objects.filter(asset_record_id=models.OuterRef("pk"))
            .order_by()
            .values("asset_record_id")
            .annotate(total=models.Count("pk"))
            .values("total")[:1]
        )
        return self.annotate(
            report_count=Coalesce(
                models.Subquery(counts, output_field=models.IntegerField()),
                0,
            )
        )


class Asset(models.Model):
    """A tracked IT asset or license."""

    STATUS_FUNCTIONAL = "functional"
    STATUS_UNDER_MAINTENANCE = "under_maintenance"
    STATUS_DEFECTIVE = "defective"
    STATUS_UNSERVICEABLE = "unserviceable"

    STATUS_CHOICES = [
        (STATUS_FUNCTIONAL, "Functional"),
        (STATUS_UNDER_MAINTENANCE, "Under Maintenance"),
        (STATUS_DEFECTIVE, "Defective"),
        (STATUS_UNSERVICEABLE, "Unserviceable"),
    ]

    OPERATIONAL_PERIOD_CHOICES = [
        ("perpetual", "Perpetual"),
        ("subscription", "Subscription"),
        ("trial", "Trial"),
        ("oem", "OEM"),
        ("open_source", "Open Source"),
    ]

    CATEGORY_ASSET = "Asset"
    CATEGORY_LICENSE = "License"

    record_id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False
    )
    asset_id = models.CharField(
        max_length=100,
        unique=True,
        blank=True,
        help_text="User-facing code encoded in the QR label",
    )
    asset_name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True)
    sub_type = models.CharField(
        max_length=100,
        blank=True,
        help_text="Asset Type for 'Asset', License Type for 'License'",
    )
    serial_number = models.CharField(max_length=100, blank=True)
    operational_period = models.CharField(
        max_length=20, choices=OPERATIONAL_PERIOD_CHOICES, blank=True
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_FUNCTIONAL
    )
    assigned_personnel = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="assigned_assets",
        help_text="Weak reference; a removed user shows as the raw id",
    )
    purchase_date = models.DateField(null=True, blank=True)
    renewal_date = models.DateField(
        null=True,
        blank=True,
        help_text="Ignored for non-expiring operational periods",
    )
    generate_qr = models.BooleanField(default=False)
    qr_image = models.ImageField(upload_to="qrcodes/", blank=True, null=True)
    canonical_url = models.CharField(
        max_length=500,
        blank=True,
        help_text="Locator encoded in the QR; stable once set",
    )
    version = models.PositiveIntegerField(default=1, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_assets",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_assets",
    )

    objects = AssetQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_asset_status"),
            models.Index(fields=["category"], name="idx_asset_category"),
        ]

    def __str__(self):
        return f"{self.asset_name} ({self.asset_id})"

    def save(self, *args, **kwargs):
        if self.asset_id:
            return super().save(*args, **kwargs)
        max_attempts = 5
        for attempt in range(max_attempts):
            self.asset_id = self.generate_asset_id()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                break
            except IntegrityError:
                if attempt >= max_attempts - 1:
                    raise

    def clean(self):
        super().clean()
        if self.category == self.CATEGORY_ASSET:
            allowed = ASSET_TYPES
        elif self.category == self.CATEGORY_LICENSE:
            allowed = LICENSE_TYPES
        else:
            allowed = []
        if self.sub_type and self.sub_type not in allowed:
            if allowed:
                raise ValidationError(
                    {
                        "sub_type": f"'{self.sub_type}' is not a valid type "
                        f"for category '{self.category}'."
                    }
                )
            raise ValidationError(
                {
                    "sub_type": "A type can only be set for the "
                    "'Asset' and 'License' categories."
                }
            )

    def generate_asset_id(self):
        prefix = getattr(settings, "ASSET_ID_PREFIX", "IT")
        return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

    @property
    def is_non_expiring(self):
        return self.operational_period in NON_EXPIRING_PERIODS

    @property
    def expiry(self):
        """Expiry badge for this asset (see services.expiry)."""
        from .services.expiry import classify_expiry

        return classify_expiry(self.operational_period, self.renewal_date)


class StatusChangeEvent(models.Model):
    """Immutable entry in an asset's status history."""

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="history"
    )
    changed_at = models.DateTimeField(default=timezone.now)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_changes",
    )
    changed_by_identity = models.CharField(max_length=255, blank=True)
    from_status = models.CharField(max_length=20, choices=Asset.STATUS_CHOICES)
    to_status = models.CharField(max_length=20, choices=Asset.STATUS_CHOICES)
    reason = models.TextField(blank=True)
    maintained_by = models.CharField(
        max_length=255,
        blank=True,
        help_text="Set only when maintenance is completed",
    )

    class Meta:
        ordering = ["changed_at", "pk"]
        indexes = [
            models.Index(
                fields=["asset", "changed_at"], name="idx_history_asset_time"
            ),
        ]

    def __str__(self):
        return (
            f"{self.asset_id}: {self.get_from_status_display()} -> "
            f"{self.get_to_status_display()}"
        )

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "History entries are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "History entries are immutable and cannot be deleted."
        )

    def as_dict(self):
        """JSON-safe copy used in archive snapshots."""
        return {
            "changed_at": self.changed_at.isoformat(),
            "changed_by": self.changed_by_identity,
            "from": self.from_status,
            "to": self.to_status,
            "reason": self.reason,
            "maintained_by": self.maintained_by,
        }


class ReportedIssue(models.Model):
    """A problem reported against an asset by its user."""

    CONDITION_CHOICES = [
        ("damaged", "Damaged"),
        ("under_maintenance", "Under Maintenance"),
        ("defective", "Defective"),
        ("unserviceable", "Unserviceable"),
    ]

    asset_record_id = models.UUIDField(db_index=True)
    asset_code = models.CharField(max_length=100, blank=True)
    asset_name = models.CharField(max_length=200, blank=True)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES)
    description = models.TextField()
    image = models.ImageField(upload_to="reports/", blank=True, null=True)
    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reported_issues",
    )
    reporter_identity = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        label = self.asset_name or self.asset_code
        return f"{label}: {self.get_condition_display()}"


class ArchivedAsset(models.Model):
    """Snapshot of a deleted asset, kept for audit."""

    original_record_id = models.UUIDField(unique=True)
    asset_id = models.CharField(max_length=100, blank=True)
    asset_name = models.CharField(max_length=200, blank=True)
    category = models.CharField(max_length=100, blank=True)
    sub_type = models.CharField(max_length=100, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    operational_period = models.CharField(
        max_length=20, choices=Asset.OPERATIONAL_PERIOD_CHOICES, blank=True
    )
    status = models.CharField(
        max_length=20, choices=Asset.STATUS_CHOICES, blank=True
    )
    assigned_personnel = models.CharField(
        max_length=64,
        blank=True,
        help_text="Raw id of the user assigned at deletion time",
    )
    purchase_date = models.DateField(null=True, blank=True)
    renewal_date = models.DateField(null=True, blank=True)
    generate_qr = models.BooleanField(default=False)
    qr_image = models.ImageField(upload_to="qrcodes/", blank=True, null=True)
    canonical_url = models.CharField(max_length=500, blank=True)
    version = models.PositiveIntegerField(default=1)
    created_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(null=True, blank=True)
    updated_by = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(null=True, blank=True)
    history = models.JSONField(default=list, blank=True)
    deleted_at = models.DateTimeField(default=timezone.now)
    deleted_by = models.CharField(max_length=255)
    deleted_by_identity = models.CharField(max_length=255, blank=True)
    deletion_reason = models.TextField()

    class Meta:
        ordering = ["-deleted_at"]
        verbose_name = "archived asset"

    def __str__(self):
        return f"{self.asset_name} ({self.asset_id}) - deleted"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Archived assets are read-only snapshots."
            )
        super().save(*args, **kwargs)
