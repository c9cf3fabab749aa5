"""Factory Boy factories for asset registry test data."""

import uuid

import factory
from factory.django import DjangoModelFactory

from django.utils import timezone


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model."""

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    display_name = factory.Faker("name")
    position = "IT Staff"
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model.

    QR generation is off by default; tests that need an image call
    materialize_qr or set generate_qr through apply_edit.
    """

    class Meta:
        model = "assets.Asset"

    asset_id = factory.Sequence(lambda n: f"IT-{n:05d}")
    asset_name = factory.Sequence(lambda n: f"Laptop {n}")
    category = "Asset"
    sub_type = "Laptop"
    serial_number = factory.Sequence(lambda n: f"SN{n:06d}")
    operational_period = "subscription"
    status = "functional"
    generate_qr = False
    created_by = factory.SubFactory(UserFactory)
    updated_by = factory.SelfAttribute("created_by")


class StatusChangeEventFactory(DjangoModelFactory):
    """Factory for StatusChangeEvent model."""

    class Meta:
        model = "assets.StatusChangeEvent"

    asset = factory.SubFactory(AssetFactory)
    changed_at = factory.LazyFunction(timezone.now)
    changed_by = factory.SubFactory(UserFactory)
    changed_by_identity = factory.LazyAttribute(
        lambda o: o.changed_by.identity
    )
    from_status = "functional"
    to_status = "defective"
    reason = "Does not power on"


class ReportedIssueFactory(DjangoModelFactory):
    """Factory for ReportedIssue model."""

    class Meta:
        model = "assets.ReportedIssue"

    asset_record_id = factory.LazyFunction(uuid.uuid4)
    asset_code = factory.Sequence(lambda n: f"IT-R{n:04d}")
    asset_name = "Reported Laptop"
    condition = "damaged"
    description = factory.Faker("sentence")
    reported_by = factory.SubFactory(UserFactory)
    reporter_identity = factory.LazyAttribute(
        lambda o: o.reported_by.identity
    )


class ArchivedAssetFactory(DjangoModelFactory):
    """Factory for ArchivedAsset model."""

    class Meta:
        model = "assets.ArchivedAsset"

    original_record_id = factory.LazyFunction(uuid.uuid4)
    asset_id = factory.Sequence(lambda n: f"IT-A{n:04d}")
    asset_name = factory.Sequence(lambda n: f"Retired Laptop {n}")
    category = "Asset"
    sub_type = "Laptop"
    status = "unserviceable"
    deleted_by = "Admin User"
    deleted_by_identity = "admin@example.com"
    deletion_reason = "Beyond repair"
