"""Tests for archive-then-remove deletion."""

import uuid
from datetime import date
from unittest.mock import patch

import pytest

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from assets.exceptions import (
    ArchivalError,
    PartialDeletionError,
    PersistenceError,
)
from assets.factories import ArchivedAssetFactory, AssetFactory, UserFactory
from assets.models import ArchivedAsset, Asset, StatusChangeEvent
from assets.services.archive import delete_asset, purge_archived
from assets.services.directory import PersonnelDirectory
from assets.services.qr import materialize_qr
from assets.services.state import apply_edit


class TestDeleteAsset:
    def test_archives_then_removes(self, asset, admin_user):
        asset.renewal_date = date(2027, 3, 1)
        asset.save()
        record_id = asset.pk

        archived = delete_asset(record_id, admin_user, "Sold at auction")

        assert not Asset.objects.filter(pk=record_id).exists()
        assert ArchivedAsset.objects.count() == 1
        assert archived.original_record_id == record_id
        assert archived.asset_id == "A-100"
        assert archived.asset_name == "Dell Latitude 5420"
        assert archived.category == "Asset"
        assert archived.sub_type == "Laptop"
        assert archived.serial_number == "DL5420-001"
        assert archived.status == "functional"
        assert archived.renewal_date == date(2027, 3, 1)
        assert archived.assigned_personnel == str(asset.assigned_personnel_id)
        assert archived.created_by == "test@example.com"
        assert archived.deletion_reason == "Sold at auction"
        assert archived.deleted_by == "Admin User"
        assert archived.deleted_by_identity == "admin@example.com"

    def test_history_copied(self, asset, user):
        apply_edit(
            asset.pk, {"status": "defective", "reason": "Water damage"}, user
        )
        archived = delete_asset(asset.pk, user, "Beyond repair")
        assert len(archived.history) == 1
        assert archived.history[0]["to"] == "defective"
        assert archived.history[0]["reason"] == "Water damage"
        assert not StatusChangeEvent.objects.filter(
            asset_id=asset.pk
        ).exists()

    def test_qr_image_name_kept(self, asset, user):
        qr_image = materialize_qr(asset.pk)
        archived = delete_asset(asset.pk, user, "Lost")
        assert archived.qr_image.name == qr_image.name
        assert archived.canonical_url.endswith("/dashboard/A-100")

    def test_reason_required(self, asset, user):
        with pytest.raises(ValidationError, match="requires reason"):
            delete_asset(asset.pk, user, "   ")
        assert Asset.objects.filter(pk=asset.pk).exists()
        assert ArchivedAsset.objects.count() == 0

    def test_missing_record(self, db, user):
        with pytest.raises(PersistenceError):
            delete_asset(uuid.uuid4(), user, "Gone")
        assert ArchivedAsset.objects.count() == 0

    def test_second_delete_rejected(self, asset, user):
        delete_asset(asset.pk, user, "Retired")
        with pytest.raises(PersistenceError):
            delete_asset(asset.pk, user, "Retired again")
        assert ArchivedAsset.objects.count() == 1

    def test_existing_archive_for_record_rejected(self, asset, user):
        ArchivedAssetFactory(original_record_id=asset.pk)
        with pytest.raises(ArchivalError):
            delete_asset(asset.pk, user, "Duplicate")
        assert Asset.objects.filter(pk=asset.pk).exists()
        assert ArchivedAsset.objects.count() == 1

    def test_archive_failure_keeps_live_record(self, asset, user):
        with patch.object(
            ArchivedAsset.objects,
            "create",
            side_effect=DatabaseError("permission denied"),
        ):
            with pytest.raises(ArchivalError):
                delete_asset(asset.pk, user, "Retired")
        assert Asset.objects.filter(pk=asset.pk).exists()
        assert ArchivedAsset.objects.count() == 0

    def test_removal_failure_keeps_both(self, asset, user, caplog):
        with patch.object(
            Asset, "delete", side_effect=DatabaseError("connection lost")
        ):
            with pytest.raises(PartialDeletionError) as exc_info:
                delete_asset(asset.pk, user, "Retired")

        archived = ArchivedAsset.objects.get()
        assert exc_info.value.archive_id == archived.pk
        assert exc_info.value.record_id == asset.pk
        assert Asset.objects.filter(pk=asset.pk).exists()
        assert "manual reconciliation required" in caplog.text

    def test_actor_without_directory_entry(self, asset):
        stranger = UserFactory.build(
            username="contractor", email="contractor@example.com"
        )
        archived = delete_asset(
            asset.pk,
            stranger,
            "Returned",
            directory=PersonnelDirectory(names={}),
        )
        assert archived.deleted_by == "contractor@example.com"
        assert archived.deleted_by_identity == "contractor@example.com"

    def test_record_ids_not_reused(self, asset, user):
        delete_asset(asset.pk, user, "Retired")
        replacement = AssetFactory(asset_id="A-100")
        assert replacement.pk != asset.pk


class TestPurgeArchived:
    def test_requires_confirmation(self, db):
        archived = ArchivedAssetFactory()
        with pytest.raises(ValidationError, match="confirmation"):
            purge_archived(archived.pk)
        assert ArchivedAsset.objects.filter(pk=archived.pk).exists()

    def test_purge(self, db):
        archived = ArchivedAssetFactory()
        purge_archived(archived.pk, confirm=True)
        assert not ArchivedAsset.objects.filter(pk=archived.pk).exists()

    def test_purge_missing(self, db):
        with pytest.raises(PersistenceError):
            purge_archived(999, confirm=True)

    def test_purge_removes_qr_file(
        self, asset, user, django_capture_on_commit_callbacks
    ):
        qr_image = materialize_qr(asset.pk)
        storage, name = qr_image.storage, qr_image.name
        archived = delete_asset(asset.pk, user, "Retired")

        with django_capture_on_commit_callbacks(execute=True):
            purge_archived(archived.pk, confirm=True)
        assert not storage.exists(name)
