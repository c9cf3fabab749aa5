"""Archive-then-remove deletion of assets."""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..exceptions import ArchivalError, PartialDeletionError, PersistenceError
from ..models import ArchivedAsset, Asset
from .directory import PersonnelDirectory

logger = logging.getLogger(__name__)


def _identity(user):
    return user.identity if user else ""


def snapshot_asset(asset: Asset) -> dict:
    """Copy every asset field, and its history, into archive fields."""
    return {
        "original_record_id": asset.pk,
        "asset_id": asset.asset_id,
        "asset_name": asset.asset_name,
        "category": asset.category,
        "sub_type": asset.sub_type,
        "serial_number": asset.serial_number,
        "operational_period": asset.operational_period,
        "status": asset.status,
        "assigned_personnel": str(asset.assigned_personnel_id or ""),
        "purchase_date": asset.purchase_date,
        "renewal_date": asset.renewal_date,
        "generate_qr": asset.generate_qr,
        "qr_image": asset.qr_image.name or None,
        "canonical_url": asset.canonical_url,
        "version": asset.version,
        "created_by": _identity(asset.created_by),
        "created_at": asset.created_at,
        "updated_by": _identity(asset.updated_by),
        "updated_at": asset.updated_at,
        "history": [event.as_dict() for event in asset.history.all()],
    }


def delete_asset(record_id, actor, reason: str, *, directory=None):
    """Archive an asset snapshot, then remove the live record.

    The archive row is written first; if that fails the live record is
    left untouched (ArchivalError). If the archive succeeds but removal
    fails, PartialDeletionError is raised and both copies remain for
    manual reconciliation. Returns the ArchivedAsset.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("deletion requires reason")

    try:
        asset = Asset.objects.select_related("created_by", "updated_by").get(
            pk=record_id
        )
        snapshot = snapshot_asset(asset)
    except Asset.DoesNotExist as exc:
        raise PersistenceError(f"Asset {record_id} not found.") from exc
    except DatabaseError as exc:
        logger.exception("Failed to read asset %s for deletion", record_id)
        raise PersistenceError(f"Could not read asset {record_id}.") from exc

    if directory is None:
        directory = PersonnelDirectory.get_cached()
    deleted_by, identity = directory.resolve_actor(actor)

    try:
        with db_transaction.atomic():
            archived = ArchivedAsset.objects.create(
                **snapshot,
                deleted_at=timezone.now(),
                deleted_by=deleted_by,
                deleted_by_identity=identity,
                deletion_reason=reason,
            )
    except DatabaseError as exc:
        logger.exception("Failed to archive asset %s", record_id)
        raise ArchivalError(
            f"Asset {record_id} could not be archived and was not deleted."
        ) from exc

    try:
        with db_transaction.atomic():
            asset.delete()
    except DatabaseError as exc:
        logger.error(
            "Asset %s archived as #%s but not removed; "
            "manual reconciliation required",
            record_id,
            archived.pk,
        )
        raise PartialDeletionError(record_id, archived.pk) from exc

    logger.info(
        "Asset %s deleted by %s and archived as #%s",
        snapshot["asset_id"],
        identity,
        archived.pk,
    )
    return archived


def purge_archived(archive_id, *, confirm: bool = False) -> None:
    """Permanently remove an archived asset. No further snapshot is kept."""
    if not confirm:
        raise ValidationError("permanent deletion requires confirmation")

    try:
        with db_transaction.atomic():
            archived = ArchivedAsset.objects.filter(pk=archive_id).first()
            if archived is None:
                raise PersistenceError(
                    f"Archived asset #{archive_id} not found."
                )
            qr_image = archived.qr_image
            if qr_image:
                storage, name = qr_image.storage, qr_image.name
                db_transaction.on_commit(lambda: storage.delete(name))
            ArchivedAsset.objects.filter(pk=archive_id).delete()
    except DatabaseError as exc:
        logger.exception("Failed to purge archived asset #%s", archive_id)
        raise PersistenceError(
            f"Could not purge archived asset #{archive_id}."
        ) from exc

    logger.info("Archived asset #%s permanently deleted", archive_id)
