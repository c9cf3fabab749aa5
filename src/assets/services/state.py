"""Asset edits and status transition rules."""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..exceptions import PersistenceError, StaleRecordError
from ..models import Asset, StatusChangeEvent
from .qr import bind_qr, discard_uncommitted_qr, unbind_qr

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "asset_id",
    "asset_name",
    "category",
    "sub_type",
    "serial_number",
    "operational_period",
    "assigned_personnel",
    "purchase_date",
    "renewal_date",
    "status",
    "generate_qr",
)

# Only meaningful alongside a status change
CONDITIONAL_FIELDS = ("reason", "maintained_by")


def is_maintenance_completion(from_status: str, to_status: str) -> bool:
    return (
        from_status == Asset.STATUS_UNDER_MAINTENANCE
        and to_status == Asset.STATUS_FUNCTIONAL
    )


def validate_status_change(
    current_status: str,
    new_status: str,
    reason: str = "",
    maintained_by: str = "",
) -> None:
    """Raise ValidationError if a status change is missing its details."""
    if new_status == current_status:
        return  # No-op transition is always fine

    if not (reason or "").strip():
        raise ValidationError("status change requires reason")

    if (
        is_maintenance_completion(current_status, new_status)
        and not (maintained_by or "").strip()
    ):
        raise ValidationError(
            "maintenance completion requires responsible party"
        )


def _assign(asset: Asset, name: str, value) -> None:
    if name == "assigned_personnel":
        asset.assigned_personnel_id = (
            None if value in (None, "") else getattr(value, "pk", value)
        )
        return
    if name == "generate_qr":
        asset.generate_qr = bool(value)
        return
    if value == "" and Asset._meta.get_field(name).null:
        value = None
    setattr(asset, name, value)


def apply_edit(
    record_id,
    proposed: dict,
    actor,
    *,
    expected_version: int | None = None,
    confirm_large=None,
) -> Asset:
    """Apply an edit to an asset and record any status change.

    ``proposed`` holds the editable fields plus ``reason`` and
    ``maintained_by``; fields left out keep their stored value. The
    field update and the history entry are written in one transaction,
    and nothing is written if validation fails.

    Raises ValidationError, SizeExceededError, StaleRecordError or
    PersistenceError.
    """
    unknown = set(proposed) - set(EDITABLE_FIELDS) - set(CONDITIONAL_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown field(s): {', '.join(sorted(unknown))}."
        )

    reason = (proposed.get("reason") or "").strip()
    maintained_by = (proposed.get("maintained_by") or "").strip()

    asset = None
    previous_qr_name = None
    try:
        with db_transaction.atomic():
            try:
                asset = Asset.objects.select_for_update().get(pk=record_id)
            except Asset.DoesNotExist as exc:
                raise PersistenceError(
                    f"Asset {record_id} not found."
                ) from exc

            if (
                expected_version is not None
                and asset.version != expected_version
            ):
                raise StaleRecordError(
                    record_id, expected_version, asset.version
                )

            previous_qr_name = asset.qr_image.name
            previous_status = asset.status
            previous_asset_id = asset.asset_id
            new_status = proposed.get("status", previous_status)
            validate_status_change(
                previous_status, new_status, reason, maintained_by
            )

            for name in EDITABLE_FIELDS:
                if name in proposed:
                    _assign(asset, name, proposed[name])
            if not asset.asset_id:
                # The QR payload needs the id before the row is saved
                asset.asset_id = asset.generate_asset_id()
            asset.full_clean()

            if not asset.generate_qr:
                unbind_qr(asset)
            elif not asset.qr_image or asset.asset_id != previous_asset_id:
                bind_qr(asset, confirm_large=confirm_large)

            now = timezone.now()
            asset.updated_by = actor
            asset.updated_at = now
            asset.version += 1
            asset.save()

            if new_status != previous_status:
                StatusChangeEvent.objects.create(
                    asset=asset,
                    changed_at=now,
                    changed_by=actor,
                    changed_by_identity=actor.identity,
                    from_status=previous_status,
                    to_status=new_status,
                    reason=reason,
                    maintained_by=(
                        maintained_by
                        if is_maintenance_completion(
                            previous_status, new_status
                        )
                        else ""
                    ),
                )
    except DatabaseError as exc:
        discard_uncommitted_qr(asset, previous_qr_name)
        logger.exception("Failed to save edit for asset %s", record_id)
        raise PersistenceError(f"Could not save asset {record_id}.") from exc

    if new_status != previous_status:
        logger.info(
            "Asset %s status %s -> %s by %s",
            asset.asset_id,
            previous_status,
            new_status,
            actor.identity,
        )
    else:
        logger.info("Asset %s edited by %s", asset.asset_id, actor.identity)
    return asset
