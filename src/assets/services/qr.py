"""QR code identity for asset records."""

import json
import logging
from io import BytesIO
from urllib.parse import quote

import qrcode
from PIL import Image

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile
from django.db import DatabaseError
from django.db import transaction as db_transaction

from ..exceptions import PersistenceError, SizeExceededError
from ..models import Asset

logger = logging.getLogger(__name__)


def build_canonical_url(asset_id: str) -> str:
    """Build the public asset URL encoded in the QR code."""
    site_url = getattr(settings, "SITE_URL", "")
    return f"{site_url}/dashboard/{quote(asset_id, safe='')}"


def build_qr_payload(asset_id: str, canonical_url: str) -> str:
    return json.dumps({"assetId": asset_id, "canonicalUrl": canonical_url})


def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a PNG QR code at high error correction.

    The image is scaled to ``QR_IMAGE_SIZE`` pixels square so every
    label prints at the same size regardless of payload length.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)

    size = settings.QR_IMAGE_SIZE
    img = qr.make_image(fill_color="#162a37", back_color="white")
    img = img.get_image().convert("RGB")
    img = img.resize((size, size), Image.Resampling.NEAREST)

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def check_artifact_size(size: int, confirm_large=None) -> None:
    """Raise SizeExceededError unless a rendered image may be stored.

    ``confirm_large`` decides for images between the warning threshold
    and the hard limit: a bool, or a callable taking the size in bytes.
    When omitted the ``QR_ACCEPT_LARGE_ARTIFACTS`` setting applies.
    """
    limit = settings.QR_SIZE_LIMIT_BYTES
    warn = settings.QR_SIZE_WARN_BYTES
    if size > limit:
        raise SizeExceededError(size, limit)
    if size <= warn:
        return

    if confirm_large is None:
        confirm_large = settings.QR_ACCEPT_LARGE_ARTIFACTS
    if callable(confirm_large):
        accepted = confirm_large(size)
    else:
        accepted = confirm_large
    if not accepted:
        raise SizeExceededError(size, warn, declined=True)
    logger.warning("Accepted large QR image (%d KB)", size // 1024)


def _discard_on_commit(fieldfile):
    """Delete a stored file once the surrounding transaction commits."""
    if not fieldfile:
        return
    storage, name = fieldfile.storage, fieldfile.name
    db_transaction.on_commit(lambda: storage.delete(name))


def discard_uncommitted_qr(asset, previous_name) -> None:
    """Delete a QR file written by a transaction that rolled back.

    Storage writes are not rolled back with the database.
    """
    if asset is None or not asset.qr_image:
        return
    if asset.qr_image.name != previous_name:
        asset.qr_image.storage.delete(asset.qr_image.name)
        logger.info("Removed uncommitted QR image %s", asset.qr_image.name)


def bind_qr(asset: Asset, canonical_url_override=None, confirm_large=None):
    """Render and attach a QR image to ``asset`` without saving the row.

    The canonical URL is the override, else the URL already bound to
    the asset, else one derived from ``asset_id``. Nothing is written
    if the size check fails.
    """
    canonical_url = (
        canonical_url_override
        or asset.canonical_url
        or build_canonical_url(asset.asset_id)
    )
    png = render_qr_png(build_qr_payload(asset.asset_id, canonical_url))
    check_artifact_size(len(png), confirm_large)

    _discard_on_commit(asset.qr_image)
    asset.qr_image.save(f"{asset.pk}.png", ContentFile(png), save=False)
    asset.canonical_url = canonical_url
    asset.generate_qr = True
    return asset.qr_image


def unbind_qr(asset: Asset) -> None:
    """Drop the QR image and disable generation without saving the row."""
    _discard_on_commit(asset.qr_image)
    asset.qr_image = None
    asset.generate_qr = False


def _load_for_update(record_id):
    try:
        return Asset.objects.select_for_update().get(pk=record_id)
    except Asset.DoesNotExist as exc:
        raise PersistenceError(f"Asset {record_id} not found.") from exc


def materialize_qr(
    record_id,
    asset_id=None,
    canonical_url_override=None,
    *,
    confirm_large=None,
):
    """Generate and store the QR image for an asset.

    Returns the stored image. Raises SizeExceededError (nothing stored)
    when the image is too large or a large image is not confirmed.
    """
    asset = None
    previous_qr_name = None
    try:
        with db_transaction.atomic():
            asset = _load_for_update(record_id)
            previous_qr_name = asset.qr_image.name
            if asset_id and asset_id != asset.asset_id:
                raise ValidationError(
                    f"Asset id '{asset_id}' does not match record "
                    f"{record_id} ('{asset.asset_id}')."
                )
            qr_image = bind_qr(
                asset,
                canonical_url_override=canonical_url_override,
                confirm_large=confirm_large,
            )
            asset.save(
                update_fields=["qr_image", "canonical_url", "generate_qr"]
            )
    except DatabaseError as exc:
        discard_uncommitted_qr(asset, previous_qr_name)
        logger.exception("Failed to store QR image for asset %s", record_id)
        raise PersistenceError(
            f"Could not store QR image for asset {record_id}."
        ) from exc

    logger.info("QR image stored for asset %s", asset.asset_id)
    return qr_image


def clear_qr(record_id) -> None:
    """Remove the QR image of an asset and disable generation."""
    try:
        with db_transaction.atomic():
            asset = _load_for_update(record_id)
            unbind_qr(asset)
            asset.save(update_fields=["qr_image", "generate_qr"])
    except DatabaseError as exc:
        logger.exception("Failed to clear QR image for asset %s", record_id)
        raise PersistenceError(
            f"Could not clear QR image for asset {record_id}."
        ) from exc
