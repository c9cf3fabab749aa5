"""Tests for asset edits and status transitions."""

import uuid
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from assets.exceptions import PersistenceError, StaleRecordError
from assets.models import Asset, StatusChangeEvent
from assets.services.qr import materialize_qr
from assets.services.state import (
    apply_edit,
    is_maintenance_completion,
    validate_status_change,
)


class TestValidateStatusChange:
    def test_noop_needs_nothing(self):
        validate_status_change("functional", "functional")

    def test_change_requires_reason(self):
        with pytest.raises(ValidationError, match="requires reason"):
            validate_status_change("functional", "defective", "  ")

    def test_change_with_reason(self):
        validate_status_change("functional", "defective", "Cracked screen")

    def test_completion_requires_responsible_party(self):
        with pytest.raises(ValidationError, match="responsible party"):
            validate_status_change(
                "under_maintenance", "functional", "Repaired", ""
            )

    def test_completion_with_responsible_party(self):
        validate_status_change(
            "under_maintenance", "functional", "Repaired", "J. Cruz"
        )

    def test_leaving_maintenance_elsewhere_needs_only_reason(self):
        validate_status_change(
            "under_maintenance", "unserviceable", "Parts unavailable"
        )

    def test_is_maintenance_completion(self):
        assert is_maintenance_completion("under_maintenance", "functional")
        assert not is_maintenance_completion("defective", "functional")
        assert not is_maintenance_completion(
            "functional", "under_maintenance"
        )


class TestApplyEdit:
    def test_field_edit_without_status_change(self, asset, second_user):
        updated = apply_edit(
            asset.pk,
            {"asset_name": "Dell Latitude 7420", "serial_number": "X-1"},
            second_user,
        )
        assert updated.asset_name == "Dell Latitude 7420"
        assert updated.serial_number == "X-1"
        assert updated.updated_by == second_user
        assert updated.version == 2
        assert updated.history.count() == 0

    def test_omitted_fields_keep_stored_values(self, asset, user):
        apply_edit(asset.pk, {"asset_name": "Renamed"}, user)
        asset.refresh_from_db()
        assert asset.serial_number == "DL5420-001"
        assert asset.sub_type == "Laptop"
        assert asset.assigned_personnel == user

    def test_updated_at_always_touched(self, asset, user):
        before = asset.updated_at
        apply_edit(asset.pk, {}, user)
        asset.refresh_from_db()
        assert asset.updated_at >= before
        assert asset.version == 2

    def test_status_change_appends_event(self, asset, second_user):
        apply_edit(
            asset.pk,
            {"status": "defective", "reason": "Does not boot"},
            second_user,
        )
        asset.refresh_from_db()
        assert asset.status == "defective"
        event = asset.history.get()
        assert event.from_status == "functional"
        assert event.to_status == "defective"
        assert event.reason == "Does not boot"
        assert event.changed_by == second_user
        assert event.changed_by_identity == "other@example.com"
        assert event.maintained_by == ""
        assert event.changed_at == asset.updated_at

    def test_missing_reason_leaves_record_unchanged(self, asset, user):
        with pytest.raises(ValidationError, match="requires reason"):
            apply_edit(
                asset.pk,
                {"status": "defective", "asset_name": "Renamed"},
                user,
            )
        asset.refresh_from_db()
        assert asset.status == "functional"
        assert asset.asset_name == "Dell Latitude 5420"
        assert asset.version == 1
        assert asset.history.count() == 0

    def test_maintained_by_dropped_outside_completion(self, asset, user):
        apply_edit(
            asset.pk,
            {
                "status": "under_maintenance",
                "reason": "Overheating",
                "maintained_by": "J. Cruz",
            },
            user,
        )
        assert asset.history.get().maintained_by == ""

    def test_unknown_field_rejected(self, asset, user):
        with pytest.raises(ValidationError, match="Unknown field"):
            apply_edit(asset.pk, {"location": "Room 4"}, user)

    def test_invalid_choice_rejected(self, asset, user):
        with pytest.raises(ValidationError):
            apply_edit(asset.pk, {"operational_period": "forever"}, user)
        asset.refresh_from_db()
        assert asset.version == 1

    def test_category_sub_type_rule(self, asset, user):
        with pytest.raises(ValidationError):
            apply_edit(asset.pk, {"category": "License"}, user)

    def test_reassign_and_unassign_personnel(self, asset, user, second_user):
        apply_edit(asset.pk, {"assigned_personnel": second_user.pk}, user)
        asset.refresh_from_db()
        assert asset.assigned_personnel == second_user

        apply_edit(asset.pk, {"assigned_personnel": ""}, user)
        asset.refresh_from_db()
        assert asset.assigned_personnel_id is None

    def test_blank_date_clears(self, asset, user):
        apply_edit(asset.pk, {"renewal_date": date(2027, 1, 1)}, user)
        apply_edit(asset.pk, {"renewal_date": ""}, user)
        asset.refresh_from_db()
        assert asset.renewal_date is None

    def test_missing_record(self, db, user):
        with pytest.raises(PersistenceError, match="not found"):
            apply_edit(uuid.uuid4(), {"asset_name": "Ghost"}, user)

    def test_stale_version_rejected(self, asset, user):
        apply_edit(asset.pk, {"asset_name": "First"}, user)
        with pytest.raises(StaleRecordError) as exc_info:
            apply_edit(
                asset.pk, {"asset_name": "Second"}, user, expected_version=1
            )
        assert exc_info.value.actual_version == 2
        asset.refresh_from_db()
        assert asset.asset_name == "First"

    def test_matching_version_accepted(self, asset, user):
        updated = apply_edit(
            asset.pk, {"asset_name": "First"}, user, expected_version=1
        )
        assert updated.version == 2

    def test_event_write_failure_rolls_back_edit(self, asset, user):
        with patch.object(
            StatusChangeEvent.objects,
            "create",
            side_effect=DatabaseError("disk full"),
        ):
            with pytest.raises(PersistenceError):
                apply_edit(
                    asset.pk,
                    {"status": "defective", "reason": "Broken hinge"},
                    user,
                )
        asset.refresh_from_db()
        assert asset.status == "functional"
        assert asset.version == 1

    def test_failed_edit_leaves_no_qr_file(self, asset, user, settings):
        with patch.object(
            StatusChangeEvent.objects,
            "create",
            side_effect=DatabaseError("disk full"),
        ):
            with pytest.raises(PersistenceError):
                apply_edit(
                    asset.pk,
                    {
                        "generate_qr": True,
                        "status": "defective",
                        "reason": "Broken hinge",
                    },
                    user,
                )
        asset.refresh_from_db()
        assert not asset.qr_image
        qr_dir = Path(settings.MEDIA_ROOT) / "qrcodes"
        assert not qr_dir.exists() or not any(qr_dir.iterdir())

    def test_failed_rebind_keeps_previous_file(self, asset, user, settings):
        previous = materialize_qr(asset.pk).name
        with patch.object(
            StatusChangeEvent.objects,
            "create",
            side_effect=DatabaseError("disk full"),
        ):
            with pytest.raises(PersistenceError):
                apply_edit(
                    asset.pk,
                    {
                        "asset_id": "A-200",
                        "status": "defective",
                        "reason": "Broken hinge",
                    },
                    user,
                )
        asset.refresh_from_db()
        assert asset.asset_id == "A-100"
        assert asset.qr_image.name == previous
        qr_dir = Path(settings.MEDIA_ROOT) / "qrcodes"
        assert [p.name for p in qr_dir.iterdir()] == [Path(previous).name]

    def test_blank_asset_id_generated(self, asset, user):
        apply_edit(asset.pk, {"asset_id": ""}, user)
        asset.refresh_from_db()
        assert asset.asset_id.startswith("IT-")

    def test_disabling_qr_clears_image(self, asset, user):
        apply_edit(asset.pk, {"generate_qr": True}, user)
        asset.refresh_from_db()
        assert asset.qr_image

        apply_edit(asset.pk, {"generate_qr": False}, user)
        asset.refresh_from_db()
        assert not asset.qr_image
        assert asset.generate_qr is False


class TestHistoryProperties:
    def test_history_only_grows(self, asset, user):
        edits = [
            {"status": "under_maintenance", "reason": "Noisy fan"},
            {"asset_name": "Renamed"},
            {"status": "defective", "reason": "Fan seized"},
            {"status": "functional"},
            {"status": "unserviceable", "reason": "Board failure"},
        ]
        seen = []
        for proposed in edits:
            try:
                apply_edit(asset.pk, proposed, user)
            except ValidationError:
                pass
            current = [e.as_dict() for e in asset.history.all()]
            assert len(current) >= len(seen)
            assert current[: len(seen)] == seen
            seen = current
        assert [e["to"] for e in seen] == [
            "under_maintenance",
            "defective",
            "unserviceable",
        ]

    def test_every_change_has_reason(self, asset, user):
        apply_edit(asset.pk, {"status": "defective", "reason": "A"}, user)
        apply_edit(asset.pk, {"status": "functional", "reason": "B"}, user)
        for event in Asset.objects.get(pk=asset.pk).history.all():
            assert event.from_status != event.to_status
            assert event.reason.strip()

    def test_fan_noise_scenario(self, asset, user):
        apply_edit(
            asset.pk,
            {"status": "under_maintenance", "reason": "fan noise"},
            user,
        )
        assert asset.history.count() == 1

        with pytest.raises(ValidationError, match="responsible party"):
            apply_edit(
                asset.pk,
                {
                    "status": "functional",
                    "reason": "fan replaced",
                    "maintained_by": "",
                },
                user,
            )
        assert asset.history.count() == 1

        apply_edit(
            asset.pk,
            {
                "status": "functional",
                "reason": "fan replaced",
                "maintained_by": "J. Cruz",
            },
            user,
        )
        history = list(asset.history.all())
        assert len(history) == 2
        assert history[1].maintained_by == "J. Cruz"
        assert history[1].from_status == "under_maintenance"
        assert history[1].to_status == "functional"
