"""Tests for asset lifecycle transitions."""

from decimal import Decimal

import pytest

from django.core import mail
from django.core.exceptions import PermissionDenied, ValidationError
from django.test import override_settings

from assets.factories import AssetFactory
from assets.models import Asset, AssetEditHistory
from assets.services import state


def _history(asset):
    return {
        e.field_changed: (e.old_value, e.new_value)
        for e in AssetEditHistory.objects.filter(asset=asset)
    }


class TestAssign:
    def test_assign_available_asset(self, asset, admin_user, employee):
        state.assign_asset(asset, "Jane Smith", "EMP001", admin_user)
        asset.refresh_from_db()
        assert asset.status == "Assigned"
        assert asset.assigned_to == "Jane Smith"
        assert asset.employee_id == "EMP001"
        assert asset.assigned_date is not None
        assert asset.updated_by == admin_user.email

        changes = _history(asset)
        assert changes["status"] == ("Available", "Assigned")
        assert changes["assigned_to"] == (None, "Jane Smith")

    def test_dispatch_email_sent_to_employee(
        self, asset, admin_user, employee, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            state.assign_asset(asset, "Jane Smith", "EMP001", admin_user)
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["jane.smith@example.com"]
        assert mail.outbox[0].subject == (
            f"Asset Dispatch - {asset.name} ({asset.asset_id})"
        )

    def test_no_email_without_address(
        self, asset, admin_user, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            state.assign_asset(asset, "Ghost", "EMP404", admin_user)
        assert mail.outbox == []

    @override_settings(ASSET_NOTIFICATIONS_ENABLED=False)
    def test_notifications_can_be_disabled(
        self, asset, admin_user, employee, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            state.assign_asset(asset, "Jane Smith", "EMP001", admin_user)
        assert mail.outbox == []

    def test_requires_employee(self, asset, admin_user):
        with pytest.raises(ValidationError):
            state.assign_asset(asset, "Jane", "", admin_user)
        asset.refresh_from_db()
        assert asset.status == "Available"

    def test_only_available_assets(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="only available"):
            state.assign_asset(assigned_asset, "Bob", "EMP2", admin_user)

    def test_sold_requires_recovery_amount(self, asset, admin_user):
        with pytest.raises(ValidationError, match="Recovery amount is required"):
            state.assign_asset(asset, "Bob", "EMP2", admin_user, status="Sold")

    def test_sold_records_buyer_without_assignment(self, asset, admin_user):
        state.assign_asset(
            asset, "Bob", "EMP2", admin_user, status="Sold", recovery_amount="1500"
        )
        asset.refresh_from_db()
        assert asset.status == "Sold"
        assert asset.assigned_to == ""
        assert asset.remarks == "Sold to Bob (EMP2)"
        assert asset.recovery_amount == Decimal("1500")
        assert mail.outbox == []

    def test_reporter_cannot_assign(self, asset, reporter):
        with pytest.raises(PermissionDenied):
            state.assign_asset(asset, "Jane", "EMP001", reporter)


class TestReturn:
    def test_return_to_stock(self, assigned_asset, admin_user):
        state.return_asset(assigned_asset, "Store Keeper", admin_user)
        assigned_asset.refresh_from_db()
        assert assigned_asset.status == "Available"
        assert assigned_asset.assigned_to == ""
        assert assigned_asset.employee_id == ""
        assert assigned_asset.assigned_date is None
        assert assigned_asset.return_date is not None
        assert assigned_asset.received_by == "Store Keeper"

    def test_receipt_email_to_asset_team(
        self, assigned_asset, admin_user, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            state.return_asset(assigned_asset, "Store Keeper", admin_user)
        assert [m.to for m in mail.outbox] == [["asset-team@example.com"]]

    def test_received_by_required(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="Received by"):
            state.return_asset(assigned_asset, " ", admin_user)

    def test_non_available_target_needs_location(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="Location is required"):
            state.return_asset(
                assigned_asset, "Keeper", admin_user, status="Scrap/Damage"
            )

    def test_recovery_status_needs_amount(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="Recovery amount is required"):
            state.return_asset(
                assigned_asset,
                "Keeper",
                admin_user,
                status="Lost",
                location="Hyderabad WH",
            )

    def test_return_as_emp_damage(self, assigned_asset, admin_user):
        state.return_asset(
            assigned_asset,
            "Keeper",
            admin_user,
            status="Emp Damage",
            location="Hyderabad WH",
            recovery_amount="250.50",
            asset_condition="Cracked screen",
        )
        assigned_asset.refresh_from_db()
        assert assigned_asset.status == "Emp Damage"
        assert assigned_asset.location == "Hyderabad WH"
        assert assigned_asset.recovery_amount == Decimal("250.50")
        assert assigned_asset.asset_condition == "Cracked screen"

    def test_unknown_location_rejected(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="not a valid location"):
            state.return_asset(
                assigned_asset, "Keeper", admin_user, location="Atlantis"
            )

    def test_unassigned_asset_cannot_be_returned(self, asset, admin_user):
        with pytest.raises(ValidationError, match="not assigned"):
            state.return_asset(asset, "Keeper", admin_user)


class TestChangeStatus:
    def test_options_for_assigned_asset(self, assigned_asset):
        options = state.status_change_options(assigned_asset)
        assert options["requires_location"] is True
        assert "Assigned" not in options["statuses"]
        assert "Sold" in options["recovery_statuses"]

    def test_options_for_available_asset(self, asset):
        options = state.status_change_options(asset)
        assert options["requires_location"] is False
        assert options["current_location"] == asset.location

    def test_leaving_assigned_requires_location(self, assigned_asset, admin_user):
        with pytest.raises(ValidationError, match="Location is required"):
            state.change_status(assigned_asset, "Scrap/Damage", admin_user)

    def test_leaving_assigned_clears_assignment(self, assigned_asset, admin_user):
        state.change_status(
            assigned_asset, "Scrap/Damage", admin_user, location="Kolkata WH"
        )
        assigned_asset.refresh_from_db()
        assert assigned_asset.status == "Scrap/Damage"
        assert assigned_asset.assigned_to == ""
        assert assigned_asset.location == "Kolkata WH"
        assert assigned_asset.return_date is not None

    def test_recovery_cleared_for_other_targets(self, db, admin_user):
        asset = AssetFactory(status="Lost", recovery_amount=Decimal("100"))
        state.change_status(asset, "Available", admin_user)
        asset.refresh_from_db()
        assert asset.recovery_amount is None

    def test_existing_recovery_amount_counts(self, db, admin_user):
        asset = AssetFactory(status="Lost", recovery_amount=Decimal("100"))
        state.change_status(asset, "Sale", admin_user)
        asset.refresh_from_db()
        assert asset.status == "Sale"
        assert asset.recovery_amount == Decimal("100")

    def test_invalid_status(self, asset, admin_user):
        with pytest.raises(ValidationError):
            state.change_status(asset, "Borrowed", admin_user)


class TestFieldUpdates:
    def test_update_location(self, asset, admin_user):
        state.update_location(asset, "Patiala WH", admin_user)
        asset.refresh_from_db()
        assert asset.location == "Patiala WH"
        assert _history(asset)["location"] == ("Mumbai Office", "Patiala WH")

    def test_update_asset_check(self, asset, admin_user):
        state.update_asset_check(asset, "Matched", admin_user)
        asset.refresh_from_db()
        assert asset.asset_check == "Matched"

    def test_unknown_asset_check_rejected(self, asset, admin_user):
        with pytest.raises(ValidationError, match="Invalid asset check: Maybe"):
            state.update_asset_check(asset, "Maybe", admin_user)
        state.update_asset_check(asset, "", admin_user)
        asset.refresh_from_db()
        assert asset.asset_check == ""

    def test_update_asset_rechecks_uniqueness(self, asset, admin_user):
        other = AssetFactory(asset_id="AST-999", serial_number="SN-OTHER")
        with pytest.raises(ValidationError) as exc:
            state.update_asset(asset, {"serial_number": other.serial_number}, admin_user)
        assert exc.value.messages == [
            "Serial number SN-OTHER is already in use by asset ID AST-999."
        ]

    def test_update_asset_keeps_own_identity(self, asset, admin_user):
        state.update_asset(
            asset,
            {"asset_id": asset.asset_id, "name": "Renamed", "warranty_end": "2099-01-01"},
            admin_user,
        )
        asset.refresh_from_db()
        assert asset.name == "Renamed"
        assert asset.warranty_status == "In Warranty"

    def test_update_asset_rejects_lifecycle_fields(self, asset, admin_user):
        with pytest.raises(ValidationError, match="cannot be edited"):
            state.update_asset(asset, {"status": "Sold"}, admin_user)


class TestCreateDelete:
    DATA = {
        "asset_id": "AST-100",
        "name": "ThinkPad X1",
        "type": "Laptop",
        "brand": "Lenovo",
        "serial_number": "TPX1-100",
        "location": "Hyderabad WH",
    }

    def test_create_available(self, admin_user):
        asset = state.create_asset(dict(self.DATA), admin_user)
        assert asset.status == "Available"
        assert asset.created_by == admin_user.email
        assert AssetEditHistory.objects.filter(
            asset=asset, field_changed="created"
        ).exists()

    def test_create_with_employee_is_assigned(self, admin_user):
        asset = state.create_asset(
            {**self.DATA, "assigned_to": "Jane", "employee_id": "EMP001"},
            admin_user,
        )
        assert asset.status == "Assigned"
        assert asset.assigned_date is not None

    def test_create_requires_location(self, admin_user):
        with pytest.raises(ValidationError, match="Location is required"):
            state.create_asset({**self.DATA, "location": ""}, admin_user)

    def test_create_duplicate(self, asset, admin_user):
        with pytest.raises(ValidationError, match="already in use"):
            state.create_asset(
                {**self.DATA, "serial_number": asset.serial_number}, admin_user
            )
        assert not Asset.objects.filter(asset_id="AST-100").exists()

    def test_delete_requires_super_admin(self, asset, admin_user):
        with pytest.raises(PermissionDenied):
            state.delete_asset(asset, admin_user)

    def test_delete_removes_history(self, asset, super_admin):
        state.update_location(asset, "Patiala WH", super_admin)
        state.delete_asset(asset, super_admin)
        assert not Asset.objects.filter(pk=asset.pk).exists()
        assert not AssetEditHistory.objects.exists()
