"""Tests for asset required-field and uniqueness rules."""

import pytest

from django.core.exceptions import ValidationError

from assets.services.validation import (
    check_asset,
    validate_asset,
    validate_asset_uniqueness,
    validate_required,
)

EXISTING = [
    {"pk": 1, "asset_id": "A1", "serial_number": "S1"},
    {"pk": 2, "asset_id": "A2", "serial_number": "S2"},
    {"pk": 3, "asset_id": "A3", "serial_number": ""},
]


def _record(**overrides):
    record = {
        "asset_id": "NEW-1",
        "name": "ThinkPad",
        "type": "Laptop",
        "brand": "Lenovo",
        "serial_number": "NEW-SN",
        "location": "Mumbai Office",
    }
    record.update(overrides)
    return record


class TestValidateRequired:
    def test_complete_record_passes(self):
        assert validate_required(_record()) is None

    @pytest.mark.parametrize(
        "field,label",
        [
            ("asset_id", "Asset ID"),
            ("name", "Asset Name"),
            ("type", "Asset Type"),
            ("brand", "Brand"),
            ("serial_number", "Serial Number"),
        ],
    )
    def test_missing_field_reports_label(self, field, label):
        assert validate_required(_record(**{field: "  "})) == f"{label} is required."

    def test_first_missing_field_wins(self):
        message = validate_required(_record(asset_id="", name=""))
        assert message == "Asset ID is required."

    def test_location_only_when_requested(self):
        record = _record(location="")
        assert validate_required(record) is None
        assert validate_required(record, require_location=True) == (
            "Location is required."
        )


class TestUniqueness:
    def test_no_conflict(self):
        assert validate_asset_uniqueness("A9", "S9", EXISTING) is None

    def test_same_id_and_serial(self):
        assert validate_asset_uniqueness("A1", "S1", EXISTING) == (
            "Asset ID A1 is already in use."
        )

    def test_id_taken_by_other_serial(self):
        assert validate_asset_uniqueness("A1", "S9", EXISTING) == (
            "Asset ID A1 is already in use by serial number S1."
        )

    def test_serial_taken_by_other_id(self):
        assert validate_asset_uniqueness("A9", "S2", EXISTING) == (
            "Serial number S2 is already in use by asset ID A2."
        )

    def test_id_match_reported_before_serial_match(self):
        message = validate_asset_uniqueness("A1", "S2", EXISTING)
        assert message == "Asset ID A1 is already in use by serial number S1."

    def test_other_record_without_serial(self):
        assert validate_asset_uniqueness("A3", "S9", EXISTING) == (
            "Asset ID A3 is already in use."
        )

    def test_excluded_record_does_not_conflict_with_itself(self):
        assert validate_asset_uniqueness("A1", "S1", EXISTING, exclude_pk=1) is None

    def test_works_with_model_instances(self, asset):
        message = validate_asset_uniqueness(
            "OTHER", asset.serial_number, [asset]
        )
        assert message == (
            f"Serial number {asset.serial_number} is already in use by "
            f"asset ID {asset.asset_id}."
        )


class TestValidateAsset:
    def test_required_checked_before_uniqueness(self):
        record = _record(asset_id="A1", name="")
        assert validate_asset(record, EXISTING) == "Asset Name is required."

    def test_uniqueness_after_required(self):
        assert validate_asset(_record(asset_id="A1"), EXISTING) == (
            "Asset ID A1 is already in use by serial number S1."
        )

    def test_check_asset_raises(self):
        with pytest.raises(ValidationError) as exc:
            check_asset(_record(serial_number="S2"), EXISTING)
        assert exc.value.messages == [
            "Serial number S2 is already in use by asset ID A2."
        ]
