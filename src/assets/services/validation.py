"""Required-field and uniqueness rules for asset records.

Every function here is pure: it takes a candidate record (a dict or an
``Asset``) plus the collection to compare against and returns the first
violated rule as a message, or ``None``. Nothing is written.
"""

from django.core.exceptions import ValidationError

REQUIRED_FIELDS = [
    ("asset_id", "Asset ID"),
    ("name", "Asset Name"),
    ("type", "Asset Type"),
    ("brand", "Brand"),
    ("serial_number", "Serial Number"),
]


def field_value(record, field):
    """Read ``field`` from a dict or an object, normalised to a stripped str."""
    if isinstance(record, dict):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    if value is None:
        return ""
    return str(value).strip()


def validate_required(record, require_location=False) -> str | None:
    fields = list(REQUIRED_FIELDS)
    if require_location:
        fields.append(("location", "Location"))
    for field, label in fields:
        if not field_value(record, field):
            return f"{label} is required."
    return None


def validate_asset_uniqueness(
    asset_id, serial_number, assets, exclude_pk=None
) -> str | None:
    """Check ``asset_id`` and ``serial_number`` against ``assets``.

    The record whose primary key equals ``exclude_pk`` is ignored, so an
    asset being edited never conflicts with itself.
    """
    asset_id = (asset_id or "").strip()
    serial_number = (serial_number or "").strip()

    id_match = None
    serial_match = None
    for other in assets:
        if exclude_pk is not None and _pk(other) == exclude_pk:
            continue
        if id_match is None and asset_id and field_value(other, "asset_id") == asset_id:
            id_match = other
        if (
            serial_match is None
            and serial_number
            and field_value(other, "serial_number") == serial_number
        ):
            serial_match = other
        if id_match is not None and serial_match is not None:
            break

    if id_match is not None:
        other_serial = field_value(id_match, "serial_number")
        if other_serial == serial_number or not other_serial:
            return f"Asset ID {asset_id} is already in use."
        return (
            f"Asset ID {asset_id} is already in use by serial number "
            f"{other_serial}."
        )
    if serial_match is not None:
        return (
            f"Serial number {serial_number} is already in use by asset ID "
            f"{field_value(serial_match, 'asset_id')}."
        )
    return None


def validate_asset(
    record, assets, exclude_pk=None, require_location=False
) -> str | None:
    """Required fields first, then uniqueness."""
    message = validate_required(record, require_location=require_location)
    if message:
        return message
    return validate_asset_uniqueness(
        field_value(record, "asset_id"),
        field_value(record, "serial_number"),
        assets,
        exclude_pk=exclude_pk,
    )


def check_asset(record, assets, exclude_pk=None, require_location=False):
    """Raise ValidationError if ``record`` violates a rule."""
    message = validate_asset(
        record, assets, exclude_pk=exclude_pk, require_location=require_location
    )
    if message:
        raise ValidationError(message)


def _pk(record):
    if isinstance(record, dict):
        return record.get("pk", record.get("id"))
    return getattr(record, "pk", None)
