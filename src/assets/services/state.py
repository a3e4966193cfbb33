"""Asset lifecycle transitions: assign, return, status and field updates."""

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from .. import constants
from ..models import Asset
from . import notifications, permissions
from .history import actor_name, record_changes, record_edit, snapshot
from .validation import check_asset

logger = logging.getLogger(__name__)

ASSIGNMENT_FIELDS = ["assigned_to", "employee_id", "assigned_date"]

DATE_FIELDS = ("warranty_start", "warranty_end")

EDITABLE_FIELDS = [
    "asset_id",
    "name",
    "type",
    "brand",
    "configuration",
    "serial_number",
    "far_code",
    "provider",
    "location",
    "remarks",
    "asset_condition",
    "asset_check",
    "warranty_start",
    "warranty_end",
]


def parse_recovery_amount(value) -> Decimal | None:
    """Coerce a user-supplied recovery amount; blank means none."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid recovery amount '{value}'.")
    if not amount.is_finite():
        raise ValidationError(f"Invalid recovery amount '{value}'.")
    if amount < 0:
        raise ValidationError("Recovery amount cannot be negative.")
    return amount


def resolve_recovery(status: str, value, current=None) -> Decimal | None:
    """Return the recovery amount to store for a transition to ``status``.

    Recovery statuses need an amount (``current`` counts as one); every
    other target clears it.
    """
    if status not in constants.RECOVERY_STATUSES:
        return None
    amount = parse_recovery_amount(value)
    if amount is None:
        amount = current
    if amount is None:
        raise ValidationError(f"Recovery amount is required for status {status}.")
    return amount


def validate_status(status: str) -> None:
    if not status:
        raise ValidationError("Status is required.")
    if status not in constants.ASSET_STATUSES:
        raise ValidationError(f"'{status}' is not a valid status.")


def validate_location(location: str) -> None:
    if location and not constants.is_valid_location(location):
        raise ValidationError(f"'{location}' is not a valid location.")


def stamp(asset: Asset, user) -> None:
    asset.updated_by = actor_name(user)
    asset.updated_at = timezone.now()


def _clear_assignment(asset: Asset) -> None:
    asset.assigned_to = ""
    asset.employee_id = ""
    asset.assigned_date = None


def _commit(asset: Asset, before: dict, user) -> Asset:
    stamp(asset, user)
    with db_transaction.atomic():
        asset.full_clean(validate_unique=False)
        asset.save()
        record_changes(asset, before, user)
    return asset


def assign_asset(
    asset: Asset,
    employee_name: str,
    employee_id: str,
    user,
    status: str = constants.STATUS_ASSIGNED,
    recovery_amount=None,
    email: str = "",
) -> Asset:
    """Assign an available asset to an employee.

    With ``status="Sold"`` the asset is sold to the employee instead: the
    buyer goes into the remarks and the recovery amount is mandatory.
    """
    permissions.require(
        permissions.can_write_assets, user, "You cannot assign assets."
    )
    employee_name = (employee_name or "").strip()
    employee_id = (employee_id or "").strip()
    if not employee_name or not employee_id:
        raise ValidationError("Employee name and employee ID are required.")
    if status not in (constants.STATUS_ASSIGNED, constants.STATUS_SOLD):
        raise ValidationError(
            f"Assets can only be assigned with status Assigned or Sold, "
            f"not '{status}'."
        )
    if asset.status != constants.STATUS_AVAILABLE:
        raise ValidationError(
            f"Asset {asset.asset_id} is {asset.status}; only available "
            f"assets can be assigned."
        )

    before = snapshot(
        asset,
        ["status", "recovery_amount", "remarks"] + ASSIGNMENT_FIELDS,
    )
    asset.recovery_amount = resolve_recovery(status, recovery_amount)
    asset.status = status
    if status == constants.STATUS_SOLD:
        asset.remarks = f"Sold to {employee_name} ({employee_id})"
    else:
        asset.assigned_to = employee_name
        asset.employee_id = employee_id
        asset.assigned_date = timezone.now()
    _commit(asset, before, user)

    logger.info(
        "Asset %s %s to %s (%s) by %s",
        asset.asset_id,
        "sold" if status == constants.STATUS_SOLD else "assigned",
        employee_name,
        employee_id,
        actor_name(user),
    )
    if status == constants.STATUS_ASSIGNED:
        db_transaction.on_commit(
            lambda: notifications.notify_dispatch(asset, email=email)
        )
    return asset


def return_asset(
    asset: Asset,
    received_by: str,
    user,
    status: str = constants.STATUS_AVAILABLE,
    location=None,
    remarks=None,
    asset_condition=None,
    configuration=None,
    recovery_amount=None,
) -> Asset:
    """Take an assigned asset back and move it to ``status``."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot return assets."
    )
    if asset.status != constants.STATUS_ASSIGNED:
        raise ValidationError(
            f"Asset {asset.asset_id} is not assigned and cannot be returned."
        )
    received_by = (received_by or "").strip()
    if not received_by:
        raise ValidationError("Received by is required.")
    status = status or constants.STATUS_AVAILABLE
    validate_status(status)
    if status == constants.STATUS_ASSIGNED:
        raise ValidationError("A returned asset cannot stay Assigned.")
    location = (location or "").strip()
    if status != constants.STATUS_AVAILABLE and not location:
        raise ValidationError(f"Location is required for status {status}.")
    validate_location(location)

    before = snapshot(
        asset,
        [
            "status",
            "location",
            "remarks",
            "asset_condition",
            "configuration",
            "received_by",
            "return_date",
            "recovery_amount",
        ]
        + ASSIGNMENT_FIELDS,
    )
    asset.recovery_amount = resolve_recovery(status, recovery_amount)
    asset.status = status
    _clear_assignment(asset)
    asset.return_date = timezone.now()
    asset.received_by = received_by
    if location:
        asset.location = location
    if remarks:
        asset.remarks = remarks
    if asset_condition:
        asset.asset_condition = asset_condition
    if configuration:
        asset.configuration = configuration
    _commit(asset, before, user)

    logger.info(
        "Asset %s returned as %s, received by %s (%s)",
        asset.asset_id,
        status,
        received_by,
        actor_name(user),
    )
    db_transaction.on_commit(lambda: notifications.notify_received(asset))
    return asset


def status_change_options(asset: Asset) -> dict:
    """Describe what the status dialog offers for ``asset``.

    Returns the selectable statuses, whether a location must be given, and
    which targets require a recovery amount. Applying the change is
    :func:`change_status`.
    """
    leaving_assignment = asset.status == constants.STATUS_ASSIGNED
    statuses = [
        s for s in constants.RETURN_STATUSES
        if not (leaving_assignment and s == constants.STATUS_ASSIGNED)
    ]
    return {
        "current_status": asset.status,
        "statuses": statuses,
        "requires_location": leaving_assignment,
        "recovery_statuses": sorted(constants.RECOVERY_STATUSES),
        "current_location": asset.location,
    }


def change_status(
    asset: Asset,
    status: str,
    user,
    recovery_amount=None,
    location=None,
    remarks=None,
) -> Asset:
    """Administrative status override.

    Skips the assign/return field requirements, but a recovery status
    still needs an amount, and moving an assigned asset elsewhere needs a
    location and drops the assignment.
    """
    permissions.require(
        permissions.can_write_assets, user, "You cannot change asset status."
    )
    validate_status(status)
    location = (location or "").strip()
    validate_location(location)
    leaving_assignment = (
        asset.status == constants.STATUS_ASSIGNED
        and status != constants.STATUS_ASSIGNED
    )
    if leaving_assignment and not location:
        raise ValidationError(
            "Location is required when changing from Assigned status."
        )

    before = snapshot(
        asset,
        ["status", "location", "remarks", "recovery_amount", "return_date"]
        + ASSIGNMENT_FIELDS,
    )
    asset.recovery_amount = resolve_recovery(
        status, recovery_amount, current=asset.recovery_amount
    )
    asset.status = status
    if leaving_assignment:
        _clear_assignment(asset)
        asset.return_date = timezone.now()
    if location:
        asset.location = location
    if remarks:
        asset.remarks = remarks
    _commit(asset, before, user)

    logger.info(
        "Asset %s status %s -> %s by %s",
        asset.asset_id,
        before["status"],
        status,
        actor_name(user),
    )
    return asset


def update_location(asset: Asset, location: str, user) -> Asset:
    permissions.require(
        permissions.can_write_assets, user, "You cannot move assets."
    )
    location = (location or "").strip()
    if not location:
        raise ValidationError("Location is required.")
    validate_location(location)
    before = snapshot(asset, ["location"])
    asset.location = location
    _commit(asset, before, user)
    logger.info("Asset %s moved to %s", asset.asset_id, location)
    return asset


def update_asset_check(asset: Asset, value: str, user) -> Asset:
    permissions.require(
        permissions.can_write_assets, user, "You cannot audit assets."
    )
    value = (value or "").strip()
    if value and value not in constants.ASSET_CHECK_CHOICES:
        raise ValidationError(f"Invalid asset check: {value}")
    before = snapshot(asset, ["asset_check"])
    asset.asset_check = value
    return _commit(asset, before, user)


def _conflicting(asset_id, serial_number):
    return Asset.objects.filter(
        Q(asset_id=asset_id) | Q(serial_number=serial_number)
    )


def update_asset(asset: Asset, changes: dict, user) -> Asset:
    """General edit of descriptive fields with a uniqueness re-check."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot edit assets."
    )
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Fields cannot be edited here: {', '.join(sorted(unknown))}."
        )
    before = snapshot(asset, EDITABLE_FIELDS)
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if field in DATE_FIELDS and value == "":
            value = None
        setattr(asset, field, value)
    validate_location(asset.location if "location" in changes else "")
    check_asset(
        asset,
        _conflicting(asset.asset_id, asset.serial_number),
        exclude_pk=asset.pk,
    )
    _commit(asset, before, user)
    logger.info(
        "Asset %s updated by %s: %s",
        asset.asset_id,
        actor_name(user),
        ", ".join(sorted(changes)),
    )
    return asset


def create_asset(data: dict, user) -> Asset:
    """Create an asset after required-field and uniqueness checks.

    An employee on the payload makes the new asset Assigned.
    """
    permissions.require(
        permissions.can_write_assets, user, "You cannot create assets."
    )
    record = {
        k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()
    }
    check_asset(
        record,
        _conflicting(record.get("asset_id", ""), record.get("serial_number", "")),
        require_location=True,
    )
    validate_location(record.get("location", ""))

    fields = {f: record[f] for f in EDITABLE_FIELDS if record.get(f) not in (None, "")}
    asset = Asset(**fields)
    if record.get("assigned_to") and record.get("employee_id"):
        asset.assigned_to = record["assigned_to"]
        asset.employee_id = record["employee_id"]
        asset.assigned_date = timezone.now()
        asset.status = constants.STATUS_ASSIGNED
    else:
        asset.status = record.get("status") or constants.STATUS_AVAILABLE
        validate_status(asset.status)
        if asset.status == constants.STATUS_ASSIGNED:
            raise ValidationError(
                "Employee name and employee ID are required for an "
                "assigned asset."
            )
    asset.recovery_amount = resolve_recovery(
        asset.status, record.get("recovery_amount")
    )
    actor = actor_name(user)
    asset.created_by = actor
    asset.updated_by = actor
    with db_transaction.atomic():
        asset.full_clean(validate_unique=False)
        asset.save()
        record_edit(asset, "created", None, asset.asset_id, user)
    logger.info("Asset %s created by %s", asset.asset_id, actor)
    return asset


def delete_asset(asset: Asset, user) -> None:
    """Hard-delete an asset and its edit history. Super Admin only."""
    permissions.require(
        permissions.can_delete_assets, user, "Only a Super Admin can delete assets."
    )
    asset_id = asset.asset_id
    with db_transaction.atomic():
        asset.edit_history.all().delete()
        asset.delete()
    logger.info("Asset %s deleted by %s", asset_id, actor_name(user))
