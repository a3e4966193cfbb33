"""Pending assign/return requests submitted by Operators."""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from .. import constants
from ..models import Asset, PendingRequest
from . import permissions, state
from .history import actor_name
from .notifications import employee_email

logger = logging.getLogger(__name__)

# Payload fields an approver may correct before applying a request
OVERRIDE_FIELDS = {
    PendingRequest.TYPE_ASSIGN: ["assign_to", "employee_id", "recovery_amount"],
    PendingRequest.TYPE_RETURN: [
        "return_status",
        "return_location",
        "return_remarks",
        "asset_condition",
        "configuration",
        "received_by",
        "recovery_amount",
    ],
}


def _ensure_no_open_request(asset: Asset) -> None:
    if PendingRequest.objects.filter(
        asset=asset, status=PendingRequest.STATUS_PENDING
    ).exists():
        raise ValidationError(
            f"Asset {asset.asset_id} already has a pending request."
        )


def submit_assign_request(
    asset: Asset,
    employee_name: str,
    employee_id: str,
    user,
    status: str = constants.STATUS_ASSIGNED,
    recovery_amount=None,
) -> PendingRequest:
    """Queue an assignment for approval instead of applying it."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot assign assets."
    )
    employee_name = (employee_name or "").strip()
    employee_id = (employee_id or "").strip()
    if not employee_name or not employee_id:
        raise ValidationError("Employee name and employee ID are required.")
    if asset.status != constants.STATUS_AVAILABLE:
        raise ValidationError(
            f"Asset {asset.asset_id} is {asset.status}; only available "
            f"assets can be assigned."
        )
    if status not in (constants.STATUS_ASSIGNED, constants.STATUS_SOLD):
        raise ValidationError(f"'{status}' is not a valid assignment status.")
    amount = state.resolve_recovery(status, recovery_amount)
    _ensure_no_open_request(asset)

    request = PendingRequest.objects.create(
        request_type=PendingRequest.TYPE_ASSIGN,
        asset=asset,
        requested_by=user,
        assign_to=employee_name,
        employee_id=employee_id,
        employee_email=employee_email(employee_id),
        return_status=status,
        recovery_amount=amount,
    )
    logger.info(
        "Assign request %s for %s submitted by %s",
        request.pk,
        asset.asset_id,
        actor_name(user),
    )
    return request


def submit_return_request(
    asset: Asset,
    user,
    status: str = constants.STATUS_AVAILABLE,
    location=None,
    remarks=None,
    asset_condition=None,
    received_by=None,
    configuration=None,
    recovery_amount=None,
) -> PendingRequest:
    """Queue a return for approval instead of applying it."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot return assets."
    )
    if asset.status != constants.STATUS_ASSIGNED:
        raise ValidationError(
            f"Asset {asset.asset_id} is not assigned and cannot be returned."
        )
    status = status or constants.STATUS_AVAILABLE
    state.validate_status(status)
    location = (location or "").strip() or asset.location
    state.validate_location(location)
    amount = state.resolve_recovery(status, recovery_amount)
    _ensure_no_open_request(asset)

    request = PendingRequest.objects.create(
        request_type=PendingRequest.TYPE_RETURN,
        asset=asset,
        requested_by=user,
        return_status=status,
        return_location=location,
        return_remarks=remarks or "",
        asset_condition=asset_condition or "",
        received_by=(received_by or "").strip() or actor_name(user),
        configuration=configuration or "",
        recovery_amount=amount,
    )
    logger.info(
        "Return request %s for %s submitted by %s",
        request.pk,
        asset.asset_id,
        actor_name(user),
    )
    return request


def _ensure_pending(request: PendingRequest) -> None:
    if request.is_terminal:
        raise ValidationError(
            f"Request is already {request.status} and cannot be changed."
        )


def _apply_overrides(request: PendingRequest, overrides: dict) -> None:
    allowed = OVERRIDE_FIELDS[request.request_type]
    unknown = set(overrides) - set(allowed)
    if unknown:
        raise ValidationError(
            f"Fields cannot be edited on this request: "
            f"{', '.join(sorted(unknown))}."
        )
    for field, value in overrides.items():
        if field == "recovery_amount":
            value = state.parse_recovery_amount(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(request, field, value)


def approve_request(request: PendingRequest, user, overrides=None) -> PendingRequest:
    """Apply the requested mutation to the asset and close the request."""
    permissions.require(
        permissions.can_approve_requests,
        user,
        "Only Super Admin and Admin can approve requests.",
    )
    _ensure_pending(request)
    if overrides:
        _apply_overrides(request, overrides)

    asset = request.asset
    with db_transaction.atomic():
        if request.request_type == PendingRequest.TYPE_ASSIGN:
            state.assign_asset(
                asset,
                request.assign_to,
                request.employee_id,
                user,
                status=request.return_status or constants.STATUS_ASSIGNED,
                recovery_amount=request.recovery_amount,
                email=request.employee_email,
            )
        else:
            state.return_asset(
                asset,
                request.received_by or actor_name(user),
                user,
                status=request.return_status or constants.STATUS_AVAILABLE,
                location=request.return_location,
                remarks=request.return_remarks,
                asset_condition=request.asset_condition,
                configuration=request.configuration,
                recovery_amount=request.recovery_amount,
            )
        request.status = PendingRequest.STATUS_APPROVED
        request.approved_by = user
        request.approved_at = timezone.now()
        request.save()

    logger.info(
        "Request %s (%s %s) approved by %s",
        request.pk,
        request.request_type,
        asset.asset_id,
        actor_name(user),
    )
    return request


def reject_request(request: PendingRequest, user, reason: str = "") -> PendingRequest:
    permissions.require(
        permissions.can_approve_requests,
        user,
        "Only Super Admin and Admin can reject requests.",
    )
    _ensure_pending(request)
    request.status = PendingRequest.STATUS_REJECTED
    request.approved_by = user
    request.approved_at = timezone.now()
    request.rejection_reason = (reason or "").strip()
    request.save(
        update_fields=[
            "status",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "updated_at",
        ]
    )
    logger.info("Request %s rejected by %s", request.pk, actor_name(user))
    return request


def cancel_request(request: PendingRequest, user) -> PendingRequest:
    """Withdraw a request. Only the original requester may do this."""
    if request.requested_by_id is None or request.requested_by_id != user.pk:
        logger.warning(
            "%s tried to cancel request %s they did not submit",
            actor_name(user),
            request.pk,
        )
        raise PermissionDenied("You can only cancel your own requests.")
    _ensure_pending(request)
    request.status = PendingRequest.STATUS_CANCELLED
    request.cancelled_by = user
    request.cancelled_at = timezone.now()
    request.save(
        update_fields=["status", "cancelled_by", "cancelled_at", "updated_at"]
    )
    logger.info("Request %s cancelled by %s", request.pk, actor_name(user))
    return request


def pending_count() -> int:
    return PendingRequest.objects.filter(
        status=PendingRequest.STATUS_PENDING
    ).count()
