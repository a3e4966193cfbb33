"""Dispatch and receipt notification emails."""

import logging

from django.conf import settings

from accounts.email import send_branded_email

from ..models import Asset, Employee

logger = logging.getLogger(__name__)


def dispatch_subject(asset: Asset) -> str:
    return f"Asset Dispatch - {asset.name} ({asset.asset_id})"


def receive_subject(asset: Asset) -> str:
    return f"Asset Received - {asset.name} ({asset.asset_id})"


def employee_email(employee_id: str) -> str:
    if not employee_id:
        return ""
    employee = Employee.objects.filter(employee_id=employee_id).first()
    return employee.email if employee else ""


def notify_dispatch(asset: Asset, email: str = "") -> bool:
    """Tell the employee an asset was dispatched to them.

    Returns True when an email was queued.
    """
    if not settings.ASSET_NOTIFICATIONS_ENABLED:
        return False
    recipient = email or employee_email(asset.employee_id)
    if not recipient:
        logger.info(
            "No email on file for employee %s; dispatch notice for %s skipped",
            asset.employee_id,
            asset.asset_id,
        )
        return False
    try:
        send_branded_email(
            template_name="asset_dispatch",
            context={"asset": asset},
            subject=dispatch_subject(asset),
            recipient=recipient,
        )
    except Exception:
        logger.exception(
            "Failed to queue dispatch email for %s to %s",
            asset.asset_id,
            recipient,
        )
        return False
    return True


def notify_received(asset: Asset) -> bool:
    """Tell the asset team a returned asset was received."""
    if not settings.ASSET_NOTIFICATIONS_ENABLED or not settings.ASSET_TEAM_EMAIL:
        return False
    try:
        send_branded_email(
            template_name="asset_received",
            context={"asset": asset},
            subject=receive_subject(asset),
            recipient=settings.ASSET_TEAM_EMAIL,
        )
    except Exception:
        logger.exception(
            "Failed to queue receipt email for %s", asset.asset_id
        )
        return False
    return True
