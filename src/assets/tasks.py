"""Celery tasks for the assets app."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def refresh_warranty_statuses():
    """Nightly: re-derive the stored warranty status as dates roll over."""
    from django.db import transaction

    from .models import Asset, warranty_status_for

    updated = 0
    assets = Asset.objects.only("pk", "warranty_end", "warranty_status")
    with transaction.atomic():
        for asset in assets.iterator():
            status = warranty_status_for(asset.warranty_end)
            if status != asset.warranty_status:
                Asset.objects.filter(pk=asset.pk).update(warranty_status=status)
                updated += 1
    if updated:
        logger.info("Refreshed warranty status on %d assets", updated)
    return updated
