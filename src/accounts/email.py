"""Notification email utility for ITAM."""

import logging

from django.conf import settings
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def send_branded_email(
    template_name: str,
    context: dict,
    subject: str,
    recipient: str | list[str],
) -> None:
    """Render and dispatch a site email via Celery.

    Args:
        template_name: Template base name (e.g. "asset_dispatch"). Will load
            ``emails/{template_name}.html`` and ``emails/{template_name}.txt``.
        context: Template context variables specific to this email.
        subject: Email subject line.
        recipient: Single email address or list of addresses.
    """
    full_context = {"site_name": settings.SITE_NAME, **context}

    html_body = render_to_string(f"emails/{template_name}.html", full_context)
    text_body = render_to_string(f"emails/{template_name}.txt", full_context)

    recipient_list = [recipient] if isinstance(recipient, str) else recipient
    recipient_list = [r for r in recipient_list if r]
    if not recipient_list:
        logger.info("Skipping '%s': no recipients", subject)
        return

    from accounts.tasks import send_email_task

    send_email_task.delay(
        subject=subject,
        text_body=text_body,
        html_body=html_body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=recipient_list,
    )
