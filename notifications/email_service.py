# notifications/email_service.py
"""
Transactional email through Django's mail framework.
The transport comes from EMAIL_BACKEND / EMAIL_HOST in settings.
"""

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import BadHeaderError, EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def send_email(to, subject, html, text=None):
    """Send one HTML email with a plain-text part. Raises EmailDeliveryError on failure."""
    from_email = getattr(settings, 'DEFAULT_FROM_EMAIL', 'noreply@example.com')
    from_name  = getattr(settings, 'EMAIL_FROM_NAME', '')
    if from_name:
        from_email = f'{from_name} <{from_email}>'

    message = EmailMultiAlternatives(
        subject=subject,
        body=text or strip_tags(html),
        from_email=from_email,
        to=[to],
    )
    message.attach_alternative(html, 'text/html')

    try:
        sent = message.send(fail_silently=False)
    except (SMTPException, BadHeaderError, OSError) as e:
        raise EmailDeliveryError(f"Email delivery failed: {e}") from e

    if not sent:
        raise EmailDeliveryError(f"Email to {to} was not accepted")

    logger.info(f"Email '{subject}' sent to {to}")
    return sent
