# core/analytics.py
import logging

logger = logging.getLogger(__name__)


def track_event(context, event_name, properties=None):
    """Record an analytics event. No-op unless the store context enables analytics."""
    if context is None or not context.analytics_enabled:
        return False

    logger.info(
        f"Analytics event {event_name} [{context.analytics_tracking_id}]",
        extra={'analytics_properties': properties or {}},
    )
    return True


def track_page_view(context, path):
    return track_event(context, 'page_view', {'path': path})
