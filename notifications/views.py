# notifications/views.py
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from core.exceptions import NotFoundError
from .services import get_notifications_for_recipient, mark_as_read


def _notification_payload(notification):
    return {
        'id':         notification.pk,
        'type':       notification.type,
        'title':      notification.title,
        'body':       notification.body,
        'order_id':   notification.order_id,
        'booking_id': notification.booking_id,
        'is_read':    notification.is_read,
        'created_at': notification.created_at.isoformat(),
    }


# ==================== USER NOTIFICATIONS ====================
@login_required
def notification_list(request):
    """List the logged-in customer's notifications"""
    unread_only = request.GET.get('unread') in ('1', 'true', 'yes')
    notifications = get_notifications_for_recipient(
        recipient_email=request.user.email,
        unread_only=unread_only,
        limit=100,
    )
    return JsonResponse({
        'success':       True,
        'unread_count':  sum(1 for n in notifications if not n.is_read),
        'notifications': [_notification_payload(n) for n in notifications],
    })


@login_required
@require_POST
def notification_mark_read(request, notification_id):
    try:
        notification = mark_as_read(notification_id, recipient_email=request.user.email)
    except NotFoundError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=404)

    return JsonResponse({'success': True, 'notification': _notification_payload(notification)})
