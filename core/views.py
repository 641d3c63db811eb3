from django.http import JsonResponse

from .exceptions import NotFoundError, ValidationError


def error_response(exc):
    """JSON body for a service-layer error, with the matching HTTP status."""
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, ValidationError):
        status = 400
    else:
        status = 500

    payload = {'success': False, 'error': str(exc)}
    if isinstance(exc, ValidationError) and exc.field:
        payload['field'] = exc.field
    return JsonResponse(payload, status=status)


def health(request):
    return JsonResponse({'status': 'ok'})
