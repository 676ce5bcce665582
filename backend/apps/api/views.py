from django.http import JsonResponse

from apps.common import get_logger

logger = get_logger(__name__).bind(component='api', layer='view')


def not_found(request, exception=None):
    """URLs outside the router still answer with the JSON error envelope."""
    logger.info('No route matched', method=request.method, path=request.path)
    return JsonResponse(
        {
            'error': {
                'code': 'NOT_FOUND',
                'message': 'Resource not found',
                'status': 404,
            }
        },
        status=404,
    )
