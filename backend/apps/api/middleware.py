import time
import uuid

from django.utils.deprecation import MiddlewareMixin
from apps.common import get_logger

logger = get_logger(__name__).bind(component='api', layer='middleware')

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestLoggingMiddleware(MiddlewareMixin):
    """
    Tags every request with a correlation id and logs one line per response
    with method, path, status and duration.
    """

    def process_request(self, request):
        request.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request._started_at = time.perf_counter()

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        started = getattr(request, '_started_at', None)
        duration_ms = (
            round((time.perf_counter() - started) * 1000, 2) if started is not None else None
        )
        if request_id:
            response[REQUEST_ID_HEADER] = request_id
        status_code = getattr(response, 'status_code', None)
        log = logger.warning if status_code and status_code >= 500 else logger.info
        log(
            'Request completed',
            request_id=request_id,
            method=request.method,
            path=request.path,
            status=status_code,
            duration_ms=duration_ms,
        )
        return response
