import time
import uuid

from django.core.cache import caches
from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse

from .logger import get_logger

logger = get_logger(__name__).bind(component='common', layer='health')


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _db_check(alias='default'):
    started = time.perf_counter()
    try:
        with connections[alias].cursor() as cursor:
            cursor.execute('SELECT 1')
        latency = _elapsed_ms(started)
        logger.debug('Database health check succeeded', alias=alias, latency_ms=latency)
        return {'status': 'ok', 'latency_ms': latency}
    except OperationalError as e:
        logger.warning('Database health check encountered operational error', alias=alias, error=str(e))
        return {'status': 'fail', 'error': str(e)}
    except Exception as e:  # driver bugs and the like still mean "not ready"
        logger.error('Database health check failed unexpectedly', alias=alias, error=str(e), exception=e.__class__.__name__)
        return {'status': 'fail', 'error': str(e), 'exception': e.__class__.__name__}


def _cache_check(alias='default'):
    """Round-trip a probe key through the cache backing the rate limiter."""
    started = time.perf_counter()
    key = f'health:probe:{uuid.uuid4().hex}'
    try:
        cache = caches[alias]
        cache.set(key, 'ok', timeout=5)
        value = cache.get(key)
        cache.delete(key)
    except Exception as e:
        logger.warning('Cache health check failed', alias=alias, error=str(e))
        return {'status': 'fail', 'error': str(e)}
    if value != 'ok':
        logger.warning('Cache health check returned unexpected value', alias=alias)
        return {'status': 'fail', 'error': 'probe value not returned'}
    return {'status': 'ok', 'latency_ms': _elapsed_ms(started)}


def live_health(request):
    """Liveness probe: process is up and can service requests."""
    logger.debug('Liveness probe served')
    return JsonResponse({'status': 'alive'})


def ready_health(request):
    """Readiness probe: verifies the database and the cache."""
    checks = {
        'database': _db_check(),
        'cache': _cache_check(),
    }
    failing = [name for name, r in checks.items() if r.get('status') == 'fail']
    overall_status = 'ok' if not failing else 'degraded'
    http_status = 200 if not failing else 503
    logger.info('Readiness probe evaluated', status=overall_status, failing_components=failing)
    return JsonResponse({'status': overall_status, 'checks': checks}, status=http_status)
