from django.conf import settings
from django.core.cache import caches
from django.db import transaction
from functools import wraps
import time
import logging

logger = logging.getLogger(__name__)

DEFAULT_CACHE = "default"


def cache_key(app_name, model_name, identifier="all", **kwargs):
    """Versioned cache key, e.g. ``v1:products:product:42``."""
    cache_version = getattr(settings, "CACHE_VERSION", 1)
    params = ":".join(f"{k}={v}" for k, v in sorted(kwargs.items()))
    base_key = f"{app_name}:{model_name}:{identifier}"
    if params:
        base_key = f"{base_key}:{params}"
    return f"v{cache_version}:{base_key}"


def simple_cache(key_func, timeout=300, cache_name=DEFAULT_CACHE):
    """
    Cache-aside decorator. ``key_func`` receives the call arguments and returns
    the cache key, so callers can invalidate the same key later. ``timeout`` may
    be a callable evaluated on every miss.

    Cache errors degrade to calling the function directly.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            key = key_func(*args, **kwargs)
            cache = caches[cache_name]

            try:
                result = cache.get(key)
            except Exception as e:
                logger.error(f"Cache error in {func.__name__}: {e}")
                return func(*args, **kwargs)

            if result is not None:
                logger.debug(f"Cache HIT {key} ({(time.time() - start_time) * 1000:.1f}ms)")
                return result

            result = func(*args, **kwargs)
            if result is not None:
                ttl = timeout() if callable(timeout) else timeout
                try:
                    cache.set(key, result, ttl)
                except Exception as e:
                    logger.error(f"Cache set failed for {key}: {e}")
            logger.debug(f"Cache MISS {key} ({(time.time() - start_time) * 1000:.1f}ms)")
            return result

        return wrapper

    return decorator


def invalidate_cache_keys(*keys, cache_name=DEFAULT_CACHE):
    """Delete the given keys. Returns False if the cache backend failed."""
    if not keys:
        return True
    try:
        caches[cache_name].delete_many(list(keys))
    except Exception as e:
        logger.error(f"Cache invalidation failed for {keys}: {e}")
        return False
    logger.debug(f"Invalidated cache keys {keys}")
    return True


def invalidate_on_commit(*keys, cache_name=DEFAULT_CACHE):
    """
    Delete keys now and again once the surrounding transaction commits, so a
    reader that refilled the cache mid-transaction cannot keep a stale value.
    """
    invalidate_cache_keys(*keys, cache_name=cache_name)
    transaction.on_commit(lambda: invalidate_cache_keys(*keys, cache_name=cache_name))
