# app/services/redis_store.py - module-level facade over the pooled client
from app.infrastructure.observability.logging import get_logger
from app.services.redis_client import fast_redis

logger = get_logger(__name__)


async def ping() -> bool:
    return await fast_redis.ping()


async def get(key: str) -> str | None:
    return await fast_redis.get(key)


async def set_with_ttl(key: str, value: str, ttl_s: int | None = None) -> bool:
    return await fast_redis.set_with_ttl(key, value, ttl_s)


async def delete(key: str) -> bool:
    return await fast_redis.delete(key)


async def health_check() -> dict:
    """Ping plus a set/get/delete round trip."""
    try:
        if not await ping():
            return {
                "healthy": False,
                "ping": False,
                "error": "Redis ping failed",
                "service": "redis_store",
            }

        test_key = "health_check_test"
        test_value = "ok"

        set_success = await set_with_ttl(test_key, test_value, 10)
        get_success = set_success and await get(test_key) == test_value
        if set_success:
            await delete(test_key)

        return {
            "healthy": set_success and get_success,
            "ping": True,
            "set_get_operations": set_success and get_success,
            "service": "redis_store",
        }

    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return {"healthy": False, "error": str(e), "service": "redis_store"}
