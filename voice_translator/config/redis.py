from typing import Optional
import redis.asyncio as redis
from voice_translator.config.settings import Settings, settings as default_settings

_redis: Optional[redis.Redis] = None


def build_redis_url(settings: Settings) -> str:
    url = f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
    if settings.REDIS_PASSWORD:
        url = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
    return url


async def get_redis(settings: Optional[Settings] = None) -> redis.Redis:
    global _redis
    if _redis is None:
        _redis = redis.Redis.from_url(
            build_redis_url(settings or default_settings),
            decode_responses=False,
        )
    return _redis


async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
