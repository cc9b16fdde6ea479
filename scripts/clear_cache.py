import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from voice_translator.config.redis import close_redis, get_redis
from voice_translator.config.settings import settings
from voice_translator.services.core import CacheLayer
from voice_translator.services.exceptions import CacheUnavailableError


async def clear_cache():
    print("🧹 Clearing voice translation cache...")
    cache = CacheLayer(await get_redis(settings), default_ttl=settings.CACHE_TTL_SEC)
    try:
        deleted = await cache.clear()
    except CacheUnavailableError as e:
        print(f"❌ {e}")
        return 1
    finally:
        await close_redis()
    print(f"✅ Removed {deleted} cached entries.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(clear_cache()))
