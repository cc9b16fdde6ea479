import sys
from pathlib import Path

import fakeredis
import pytest

# Add project root (1 level up from tests/) to sys.path so tests can import 'voice_translator'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

# Let tests import helpers.py directly
tests_dir = Path(__file__).resolve().parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from voice_translator.services.core import CacheLayer  # noqa: E402


@pytest.fixture
def fake_redis():
    """In-memory async Redis; each test gets its own server."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())


@pytest.fixture
def cache(fake_redis):
    return CacheLayer(fake_redis, default_ttl=3600)
