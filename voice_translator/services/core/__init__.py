"""
Core Infrastructure Module

This module contains shared infrastructure components used by the engine:
- CacheLayer: Content-addressed Redis cache for every pipeline stage
- StatsCollector: Throughput, latency and quality statistics

Usage:
    from voice_translator.services.core import CacheLayer, StatsCollector
"""

from voice_translator.services.core.cache import CacheLayer, content_hash
from voice_translator.services.core.stats import StatsCollector

__all__ = [
    # Cache
    "CacheLayer",
    "content_hash",
    # Stats
    "StatsCollector",
]
