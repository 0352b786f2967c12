# ==============================================================================
# Query Cache with Staleness and In-Flight Deduplication
# ==============================================================================
# Purpose: Cache API responses keyed by (family, *params) tuples. Fresh entries
#          are served from memory, stale or missing entries are fetched once
#          even when several callbacks ask for the same key concurrently.
#
# Input Files:
#   - None (wraps arbitrary fetch callables)
#
# Output:
#   - Cached query results and in-flight status for the animation gate
# ==============================================================================

# ================= IMPORTS =================

import logging
import threading
import time
from concurrent.futures import Future
from config import LOG_LEVEL

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# ================= CACHE ENTRY =================

class CacheEntry:
    """Cached data with the monotonic time it was stored"""

    __slots__ = ('data', 'updated_at')

    def __init__(self, data, updated_at):
        self.data = data
        self.updated_at = updated_at

    def is_fresh(self, stale_time, now):
        if stale_time is None:
            return True
        return (now - self.updated_at) < stale_time

# ================= QUERY CACHE =================

class QueryCache:
    """Thread-safe get-or-fetch cache with one in-flight request per key"""

    def __init__(self, clock=time.monotonic):
        """Initialize empty cache; clock is injectable for tests"""

        self.clock = clock
        self.lock = threading.Lock()
        self.entries = {}       # key -> CacheEntry
        self.in_flight = {}     # key -> Future
        self.latest = {}        # family -> data of the most recent successful fetch

    def fetch(self, key, fetch_fn, stale_time=None, keep_previous=False):
        """Return cached data for key, fetching it if missing or stale"""

        family = key[0]

        with self.lock:
            entry = self.entries.get(key)
            if entry is not None and entry.is_fresh(stale_time, self.clock()):
                return entry.data

            future = self.in_flight.get(key)
            if future is not None:
                # Another caller owns this fetch
                if keep_previous and family in self.latest:
                    logger.debug(f"Serving previous {family} data while {key} loads")
                    return self.latest[family]
                owner = False
            else:
                future = Future()
                self.in_flight[key] = future
                owner = True

        if not owner:
            return future.result()

        try:
            data = fetch_fn()
        except Exception as e:
            with self.lock:
                self.in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self.lock:
            self.entries[key] = CacheEntry(data, self.clock())
            self.latest[family] = data
            self.in_flight.pop(key, None)
        future.set_result(data)

        return data

    def peek(self, key):
        """Return cached data for key regardless of staleness, or None"""

        with self.lock:
            entry = self.entries.get(key)
            return entry.data if entry is not None else None

    def is_fetching(self, family=None):
        """Check whether any request (optionally of one family) is in flight"""

        with self.lock:
            if family is None:
                return bool(self.in_flight)
            return any(key[0] == family for key in self.in_flight)

    def invalidate(self, key):
        """Drop a single cached entry"""

        with self.lock:
            self.entries.pop(key, None)

    def clear(self):
        """Drop every cached entry"""

        with self.lock:
            self.entries.clear()
            self.latest.clear()
        logger.info("Query cache cleared")
