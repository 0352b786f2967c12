# ==============================================================================
# Data Access Layer for the Climate Dashboard
# ==============================================================================
# Purpose: Pair each backend endpoint with its query key and caching policy so
#          views ask for data by parameters and never talk to HTTP directly
#
# Input Files:
#   - None (fetches from the backend through the API client)
#
# Output:
#   - Regions, metric snapshots/ranges, time series, cities, coefficients and
#     B-spline curves, cached per CACHE_CONFIG
# ==============================================================================

# ================= IMPORTS =================

import logging
from concurrent.futures import ThreadPoolExecutor
import psutil
from pydantic import ValidationError
from api_client import HttpError
from config import AGE_GROUPS, CACHE_CONFIG, LOG_LEVEL, MAP_CONFIG

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# Errors treated as "could not load" by the views
DATA_ERRORS = (HttpError, ValidationError)

SNAPSHOT_FAMILY = 'metric-snapshot'

# ================= DATA MANAGER =================

class DataManager:
    """Cached access to every backend query used by the dashboard"""

    def __init__(self, api, cache):
        """Initialize data manager with an API client and a query cache"""

        self.api = api
        self.cache = cache
        self.executor = ThreadPoolExecutor(max_workers=CACHE_CONFIG['max_parallel_fetches'])

    def get_regions(self, tolerance=None):
        """Region geometry; fetched once per tolerance and kept for an hour"""

        def fetch():
            ram_start = psutil.Process().memory_info().rss
            regions = self.api.get_regions(tolerance)
            ram_end = psutil.Process().memory_info().rss
            logger.info(
                f"Loaded {len(regions.get('features', []))} regions "
                f"(process memory +{(ram_end - ram_start) / 1024**2:.1f} MiB)"
            )
            return regions

        return self.cache.fetch(('regions', tolerance), fetch, CACHE_CONFIG['regions_stale_seconds'])

    def get_metric_snapshot(self, metric, year, week):
        """Metric values by region; previous snapshot is served while a new one loads"""

        return self.cache.fetch(
            (SNAPSHOT_FAMILY, metric, year, week),
            lambda: self.api.get_metric_snapshot(metric, year, week),
            CACHE_CONFIG['snapshot_stale_seconds'],
            keep_previous=True
        )

    def is_snapshot_loading(self):
        """True while any metric snapshot request is in flight"""

        return self.cache.is_fetching(SNAPSHOT_FAMILY)

    def cached_map_data(self, metric, year, week):
        """Regions and snapshot already in the cache, without fetching; None if either is missing"""

        regions = self.cache.peek(('regions', MAP_CONFIG['region_tolerance']))
        snapshot = self.cache.peek((SNAPSHOT_FAMILY, metric, year, week))
        if regions is None or snapshot is None:
            return None
        return regions, snapshot

    def get_metric_range(self, metric):
        """Global range of a metric, or None when the backend has none"""

        try:
            return self.cache.fetch(
                ('metric-range', metric),
                lambda: self.api.get_metric_range(metric),
                CACHE_CONFIG['range_stale_seconds']
            )
        except DATA_ERRORS as e:
            logger.warning(f"No range for {metric}, using default color scale: {e}")
            return None

    def get_time_series(self, nuts_id, metric1, metric2=None):
        """Weekly series for a region; None when no region is selected"""

        if not nuts_id:
            return None

        return self.cache.fetch(
            ('timeseries', nuts_id, metric1, metric2),
            lambda: self.api.get_time_series(nuts_id, metric1, metric2),
            CACHE_CONFIG['timeseries_stale_seconds']
        )

    def get_cities(self):
        return self.cache.fetch(('cities',), self.api.get_cities, CACHE_CONFIG['cities_stale_seconds'])

    def get_cities_by_nuts(self, nuts_id):
        if not nuts_id:
            return []

        return self.cache.fetch(
            ('cities', nuts_id),
            lambda: self.api.get_cities_by_nuts(nuts_id),
            CACHE_CONFIG['cities_stale_seconds']
        )

    def get_coefficients(self, urau_code=None):
        """B-spline coefficients, optionally restricted to one city"""

        coefficients = self.cache.fetch(
            ('coefficients',), self.api.get_coefficients, CACHE_CONFIG['coefficients_stale_seconds']
        )
        if urau_code is None:
            return coefficients
        return [row for row in coefficients if row.urau_code == urau_code]

    def get_bspline(self, urau_code, agegroup):
        """Relative risk curve for one city and age group"""

        return self.cache.fetch(
            ('bspline', urau_code, agegroup),
            lambda: self.api.evaluate_bspline(urau_code, agegroup),
            CACHE_CONFIG['bspline_stale_seconds']
        )

    def get_bspline_all_age_groups(self, urau_code):
        """Curves for every age group, fetched concurrently, in AGE_GROUPS order"""

        futures = [
            self.executor.submit(self.get_bspline, urau_code, agegroup)
            for agegroup in AGE_GROUPS
        ]
        # Any failure propagates, as a single failed curve invalidates the comparison
        return [future.result() for future in futures]

    def shutdown(self):
        self.executor.shutdown(wait=False)
