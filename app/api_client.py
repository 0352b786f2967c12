# ==============================================================================
# HTTP Client for the Climate Backend API
# ==============================================================================
# Purpose: Typed transport shim over the backend REST endpoints. One method per
#          endpoint; builds query strings, issues the request and validates the
#          JSON body. No retries and no caching happen here.
#
# Input Files:
#   - None (talks to the backend configured by CLIMATE_API_URL)
#
# Output:
#   - Pydantic models / plain dicts for each endpoint
#   - HttpError for any non-success response or transport failure
# ==============================================================================

# ================= IMPORTS =================

import logging
import time
from urllib.parse import quote
import requests
from config import API_BASE_URL, API_TIMEOUT_SECONDS, LOG_LEVEL
from models import (
    BSplineCoefficient,
    BSplineEvaluation,
    City,
    HealthStatus,
    MetricRange,
    TimeSeriesResponse,
)

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# ================= ERRORS =================

class HttpError(Exception):
    """Raised when the backend answers with a non-success status or is unreachable"""

    def __init__(self, message, status_code=None, status_text='', url=None):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.url = url

# ================= API CLIENT =================

class ClimateAPI:
    """Client for the climate/mortality backend"""

    def __init__(self, base_url=API_BASE_URL, timeout=API_TIMEOUT_SECONDS, session=None):
        """Initialize client with base URL, timeout and a reusable HTTP session"""

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path, params=None, what='data'):
        """Issue a GET request and return the decoded JSON body"""

        url = f"{self.base_url}{path}"
        start_time = time.time()

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise HttpError(f"Failed to fetch {what}: {e}", url=url) from e

        if not response.ok:
            logger.error(f"{url} returned {response.status_code} {response.reason}")
            raise HttpError(
                f"Failed to fetch {what}: {response.reason}",
                status_code=response.status_code,
                status_text=response.reason,
                url=url
            )

        elapsed = time.time() - start_time
        logger.info(f"Fetched {what} in {elapsed:.3f} seconds")

        return response.json()

    def get_regions(self, tolerance=None):
        """Fetch all regions as a GeoJSON FeatureCollection with optional simplification"""

        params = {}
        if tolerance:
            params['tolerance'] = tolerance

        return self._get('/api/v1/regions', params=params, what='regions')

    def get_metric_snapshot(self, metric, year, week):
        """Fetch metric values keyed by NUTS_ID for a specific year and week"""

        params = {'metric': metric, 'year': year, 'week': week}
        data = self._get('/api/v1/metrics/snapshot', params=params, what='metric snapshot')

        return {str(nuts_id): float(value) for nuts_id, value in data.items() if value is not None}

    def get_metric_range(self, metric):
        """Fetch global min/max range for a metric across all time periods"""

        data = self._get('/api/v1/metrics/range', params={'metric': metric}, what='metric range')
        return MetricRange.model_validate(data)

    def get_time_series(self, nuts_id, metric1, metric2=None):
        """Fetch time series data for a specific region"""

        params = {'metric1': metric1}
        if metric2:
            params['metric2'] = metric2

        data = self._get(f"/api/v1/timeseries/{quote(nuts_id)}", params=params, what='time series')
        return TimeSeriesResponse.model_validate(data)

    def health_check(self):
        """Check backend availability"""

        data = self._get('/health-check', what='health check')
        return HealthStatus.model_validate(data)

    def get_coefficients(self):
        """Fetch B-spline coefficients for every city and age group"""

        data = self._get('/api/v1/coefficients', what='coefficients')
        return [BSplineCoefficient.model_validate(row) for row in data]

    def get_cities(self):
        """Fetch unique city codes with names"""

        data = self._get('/api/v1/coefficients/cities', what='cities')
        return [City.model_validate(row) for row in data['cities']]

    def get_cities_by_nuts(self, nuts_id):
        """Fetch URAU cities belonging to a NUTS region"""

        data = self._get(
            f"/api/v1/coefficients/cities/by-nuts/{quote(nuts_id)}",
            what=f"cities for NUTS {nuts_id}"
        )
        return [City.model_validate(row) for row in data['cities']]

    def evaluate_bspline(self, urau_code, agegroup):
        """Evaluate the B-spline curve for a specific city and age group"""

        params = {'urau_code': urau_code, 'agegroup': agegroup}
        data = self._get('/api/v1/bspline/evaluate', params=params, what='B-spline evaluation')
        return BSplineEvaluation.model_validate(data)
