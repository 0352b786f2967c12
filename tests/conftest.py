from collections import Counter

import pytest

from api_client import HttpError
from models import (
    BSplineCoefficient,
    BSplineEvaluation,
    City,
    HealthStatus,
    MetricRange,
    TimeSeriesResponse,
)

BASE_URL = 'http://backend.test'

REGIONS = {
    'type': 'FeatureCollection',
    'features': [
        {'type': 'Feature', 'properties': {'NUTS_ID': 'AT', 'name': 'Österreich'},
         'geometry': {'type': 'Polygon', 'coordinates': [[[9, 46], [17, 46], [17, 49], [9, 49], [9, 46]]]}},
        {'type': 'Feature', 'properties': {'NUTS_ID': 'DE', 'name': 'Deutschland'},
         'geometry': {'type': 'Polygon', 'coordinates': [[[6, 47], [15, 47], [15, 55], [6, 55], [6, 47]]]}},
        {'type': 'Feature', 'properties': {'NUTS_ID': 'AT130', 'name': 'Wien'},
         'geometry': {'type': 'Polygon', 'coordinates': [[[16, 48], [16.6, 48], [16.6, 48.4], [16, 48.4], [16, 48]]]}},
        {'type': 'Feature', 'properties': {'NUTS_ID': 'AT211', 'name': 'Klagenfurt-Villach'},
         'geometry': {'type': 'Polygon', 'coordinates': [[[13, 46.4], [14.5, 46.4], [14.5, 47], [13, 47], [13, 46.4]]]}},
    ]
}

def make_curve(agegroup='20-44', urau_code='AT001C', points=101):
    """Parabolic relative risk curve over percentiles 0..points-1, minimum (RR=1) at the 50th"""

    data = [
        {'temperature': -10 + 0.35 * p, 'percentile': float(p), 'value': 1 + 0.0004 * (p - 50) ** 2}
        for p in range(points)
    ]
    return BSplineEvaluation.model_validate({
        'urau_code': urau_code,
        'agegroup': agegroup,
        'knots': {'p10': -6.5, 'p75': 16.25, 'p90': 21.5},
        'mmt': {'temperature': 7.5, 'percentile': 50.0, 'relative_risk': 1.0},
        'extreme_rr': {'rr_at_p01': 1.96, 'rr_at_p99': 1.96, 'temp_at_p01': -9.65, 'temp_at_p99': 24.65},
        'data': data
    })

# ================= FAKE HTTP =================

class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason='OK'):
        self.payload = payload
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self.payload

class FakeSession:
    """Stands in for requests.Session, answering by URL path"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None):
        path = url[len(BASE_URL):]
        self.calls.append((path, params))
        response = self.routes[path]
        if isinstance(response, Exception):
            raise response
        return response

# ================= FAKE API =================

class FakeAPI:
    """In-memory backend with call counting and switchable failures"""

    def __init__(self):
        self.calls = Counter()
        self.fail = set()

    def _record(self, name):
        self.calls[name] += 1
        if name in self.fail:
            raise HttpError(f"Failed to fetch {name}: Internal Server Error",
                            status_code=500, status_text='Internal Server Error')

    def get_regions(self, tolerance=None):
        self._record('regions')
        return REGIONS

    def get_metric_snapshot(self, metric, year, week):
        self._record('snapshot')
        return {'AT': 5.0, 'AT130': 0.0}

    def get_metric_range(self, metric):
        self._record('range')
        return MetricRange(metric=metric, min_value=-10.0, max_value=30.0)

    def get_time_series(self, nuts_id, metric1, metric2=None):
        self._record('timeseries')
        return TimeSeriesResponse.model_validate({
            'nuts_id': nuts_id,
            'metric1': metric1,
            'metric2': metric2,
            'data': [
                {'year': 2010, 'week': week, 'metric1_value': 10.0 + week,
                 'metric2_value': 20.0 + week if metric2 else None}
                for week in range(1, 11)
            ]
        })

    def health_check(self):
        self._record('health')
        return HealthStatus(status='healthy')

    def get_coefficients(self):
        self._record('coefficients')
        return [
            BSplineCoefficient(urau_code=code, agegroup=group, b1=0.1, b2=-0.2, b3=0.05, b4=0.3, b5=0.6)
            for code in ('AT001C', 'DE001C') for group in ('20-44', '85+')
        ]

    def get_cities(self):
        self._record('cities')
        return [City(code='AT001C', name='Wien'), City(code='DE001C', name='Berlin')]

    def get_cities_by_nuts(self, nuts_id):
        self._record('cities_by_nuts')
        return [city for city in self.get_cities() if city.code[:2] == nuts_id[:2]]

    def evaluate_bspline(self, urau_code, agegroup):
        self._record('bspline')
        return make_curve(agegroup, urau_code)

# ================= FIXTURES =================

@pytest.fixture
def curve():
    return make_curve()

@pytest.fixture
def fake_api():
    return FakeAPI()

@pytest.fixture
def fake_session():
    def build(routes):
        return FakeSession(routes)
    return build

@pytest.fixture
def fake_response():
    return FakeResponse
