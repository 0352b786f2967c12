# ==============================================================================
# Response Models for the Climate Backend API
# ==============================================================================
# Purpose: Typed shapes of the JSON documents returned by the backend, used by
#          the API client to validate responses before they reach the views
#
# Input Files:
#   - None (defines data shapes)
#
# Output:
#   - Pydantic models for metric ranges, time series, cities, coefficients,
#     B-spline evaluations and health status
# ==============================================================================

# ================= IMPORTS =================

from typing import Dict, List, Optional
from pydantic import BaseModel, field_validator

# Region code -> metric value for one (metric, year, week)
MetricSnapshot = Dict[str, float]

# ================= METRICS =================

class MetricRange(BaseModel):
    metric: str
    min_value: float
    max_value: float

# ================= TIME SERIES =================

# A single weekly sample for one region
class TimeSeriesDataPoint(BaseModel):
    year: int
    week: int
    metric1_value: float
    metric2_value: Optional[float] = None

class TimeSeriesResponse(BaseModel):
    nuts_id: str
    metric1: str
    metric2: Optional[str] = None
    data: List[TimeSeriesDataPoint]

# ================= CITIES / COEFFICIENTS =================

class City(BaseModel):
    code: str
    name: Optional[str] = None

    @property
    def display_name(self):
        return f"{self.code} ({self.name})" if self.name else self.code

class BSplineCoefficient(BaseModel):
    urau_code: str
    agegroup: str
    b1: float
    b2: float
    b3: float
    b4: float
    b5: float

# ================= B-SPLINE EVALUATION =================

class Knots(BaseModel):
    p10: float
    p75: float
    p90: float

class MMTPoint(BaseModel):
    temperature: float
    percentile: float
    relative_risk: float

    @field_validator('relative_risk')
    @classmethod
    def check_unit_risk(cls, value):
        # The curve is centered at the MMT, so RR there is 1 by definition
        if abs(value - 1.0) > 1e-6:
            raise ValueError(f'relative risk at MMT must be 1.0, got {value}')
        return value

class ExtremeRR(BaseModel):
    rr_at_p01: Optional[float] = None
    rr_at_p99: Optional[float] = None
    temp_at_p01: float
    temp_at_p99: float

class CurvePoint(BaseModel):
    temperature: float
    percentile: float
    value: float

class BSplineEvaluation(BaseModel):
    """Exposure-response curve for one city and age group, centered at the MMT"""

    urau_code: str
    agegroup: str
    knots: Knots
    mmt: MMTPoint
    extreme_rr: ExtremeRR
    data: List[CurvePoint]

    @field_validator('data')
    @classmethod
    def check_ascending(cls, points):
        temperatures = [point.temperature for point in points]
        if temperatures != sorted(temperatures):
            raise ValueError('curve samples must be ordered by ascending temperature')
        return points

# ================= HEALTH =================

class HealthStatus(BaseModel):
    status: str
