# ==============================================================================
# Percentile Lookup and Axis Tick Utilities
# ==============================================================================
# Purpose: Locate curve samples nearest to a target percentile or temperature
#          and derive axis ticks / reference lines for relative risk charts
#
# Input Files:
#   - None
#
# Output:
#   - Nearest-sample lookups and tick positions/labels
# ==============================================================================

# ================= IMPORTS =================

import numpy as np
from config import KEY_PERCENTILES

# ================= FIELD ACCESS =================

def _field(sample, name):
    """Read a field from a model object or a mapping"""

    if isinstance(sample, dict):
        return sample[name]
    return getattr(sample, name)

def _nearest(samples, name, target):
    """Return the first sample minimizing |sample.name - target|"""

    if len(samples) == 0:
        raise ValueError('cannot search an empty sample sequence')

    values = np.array([_field(sample, name) for sample in samples], dtype=float)

    # argmin returns the first index on ties
    return samples[int(np.argmin(np.abs(values - target)))]

# ================= LOOKUPS =================

def find_closest_percentile(samples, target_percentile):
    """Return the sample whose percentile is closest to the target"""

    return _nearest(samples, 'percentile', target_percentile)

def find_closest_temperature(samples, temperature):
    """Return the sample whose temperature is closest to the given one"""

    return _nearest(samples, 'temperature', temperature)

# ================= TICKS =================

def generate_temperature_ticks(samples, targets=KEY_PERCENTILES):
    """Temperatures of the samples nearest to each key percentile"""

    return [_field(find_closest_percentile(samples, p), 'temperature') for p in targets]

def percentile_tick_labels(samples, targets=KEY_PERCENTILES, percentile_mode=True):
    """Tick values (temperatures) with labels as percentiles or temperatures"""

    points = [find_closest_percentile(samples, p) for p in targets]
    ticks = [_field(point, 'temperature') for point in points]

    if percentile_mode:
        labels = [f"{_field(point, 'percentile'):.0f}" for point in points]
    else:
        labels = [f"{tick:.1f}" for tick in ticks]

    return ticks, labels
