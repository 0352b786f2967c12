# ==============================================================================
# Selection State for the Climate Dashboard
# ==============================================================================
# Purpose: Single mutable record of the current selection (region, metric,
#          year, week and map viewport), changed only through its setters and
#          passed explicitly to whoever needs it
#
# Input Files:
#   - None
#
# Output:
#   - SelectionStore container serializable into a browser dcc.Store
# ==============================================================================

# ================= IMPORTS =================

from config import DEFAULT_METRIC, MAP_CONFIG

# ================= DEFAULTS =================

DEFAULT_SELECTION = {
    'selected_region': None,
    'selected_metric': DEFAULT_METRIC,
    'selected_year': 2010,
    'selected_week': 26,
    'zoom': MAP_CONFIG['initial_zoom'],
    'center': (MAP_CONFIG['center']['lon'], MAP_CONFIG['center']['lat'])
}

def _resolve(value, previous):
    """Apply a literal or an updater function of the previous value"""

    if callable(value):
        return value(previous)
    return value

# ================= STORE =================

class SelectionStore:
    """Current dashboard selection shared by the map, controls and detail panel"""

    def __init__(self, selected_region=None, selected_metric=DEFAULT_SELECTION['selected_metric'],
                 selected_year=DEFAULT_SELECTION['selected_year'],
                 selected_week=DEFAULT_SELECTION['selected_week'],
                 zoom=DEFAULT_SELECTION['zoom'], center=DEFAULT_SELECTION['center']):
        self.selected_region = selected_region
        self.selected_metric = selected_metric
        self.selected_year = selected_year
        self.selected_week = selected_week
        self.zoom = zoom
        self.center = tuple(center)

    # Setters

    def set_selected_region(self, nuts_id):
        self.selected_region = nuts_id

    def set_selected_metric(self, metric):
        self.selected_metric = metric

    def set_selected_year(self, year):
        """Set year from a literal or a function of the previous year"""

        self.selected_year = _resolve(year, self.selected_year)

    def set_selected_week(self, week):
        """Set week from a literal or a function of the previous week"""

        self.selected_week = _resolve(week, self.selected_week)

    def set_map_view(self, zoom, center):
        self.zoom = zoom
        self.center = tuple(center)

    def reset_selection(self):
        """Clear the selected region, keeping metric, time and viewport"""

        self.selected_region = None

    # Serialization for dcc.Store

    def to_dict(self):
        return {
            'selected_region': self.selected_region,
            'selected_metric': self.selected_metric,
            'selected_year': self.selected_year,
            'selected_week': self.selected_week,
            'zoom': self.zoom,
            'center': list(self.center)
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a store from dcc.Store data, falling back to defaults"""

        values = dict(DEFAULT_SELECTION)
        if data:
            values.update({k: v for k, v in data.items() if k in DEFAULT_SELECTION})
        return cls(**values)

    def __repr__(self):
        return f"SelectionStore({self.to_dict()})"
