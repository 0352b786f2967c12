# ==============================================================================
# Configuration Constants for Climate Mortality Dashboard
# ==============================================================================
# Purpose: Centralized configuration for backend access, map visualization,
#          caching policies, color schemes, metric metadata, and dashboard
#          appearance settings
#
# Input Files:
#   - .env (optional): CLIMATE_API_URL, MAPBOX_TOKEN and friends
#
# Output:
#   - Color mapping functions for choropleth visualization
#   - Map, cache and animation configuration parameters
#   - Dashboard styling constants
# ==============================================================================

# ================= IMPORTS =================

import os
from dotenv import load_dotenv

# ================= ENVIRONMENT =================

# Pull settings from a local .env file when one exists
load_dotenv()

API_BASE_URL = os.getenv('CLIMATE_API_URL', 'http://localhost:8000').rstrip('/')
MAPBOX_TOKEN = os.getenv('MAPBOX_TOKEN', '')
API_TIMEOUT_SECONDS = float(os.getenv('CLIMATE_API_TIMEOUT', '30'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
TIMEZONE = 'Europe/Madrid'

# ================= MAP CONFIGURATION =================

# Map display and interaction settings
MAP_CONFIG = {
    'center': {'lat': 47.5, 'lon': 13.0},   # Austria / central Europe
    'initial_zoom': 4,                      # Continent-wide view
    'map_style': 'white-bg',                # Blank style; basemap comes from the tile layer
    'tile_url': 'https://api.mapbox.com/styles/v1/mapbox/light-v11/tiles/256/{z}/{x}/{y}@2x?access_token=',
    'tile_attribution': '© Mapbox © OpenStreetMap',
    'region_tolerance': 0.001,              # Geometry simplification sent to backend
    'blend_start_zoom': 4.5,                # Countries fully visible at or below
    'blend_end_zoom': 5.5,                  # Fine regions fully visible at or above
    'opacity_nominal': 0.6,
    'opacity_hover': 0.8,
    'opacity_selected': 0.9,
    'outline_color': '#ffffff',
    'outline_width': 1,
    'outline_width_selected': 3
}

# Administrative levels encoded by NUTS_ID length
NUTS_COUNTRY_LENGTH = 2
NUTS_REGION_LENGTH = 5

# ================= CACHE CONFIGURATION =================

# Staleness per query family in seconds (None = never stale)
CACHE_CONFIG = {
    'regions_stale_seconds': 60 * 60,
    'snapshot_stale_seconds': 5 * 60,
    'range_stale_seconds': None,            # Ranges are time-invariant
    'timeseries_stale_seconds': 5 * 60,
    'cities_stale_seconds': 60 * 60,
    'coefficients_stale_seconds': 60 * 60,
    'bspline_stale_seconds': 5 * 60,
    'max_parallel_fetches': 5               # One per age group
}

# ================= ANIMATION / MONITORING =================

ANIMATION_CONFIG = {
    'interval_ms': 800,                     # Slow enough to let snapshots load
}

HEALTH_CONFIG = {
    'interval_seconds': 60,
}

# ================= METRICS =================

# Date range covered by the backend
DATE_RANGE = {
    'min_year': 1990,
    'max_year': 2100,
    'min_week': 1,
    'max_week': 52
}

# Available climate metrics in selector order
CLIMATE_METRICS = [
    'temp_era5_q50',
    'temp_rcp45',
    'temp_rcp85',
    'mortality_rate',
    'pm10',
    'O3',
    'NOx',
    'population_density',
]

DEFAULT_METRIC = 'temp_era5_q50'

# Human-readable labels, units and display precision
METRIC_CONFIG = {
    'temp_era5_q05': {'unit': '°C', 'label': 'Temperature (ERA5 Q05)', 'decimals': 1},
    'temp_era5_q50': {'unit': '°C', 'label': 'Mean Temperature (ERA5)', 'decimals': 1},
    'temp_era5_q95': {'unit': '°C', 'label': 'Temperature (ERA5 Q95)', 'decimals': 1},
    'temp_rcp45': {'unit': '°C', 'label': 'Temperature - RCP 4.5 (Moderate Emissions)', 'decimals': 1},
    'temp_rcp85': {'unit': '°C', 'label': 'Temperature - RCP 8.5 (High Emissions)', 'decimals': 1},
    'mortality_rate': {'unit': ' per 100k', 'label': 'Mortality Rate', 'decimals': 1},
    'pm10': {'unit': ' µg/m³', 'label': 'Particulate Matter (PM10)', 'decimals': 1},
    'O3': {'unit': ' µg/m³', 'label': 'Ozone (O₃)', 'decimals': 1},
    'NOx': {'unit': ' µg/m³', 'label': 'Nitrogen Oxides (NOx)', 'decimals': 1},
    'population_density': {'unit': ' per km²', 'label': 'Population Density', 'decimals': 0},
    'population': {'unit': '', 'label': 'Population', 'decimals': 0},
}

# Fallback color scale bounds when no range is available
DEFAULT_RANGE = (-20.0, 40.0)

# ================= RELATIVE RISK =================

AGE_GROUPS = ['20-44', '45-64', '65-74', '75-84', '85+']

AGE_GROUP_COLORS = {
    '20-44': '#3b82f6',  # Blue
    '45-64': '#10b981',  # Green
    '65-74': '#f59e0b',  # Orange
    '75-84': '#ef4444',  # Red
    '85+': '#8b5cf6',    # Purple
}

KEY_PERCENTILES = [1, 25, 50, 75, 99]

RR_AXIS_RANGE = [0.5, 2]

# ================= LIFE TABLES =================

# Relative increase of death probabilities per emissions scenario
EMISSION_SCENARIOS = {
    'rcp26': {'label': 'RCP 2.6 (Low Emissions)', 'uplift': 0.01},
    'rcp45': {'label': 'RCP 4.5 (Moderate Emissions)', 'uplift': 0.025},
    'rcp85': {'label': 'RCP 8.5 (High Emissions)', 'uplift': 0.05},
}

LIFE_TABLE_CONFIG = {
    'projection_year': 2050,
    'max_age': 100,
    'radix': 100000,
    'default_portfolio': 10000000,
    'default_annuity_share': 50,
    'default_scenario': 'rcp45',
    'default_adaptation': 0
}

# ================= DASHBOARD STYLING =================

# UI layout and positioning constants
UI_CONFIG = {
    'header_height': '70px',
    'panel_width': '720px',
    'legend_position': {'bottom': '24px', 'left': '24px'},
    'controls_position': {'top': '16px', 'right': '16px'},
    'chart_height': 400
}

# Color scheme for UI elements
UI_COLORS = {
    'background_light': '#ffffff',
    'background_muted': '#f9fafb',
    'background_info': '#eff6ff',
    'border_gray': '#e5e7eb',
    'text_dark': '#111827',
    'text_gray': '#6b7280',
    'text_info': '#1e40af',
    'link_blue': '#2563eb',
    'error_red': '#ef4444',
    'worse_bg': '#fee2e2',
    'better_bg': '#dcfce7',
    'brand_green': '#6DC201'
}

# ================= COLOR MAPPING =================

# Choropleth stops as (fraction of range, RGB)
COLOR_STOPS = [
    (0.0, [0, 0, 255]),      # Blue
    (1 / 3, [0, 255, 255]),  # Cyan
    (2 / 3, [255, 255, 0]),  # Yellow
    (1.0, [255, 0, 0])       # Red
]

NO_DATA_COLOR = '#1f2937'

def get_fill_color(value, min_value=DEFAULT_RANGE[0], max_value=DEFAULT_RANGE[1]):
    """Get hex fill color for a metric value with linear interpolation"""

    if value is None:
        return NO_DATA_COLOR

    # Position of the value within the range, clamped to the scale ends
    span = max_value - min_value
    if span <= 0:
        position = 0.0
    else:
        position = min(max((value - min_value) / span, 0.0), 1.0)

    # Find the two stops to interpolate between
    for i in range(len(COLOR_STOPS) - 1):
        pos1, color1 = COLOR_STOPS[i]
        pos2, color2 = COLOR_STOPS[i + 1]

        if pos1 <= position <= pos2:
            t = (position - pos1) / (pos2 - pos1)
            r = int(round(color1[0] + t * (color2[0] - color1[0])))
            g = int(round(color1[1] + t * (color2[1] - color1[1])))
            b = int(round(color1[2] + t * (color2[2] - color1[2])))
            return f'#{r:02x}{g:02x}{b:02x}'

    return NO_DATA_COLOR

# ================= METRIC FORMATTING =================

def get_metric_config(metric):
    """Return metric metadata, deriving a title-cased label for unknown metrics"""

    config = METRIC_CONFIG.get(metric)
    if config is not None:
        return config

    return {
        'unit': '',
        'label': metric.replace('_', ' ').title(),
        'decimals': 2
    }

def get_metric_label(metric):
    """Get the display label for a metric"""

    return get_metric_config(metric)['label']

def format_metric_value(metric, value):
    """Format a metric value with the appropriate unit and decimals"""

    if value is None:
        return 'No data'

    config = get_metric_config(metric)
    return f"{value:.{config['decimals']}f}{config['unit']}"

# ================= EXTERNAL RESOURCES =================

# External stylesheet URLs for typography and styling
EXTERNAL_STYLESHEETS = [
    'https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap'
]

# Custom HTML template with full-viewport layout
INDEX_STRING = '''
<!DOCTYPE html>
<html>
    <head>
        {%metas%}
        <title>{%title%}</title>
        {%favicon%}
        {%css%}
        <style>
            /* Global reset for full-viewport layout */
            html, body {
                margin: 0;
                padding: 0;
                height: 100%;
                overflow: hidden;
            }

            /* Slide-in animation for the region detail panel */
            @keyframes slideIn {
                from { opacity: 0; transform: translateX(20px); }
                to { opacity: 1; transform: translateX(0); }
            }

            #detail-panel {
                animation: slideIn 0.25s ease-out;
            }
        </style>
    </head>
    <body>
        {%app_entry%}
        <footer>
            {%config%}
            {%scripts%}
            {%renderer%}
        </footer>
    </body>
</html>
'''
