# ==============================================================================
# Choropleth Map Rendering for NUTS Regions
# ==============================================================================
# Purpose: Merge metric snapshots into region geometry and build the Plotly
#          choropleth figure, including the color scale, hover/selection
#          opacity and the zoom-dependent cross-fade between country-level and
#          fine-region polygons
#
# Input Files:
#   - None (regions and snapshots are provided by the data manager)
#
# Output:
#   - Plotly figure for the dcc.Graph map component
#   - Helpers for reading map events (click, hover, relayout)
# ==============================================================================

# ================= IMPORTS =================

import logging
import time
import plotly.graph_objects as go
from config import (
    COLOR_STOPS,
    DEFAULT_RANGE,
    LOG_LEVEL,
    MAP_CONFIG,
    NO_DATA_COLOR,
    NUTS_COUNTRY_LENGTH,
    NUTS_REGION_LENGTH,
    format_metric_value,
)

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# ================= DATA MERGING =================

def merge_region_values(regions, snapshot):
    """Return a new FeatureCollection with each region's current metric value injected"""

    snapshot = snapshot or {}
    features = []

    for feature in regions.get('features', []):
        nuts_id = feature['properties']['NUTS_ID']
        features.append({
            **feature,
            'id': nuts_id,
            'properties': {
                **feature['properties'],
                # Absent values stay None so they render as "no data", never as zero
                'value': snapshot.get(nuts_id)
            }
        })

    return {'type': 'FeatureCollection', 'features': features}

def split_by_level(features):
    """Split features into country-level and fine-region lists by NUTS_ID length"""

    countries = [f for f in features if len(f['properties']['NUTS_ID']) == NUTS_COUNTRY_LENGTH]
    regions = [f for f in features if len(f['properties']['NUTS_ID']) == NUTS_REGION_LENGTH]
    return countries, regions

# ================= COLOR SCALE =================

def resolve_range(metric_range):
    """Global (min, max) for the color scale, defaulting when no range is known"""

    if metric_range is None:
        return DEFAULT_RANGE
    return (metric_range.min_value, metric_range.max_value)

def color_scale():
    """Plotly colorscale with the four stops spread evenly over [zmin, zmax]"""

    return [[position, '#{:02x}{:02x}{:02x}'.format(*rgb)] for position, rgb in COLOR_STOPS]

# ================= OPACITY =================

def _clamp(value, low=0.0, high=1.0):
    return max(low, min(high, value))

def layer_blend(zoom, start=MAP_CONFIG['blend_start_zoom'], end=MAP_CONFIG['blend_end_zoom']):
    """Opacity factors (country, region) cross-fading linearly over the zoom window"""

    if zoom is None:
        zoom = MAP_CONFIG['initial_zoom']

    if end <= start:
        region_factor = 1.0 if zoom >= end else 0.0
    else:
        region_factor = _clamp((zoom - start) / (end - start))

    return 1.0 - region_factor, region_factor

def feature_opacity(nuts_id, hovered_region=None, selected_region=None, layer_factor=1.0):
    """Fill opacity for one polygon from its hover/selection state and layer factor"""

    if nuts_id == selected_region:
        base = MAP_CONFIG['opacity_selected']
    elif nuts_id == hovered_region:
        base = MAP_CONFIG['opacity_hover']
    else:
        base = MAP_CONFIG['opacity_nominal']

    return _clamp(base * layer_factor)

# ================= FIGURE CONSTRUCTION =================

def layer_groups(regions, snapshot, zoom):
    """(level, layer_factor, features, no_data) for every trace, in figure order"""

    merged = merge_region_values(regions, snapshot)
    countries, fine_regions = split_by_level(merged['features'])
    country_factor, region_factor = layer_blend(zoom)

    groups = []
    for level, features, factor in (('countries', countries, country_factor),
                                    ('regions', fine_regions, region_factor)):
        valued = [f for f in features if f['properties']['value'] is not None]
        missing = [f for f in features if f['properties']['value'] is None]

        # Empty subsets get no trace
        for subset, no_data in ((valued, False), (missing, True)):
            if subset:
                groups.append((level, factor, subset, no_data))

    return groups

def group_opacity(features, layer_factor, hovered_region=None, selected_region=None):
    return [
        feature_opacity(f['properties']['NUTS_ID'], hovered_region, selected_region, layer_factor)
        for f in features
    ]

def build_layer_trace(level, layer_factor, features, no_data, metric, value_range,
                      hovered_region=None, selected_region=None):
    """Build one valued or "no data" choropleth trace for an administrative level"""

    zmin, zmax = value_range

    ids = [f['properties']['NUTS_ID'] for f in features]
    names = [f['properties'].get('name') or f['properties']['NUTS_ID'] for f in features]
    values = [f['properties']['value'] for f in features]

    return go.Choroplethmap(
        name=f"{level}-no-data" if no_data else level,
        geojson={'type': 'FeatureCollection', 'features': features},
        featureidkey='properties.NUTS_ID',
        locations=ids,
        z=[0] * len(features) if no_data else values,
        zmin=0 if no_data else zmin,
        zmax=1 if no_data else zmax,
        colorscale=[[0, NO_DATA_COLOR], [1, NO_DATA_COLOR]] if no_data else color_scale(),
        showscale=False,
        marker={
            'opacity': group_opacity(features, layer_factor, hovered_region, selected_region),
            'line': {
                'color': MAP_CONFIG['outline_color'],
                'width': [
                    MAP_CONFIG['outline_width_selected'] if i == selected_region
                    else MAP_CONFIG['outline_width']
                    for i in ids
                ]
            }
        },
        customdata=[[name, format_metric_value(metric, value)] for name, value in zip(names, values)],
        hovertemplate='<b>%{customdata[0]}</b> (%{location})<br>%{customdata[1]}<extra></extra>',
        visible=layer_factor > 0
    )

def base_tile_layer(token):
    """Mapbox raster basemap drawn beneath the choropleth traces"""

    return {
        'below': 'traces',
        'sourcetype': 'raster',
        'sourceattribution': MAP_CONFIG['tile_attribution'],
        'source': [MAP_CONFIG['tile_url'] + token]
    }

def build_map_figure(regions, snapshot, metric, metric_range, zoom, center,
                     hovered_region=None, selected_region=None, token=''):
    """Build the complete choropleth figure for the current selection"""

    start_time = time.time()
    value_range = resolve_range(metric_range)
    groups = layer_groups(regions, snapshot, zoom)

    fig = go.Figure()
    for level, factor, features, no_data in groups:
        fig.add_trace(build_layer_trace(level, factor, features, no_data, metric, value_range,
                                        hovered_region, selected_region))

    map_layout = {
        'style': MAP_CONFIG['map_style'],
        'center': {'lon': center[0], 'lat': center[1]},
        'zoom': zoom
    }
    # Without a token the polygons still draw on a blank background
    if token:
        map_layout['layers'] = [base_tile_layer(token)]

    fig.update_layout(
        map=map_layout,
        margin={'l': 0, 'r': 0, 't': 0, 'b': 0},
        showlegend=False,
        # Keep the user's camera across data updates
        uirevision='climate-map'
    )

    elapsed = time.time() - start_time
    logger.debug(f"Built map with {sum(len(g[2]) for g in groups)} regions in {elapsed:.3f} seconds")

    return fig

def hover_opacities(regions, snapshot, zoom, hovered_region=None, selected_region=None):
    """Marker opacity arrays per trace, matching the trace order of build_map_figure"""

    return [
        group_opacity(features, factor, hovered_region, selected_region)
        for _, factor, features, _ in layer_groups(regions, snapshot, zoom)
    ]

# ================= EVENT PARSING =================

def event_region(event_data):
    """NUTS_ID of the polygon in a clickData/hoverData payload, or None"""

    if not event_data or not event_data.get('points'):
        return None
    return event_data['points'][0].get('location')

def parse_relayout(relayout_data):
    """Extract (zoom, center) from map relayoutData; None when the view did not move"""

    if not relayout_data or 'map.zoom' not in relayout_data:
        return None

    # Center is None when only the zoom was reported
    center = relayout_data.get('map.center')
    if center:
        center = (float(center['lon']), float(center['lat']))

    return float(relayout_data['map.zoom']), center
