import copy

import pytest

from config import DEFAULT_RANGE, MAP_CONFIG, NO_DATA_COLOR, get_fill_color
from map_renderer import (
    build_map_figure,
    event_region,
    feature_opacity,
    hover_opacities,
    layer_blend,
    merge_region_values,
    parse_relayout,
    resolve_range,
    split_by_level,
)
from models import MetricRange
from conftest import REGIONS


def test_merge_keeps_missing_values_as_no_data():
    original = copy.deepcopy(REGIONS)
    merged = merge_region_values(REGIONS, {'AT': 5.0, 'AT130': 0.0})
    values = {f['properties']['NUTS_ID']: f['properties']['value'] for f in merged['features']}

    assert values == {'AT': 5.0, 'DE': None, 'AT130': 0.0, 'AT211': None}
    assert all(f['id'] == f['properties']['NUTS_ID'] for f in merged['features'])
    assert REGIONS == original


def test_split_by_level():
    countries, regions = split_by_level(REGIONS['features'])
    assert [f['properties']['NUTS_ID'] for f in countries] == ['AT', 'DE']
    assert [f['properties']['NUTS_ID'] for f in regions] == ['AT130', 'AT211']


def test_default_color_range():
    assert resolve_range(None) == DEFAULT_RANGE == (-20.0, 40.0)
    assert resolve_range(MetricRange(metric='pm10', min_value=2.0, max_value=80.0)) == (2.0, 80.0)


def test_fill_color_stops_over_default_range():
    assert get_fill_color(-20) == '#0000ff'
    assert get_fill_color(0) == '#00ffff'
    assert get_fill_color(20) == '#ffff00'
    assert get_fill_color(40) == '#ff0000'
    assert get_fill_color(100) == '#ff0000'
    assert get_fill_color(None) == NO_DATA_COLOR
    # Zero is a value, not missing data
    assert get_fill_color(0.0) != NO_DATA_COLOR


def test_layer_blend_is_bounded_and_monotonic():
    zooms = [3 + 0.1 * i for i in range(40)]
    blends = [layer_blend(zoom) for zoom in zooms]

    for country, region in blends:
        assert 0.0 <= country <= 1.0
        assert 0.0 <= region <= 1.0
        assert country + region == pytest.approx(1.0)

    regions = [region for _, region in blends]
    assert regions == sorted(regions)

    assert layer_blend(MAP_CONFIG['blend_start_zoom']) == (1.0, 0.0)
    assert layer_blend(MAP_CONFIG['blend_end_zoom']) == (0.0, 1.0)
    assert layer_blend(5.0) == (pytest.approx(0.5), pytest.approx(0.5))


def test_feature_opacity_by_state():
    assert feature_opacity('AT130') == pytest.approx(0.6)
    assert feature_opacity('AT130', hovered_region='AT130') == pytest.approx(0.8)
    assert feature_opacity('AT130', hovered_region='AT130', selected_region='AT130') == pytest.approx(0.9)
    assert feature_opacity('AT130', layer_factor=0.5) == pytest.approx(0.3)
    assert feature_opacity('AT130', selected_region='AT130', layer_factor=0.0) == 0.0


def test_map_figure_separates_values_and_no_data():
    fig = build_map_figure(REGIONS, {'AT': 5.0, 'AT130': 0.0}, 'temp_era5_q50', None,
                           zoom=4, center=(13.0, 47.5), selected_region='AT')
    traces = {trace.name: trace for trace in fig.data}

    assert set(traces) == {'countries', 'countries-no-data', 'regions', 'regions-no-data'}
    assert list(traces['regions'].z) == [0.0]
    assert list(traces['regions-no-data'].locations) == ['AT211']
    assert (traces['countries'].zmin, traces['countries'].zmax) == DEFAULT_RANGE

    # Zoomed out: countries drawn, fine regions hidden
    assert traces['countries'].visible is True
    assert traces['regions'].visible is False
    assert list(traces['countries'].marker.opacity) == [pytest.approx(0.9)]
    assert fig.layout.map.zoom == 4
    # No token: no basemap layer, and no empty access token written
    assert not fig.layout.map.layers


def test_event_helpers():
    assert event_region({'points': [{'location': 'AT130'}]}) == 'AT130'
    assert event_region(None) is None
    assert event_region({'points': []}) is None

    assert parse_relayout({'autosize': True}) is None
    assert parse_relayout({'map.zoom': 5.1}) == (5.1, None)
    assert parse_relayout({'map.zoom': 6, 'map.center': {'lon': 16.3, 'lat': 48.2}}) == (6.0, (16.3, 48.2))


def test_zoomed_out_countries_use_nominal_opacity():
    country, region = layer_blend(4.0)
    assert feature_opacity('AT', layer_factor=country) == pytest.approx(MAP_CONFIG['opacity_nominal'])
    assert feature_opacity('AT130', layer_factor=region) == 0.0

    country, region = layer_blend(6.0)
    assert feature_opacity('AT', layer_factor=country) == 0.0
    assert feature_opacity('AT130', layer_factor=region) == pytest.approx(MAP_CONFIG['opacity_nominal'])


def test_map_figure_with_token_adds_basemap():
    fig = build_map_figure(REGIONS, {'AT': 5.0}, 'temp_era5_q50', None,
                           zoom=6, center=(13.0, 47.5), token='pk.test')

    assert {trace.type for trace in fig.data} == {'choroplethmap'}
    assert fig.layout.map.style == MAP_CONFIG['map_style']
    assert fig.layout.map.center.lon == 13.0

    layer = fig.layout.map.layers[0]
    assert layer.sourcetype == 'raster'
    assert layer.below == 'traces'
    assert layer.source[0].endswith('access_token=pk.test')


def test_hover_opacities_follow_trace_order():
    snapshot = {'AT': 5.0, 'AT130': 0.0}
    fig = build_map_figure(REGIONS, snapshot, 'temp_era5_q50', None,
                           zoom=6, center=(13.0, 47.5), hovered_region='AT130')
    opacities = hover_opacities(REGIONS, snapshot, 6, hovered_region='AT130')

    assert opacities == [list(trace.marker.opacity) for trace in fig.data]
    assert [trace.name for trace in fig.data][2] == 'regions'
    assert opacities[2] == [pytest.approx(MAP_CONFIG['opacity_hover'])]
