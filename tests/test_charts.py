import pytest

from charts import (
    hover_readout,
    mmt_by_age,
    mmt_summary,
    relative_risk_figure,
    scatter_figure,
    summary_rows,
    time_series_figure,
    time_series_frame,
    uses_secondary_axis,
)
from config import AGE_GROUP_COLORS, AGE_GROUPS, RR_AXIS_RANGE
from conftest import FakeAPI, make_curve


def test_single_curve_marks_mmt_and_unit_risk(curve):
    fig = relative_risk_figure([curve])

    assert len(fig.data) == 1
    assert fig.layout.showlegend is False
    # RR = 1 reference plus the MMT marker
    assert len(fig.layout.shapes) == 2
    assert list(fig.layout.yaxis.range) == RR_AXIS_RANGE
    assert len(fig.layout.xaxis.tickvals) == 5


def test_percentile_mode_adds_reference_lines(curve):
    fig = relative_risk_figure([curve], percentile_mode=True)

    assert list(fig.layout.xaxis.ticktext) == ['1', '25', '50', '75', '99']
    assert fig.layout.xaxis.title.text == 'Temperature Percentile'
    assert len(fig.layout.shapes) == 2 + 5


def test_all_age_groups_draw_distinct_lines():
    curves = [make_curve(group) for group in AGE_GROUPS]
    fig = relative_risk_figure(curves)

    assert [trace.name for trace in fig.data] == [f"{group} years" for group in AGE_GROUPS]
    colors = [trace.line.color for trace in fig.data]
    assert colors == [AGE_GROUP_COLORS[group] for group in AGE_GROUPS]
    assert len(set(colors)) == 5
    assert fig.layout.showlegend is True


def test_no_curve_gives_placeholder():
    fig = relative_risk_figure([])
    assert len(fig.data) == 0
    assert 'Select a city' in fig.layout.annotations[0].text


def test_mmt_text(curve):
    lines = mmt_summary(curve)
    assert lines[0] == 'MMT: 7.50°C (50.0th %ile)'
    assert 'Heat (99th %ile): 1.96' in lines[1]

    partial = curve.model_copy(update={'extreme_rr': curve.extreme_rr.model_copy(update={'rr_at_p99': None})})
    assert len(mmt_summary(partial)) == 1

    assert mmt_by_age([curve]) == [('20-44', '7.5°C')]


def test_hover_readout():
    text = hover_readout(30.24, 98.7, 1.84, '85+', 21.0)
    assert text.startswith('At 30.2°C (98.7th percentile), a person aged 85+ years')
    assert '1.84×' in text
    assert '(21.0°C, MMT)' in text


def test_time_series_frame_labels_weeks():
    ts = FakeAPI().get_time_series('AT130', 'temp_era5_q50')
    frame = time_series_frame(ts)
    assert frame['date'].iloc[0] == '2010-W01'
    assert frame['date'].iloc[-1] == '2010-W10'


def test_secondary_axis_only_for_different_units():
    assert not uses_secondary_axis('temp_era5_q50', None)
    assert not uses_secondary_axis('temp_era5_q50', 'temp_rcp85')
    assert uses_secondary_axis('temp_era5_q50', 'pm10')


def test_time_series_and_scatter_figures():
    ts = FakeAPI().get_time_series('AT130', 'temp_era5_q50', 'pm10')

    assert len(time_series_figure(ts).data) == 2
    scatter = scatter_figure(ts)
    assert list(scatter.data[0].x) == pytest.approx([11.0 + i for i in range(10)])


def test_scatter_requires_second_metric():
    ts = FakeAPI().get_time_series('AT130', 'temp_era5_q50')
    fig = scatter_figure(ts)
    assert len(fig.data) == 0
    assert 'second metric' in fig.layout.annotations[0].text


def test_summary_rows():
    ts = FakeAPI().get_time_series('AT130', 'temp_era5_q50', 'pm10')
    rows = dict(summary_rows(ts))
    assert rows['Region ID'] == 'AT130'
    assert rows['Data Points'] == '10'
    assert rows['Average Mean Temperature (ERA5)'] == '15.50'
