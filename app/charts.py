# ==============================================================================
# Detail Panel Charts for Selected Regions and Cities
# ==============================================================================
# Purpose: Build the Plotly figures shown in the region detail panel and the
#          exposure-response explorer: time series, metric correlation scatter
#          and B-spline relative risk curves, plus their text summaries
#
# Input Files:
#   - None (render from API response models)
#
# Output:
#   - Plotly figures and display strings
# ==============================================================================

# ================= IMPORTS =================

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from config import (
    AGE_GROUP_COLORS,
    KEY_PERCENTILES,
    RR_AXIS_RANGE,
    UI_COLORS,
    UI_CONFIG,
    get_metric_config,
    get_metric_label,
)
from percentiles import percentile_tick_labels

# Line colors for the first and second metric
SERIES_COLORS = ['#8884d8', '#82ca9d']
DEFAULT_CURVE_COLOR = '#2563eb'
MMT_COLOR = '#16a34a'
REFERENCE_COLOR = '#6b7280'
GRID_COLOR = '#d1d5db'

# ================= SHARED HELPERS =================

def _base_layout(fig, height):
    """Apply the common white chart styling"""

    fig.update_layout(
        height=height,
        margin={'l': 60, 'r': 30, 't': 20, 'b': 50},
        plot_bgcolor=UI_COLORS['background_light'],
        paper_bgcolor=UI_COLORS['background_muted'],
        font={'family': 'Inter', 'size': 11},
        legend={'orientation': 'h', 'y': -0.2}
    )
    fig.update_xaxes(gridcolor=UI_COLORS['border_gray'])
    fig.update_yaxes(gridcolor=UI_COLORS['border_gray'])
    return fig

def placeholder_figure(message, height=UI_CONFIG['chart_height']):
    """Empty figure carrying a centered message"""

    fig = go.Figure()
    fig.add_annotation(text=message, showarrow=False, x=0.5, y=0.5,
                       xref='paper', yref='paper', font={'color': UI_COLORS['text_gray'], 'size': 13})
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    return _base_layout(fig, height)

# ================= TIME SERIES =================

def time_series_frame(ts):
    """Flatten a time series response into a DataFrame with a YYYY-Www label"""

    frame = pd.DataFrame([point.model_dump() for point in ts.data],
                         columns=['year', 'week', 'metric1_value', 'metric2_value'])
    frame['date'] = frame['year'].astype(str) + '-W' + frame['week'].astype(str).str.zfill(2)
    return frame

def uses_secondary_axis(metric1, metric2):
    """Second metric gets its own axis when the units differ"""

    if not metric2:
        return False
    return get_metric_config(metric1)['unit'] != get_metric_config(metric2)['unit']

def time_series_figure(ts, height=UI_CONFIG['chart_height']):
    """Line chart of one or two metrics over time"""

    frame = time_series_frame(ts)
    secondary = uses_secondary_axis(ts.metric1, ts.metric2)
    fig = make_subplots(specs=[[{'secondary_y': secondary}]])

    fig.add_trace(go.Scatter(
        x=frame['date'], y=frame['metric1_value'], mode='lines',
        name=get_metric_label(ts.metric1),
        line={'color': SERIES_COLORS[0], 'width': 2}
    ), secondary_y=False)

    if ts.metric2:
        second = frame.dropna(subset=['metric2_value'])
        fig.add_trace(go.Scatter(
            x=second['date'], y=second['metric2_value'], mode='lines',
            name=get_metric_label(ts.metric2),
            line={'color': SERIES_COLORS[1], 'width': 2}
        ), secondary_y=secondary)

    fig.update_yaxes(title_text=get_metric_label(ts.metric1), secondary_y=False)
    if secondary:
        fig.update_yaxes(title_text=get_metric_label(ts.metric2), secondary_y=True, showgrid=False)
    fig.update_xaxes(nticks=12)

    return _base_layout(fig, height)

def scatter_figure(ts, height=UI_CONFIG['chart_height']):
    """Scatter of metric1 against metric2 for the same weeks"""

    if not ts.metric2:
        return placeholder_figure('Please select a second metric for scatter plot', height)

    frame = time_series_frame(ts).dropna(subset=['metric2_value'])

    fig = go.Figure(go.Scatter(
        x=frame['metric1_value'], y=frame['metric2_value'], mode='markers',
        marker={'color': SERIES_COLORS[0], 'size': 6, 'opacity': 0.7},
        customdata=frame['date'],
        hovertemplate='%{customdata}<br>%{x:.2f}, %{y:.2f}<extra></extra>'
    ))
    fig.update_xaxes(title_text=get_metric_label(ts.metric1))
    fig.update_yaxes(title_text=get_metric_label(ts.metric2))

    return _base_layout(fig, height)

def summary_rows(ts):
    """Label/value pairs for the region summary tab"""

    rows = [
        ('Region ID', ts.nuts_id),
        ('Primary Metric', get_metric_label(ts.metric1)),
    ]
    if ts.metric2:
        rows.append(('Secondary Metric', get_metric_label(ts.metric2)))
    rows.append(('Data Points', str(len(ts.data))))

    if ts.data:
        frame = time_series_frame(ts)
        rows.append((f"Average {get_metric_label(ts.metric1)}", f"{frame['metric1_value'].mean():.2f}"))
        if ts.metric2 and frame['metric2_value'].notna().any():
            rows.append((f"Average {get_metric_label(ts.metric2)}", f"{frame['metric2_value'].mean():.2f}"))

    return rows

# ================= RELATIVE RISK =================

def _curve_trace(curve, name, color, percentile_mode):
    """Line trace for one B-spline evaluation"""

    temperatures = [point.temperature for point in curve.data]
    values = [point.value for point in curve.data]
    percentiles = [point.percentile for point in curve.data]

    if percentile_mode:
        template = '%{customdata:.1f}th %ile (%{x:.2f}°C)<br>RR: %{y:.3f}<extra>' + name + '</extra>'
    else:
        template = '%{x:.2f}°C<br>RR: %{y:.3f}<extra>' + name + '</extra>'

    return go.Scatter(
        x=temperatures, y=values, customdata=percentiles, mode='lines', name=name,
        line={'color': color, 'width': 2, 'shape': 'spline'},
        hovertemplate=template
    )

def relative_risk_figure(curves, percentile_mode=False, height=UI_CONFIG['chart_height']):
    """Relative risk curve for one age group, or all age groups overlaid"""

    if not curves:
        return placeholder_figure('Select a city to view the B-spline curve.', height)

    fig = go.Figure()
    single = len(curves) == 1

    for curve in curves:
        color = AGE_GROUP_COLORS.get(curve.agegroup, DEFAULT_CURVE_COLOR)
        name = 'Relative Risk' if single else f"{curve.agegroup} years"
        fig.add_trace(_curve_trace(curve, name, color, percentile_mode))

    # Ticks sit at key-percentile temperatures of the first curve
    ticks, labels = percentile_tick_labels(curves[0].data, KEY_PERCENTILES, percentile_mode)

    fig.add_hline(y=1, line_dash='dash', line_color=REFERENCE_COLOR,
                  annotation_text='RR = 1', annotation_position='right',
                  annotation_font={'color': REFERENCE_COLOR, 'size': 11})

    if single:
        mmt = curves[0].mmt
        fig.add_vline(x=mmt.temperature, line_dash='dash', line_color=MMT_COLOR,
                      annotation_text=f"MMT: {mmt.temperature:.1f}°C", annotation_position='top left',
                      annotation_font={'color': MMT_COLOR, 'size': 11})

    if percentile_mode:
        for tick in ticks:
            fig.add_vline(x=tick, line_dash='dot', line_color=GRID_COLOR)

    temperatures = [point.temperature for curve in curves for point in curve.data]
    fig.update_xaxes(
        title_text='Temperature Percentile' if percentile_mode else 'Temperature (°C)',
        range=[min(temperatures), max(temperatures)],
        tickmode='array', tickvals=ticks, ticktext=labels
    )
    fig.update_yaxes(title_text='Relative Risk', range=RR_AXIS_RANGE)
    fig.update_layout(showlegend=not single, hovermode='closest')

    return _base_layout(fig, height)

# ================= TEXT SUMMARIES =================

def mmt_summary(curve):
    """MMT and extreme relative risk lines for a single curve"""

    lines = [f"MMT: {curve.mmt.temperature:.2f}°C ({curve.mmt.percentile:.1f}th %ile)"]

    extreme = curve.extreme_rr
    if extreme.rr_at_p01 is not None and extreme.rr_at_p99 is not None:
        lines.append(
            f"Extreme RR: Cold (1st %ile): {extreme.rr_at_p01:.2f} • "
            f"Heat (99th %ile): {extreme.rr_at_p99:.2f}"
        )

    return lines

def mmt_by_age(curves):
    """MMT temperature per age group for the comparison view"""

    return [(curve.agegroup, f"{curve.mmt.temperature:.1f}°C") for curve in curves]

def hover_readout(temperature, percentile, relative_risk, agegroup, mmt_temperature):
    """Sentence describing the risk at a hovered point of the curve"""

    return (
        f"At {temperature:.1f}°C ({percentile:.1f}th percentile), a person aged {agegroup} years "
        f"is at {relative_risk:.2f}× the risk of dying due to temperature-related causes "
        f"compared to the optimal temperature ({mmt_temperature:.1f}°C, MMT)."
    )
