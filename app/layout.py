# ==============================================================================
# Dashboard Layout Components for the Climate Mortality Dashboard
# ==============================================================================
# Purpose: Define HTML/CSS layout structure and styling for the interactive
#          climate dashboard including header, choropleth map, legend, time
#          controls, region detail panel and the exposure-response explorer
#
# Input Files:
#   - None (generates HTML/CSS structure)
#
# Output:
#   - Dash HTML components for complete dashboard layout
# ==============================================================================

# ================= IMPORTS =================

from dash import dcc, html
from config import (
    AGE_GROUPS,
    ANIMATION_CONFIG,
    CLIMATE_METRICS,
    DATE_RANGE,
    EMISSION_SCENARIOS,
    HEALTH_CONFIG,
    LIFE_TABLE_CONFIG,
    NO_DATA_COLOR,
    UI_COLORS,
    UI_CONFIG,
    format_metric_value,
    get_fill_color,
    get_metric_label,
)
from store import SelectionStore

# ================= SHARED STYLES =================

PANEL_STYLE = {
    'backgroundColor': UI_COLORS['background_light'],
    'borderRadius': '8px',
    'boxShadow': '0 4px 12px rgba(0,0,0,0.15)',
    'padding': '16px'
}

LABEL_STYLE = {
    'display': 'block',
    'fontSize': '12px',
    'fontWeight': '500',
    'color': UI_COLORS['text_dark'],
    'marginBottom': '4px'
}

INFO_STYLE = {
    'backgroundColor': UI_COLORS['background_info'],
    'color': UI_COLORS['text_info'],
    'borderRadius': '6px',
    'padding': '12px',
    'fontSize': '12px'
}

MESSAGE_STYLE = {
    'textAlign': 'center',
    'padding': '48px 0',
    'color': UI_COLORS['text_gray'],
    'fontSize': '13px'
}

def labeled(label, component, label_id=None):
    """Wrap a control with a small label above it"""

    return html.Div([
        html.Label(label, id=label_id, style=LABEL_STYLE) if label_id else html.Label(label, style=LABEL_STYLE),
        component
    ], style={'marginBottom': '12px'})

def metric_options(metrics=CLIMATE_METRICS):
    return [{'label': get_metric_label(metric), 'value': metric} for metric in metrics]

def message(text, error=False):
    """Centered placeholder / error text"""

    style = dict(MESSAGE_STYLE)
    if error:
        style['color'] = UI_COLORS['error_red']
    return html.Div(text, style=style)

# ================= HEADER =================

def create_header():
    """Create header with application title, current selection and navigation"""

    return html.Div([
        html.Div([
            html.H1("Climate & Mortality Explorer",
                    style={'fontSize': '1.5rem', 'fontWeight': '700', 'margin': '0'}),
            # Current selection summary (populated by callbacks)
            html.Div("Loading...", id='selection-display',
                     style={'fontSize': '0.875rem', 'color': UI_COLORS['text_gray'], 'marginTop': '0.25rem'})
        ]),
        html.Div([
            dcc.Link("Map", href='/', style={'marginRight': '1rem', 'color': UI_COLORS['link_blue']}),
            dcc.Link("View B-Spline Coefficients →", href='/coefficients',
                     style={'color': UI_COLORS['link_blue']})
        ], style={'fontSize': '0.875rem', 'fontWeight': '500'})
    ], style={
        'height': UI_CONFIG['header_height'],
        'display': 'flex',
        'alignItems': 'center',
        'justifyContent': 'space-between',
        'padding': '0 1.5rem',
        'borderBottom': f"1px solid {UI_COLORS['border_gray']}",
        'backgroundColor': UI_COLORS['background_light'],
        'flexShrink': '0'
    })

def create_health_banner():
    """Hidden banner shown by callbacks when the backend is unreachable"""

    return html.Div(id='health-banner', style={'display': 'none'})

# ================= MAP =================

def create_legend(metric, min_value, max_value):
    """Legend with metric label, gradient bar, range and no-data swatch"""

    # Sample the fill color at tenths of the range
    span = max_value - min_value
    gradient = ', '.join(
        f"{get_fill_color(min_value + span * i / 10, min_value, max_value)} {i * 10}%" for i in range(11)
    )
    row_style = {'display': 'flex', 'justifyContent': 'space-between', 'fontSize': '11px'}

    return html.Div([
        html.Div(get_metric_label(metric), style={'fontSize': '13px', 'fontWeight': '600', 'marginBottom': '8px'}),
        html.Div(style={
            'height': '24px',
            'borderRadius': '4px',
            'background': f"linear-gradient(to right, {gradient})",
            'marginBottom': '6px'
        }),
        html.Div([
            html.Span(format_metric_value(metric, min_value)),
            html.Span(format_metric_value(metric, max_value))
        ], style=row_style),
        html.Div([
            html.Div([html.Span("Min:"), html.Span(format_metric_value(metric, min_value))], style=row_style),
            html.Div([html.Span("Max:"), html.Span(format_metric_value(metric, max_value))], style=row_style),
        ], style={'marginTop': '8px', 'paddingTop': '8px', 'borderTop': f"1px solid {UI_COLORS['border_gray']}"}),
        html.Div([
            html.Div(style={'width': '14px', 'height': '14px', 'backgroundColor': NO_DATA_COLOR,
                            'borderRadius': '3px', 'marginRight': '6px'}),
            html.Span("No data", style={'fontSize': '11px'})
        ], style={'display': 'flex', 'alignItems': 'center', 'marginTop': '8px'})
    ])

def create_map(token):
    """Create the choropleth map, or an inline message when no map token is configured"""

    return html.Div([
        html.Div(
            html.P("Mapbox token not configured", style={'color': UI_COLORS['error_red']}),
            id='map-token-error',
            style={
                'display': 'none' if token else 'flex',
                'alignItems': 'center',
                'justifyContent': 'center',
                'height': '100%'
            }
        ),
        dcc.Graph(
            id='climate-map',
            config={'displayModeBar': False, 'scrollZoom': True},
            clear_on_unhover=True,
            style={'height': f"calc(100vh - {UI_CONFIG['header_height']})",
                   'display': 'block' if token else 'none'}
        ),
        # Spinner tracks full redraws only; hover patches the figure outside it
        html.Div(
            dcc.Loading(
                id='map-loading',
                type='circle',
                children=html.Div(id='map-status', style={'fontSize': '11px'})
            ),
            style={
                **PANEL_STYLE,
                'position': 'absolute',
                'top': '12px',
                'left': '12px',
                'zIndex': 1000,
                'display': 'block' if token else 'none'
            }
        ),
        html.Div(id='map-legend', style={
            **PANEL_STYLE,
            'position': 'absolute',
            'bottom': UI_CONFIG['legend_position']['bottom'],
            'left': UI_CONFIG['legend_position']['left'],
            'minWidth': '200px',
            'zIndex': 1000,
            'display': 'block' if token else 'none'
        }),
        create_controls()
    ], style={'position': 'relative', 'flex': '1', 'height': '100%'})

# ================= CONTROLS =================

def create_controls():
    """Metric selector, year/week sliders and animation toggle"""

    selection = SelectionStore()

    return html.Div([
        labeled("Climate Metric", dcc.Dropdown(
            id='metric-select',
            options=metric_options(),
            value=selection.selected_metric,
            clearable=False
        )),
        labeled(f"Year: {selection.selected_year}", dcc.Slider(
            id='year-slider',
            min=DATE_RANGE['min_year'],
            max=DATE_RANGE['max_year'],
            step=1,
            value=selection.selected_year,
            marks={DATE_RANGE['min_year']: str(DATE_RANGE['min_year']),
                   DATE_RANGE['max_year']: str(DATE_RANGE['max_year'])},
            updatemode='mouseup'
        ), label_id='year-label'),
        labeled(f"Week: {selection.selected_week}", dcc.Slider(
            id='week-slider',
            min=DATE_RANGE['min_week'],
            max=DATE_RANGE['max_week'],
            step=1,
            value=selection.selected_week,
            marks={DATE_RANGE['min_week']: str(DATE_RANGE['min_week']),
                   DATE_RANGE['max_week']: str(DATE_RANGE['max_week'])},
            updatemode='mouseup'
        ), label_id='week-label'),
        html.Button("Play Animation", id='play-button', n_clicks=0, style={
            'width': '100%',
            'padding': '8px 16px',
            'backgroundColor': UI_COLORS['link_blue'],
            'color': 'white',
            'border': 'none',
            'borderRadius': '6px',
            'cursor': 'pointer'
        }),
        dcc.Interval(id='animation-interval', interval=ANIMATION_CONFIG['interval_ms'], disabled=True)
    ], style={
        **PANEL_STYLE,
        'position': 'absolute',
        'top': UI_CONFIG['controls_position']['top'],
        'right': UI_CONFIG['controls_position']['right'],
        'width': '280px',
        'zIndex': 1000
    })

# ================= RELATIVE RISK VIEWER =================

def create_relative_risk_panel(prefix, percentile_mode=False):
    """City/age-group selectors, toggles, info box, curve and hover readout"""

    return html.Div([
        labeled("City (URAU Code)", dcc.Dropdown(id=f'{prefix}-city', clearable=False)),
        labeled("Age Group", dcc.Dropdown(
            id=f'{prefix}-agegroup',
            options=[{'label': f"{group} years", 'value': group} for group in AGE_GROUPS],
            value=AGE_GROUPS[0],
            clearable=False
        )),
        dcc.Checklist(
            id=f'{prefix}-toggles',
            options=[
                {'label': ' Compare all age groups', 'value': 'all'},
                {'label': ' Show percentiles', 'value': 'percentiles'}
            ],
            value=['percentiles'] if percentile_mode else [],
            style={'fontSize': '12px', 'marginBottom': '12px'}
        ),
        html.Div(id=f'{prefix}-info'),
        dcc.Loading(dcc.Graph(id=f'{prefix}-chart', config={'displayModeBar': False}, clear_on_unhover=True)),
        html.Div(id=f'{prefix}-readout')
    ], id=f'{prefix}-panel')

# ================= LIFE TABLES =================

def create_life_table_panel():
    """Financial impact calculator and period life table"""

    input_style = {'width': '100%', 'padding': '6px 8px', 'border': f"1px solid {UI_COLORS['border_gray']}",
                   'borderRadius': '6px', 'boxSizing': 'border-box'}

    return html.Div([
        html.H3("Financial Impact Calculator", style={'fontSize': '16px'}),
        html.Div([
            html.Div([
                labeled("Emissions Scenario", dcc.Dropdown(
                    id='life-scenario',
                    options=[{'label': s['label'], 'value': key} for key, s in EMISSION_SCENARIOS.items()],
                    value=LIFE_TABLE_CONFIG['default_scenario'],
                    clearable=False
                )),
                labeled("Adaptation Level (%)", dcc.Slider(
                    id='life-adaptation', min=0, max=100, step=5,
                    value=LIFE_TABLE_CONFIG['default_adaptation'],
                    marks={0: '0', 50: '50', 100: '100'}
                )),
                labeled("Portfolio Size (€)", dcc.Input(
                    id='life-portfolio', type='number', min=0, debounce=True,
                    value=LIFE_TABLE_CONFIG['default_portfolio'], style=input_style
                )),
                html.Div([
                    labeled("Annuities (%)", dcc.Input(
                        id='life-annuity-share', type='number', min=0, max=100,
                        value=LIFE_TABLE_CONFIG['default_annuity_share'], style=input_style
                    )),
                    labeled("Life Insurance (%)", dcc.Input(
                        id='life-insurance-share', type='number', min=0, max=100,
                        value=100 - LIFE_TABLE_CONFIG['default_annuity_share'], disabled=True, style=input_style
                    )),
                ], style={'display': 'grid', 'gridTemplateColumns': '1fr 1fr', 'gap': '12px'})
            ]),
            html.Div(id='life-impact', style={**INFO_STYLE, 'backgroundColor': UI_COLORS['background_muted'],
                                              'color': UI_COLORS['text_dark']})
        ], style={'display': 'grid', 'gridTemplateColumns': '1fr 1fr', 'gap': '16px'}),
        html.H3(f"Period Life Table ({LIFE_TABLE_CONFIG['projection_year']} Projection)",
                style={'fontSize': '16px', 'marginTop': '24px'}),
        html.P("Comparison of baseline vs temperature adjusted mortality (illustrative data)",
               style={'fontSize': '12px', 'color': UI_COLORS['text_gray']}),
        html.Div(id='life-table', style={'overflowX': 'auto'}),
        html.Button("Show Full Table", id='life-expand', n_clicks=0, style={
            'marginTop': '8px', 'background': 'none', 'border': 'none',
            'color': UI_COLORS['link_blue'], 'cursor': 'pointer', 'fontSize': '13px'
        })
    ])

# ================= DETAIL PANEL =================

def create_detail_panel():
    """Slide-in panel with tabs for the selected region (hidden until a region is selected)"""

    return html.Div([
        html.Div([
            html.Div([
                html.H2(id='detail-title', style={'fontSize': '20px', 'margin': '0'}),
                html.P("Climate Data Analysis", style={'fontSize': '13px', 'color': UI_COLORS['text_gray'],
                                                       'margin': '4px 0 0 0'})
            ]),
            html.Button("✕", id='detail-close', n_clicks=0, style={
                'border': 'none', 'background': 'none', 'fontSize': '20px', 'cursor': 'pointer'
            })
        ], style={'display': 'flex', 'justifyContent': 'space-between', 'alignItems': 'center',
                  'padding': '16px', 'borderBottom': f"1px solid {UI_COLORS['border_gray']}"}),
        html.Div([
            dcc.Tabs(id='detail-tabs', value='timeseries', children=[
                dcc.Tab(label='Time Series', value='timeseries', children=[
                    labeled("Compare with (optional)", dcc.Dropdown(id='second-metric', placeholder='None')),
                    dcc.Loading(html.Div(id='timeseries-content'))
                ]),
                dcc.Tab(label='Correlation', value='correlation', children=[
                    dcc.Loading(html.Div(id='correlation-content'))
                ]),
                dcc.Tab(label='Relative Risk', value='relative-risk', children=[
                    html.Div(id='region-rr-status'),
                    create_relative_risk_panel('region-rr')
                ]),
                dcc.Tab(label='Life Tables', value='life-tables', children=[
                    create_life_table_panel()
                ]),
                dcc.Tab(label='Summary', value='summary', children=[
                    dcc.Loading(html.Div(id='summary-content'))
                ]),
            ])
        ], style={'flex': '1', 'overflowY': 'auto', 'padding': '16px'})
    ], id='detail-panel', style={'display': 'none'})

DETAIL_PANEL_STYLE = {
    'position': 'fixed',
    'top': 0,
    'right': 0,
    'bottom': 0,
    'width': '100%',
    'maxWidth': UI_CONFIG['panel_width'],
    'backgroundColor': UI_COLORS['background_light'],
    'boxShadow': '-8px 0 24px rgba(0,0,0,0.2)',
    'display': 'flex',
    'flexDirection': 'column',
    'zIndex': 2000
}

# ================= PAGES =================

def create_dashboard_page(token):
    """Map page with controls and detail panel"""

    return html.Div([
        create_map(token),
        create_detail_panel()
    ], id='dashboard-page', style={'display': 'flex', 'height': f"calc(100vh - {UI_CONFIG['header_height']})"})

def create_explorer_page():
    """Exposure-response curves for any city with its raw coefficients"""

    return html.Div([
        html.Div([
            html.H2("Temperature-Mortality Exposure-Response Curves", style={'fontSize': '24px'}),
            html.P(
                "Quadratic B-spline curves showing temperature-mortality relationships centered at the "
                "MMT (Minimum Mortality Temperature). Knots are placed at the 10th, 75th, and 90th "
                "percentiles of each city's temperature distribution.",
                style={'color': UI_COLORS['text_gray'], 'fontSize': '14px'}
            ),
            html.Div(id='explorer-status'),
            html.Div(create_relative_risk_panel('explorer', percentile_mode=True), style=PANEL_STYLE),
            html.H3("B-Spline Coefficients", style={'fontSize': '16px', 'marginTop': '24px'}),
            html.Div(id='explorer-coefficients', style=PANEL_STYLE)
        ], style={'maxWidth': '1100px', 'margin': '0 auto', 'padding': '24px'})
    ], id='explorer-page', style={'display': 'none', 'height': f"calc(100vh - {UI_CONFIG['header_height']})",
                                  'overflowY': 'auto', 'backgroundColor': UI_COLORS['background_muted']})

def create_app_layout(token):
    """Assemble complete dashboard layout with header, pages and client-side stores"""

    return html.Div([
        dcc.Location(id='url'),
        # Per-session selection state and transient UI state
        dcc.Store(id='selection-store', data=SelectionStore().to_dict()),
        dcc.Store(id='animation-store', data={'playing': False}),
        dcc.Interval(id='health-interval', interval=HEALTH_CONFIG['interval_seconds'] * 1000),
        html.Div(id='map-exposed', style={'display': 'none'}),
        create_header(),
        create_health_banner(),
        create_dashboard_page(token),
        create_explorer_page()
    ], style={
        'fontFamily': 'Inter, -apple-system, BlinkMacSystemFont, sans-serif',
        'backgroundColor': UI_COLORS['background_light'],
        'color': UI_COLORS['text_dark'],
        'height': '100vh',
        'width': '100vw',
        'margin': '0',
        'padding': '0',
        'overflow': 'hidden'
    })
