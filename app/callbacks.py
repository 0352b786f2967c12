# ==============================================================================
# Dashboard Callback Functions for the Climate Mortality Dashboard
# ==============================================================================
# Purpose: Orchestrate interactive dashboard functionality including map
#          selection and hover, time animation, region detail charts,
#          exposure-response curves, life tables and backend availability
#          notifications
#
# Input Files:
#   - None (all data is fetched from the climate backend API)
#
# Output:
#   - Interactive web dashboard driven by the selection store
# ==============================================================================

# ================= IMPORTS =================

from dash import Input, Output, Patch, State, ctx, dcc, html, no_update
from dash.exceptions import PreventUpdate
import logging
from api_client import ClimateAPI
from query_cache import QueryCache
from data_manager import DataManager, DATA_ERRORS
from health_monitor import HealthMonitor
from store import SelectionStore
from animation import AnimationClock
from map_renderer import build_map_figure, event_region, hover_opacities, parse_relayout, resolve_range
from charts import (
    hover_readout,
    mmt_by_age,
    mmt_summary,
    placeholder_figure,
    relative_risk_figure,
    scatter_figure,
    summary_rows,
    time_series_figure,
)
from percentiles import find_closest_temperature
from life_table import cell_trend, collapse_table, financial_impact, format_currency, generate_life_table
from layout import DETAIL_PANEL_STYLE, INFO_STYLE, create_legend, message, metric_options
from config import (
    AGE_GROUPS,
    CLIMATE_METRICS,
    LOG_LEVEL,
    MAP_CONFIG,
    MAPBOX_TOKEN,
    UI_COLORS,
    get_metric_label,
)

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

ERROR_TEXT = "Error loading data"
NO_CITIES_TEXT = "No URAU cities found for this region."

VISIBLE = {'display': 'block'}
HIDDEN = {'display': 'none'}

TABLE_STYLE = {'width': '100%', 'borderCollapse': 'collapse', 'fontSize': '12px'}
CELL_STYLE = {'padding': '6px 10px', 'borderBottom': f"1px solid {UI_COLORS['border_gray']}", 'textAlign': 'right'}
HEAD_STYLE = {**CELL_STYLE, 'backgroundColor': UI_COLORS['background_muted'], 'fontWeight': '600'}

TREND_STYLE = {
    'worse': {'backgroundColor': UI_COLORS['worse_bg']},
    'better': {'backgroundColor': UI_COLORS['better_bg']},
    '': {}
}

# ================= MAIN APPLICATION CLASS =================

class ClimateDashboard:
    """Main application orchestrator coordinating all dashboard components"""

    def __init__(self, api=None, cache=None, token=MAPBOX_TOKEN):
        """Initialize the application with its API client, cache and monitor"""

        logger.info("Initializing...")

        # Initialize core components in dependency order
        self.api = api or ClimateAPI()
        self.cache = cache or QueryCache()
        self.data_manager = DataManager(self.api, self.cache)
        self.health_monitor = HealthMonitor(self.api)
        self.token = token

        if not token:
            logger.warning("MAPBOX_TOKEN is not set - map will not be rendered")

        logger.info("Initialized successfully")

    def start(self):
        """Start background health monitoring"""

        self.health_monitor.start()

    def stop(self):
        self.health_monitor.stop()
        self.data_manager.shutdown()

    def health_banner(self):
        """Banner text and style; hidden while the backend is healthy"""

        if self.health_monitor.is_healthy():
            return None, HIDDEN

        status_info = self.health_monitor.get_status_info()
        reason = status_info['error_message'] or f"status '{status_info['status']}'"
        return f"Climate data service unavailable: {reason}", banner_style()

    # ----- Selection -----

    def apply_event(self, prop_id, selection_data, animation_data, value=None):
        """Apply one user or timer event to the selection; PreventUpdate when nothing changed"""

        selection = SelectionStore.from_dict(selection_data)
        was_playing = bool((animation_data or {}).get('playing'))
        clock = AnimationClock(is_playing=was_playing)
        before = selection.to_dict()

        if prop_id == 'climate-map.clickData':
            nuts_id = event_region(value)
            if nuts_id:
                selection.set_selected_region(nuts_id)
        elif prop_id == 'climate-map.relayoutData':
            view = parse_relayout(value)
            if view is not None:
                zoom, center = view
                selection.set_map_view(zoom, center or selection.center)
        elif prop_id == 'metric-select.value' and value:
            selection.set_selected_metric(value)
        elif prop_id == 'year-slider.value' and value is not None:
            selection.set_selected_year(value)
        elif prop_id == 'week-slider.value' and value is not None:
            selection.set_selected_week(value)
        elif prop_id == 'play-button.n_clicks':
            clock.toggle()
        elif prop_id == 'animation-interval.n_intervals':
            # Hold the frame while the current snapshot is still loading
            clock.tick(selection, self.data_manager.is_snapshot_loading())
        elif prop_id == 'detail-close.n_clicks':
            selection.reset_selection()

        # Unchanged state must not re-trigger the map and panel callbacks
        if selection.to_dict() == before and clock.is_playing == was_playing:
            raise PreventUpdate

        return selection.to_dict(), {'playing': clock.is_playing}

    # ----- Map -----

    def hover_patch(self, hover_data, selection_data):
        """Opacity-only update of the drawn map for the hovered polygon, or None if nothing is drawn"""

        if not self.token:
            return None

        selection = SelectionStore.from_dict(selection_data)
        cached = self.data_manager.cached_map_data(
            selection.selected_metric, selection.selected_year, selection.selected_week
        )
        if cached is None:
            return None

        regions, snapshot = cached
        opacities = hover_opacities(
            regions, snapshot, selection.zoom,
            hovered_region=event_region(hover_data),
            selected_region=selection.selected_region
        )

        patch = Patch()
        for index, opacity in enumerate(opacities):
            patch['data'][index]['marker']['opacity'] = opacity
        return patch

    def render_map(self, selection, hovered_region=None):
        """Choropleth figure and legend for the current selection"""

        metric = selection.selected_metric
        metric_range = self.data_manager.get_metric_range(metric)
        value_range = resolve_range(metric_range)
        legend = create_legend(metric, *value_range)

        if not self.token:
            return placeholder_figure("Mapbox token not configured"), legend

        try:
            regions = self.data_manager.get_regions(MAP_CONFIG['region_tolerance'])
        except DATA_ERRORS as e:
            logger.error(f"Error loading regions: {e}")
            return placeholder_figure("Error loading map data"), legend

        try:
            snapshot = self.data_manager.get_metric_snapshot(
                metric, selection.selected_year, selection.selected_week
            )
        except DATA_ERRORS as e:
            # Regions still render, shaded as "no data"
            logger.error(f"Error loading {metric} snapshot: {e}")
            snapshot = {}

        figure = build_map_figure(
            regions, snapshot, metric, metric_range,
            selection.zoom, selection.center,
            hovered_region=hovered_region,
            selected_region=selection.selected_region,
            token=self.token
        )
        return figure, legend

    # ----- Region detail -----

    def render_region_detail(self, selection, metric2):
        """Time series, correlation and summary tab contents for the selected region"""

        try:
            ts = self.data_manager.get_time_series(
                selection.selected_region, selection.selected_metric, metric2
            )
        except DATA_ERRORS as e:
            logger.error(f"Error loading time series for {selection.selected_region}: {e}")
            error = message(ERROR_TEXT, error=True)
            return error, error, error

        if ts is None or not ts.data:
            empty = message("No data available for this region")
            return empty, empty, empty

        timeseries = dcc_graph(time_series_figure(ts))
        correlation = dcc_graph(scatter_figure(ts))
        summary = html.Div([
            html.Div([
                html.Span(label, style={'color': UI_COLORS['text_gray']}),
                html.Span(value, style={'fontWeight': '600'})
            ], style={'display': 'flex', 'justifyContent': 'space-between', 'padding': '8px 0',
                      'borderBottom': f"1px solid {UI_COLORS['border_gray']}"})
            for label, value in summary_rows(ts)
        ], style={'backgroundColor': UI_COLORS['background_muted'], 'borderRadius': '8px', 'padding': '16px'})

        return timeseries, correlation, summary

    # ----- Relative risk -----

    def load_curves(self, urau_code, agegroup, compare_all):
        """One curve, or all age groups fetched concurrently"""

        if compare_all:
            return self.data_manager.get_bspline_all_age_groups(urau_code)
        return [self.data_manager.get_bspline(urau_code, agegroup)]

    def render_relative_risk(self, urau_code, agegroup, toggles):
        """Relative risk figure and MMT info box"""

        toggles = toggles or []
        percentile_mode = 'percentiles' in toggles
        compare_all = 'all' in toggles

        if not urau_code:
            return relative_risk_figure([], percentile_mode), None

        try:
            curves = self.load_curves(urau_code, agegroup, compare_all)
        except DATA_ERRORS as e:
            logger.error(f"Error loading B-spline curves for {urau_code}: {e}")
            return placeholder_figure("Error loading B-spline data"), message(ERROR_TEXT, error=True)

        figure = relative_risk_figure(curves, percentile_mode)

        if compare_all:
            info = html.Div([
                html.Div("Minimum Mortality Temperature (MMT) by Age Group:", style={'fontWeight': '600'}),
                html.Div([
                    html.Span([html.Strong(f"{group}: "), temperature], style={'marginRight': '12px'})
                    for group, temperature in mmt_by_age(curves)
                ])
            ], style=INFO_STYLE)
        else:
            info = html.Div([html.Div(line) for line in mmt_summary(curves[0])], style=INFO_STYLE)

        return figure, info

    def describe_hover(self, hover_data, urau_code, agegroup, toggles):
        """Plain-language risk readout for the hovered curve point"""

        if not hover_data or not hover_data.get('points') or not urau_code:
            return None

        point = hover_data['points'][0]
        if 'all' in (toggles or []):
            agegroup = AGE_GROUPS[point.get('curveNumber', 0)]

        try:
            curve = self.data_manager.get_bspline(urau_code, agegroup)
        except DATA_ERRORS as e:
            logger.error(f"Error loading B-spline for hover readout: {e}")
            return None

        sample = find_closest_temperature(curve.data, point['x'])
        return html.Div(
            hover_readout(sample.temperature, sample.percentile, sample.value, agegroup, curve.mmt.temperature),
            style={**INFO_STYLE, 'marginTop': '8px'}
        )

    def render_coefficients(self, urau_code):
        """Table of the raw B-spline coefficients for one city"""

        if not urau_code:
            return message("Select a city to view its coefficients")

        try:
            rows = self.data_manager.get_coefficients(urau_code)
        except DATA_ERRORS as e:
            logger.error(f"Error loading coefficients: {e}")
            return message(ERROR_TEXT, error=True)

        if not rows:
            return message("No coefficients available for this city")

        columns = ['b1', 'b2', 'b3', 'b4', 'b5']
        header = html.Tr([html.Th("Age Group", style={**HEAD_STYLE, 'textAlign': 'left'})] +
                         [html.Th(column, style=HEAD_STYLE) for column in columns])
        body = [
            html.Tr([html.Td(row.agegroup, style={**CELL_STYLE, 'textAlign': 'left'})] +
                    [html.Td(f"{getattr(row, column):.4f}", style=CELL_STYLE) for column in columns])
            for row in rows
        ]
        return html.Table([html.Thead(header), html.Tbody(body)], style=TABLE_STYLE)

    # ----- Life tables -----

    def render_life_tables(self, scenario, adaptation, portfolio, annuity_share, expanded):
        """Financial impact summary and baseline vs adjusted life table"""

        table = generate_life_table(scenario, (adaptation or 0) / 100)
        impact = financial_impact(table, portfolio or 0, annuity_share or 0)

        impact_view = html.Div([
            html.Div("Projected Impact", style={'fontWeight': '600', 'marginBottom': '8px'}),
            impact_row(f"Annuities ({impact['annuity_share']:.0f}%)", impact['annuity']),
            impact_row(f"Life Insurance ({impact['life_insurance_share']:.0f}%)", impact['life_insurance']),
            impact_row("Total", impact['total'], bold=True),
            html.Div(f"Change in life expectancy at birth: {impact['e0_diff']:+.2f} years",
                     style={'fontSize': '11px', 'color': UI_COLORS['text_gray'], 'marginTop': '8px'})
        ])

        shown = table if expanded else collapse_table(table)
        return impact_view, life_table_view(shown)

# ================= RENDER HELPERS =================

def dcc_graph(figure):
    return dcc.Graph(figure=figure, config={'displayModeBar': False})

def impact_row(label, amount, bold=False):
    """Label and signed currency amount, green when favourable to the book"""

    color = UI_COLORS['brand_green'] if round(amount) >= 0 else UI_COLORS['error_red']
    return html.Div([
        html.Span(label),
        html.Span(format_currency(amount), style={'color': color, 'fontWeight': '700' if bold else '500'})
    ], style={'display': 'flex', 'justifyContent': 'space-between', 'padding': '4px 0'})

def life_table_view(table):
    """HTML life table with adjusted cells shaded against the baseline"""

    header = html.Tr([
        html.Th(label, style=HEAD_STYLE)
        for label in ['Age', 'q(x) Base', 'q(x) Adj', 'l(x) Base', 'l(x) Adj', 'e(x) Base', 'e(x) Adj']
    ])

    body = []
    for row in table.itertuples(index=False):
        body.append(html.Tr([
            html.Td(str(row.age), style=CELL_STYLE),
            html.Td(f"{row.q_base:.5f}", style=CELL_STYLE),
            html.Td(f"{row.q_adj:.5f}", style={**CELL_STYLE, **TREND_STYLE[cell_trend(row.q_adj, row.q_base, 'q')]}),
            html.Td(f"{row.l_base:,}", style=CELL_STYLE),
            html.Td(f"{row.l_adj:,}", style={**CELL_STYLE, **TREND_STYLE[cell_trend(row.l_adj, row.l_base, 'l')]}),
            html.Td(f"{row.e_base:.2f}", style=CELL_STYLE),
            html.Td(f"{row.e_adj:.2f}", style={**CELL_STYLE, **TREND_STYLE[cell_trend(row.e_adj, row.e_base, 'e')]}),
        ]))

    return html.Table([html.Thead(header), html.Tbody(body)], style=TABLE_STYLE)

def city_options(cities):
    return [{'label': city.display_name, 'value': city.code} for city in cities]

def banner_style():
    return {
        'position': 'fixed',
        'bottom': '20px',
        'left': '50%',
        'transform': 'translateX(-50%)',
        'backgroundColor': UI_COLORS['error_red'],
        'color': 'white',
        'padding': '10px 15px',
        'borderRadius': '8px',
        'fontSize': '14px',
        'fontWeight': '500',
        'zIndex': 3000,
        'boxShadow': '0 4px 12px rgba(0,0,0,0.3)'
    }

# ================= CALLBACK REGISTRATION =================

def register_relative_risk_callbacks(app, dashboard, prefix):
    """Chart, info box and hover readout callbacks for one relative risk viewer"""

    @app.callback(
        Output(f'{prefix}-agegroup', 'disabled'),
        Input(f'{prefix}-toggles', 'value')
    )
    def toggle_agegroup(toggles):
        """Age group selector is unused while comparing all groups"""

        return 'all' in (toggles or [])

    @app.callback(
        [Output(f'{prefix}-chart', 'figure'),
         Output(f'{prefix}-info', 'children')],
        [Input(f'{prefix}-city', 'value'),
         Input(f'{prefix}-agegroup', 'value'),
         Input(f'{prefix}-toggles', 'value')]
    )
    def update_relative_risk(urau_code, agegroup, toggles):
        """Redraw the exposure-response curve(s) for the chosen city"""

        return dashboard.render_relative_risk(urau_code, agegroup, toggles)

    @app.callback(
        Output(f'{prefix}-readout', 'children'),
        Input(f'{prefix}-chart', 'hoverData'),
        [State(f'{prefix}-city', 'value'),
         State(f'{prefix}-agegroup', 'value'),
         State(f'{prefix}-toggles', 'value')]
    )
    def update_readout(hover_data, urau_code, agegroup, toggles):
        """Describe the risk at the hovered temperature"""

        return dashboard.describe_hover(hover_data, urau_code, agegroup, toggles)

def register_callbacks(app, dashboard):
    """Register all dashboard callbacks for interactive functionality"""

    @app.callback(
        [Output('dashboard-page', 'style'),
         Output('explorer-page', 'style')],
        Input('url', 'pathname')
    )
    def route_page(pathname):
        """Show the map or the coefficient explorer depending on the path"""

        if pathname == '/coefficients':
            return {'display': 'none'}, {'display': 'block', 'height': '100%', 'overflowY': 'auto'}
        return {'display': 'flex', 'height': '100%'}, {'display': 'none'}

    @app.callback(
        [Output('selection-store', 'data'),
         Output('animation-store', 'data'),
         Output('year-slider', 'value'),
         Output('week-slider', 'value')],
        [Input('climate-map', 'clickData'),
         Input('climate-map', 'relayoutData'),
         Input('metric-select', 'value'),
         Input('year-slider', 'value'),
         Input('week-slider', 'value'),
         Input('play-button', 'n_clicks'),
         Input('animation-interval', 'n_intervals'),
         Input('detail-close', 'n_clicks')],
        [State('selection-store', 'data'),
         State('animation-store', 'data')]
    )
    def update_selection(click_data, relayout_data, metric, year, week, _play, _tick, _close,
                         selection_data, animation_data):
        """Apply a user or timer event to the selection store"""

        trigger = ctx.triggered[0]['prop_id'] if ctx.triggered else ''
        values = {
            'climate-map.clickData': click_data,
            'climate-map.relayoutData': relayout_data,
            'metric-select.value': metric,
            'year-slider.value': year,
            'week-slider.value': week,
        }

        selection, animation = dashboard.apply_event(
            trigger, selection_data, animation_data, values.get(trigger)
        )
        return selection, animation, selection['selected_year'], selection['selected_week']

    @app.callback(
        Output('climate-map', 'figure', allow_duplicate=True),
        Input('climate-map', 'hoverData'),
        State('selection-store', 'data'),
        prevent_initial_call=True
    )
    def update_hover(hover_data, selection_data):
        """Highlight the polygon under the pointer without rebuilding the map"""

        patch = dashboard.hover_patch(hover_data, selection_data)
        if patch is None:
            raise PreventUpdate
        return patch

    @app.callback(
        [Output('climate-map', 'figure'),
         Output('map-legend', 'children'),
         Output('map-status', 'children')],
        Input('selection-store', 'data')
    )
    def update_map(selection_data):
        """Redraw the choropleth for the current selection"""

        selection = SelectionStore.from_dict(selection_data)
        figure, legend = dashboard.render_map(selection)
        return figure, legend, f"Week {selection.selected_week}, {selection.selected_year}"

    @app.callback(
        [Output('selection-display', 'children'),
         Output('year-label', 'children'),
         Output('week-label', 'children')],
        Input('selection-store', 'data')
    )
    def update_selection_display(selection_data):
        """Header summary and slider labels"""

        selection = SelectionStore.from_dict(selection_data)
        summary = (f"{get_metric_label(selection.selected_metric)} · "
                   f"Week {selection.selected_week}, {selection.selected_year}")
        if selection.selected_region:
            summary += f" · {selection.selected_region}"

        return summary, f"Year: {selection.selected_year}", f"Week: {selection.selected_week}"

    @app.callback(
        [Output('play-button', 'children'),
         Output('animation-interval', 'disabled')],
        Input('animation-store', 'data')
    )
    def update_play_state(animation_data):
        """Play/pause label and timer enablement"""

        playing = bool((animation_data or {}).get('playing'))
        return ("Pause Animation" if playing else "Play Animation"), not playing

    @app.callback(
        [Output('detail-panel', 'style'),
         Output('detail-title', 'children'),
         Output('second-metric', 'options')],
        Input('selection-store', 'data')
    )
    def update_detail_panel(selection_data):
        """Open the panel for the selected region"""

        selection = SelectionStore.from_dict(selection_data)
        if not selection.selected_region:
            return HIDDEN, no_update, no_update

        others = [m for m in CLIMATE_METRICS if m != selection.selected_metric]
        return DETAIL_PANEL_STYLE, selection.selected_region, metric_options(others)

    @app.callback(
        [Output('timeseries-content', 'children'),
         Output('correlation-content', 'children'),
         Output('summary-content', 'children')],
        [Input('selection-store', 'data'),
         Input('second-metric', 'value')]
    )
    def update_region_detail(selection_data, metric2):
        """Charts and summary for the selected region"""

        selection = SelectionStore.from_dict(selection_data)
        if not selection.selected_region:
            return None, None, None

        if metric2 == selection.selected_metric:
            metric2 = None

        return dashboard.render_region_detail(selection, metric2)

    @app.callback(
        [Output('region-rr-city', 'options'),
         Output('region-rr-city', 'value'),
         Output('region-rr-status', 'children'),
         Output('region-rr-panel', 'style')],
        Input('selection-store', 'data'),
        State('region-rr-city', 'value')
    )
    def update_region_cities(selection_data, current_city):
        """Cities located in the selected region"""

        selection = SelectionStore.from_dict(selection_data)
        if not selection.selected_region:
            return [], None, None, HIDDEN

        try:
            cities = dashboard.data_manager.get_cities_by_nuts(selection.selected_region)
        except DATA_ERRORS as e:
            logger.error(f"Error loading cities for {selection.selected_region}: {e}")
            return [], None, message(ERROR_TEXT, error=True), HIDDEN

        if not cities:
            return [], None, message(NO_CITIES_TEXT), HIDDEN

        codes = [city.code for city in cities]
        value = current_city if current_city in codes else codes[0]
        return city_options(cities), value, None, VISIBLE

    @app.callback(
        [Output('explorer-city', 'options'),
         Output('explorer-city', 'value'),
         Output('explorer-status', 'children')],
        Input('url', 'pathname'),
        State('explorer-city', 'value')
    )
    def update_explorer_cities(pathname, current_city):
        """All cities with coefficients, loaded when the explorer opens"""

        if pathname != '/coefficients':
            return no_update, no_update, no_update

        try:
            cities = dashboard.data_manager.get_cities()
        except DATA_ERRORS as e:
            logger.error(f"Error loading cities: {e}")
            return [], None, message(ERROR_TEXT, error=True)

        codes = [city.code for city in cities]
        value = current_city if current_city in codes else (codes[0] if codes else None)
        return city_options(cities), value, None

    @app.callback(
        Output('explorer-coefficients', 'children'),
        Input('explorer-city', 'value')
    )
    def update_coefficients(urau_code):
        return dashboard.render_coefficients(urau_code)

    register_relative_risk_callbacks(app, dashboard, 'region-rr')
    register_relative_risk_callbacks(app, dashboard, 'explorer')

    @app.callback(
        [Output('life-impact', 'children'),
         Output('life-table', 'children'),
         Output('life-insurance-share', 'value'),
         Output('life-expand', 'children')],
        [Input('life-scenario', 'value'),
         Input('life-adaptation', 'value'),
         Input('life-portfolio', 'value'),
         Input('life-annuity-share', 'value'),
         Input('life-expand', 'n_clicks')]
    )
    def update_life_tables(scenario, adaptation, portfolio, annuity_share, expand_clicks):
        """Recompute the life table and portfolio impact"""

        annuity_share = min(max(annuity_share or 0, 0), 100)
        expanded = bool(expand_clicks and expand_clicks % 2)

        impact, table = dashboard.render_life_tables(scenario, adaptation, portfolio, annuity_share, expanded)
        label = "Show Less" if expanded else "Show Full Table"
        return impact, table, 100 - annuity_share, label

    @app.callback(
        [Output('health-banner', 'children'),
         Output('health-banner', 'style')],
        Input('health-interval', 'n_intervals')
    )
    def update_health_banner(_):
        """Warn users while the backend is unreachable"""

        return dashboard.health_banner()

    # Expose the map's Plotly element for scripting and automated browser checks
    app.clientside_callback(
        """
        function(figure) {
            window.climateMap = document.querySelector('#climate-map .js-plotly-plot');
            return '';
        }
        """,
        Output('map-exposed', 'children'),
        Input('climate-map', 'figure')
    )
