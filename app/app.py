# ==============================================================================
# Main Application Entry Point for the Climate Mortality Dashboard
# ==============================================================================
# Purpose: Build the Dash application for the European climate and mortality
#          explorer, wire it to the backend through the dashboard orchestrator
#          and serve it
#
# Input Files:
#   - config.py: Environment settings, index template and stylesheets
#   - layout.py: Page, map, control and panel components
#   - callbacks.py: Dashboard orchestrator and callback wiring
#
# Output:
#   - Dash development server on $PORT when run directly
#   - `server`: the Flask WSGI object for gunicorn and similar hosts
# ==============================================================================

# ================= IMPORTS =================

import atexit
import dash
import os
from config import EXTERNAL_STYLESHEETS, INDEX_STRING, MAPBOX_TOKEN
from layout import create_app_layout
from callbacks import ClimateDashboard, register_callbacks

# ================= APPLICATION INITIALIZATION =================

# Initialize the Dash web application with configuration
app = dash.Dash(
    __name__,
    external_stylesheets=EXTERNAL_STYLESHEETS,  # Inter font from config
    title="Climate & Mortality Explorer"        # Browser tab title
)

# Expose WSGI server for production deployment (gunicorn and similar hosts)
server = app.server

# Apply full-viewport HTML template with the detail panel slide-in animation
app.index_string = INDEX_STRING

# ================= LAYOUT AND CALLBACK REGISTRATION =================

# Set the complete dashboard layout; map components depend on the token
app.layout = create_app_layout(MAPBOX_TOKEN)

# Create one orchestrator per process (API client, query cache, health monitor)
dashboard = ClimateDashboard(token=MAPBOX_TOKEN)

# Begin background health polling of the climate backend
dashboard.start()

# Stop the scheduler and fetch pool when the process exits
atexit.register(dashboard.stop)

# Register all interactive callback functions for user interface reactivity
register_callbacks(app, dashboard)

# ================= SERVER STARTUP =================

# Run development server when executed directly (not in production)
if __name__ == '__main__':
    # Get port from environment variable
    port = int(os.environ.get('PORT', 8050))
    # Start development server (not suitable for production use)
    app.run(host='0.0.0.0', port=port, debug=False)
