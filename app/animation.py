# ==============================================================================
# Time Animation Stepping for the Choropleth
# ==============================================================================
# Purpose: Advance the selected (year, week) on every timer tick while playing,
#          holding position whenever a snapshot request is still in flight so
#          no frame is skipped during loading
#
# Input Files:
#   - None
#
# Output:
#   - AnimationClock operating on a SelectionStore
# ==============================================================================

# ================= IMPORTS =================

import logging
from config import DATE_RANGE, LOG_LEVEL

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# ================= ANIMATION CLOCK =================

class AnimationClock:
    """Steps week by week through the date range, wrapping at the ends"""

    def __init__(self, is_playing=False, date_range=DATE_RANGE):
        self.is_playing = is_playing
        self.date_range = date_range

    def toggle(self):
        self.is_playing = not self.is_playing
        return self.is_playing

    def tick(self, store, request_pending):
        """Advance one week if playing and nothing is loading; return True if advanced"""

        if not self.is_playing or request_pending:
            return False

        min_week = self.date_range['min_week']
        max_week = self.date_range['max_week']

        if store.selected_week >= max_week:
            store.set_selected_year(self._next_year)
            store.set_selected_week(min_week)
        else:
            store.set_selected_week(lambda week: week + 1)

        return True

    def _next_year(self, year):
        """Next year, wrapping to the start and stopping playback after the last"""

        if year >= self.date_range['max_year']:
            logger.info("Animation reached the end of the date range - stopping")
            self.is_playing = False
            return self.date_range['min_year']
        return year + 1
