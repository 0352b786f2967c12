# ==============================================================================
# Background Health Monitoring of the Climate Backend
# ==============================================================================
# Purpose: Poll the backend health-check endpoint on a background schedule so
#          the dashboard can tell users when the data service is unreachable
#
# Input Files:
#   - None (calls GET /health-check through the API client)
#
# Output:
#   - Status information for the backend availability banner
# ==============================================================================

# ================= IMPORTS =================

import logging
import threading
from datetime import datetime
import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import ValidationError
from api_client import HttpError
from config import HEALTH_CONFIG, LOG_LEVEL, TIMEZONE

# ================= CONFIGURATION =================

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
    )
logger = logging.getLogger(__name__)

# ================= HEALTH MONITOR =================

class HealthMonitor:
    """Periodically checks backend health and tracks the latest result"""

    def __init__(self, api, interval_seconds=HEALTH_CONFIG['interval_seconds']):
        """Initialize monitor with an API client and polling interval"""

        self.api = api
        self.interval_seconds = interval_seconds
        self.timezone = pytz.timezone(TIMEZONE)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)
        self.check_lock = threading.Lock()

        # Status tracking for the availability banner
        self.status = "initializing"
        self.last_check_time = None
        self.error_message = None

    def start(self):
        """Run one check immediately, then poll on the background scheduler"""

        self.check()

        try:
            self.scheduler.add_job(
                self.check,
                IntervalTrigger(seconds=self.interval_seconds),
                id='health-check',
                max_instances=1
            )
            self.scheduler.start()
            logger.info(f"Health monitor started (every {self.interval_seconds}s)")

        except Exception as e:
            logger.error(f"Failed to start health monitor: {e}")
            self.set_error(str(e))

    def check(self):
        """Call the health-check endpoint and record the outcome"""

        with self.check_lock:
            try:
                result = self.api.health_check()
            except (HttpError, ValidationError) as e:
                self.set_error(str(e))
                return False
            finally:
                self.last_check_time = datetime.now(self.timezone)

            self.status = result.status
            self.error_message = None
            logger.debug(f"Backend status: {self.status}")
            return True

    def set_error(self, message):
        """Set unreachable state with message for status reporting"""

        self.status = "unreachable"
        self.error_message = message
        logger.error(f"Backend health check failed: {message}")

    def is_healthy(self):
        # Optimistic until the first check completes
        return self.status in ("initializing", "healthy")

    def get_status_info(self):
        """Get current backend status for the availability banner"""

        return {
            'status': self.status,
            'last_check': self.last_check_time,
            'error_message': self.error_message
        }

    def stop(self):
        """Gracefully shutdown the background scheduler"""

        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Health monitor stopped")
