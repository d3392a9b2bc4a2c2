"""Configuration loading and validation"""
import os
from typing import Optional
import pytz
from dotenv import load_dotenv

from .utils.logger import setup_logger

# Load environment variables from .env file before any logger reads LOG_LEVEL
load_dotenv()

logger = setup_logger(__name__)


def _get_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() == "true"


class Config:
    """Application configuration"""

    def __init__(self, require_webhook: bool = True):
        """
        Load and validate configuration

        Args:
            require_webhook: Fail when DISCORD_WEBHOOK_URL is missing (the recorder doesn't post)
        """
        # Discord configuration
        if require_webhook:
            self.discord_webhook_url: Optional[str] = self._get_required("DISCORD_WEBHOOK_URL")
        else:
            self.discord_webhook_url = os.getenv("DISCORD_WEBHOOK_URL")
        self.discord_username = os.getenv("DISCORD_USERNAME")

        # Persistence
        self.data_dir = os.getenv("DATA_DIR", "data")

        # Polling
        self.watch_interval_minutes = int(os.getenv("WATCH_INTERVAL_MINUTES", "60"))
        self.horizon_months = int(os.getenv("HORIZON_MONTHS", "4"))
        self.notify_run_status = _get_bool("NOTIFY_RUN_STATUS", "true")

        # Upstream fetching
        self.request_interval_ms = int(os.getenv("REQUEST_INTERVAL_MS", "50"))
        self.fetch_retries = int(os.getenv("FETCH_RETRIES", "2"))
        self.retry_delay_ms = int(os.getenv("RETRY_DELAY_MS", "500"))
        self.request_timeout = int(os.getenv("REQUEST_TIMEOUT", "30"))
        self.batch_size = int(os.getenv("BATCH_SIZE", "6"))

        # Display
        self.display_timezone = os.getenv("DISPLAY_TIMEZONE", "America/Los_Angeles")

        # Live mode
        self.live_mode = _get_bool("LIVE_MODE")
        self.force_simulate_live = _get_bool("FORCE_SIMULATE_LIVE")
        self.force_event_id = os.getenv("FORCE_EVENT_ID")
        self.event_name = os.getenv("EVENT_NAME")
        self.live_poll_seconds = int(os.getenv("LIVE_POLL_SECONDS", "10"))
        self.live_duration_minutes = int(os.getenv("LIVE_DURATION_MINUTES", "240"))

        # Recorder
        self.record_output_dir = os.getenv("RECORD_OUTPUT_DIR", "mock-event-recordings")
        self.record_interval_seconds = int(os.getenv("RECORD_INTERVAL_SECONDS", "10"))
        self.record_duration_minutes = int(os.getenv("RECORD_DURATION_MINUTES", "30"))

        self.debug_mode = _get_bool("DEBUG_MODE")

        self._validate()
        logger.info("Configuration loaded successfully")

    @property
    def live_enabled(self) -> bool:
        return self.live_mode or self.force_simulate_live

    def _get_required(self, key: str) -> str:
        """Get required environment variable"""
        value = os.getenv(key)
        if not value:
            raise ValueError(f"Required environment variable {key} is not set")
        return value

    def _validate(self):
        """Validate configuration values"""
        if self.watch_interval_minutes < 1:
            raise ValueError("WATCH_INTERVAL_MINUTES must be at least 1 minute")

        if self.horizon_months < 1:
            raise ValueError("HORIZON_MONTHS must be at least 1")

        if self.request_interval_ms < 0:
            raise ValueError("REQUEST_INTERVAL_MS must be non-negative")

        if self.fetch_retries < 1:
            raise ValueError("FETCH_RETRIES must be at least 1")

        if self.batch_size < 1:
            raise ValueError("BATCH_SIZE must be at least 1")

        if self.live_poll_seconds < 1:
            raise ValueError("LIVE_POLL_SECONDS must be at least 1 second")

        if self.force_simulate_live and not self.force_event_id:
            raise ValueError("FORCE_SIMULATE_LIVE requires FORCE_EVENT_ID")

        if self.display_timezone not in pytz.all_timezones_set:
            raise ValueError(f"DISPLAY_TIMEZONE '{self.display_timezone}' is not a known timezone")

        logger.info(f"Watch interval: {self.watch_interval_minutes} minutes")
        logger.info(f"Upcoming window: {self.horizon_months} months")
        if self.force_simulate_live:
            logger.info(f"Simulated live mode for event {self.force_event_id} ({self.event_name or 'unnamed'})")
        elif self.live_mode:
            logger.info("Live mode: enabled")
        else:
            logger.info("Live mode: disabled")
