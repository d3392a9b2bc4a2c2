"""Main entry point for the UFC fight notifier"""
import asyncio
import signal
import sys
from datetime import timedelta
from typing import Optional

from .config import Config
from .storage.state_store import StateStore
from .services.discord_client import DiscordClient
from .services.fetch_client import FetchClient, RateLimiter
from .services.fight_normalizer import FightNormalizer
from .services.live_checker import LiveCheckResult, check_live_events
from .services.live_tracker import LiveTracker
from .services.notification_service import NotificationService
from .services.schedule_fetcher import ScheduleFetcher
from .services.watcher import FightWatcher
from .utils.cache import RunCache
from .utils.logger import setup_logger
from .utils.timezone import now_utc

logger = setup_logger(__name__)


class FightNotifierBot:
    """Main bot orchestrator"""

    def __init__(self, config: Optional[Config] = None):
        """Initialize bot components"""
        self.config = config or Config()
        self.running = False
        self.announced_upcoming_id: Optional[str] = None

        self.store = StateStore(data_dir=self.config.data_dir)
        self.client = FetchClient(
            rate_limiter=RateLimiter(self.config.request_interval_ms / 1000),
            retries=self.config.fetch_retries,
            retry_delay=self.config.retry_delay_ms / 1000,
            timeout=self.config.request_timeout
        )
        self.discord_client = DiscordClient(
            webhook_url=self.config.discord_webhook_url,
            username=self.config.discord_username
        )
        self.notifications = NotificationService(self.discord_client, display_tz=self.config.display_timezone)
        self.schedule_fetcher = ScheduleFetcher(self.client, batch_size=self.config.batch_size)
        self.watcher = FightWatcher(
            client=self.client,
            store=self.store,
            notifications=self.notifications,
            schedule_fetcher=self.schedule_fetcher,
            horizon_months=self.config.horizon_months,
            batch_size=self.config.batch_size,
            notify_run_status=self.config.notify_run_status
        )

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.running = False

    async def start(self):
        """Run the watcher until stopped"""
        self.running = True
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        logger.info("Starting UFC fight notifier...")

        try:
            if self.config.force_simulate_live:
                await self._simulated_live_session()
            while self.running:
                delay = await self._cycle()
                await self._sleep(delay)
        finally:
            self.client.close()
            logger.info("Notifier stopped")

    async def _cycle(self) -> int:
        """
        One scheduler iteration

        Returns:
            Seconds to wait before the next iteration
        """
        standard_delay = self.config.watch_interval_minutes * 60
        try:
            if not self.config.live_enabled:
                await self.watcher.run_once()
                return standard_delay

            check = self._check_live()
            if check.is_live and check.event_id:
                await self.run_live_session(check.event_id, check.event_name)
                await self.watcher.run_once()
                return standard_delay

            upcoming_key = check.event_id or check.event_name
            if check.upcoming_soon and upcoming_key != self.announced_upcoming_id:
                minutes = check.minutes_until(now_utc())
                self.notifications.send_upcoming(check.event_name, minutes if minutes is not None else 0)
                self.announced_upcoming_id = upcoming_key

            await self.watcher.run_once()
            return min(check.next_check_seconds, standard_delay)

        except Exception as e:
            logger.error(f"Error in watcher cycle: {e}", exc_info=True)
            return standard_delay

    def _check_live(self) -> LiveCheckResult:
        logger.info("Checking for live UFC events...")
        return check_live_events(self.schedule_fetcher.fetch_scoreboard(), now_utc())

    async def _simulated_live_session(self):
        logger.info(f"SIMULATED LIVE MODE for: {self.config.event_name or self.config.force_event_id}")
        await self.run_live_session(self.config.force_event_id, self.config.event_name)

    async def run_live_session(self, event_id: str, event_name: Optional[str] = None):
        """
        Track a live event until every fight completes or the session bound is reached
        """
        tracker = LiveTracker(
            client=self.client,
            schedule_fetcher=self.schedule_fetcher,
            normalizer=FightNormalizer(self.client, cache=RunCache(), batch_size=self.config.batch_size),
            batch_size=self.config.batch_size
        )
        event = await tracker.load_event(event_id)
        if event is None:
            return

        name = event_name or event.name
        self.notifications.send_live_start(name, len(event.fights), self.config.live_poll_seconds)

        deadline = now_utc() + timedelta(minutes=self.config.live_duration_minutes)
        while self.running and now_utc() < deadline:
            try:
                alerts = await tracker.poll()
                self.notifications.send_fight_updates(name, alerts)
            except Exception as e:
                logger.error(f"Error in live poll: {e}", exc_info=True)

            if tracker.all_completed:
                logger.info(f"All fights completed for {name}")
                break
            await self._sleep(self.config.live_poll_seconds)

        self.notifications.send_live_end(name, f"every {self.config.watch_interval_minutes} minutes")

    async def _sleep(self, seconds: int):
        """Sleep in one-second steps so shutdown signals are honoured promptly"""
        for _ in range(max(0, int(seconds))):
            if not self.running:
                break
            await asyncio.sleep(1)


async def main():
    """Main entry point"""
    try:
        bot = FightNotifierBot()
        await bot.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
