"""Record snapshots of the currently live UFC event for later replay"""
import asyncio
import sys

from .config import Config
from .services.event_recorder import EventRecorder
from .services.fetch_client import FetchClient, RateLimiter
from .utils.logger import setup_logger

logger = setup_logger(__name__)


async def record(config: Config) -> int:
    client = FetchClient(
        rate_limiter=RateLimiter(config.request_interval_ms / 1000),
        retries=config.fetch_retries,
        retry_delay=config.retry_delay_ms / 1000,
        timeout=config.request_timeout
    )
    recorder = EventRecorder(
        client,
        output_dir=config.record_output_dir,
        interval_seconds=config.record_interval_seconds,
        duration_minutes=config.record_duration_minutes
    )
    try:
        logger.info("Detecting current live event...")
        event_id = config.force_event_id or await asyncio.to_thread(recorder.detect_live_event)
        if not event_id:
            logger.error("No live event currently active.")
            return 1

        logger.info(f"Live event detected: {event_id}")
        await recorder.record(event_id)
        return 0
    finally:
        client.close()


def main():
    """Main entry point"""
    try:
        config = Config(require_webhook=False)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    sys.exit(asyncio.run(record(config)))


if __name__ == "__main__":
    main()
