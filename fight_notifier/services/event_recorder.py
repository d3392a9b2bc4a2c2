"""Records snapshots of a live event document to disk"""
import asyncio
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.logger import setup_logger
from ..utils.timezone import now_utc, parse_api_datetime
from .fetch_client import FetchClient
from .schedule_fetcher import EVENT_URL_TEMPLATE, SCOREBOARD_URL

logger = setup_logger(__name__)

# How long after the scheduled start an event still counts as running
LIVE_EVENT_SPAN = timedelta(hours=4)


def find_live_event_id(scoreboard: Optional[Dict[str, Any]], now: datetime) -> Optional[str]:
    """Return the id of the event whose [start, start + 4h] window contains now"""
    for event in (scoreboard or {}).get("events") or []:
        if not isinstance(event, dict):
            continue
        start = parse_api_datetime(event.get("date"))
        if start is None or not (start <= now <= start + LIVE_EVENT_SPAN):
            continue

        links = event.get("links") or []
        href = (links[0].get("href") if links and isinstance(links[0], dict) else "") or ""
        marker = "event/"
        if marker in href:
            link_id = href.split(marker, 1)[1].split("/", 1)[0]
            if link_id.isdigit():
                return link_id
        if event.get("id"):
            return str(event["id"])
    return None


class EventRecorder:
    """Fetches an event document at a fixed interval and writes each snapshot to a file"""

    def __init__(
        self,
        client: FetchClient,
        output_dir: str = "mock-event-recordings",
        interval_seconds: int = 10,
        duration_minutes: int = 30
    ):
        self.client = client
        self.output_dir = Path(output_dir)
        self.interval_seconds = interval_seconds
        self.duration_minutes = duration_minutes
        self.snapshot_count = 0

    def detect_live_event(self) -> Optional[str]:
        return find_live_event_id(self.client.fetch_json(SCOREBOARD_URL), now_utc())

    def record_snapshot(self, event_id: str) -> Optional[Path]:
        """Fetch one snapshot; failures are logged and skipped"""
        data = self.client.fetch_json(EVENT_URL_TEMPLATE.format(event_id=event_id))
        if data is None:
            logger.error(f"Failed to fetch snapshot for event {event_id}")
            return None

        timestamp = now_utc().isoformat().replace(":", "-").replace(".", "-")
        path = self.output_dir / f"event-{event_id}-{timestamp}.json"
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to write snapshot {path}: {e}")
            return None

        self.snapshot_count += 1
        logger.info(f"Snapshot saved: {path}")
        return path

    async def record(self, event_id: str) -> int:
        """
        Record snapshots until the session duration elapses

        Returns:
            Number of snapshots written
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        deadline = now_utc() + timedelta(minutes=self.duration_minutes)
        logger.info(f"Recording event {event_id} every {self.interval_seconds}s for {self.duration_minutes} minutes")

        while now_utc() < deadline:
            await asyncio.to_thread(self.record_snapshot, event_id)
            await asyncio.sleep(self.interval_seconds)

        logger.info(f"Done. {self.snapshot_count} snapshots saved to {self.output_dir}")
        return self.snapshot_count
