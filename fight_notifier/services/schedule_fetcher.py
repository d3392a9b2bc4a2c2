"""Schedule fetcher for the UFC scoreboard and event documents"""
import asyncio
import re
from typing import Any, Dict, List, Optional, Tuple

from ..storage.models import Event
from ..utils.logger import setup_logger
from ..utils.timezone import parse_api_datetime
from .fetch_client import FetchClient

logger = setup_logger(__name__)

SCOREBOARD_URL = "https://site.api.espn.com/apis/site/v2/sports/mma/ufc/scoreboard"
CORE_API_BASE = "https://sports.core.api.espn.com/v2/sports/mma"
EVENT_URL_TEMPLATE = CORE_API_BASE + "/leagues/ufc/events/{event_id}?lang=en&region=us"

_EVENT_REF_PATTERN = re.compile(r"events/(\d+)")


class ScheduleUnavailableError(Exception):
    """Raised when the schedule index can't be fetched"""


class ScheduleFetcher:
    """Fetcher for the schedule index and per-event documents"""

    def __init__(
        self,
        client: FetchClient,
        scoreboard_url: str = SCOREBOARD_URL,
        batch_size: int = 6
    ):
        """
        Initialize schedule fetcher

        Args:
            client: Shared fetch client
            scoreboard_url: URL of the scoreboard (schedule index)
            batch_size: Number of event documents fetched concurrently
        """
        self.client = client
        self.scoreboard_url = scoreboard_url
        self.batch_size = max(1, batch_size)

    def fetch_scoreboard(self) -> Optional[Dict[str, Any]]:
        """Fetch the raw scoreboard document"""
        return self.client.fetch_json(self.scoreboard_url)

    def fetch_schedule_event_ids(self) -> List[str]:
        """
        Fetch the schedule index and extract event ids in calendar order

        Raises:
            ScheduleUnavailableError: If the scoreboard could not be fetched
        """
        board = self.fetch_scoreboard()
        if board is None:
            raise ScheduleUnavailableError(f"Could not fetch schedule index {self.scoreboard_url}")
        return extract_event_ids(board)

    async def fetch_events(self, event_ids: List[str]) -> Tuple[List[Event], List[str]]:
        """
        Fetch event documents in fixed-size concurrent batches

        Invalid documents are dropped. Documents that couldn't be fetched are
        reported separately so the caller can keep their state for the next run.

        Args:
            event_ids: Event ids to fetch

        Returns:
            (events sorted by date, ids whose document was unavailable)
        """
        logger.info(f"Fetching {len(event_ids)} events...")
        events: List[Event] = []
        unavailable: List[str] = []
        processed = 0

        for start in range(0, len(event_ids), self.batch_size):
            chunk = event_ids[start:start + self.batch_size]
            documents = await asyncio.gather(*[
                asyncio.to_thread(self.fetch_event_document, event_id) for event_id in chunk
            ])
            for event_id, raw in zip(chunk, documents):
                if raw is None:
                    unavailable.append(event_id)
                    continue
                event = parse_event(event_id, raw)
                if event is not None:
                    events.append(event)

            processed += len(chunk)
            if len(event_ids) > 20:
                logger.info(f"  Events progress: {processed}/{len(event_ids)}")

        events.sort(key=lambda e: (e.date is None, e.date or 0))
        if unavailable:
            logger.warning(f"Event documents unavailable this run: {', '.join(unavailable)}")
        logger.info(f"Fetched {len(events)} valid events")
        return events, unavailable

    def fetch_event_document(self, event_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the raw event document; None if it couldn't be fetched"""
        url = EVENT_URL_TEMPLATE.format(event_id=event_id)
        try:
            return self.client.fetch_json(url)
        except Exception as e:
            logger.error(f"Error fetching event {event_id}: {e}")
            return None

    def fetch_event(self, event_id: str) -> Optional[Event]:
        """Fetch and validate a single event document"""
        return parse_event(event_id, self.fetch_event_document(event_id))


def extract_event_ids(board: Dict[str, Any]) -> List[str]:
    """
    Extract unique event ids from the scoreboard calendar

    Calendar entries look like {"event": {"$ref": ".../events/600053545?..."}}
    """
    leagues = board.get("leagues") or []
    calendar = (leagues[0].get("calendar") if leagues and isinstance(leagues[0], dict) else None) or []

    event_ids: List[str] = []
    for item in calendar:
        if not isinstance(item, dict):
            continue
        ref = (item.get("event") or {}).get("$ref") or ""
        match = _EVENT_REF_PATTERN.search(ref)
        if match and match.group(1) not in event_ids:
            event_ids.append(match.group(1))

    logger.debug(f"Extracted {len(event_ids)} event ids from schedule index")
    return event_ids


def parse_event(event_id: str, raw: Optional[Dict[str, Any]]) -> Optional[Event]:
    """Build an Event from a raw document; None if name, competitions or date are missing"""
    if not raw or not isinstance(raw, dict):
        return None
    name = raw.get("name")
    competitions = raw.get("competitions")
    raw_date = raw.get("date")
    if not name or not competitions or not raw_date:
        logger.debug(f"Skipping incomplete event document {event_id}")
        return None

    return Event(
        event_id=str(event_id),
        name=name,
        date=parse_api_datetime(raw_date),
        raw_date=raw_date,
        competitions=[c for c in competitions if isinstance(c, dict)]
    )
