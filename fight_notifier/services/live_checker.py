"""Live event detection from the scoreboard"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.logger import setup_logger
from ..utils.timezone import parse_api_datetime
from .live_status import FightStatus, normalize_status

logger = setup_logger(__name__)

# Elapsed-time windows, in hours
PRE_START_WINDOW = 0.5
POST_END_WINDOW = 2.0
UPCOMING_WINDOW = 4.0

LIVE_CHECK_SECONDS = 10
UPCOMING_CHECK_SECONDS = 30 * 60
IDLE_CHECK_SECONDS = 3 * 60 * 60
ERROR_CHECK_SECONDS = 60 * 60


@dataclass
class LiveCheckResult:
    """Outcome of a live check and when to check again"""
    is_live: bool
    next_check_seconds: int
    event_name: Optional[str] = None
    event_id: Optional[str] = None
    event_date: Optional[datetime] = None
    status: Optional[str] = None
    upcoming_soon: bool = False
    error: Optional[str] = None

    def minutes_until(self, now: datetime) -> Optional[int]:
        if self.event_date is None:
            return None
        return max(0, int((self.event_date - now).total_seconds() // 60))


def event_phase(status: FightStatus, event_date: Optional[datetime], now: datetime) -> FightStatus:
    """
    Decide whether an event should be treated as live right now

    Args:
        status: Normalized upstream status of the event
        event_date: Event start (naive UTC)
        now: Current time (naive UTC)

    Returns:
        LIVE inside the windows around the start, otherwise the upstream status
    """
    if status is FightStatus.LIVE:
        return FightStatus.LIVE
    if event_date is None:
        return status

    hours_from_now = abs((now - event_date).total_seconds()) / 3600
    if status is FightStatus.SCHEDULED and hours_from_now <= PRE_START_WINDOW:
        return FightStatus.LIVE
    if status is FightStatus.COMPLETED and hours_from_now <= POST_END_WINDOW:
        return FightStatus.LIVE
    return status


def check_live_events(scoreboard: Optional[Dict[str, Any]], now: datetime) -> LiveCheckResult:
    """
    Find a live or soon-starting event on the scoreboard

    Args:
        scoreboard: Raw scoreboard document, or None if it couldn't be fetched
        now: Current time (naive UTC)

    Returns:
        LiveCheckResult describing the first live/upcoming event found
    """
    if scoreboard is None:
        logger.error("Scoreboard unavailable for live check")
        return LiveCheckResult(is_live=False, next_check_seconds=ERROR_CHECK_SECONDS, error="scoreboard unavailable")

    events = scoreboard.get("events") or []
    if not events:
        logger.info("No events data found on scoreboard")
        return LiveCheckResult(is_live=False, next_check_seconds=IDLE_CHECK_SECONDS)

    logger.debug(f"Found {len(events)} events to check")

    for event in events:
        if not isinstance(event, dict):
            continue
        event_date = parse_api_datetime(event.get("date"))
        raw_status = event.get("status") or {}
        status = normalize_status(raw_status)
        status_name = ((raw_status.get("type") or {}).get("name") if isinstance(raw_status, dict) else None)

        logger.debug(f"Event {event.get('name')}: date={event_date} status={status.value}")

        if event_phase(status, event_date, now) is FightStatus.LIVE:
            logger.info(f"LIVE EVENT DETECTED: {event.get('name')}")
            return LiveCheckResult(
                is_live=True,
                next_check_seconds=LIVE_CHECK_SECONDS,
                event_name=event.get("name"),
                event_id=str(event.get("id")) if event.get("id") else None,
                event_date=event_date,
                status=status_name or "Live"
            )

        if event_date and event_date > now:
            hours_until = (event_date - now).total_seconds() / 3600
            if hours_until <= UPCOMING_WINDOW:
                logger.info(f"Upcoming event: {event.get('name')} in {hours_until:.1f} hours")
                return LiveCheckResult(
                    is_live=False,
                    next_check_seconds=UPCOMING_CHECK_SECONDS,
                    event_name=event.get("name"),
                    event_id=str(event.get("id")) if event.get("id") else None,
                    event_date=event_date,
                    status="Upcoming",
                    upcoming_soon=True
                )

    logger.info("No live or upcoming events found")
    return LiveCheckResult(is_live=False, next_check_seconds=IDLE_CHECK_SECONDS)
