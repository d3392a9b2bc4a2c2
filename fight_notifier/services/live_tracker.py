"""Per-fight live tracking for an event in progress"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..storage.models import Event, Fight
from ..utils.logger import setup_logger
from .fetch_client import FetchClient
from .fight_normalizer import FightNormalizer
from .live_status import STATUS_ORDER, FightStatus, normalize_status
from .schedule_fetcher import ScheduleFetcher

logger = setup_logger(__name__)


@dataclass
class FightState:
    """Last known live state of a fight"""
    fight: Fight
    status: FightStatus = FightStatus.SCHEDULED
    period: int = 0
    clock: Optional[str] = None


@dataclass
class StatusUpdate:
    """One status reading for a fight"""
    status: FightStatus
    period: int = 0
    clock: Optional[str] = None
    detail: Optional[str] = None
    winner: Optional[str] = None


def parse_status_update(raw_status: Any, competitors: List[Dict[str, Any]], fight: Fight) -> StatusUpdate:
    """
    Build a StatusUpdate from an upstream status object and the competitor list

    The winner is matched to the fighter at the same position in the card order.
    """
    raw_status = raw_status if isinstance(raw_status, dict) else {}
    status_type = raw_status.get("type") or {}

    try:
        period = int(raw_status.get("period") or 0)
    except (TypeError, ValueError):
        period = 0

    winner = None
    for index, competitor in enumerate(competitors or []):
        if isinstance(competitor, dict) and competitor.get("winner") is True and index < len(fight.participants):
            winner = fight.participants[index].display_name
            break

    return StatusUpdate(
        status=normalize_status(raw_status),
        period=period,
        clock=raw_status.get("displayClock"),
        detail=status_type.get("detail") or status_type.get("description"),
        winner=winner
    )


def apply_update(state: FightState, update: StatusUpdate) -> List[str]:
    """
    Advance a fight's state machine and return the alerts it produces

    Transitions only move forward (scheduled -> live -> completed); UNKNOWN
    readings and backward readings are ignored.
    """
    if update.status is FightStatus.UNKNOWN:
        return []
    if STATUS_ORDER[update.status] < STATUS_ORDER[state.status]:
        logger.debug(f"Ignoring backward status {update.status.value} for {state.fight.fight_name}")
        return []

    name = state.fight.fight_name
    alerts = []

    if update.status is FightStatus.LIVE:
        if state.status is FightStatus.SCHEDULED:
            alerts.append(f"🥊 **Fight started:** {name}")
        elif update.period > state.period:
            alerts.append(f"⏱️ **Round {update.period}:** {name}")

    elif update.status is FightStatus.COMPLETED and state.status is not FightStatus.COMPLETED:
        result = f"🏁 **Fight over:** {name}"
        if update.winner:
            result += f" - {update.winner} wins"
        details = [d for d in (update.detail, _round_clock(update)) if d]
        if details:
            result += f" ({', '.join(details)})"
        alerts.append(result)

    state.status = update.status
    state.period = max(state.period, update.period)
    state.clock = update.clock or state.clock
    return alerts


def _round_clock(update: StatusUpdate) -> Optional[str]:
    if not update.period:
        return None
    if update.clock:
        return f"R{update.period} {update.clock}"
    return f"R{update.period}"


class LiveTracker:
    """Polls an event's fights and emits live alerts"""

    def __init__(
        self,
        client: FetchClient,
        schedule_fetcher: ScheduleFetcher,
        normalizer: FightNormalizer,
        batch_size: int = 6
    ):
        self.client = client
        self.schedule_fetcher = schedule_fetcher
        self.normalizer = normalizer
        self.batch_size = max(1, batch_size)
        self.states: Dict[str, FightState] = {}
        self.event: Optional[Event] = None

    @property
    def all_completed(self) -> bool:
        return bool(self.states) and all(s.status is FightStatus.COMPLETED for s in self.states.values())

    async def load_event(self, event_id: str) -> Optional[Event]:
        """Fetch the event and initialise per-fight state; None if unavailable"""
        event = await asyncio.to_thread(self.schedule_fetcher.fetch_event, event_id)
        if event is None:
            logger.error(f"Could not load live event {event_id}")
            return None

        event.fights = await self.normalizer.normalize(event.competitions, event.event_id, event.name, event.date)
        self.event = event
        for fight in event.fights:
            self.states.setdefault(fight.fight_id, FightState(fight=fight))
        logger.info(f"Tracking {len(event.fights)} fights for {event.name}")
        return event

    async def poll(self) -> List[str]:
        """
        Refresh the event document and every fight's status

        Returns:
            Alerts produced by this poll, in card order
        """
        if self.event is None:
            return []

        refreshed = await asyncio.to_thread(self.schedule_fetcher.fetch_event, self.event.event_id)
        if refreshed is None:
            logger.warning(f"Live poll skipped, event {self.event.event_id} unavailable")
            return []

        competitions = {str(c.get("id")): c for c in refreshed.competitions if c.get("id")}
        tracked = [s for s in self.states.values() if s.fight.fight_id in competitions]

        alerts: List[str] = []
        for start in range(0, len(tracked), self.batch_size):
            chunk = tracked[start:start + self.batch_size]
            statuses = await asyncio.gather(*[
                asyncio.to_thread(self._fetch_status, competitions[s.fight.fight_id]) for s in chunk
            ])
            for state, raw_status in zip(chunk, statuses):
                comp = competitions[state.fight.fight_id]
                update = parse_status_update(raw_status, comp.get("competitors") or [], state.fight)
                alerts.extend(apply_update(state, update))

        return alerts

    def _fetch_status(self, competition: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the inline status object or fetch it through its $ref"""
        status = competition.get("status")
        if not isinstance(status, dict):
            return None
        if "$ref" in status and "type" not in status:
            return self.client.fetch_json(status["$ref"])
        return status
