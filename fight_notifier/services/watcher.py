"""Poll orchestrator: one full watcher run"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..storage.models import ChangeReport, Event, EventWindow, Fight
from ..storage.state_store import StateStore
from ..utils.cache import RunCache
from ..utils.logger import setup_logger
from ..utils.timezone import add_months, format_event_datetime, now_utc
from .change_detector import detect_fight_changes
from .fetch_client import FetchClient
from .fight_normalizer import FightNormalizer
from .notification_service import NotificationService
from .schedule_fetcher import ScheduleFetcher

logger = setup_logger(__name__)


def classify_event(event_date: Optional[datetime], now: datetime, horizon_months: int = 4) -> EventWindow:
    """
    Place an event relative to now and the forward horizon

    An unparseable date is kept in the upcoming window so its fights are still compared.
    """
    if event_date is None:
        return EventWindow.UPCOMING
    if event_date < now:
        return EventWindow.PAST
    if event_date > add_months(now, horizon_months):
        return EventWindow.TOO_FAR_FUTURE
    return EventWindow.UPCOMING


@dataclass
class RunResult:
    """Summary of a completed watcher run"""
    new_fight_ids: List[str] = field(default_factory=list)
    updated_fight_ids: List[str] = field(default_factory=list)
    report: ChangeReport = field(default_factory=ChangeReport)
    upcoming_event_ids: List[str] = field(default_factory=list)
    archived_event_ids: List[str] = field(default_factory=list)
    unavailable_event_ids: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def has_changes(self) -> bool:
        return bool(self.new_fight_ids or self.report.total_changes or self.report.removed)


class FightWatcher:
    """Runs one poll cycle: fetch, normalize, diff, notify, persist"""

    def __init__(
        self,
        client: FetchClient,
        store: StateStore,
        notifications: NotificationService,
        schedule_fetcher: Optional[ScheduleFetcher] = None,
        horizon_months: int = 4,
        batch_size: int = 6,
        notify_run_status: bool = True
    ):
        """
        Initialize watcher

        Args:
            client: Shared fetch client
            store: Persisted state
            notifications: Notification service
            schedule_fetcher: Schedule fetcher (built from client if omitted)
            horizon_months: Forward window for upcoming events
            batch_size: Concurrent fetches per batch
            notify_run_status: Post start/summary messages for every run
        """
        self.client = client
        self.store = store
        self.notifications = notifications
        self.schedule_fetcher = schedule_fetcher or ScheduleFetcher(client, batch_size=batch_size)
        self.horizon_months = horizon_months
        self.batch_size = batch_size
        self.notify_run_status = notify_run_status

    async def run_once(self, now: Optional[datetime] = None) -> Optional[RunResult]:
        """
        Execute one watcher run

        On any failure before the save step the persisted state is left
        untouched and a failure notification is attempted.

        Returns:
            RunResult, or None if the run aborted
        """
        started = time.monotonic()
        now = now or now_utc()
        cache = RunCache()

        if self.notify_run_status:
            self.notifications.send_run_started(format_event_datetime(now, self.notifications.display_tz))

        try:
            result = await self._run(now, cache)
        except Exception as e:
            logger.error(f"General failure in watcher run: {e}", exc_info=True)
            self.notifications.send_failure(e)
            return None

        result.duration = time.monotonic() - started
        if not result.has_changes:
            self.notifications.send_no_changes()

        logger.info(
            f"Completed in {result.duration:.2f} seconds - {len(result.new_fight_ids)} new, "
            f"{result.report.total_changes} changed, {len(result.report.removed)} removed, "
            f"{len(cache)} fighters cached ({cache.hits} hits, {cache.misses} misses)"
        )
        if self.notify_run_status:
            self.notifications.send_run_summary(
                result.duration, len(cache), result.report.total_changes, len(result.report.removed)
            )
        return result

    async def _run(self, now: datetime, cache: RunCache) -> RunResult:
        known_fights = self.store.load_known_fights()
        known_events = self.store.load_known_events()
        unannounced_entries = self.store.load_unannounced()
        unannounced_before = {e.get("fight_id") for e in unannounced_entries}
        previous_details = self.store.load_fight_details()

        # Raises ScheduleUnavailableError before anything is written
        index_ids = self.schedule_fetcher.fetch_schedule_event_ids()
        all_event_ids = list(dict.fromkeys(known_events + index_ids))

        events, unavailable_ids = await self.schedule_fetcher.fetch_events(all_event_ids)
        normalizer = FightNormalizer(self.client, cache=cache, batch_size=self.batch_size)

        result = RunResult(unavailable_event_ids=unavailable_ids)
        known_fight_set = set(known_fights)
        seen_fight_ids: List[str] = []
        unannounced_after: List[Dict[str, Any]] = []
        current_details: Dict[str, Dict[str, Any]] = {}
        current_fights: List[Fight] = []
        fight_log: List[Dict[str, Any]] = []
        past_events: List[Dict[str, Any]] = []
        archived_ids = {e.get("event_id") for e in self.store.load_past_events() if isinstance(e, dict)}

        logger.info(f"Processing {len(events)} valid events...")

        for event in events:
            window = classify_event(event.date, now, self.horizon_months)

            if window is EventWindow.PAST:
                if event.event_id not in archived_ids:
                    past_events.append(await self._build_past_event(event, normalizer))
                continue
            if window is EventWindow.TOO_FAR_FUTURE:
                logger.debug(f"Skipping {event.name}, beyond {self.horizon_months} month horizon")
                continue

            result.upcoming_event_ids.append(event.event_id)
            logger.info(f"Event: {event.name} on {event.raw_date}")

            fights = await normalizer.normalize(event.competitions, event.event_id, event.name, event.date)
            event.fights = fights
            current_fights.extend(fights)

            new_this_event: List[Fight] = []
            updated_this_event: List[Fight] = []

            for fight in fights:
                seen_fight_ids.append(fight.fight_id)
                current_details[fight.fight_id] = fight.to_snapshot(event.raw_date)
                logger.info(f"  Fight: {fight.fight_name} (ID: {fight.fight_id})")

                if fight.announced and fight.fight_id in unannounced_before:
                    updated_this_event.append(fight)
                    result.updated_fight_ids.append(fight.fight_id)
                if not fight.announced:
                    unannounced_after.append({
                        "event_id": event.event_id,
                        "event_name": event.name,
                        "fight_id": fight.fight_id,
                    })

                if fight.fight_id not in known_fight_set:
                    new_this_event.append(fight)
                    result.new_fight_ids.append(fight.fight_id)
                    fight_log.append({
                        "timestamp": now.isoformat(),
                        "event_name": event.name,
                        "fight": fight.fight_name,
                    })

            if new_this_event:
                self.notifications.send_new_fights(event.name, event.date, new_this_event)
            if updated_this_event:
                self.notifications.send_updated_fights(event.name, event.date, updated_this_event)

        logger.info("Checking for fight changes and removals...")
        result.report = detect_fight_changes(previous_details, current_fights)
        self.notifications.send_change_report(result.report)

        # Events whose document was unavailable keep their previous state
        held_events = set(unavailable_ids) & set(known_events)
        for fight_id, entry in previous_details.items():
            if isinstance(entry, dict) and entry.get("event_id") in held_events:
                current_details.setdefault(fight_id, entry)
                seen_fight_ids.append(fight_id)
        unannounced_after.extend(e for e in unannounced_entries if e.get("event_id") in held_events)

        seen = set(seen_fight_ids)
        cleaned_fights = [f for f in dict.fromkeys(known_fights + result.new_fight_ids) if f in seen]
        saved_events = result.upcoming_event_ids + [e for e in known_events if e in held_events]

        self.store.save_known_events(saved_events)
        self.store.save_known_fights(cleaned_fights)
        self.store.save_unannounced(unannounced_after)
        self.store.save_fight_details(current_details)
        self.store.append_fight_log(fight_log)
        for past_event in past_events:
            if self.store.append_past_event(past_event):
                result.archived_event_ids.append(past_event["event_id"])

        return result

    async def _build_past_event(self, event: Event, normalizer: FightNormalizer) -> Dict[str, Any]:
        """Normalize a concluded event into an archive record"""
        logger.info(f"Processing past event: {event.name}")
        fights = await normalizer.normalize(event.competitions, event.event_id, event.name, event.date)
        return {
            "event_id": event.event_id,
            "event_name": event.name,
            "event_date": event.raw_date,
            "fights": [
                {"fight_id": f.fight_id, "participants": f.participant_names}
                for f in fights
            ],
        }
