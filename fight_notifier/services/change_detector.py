"""
Change detection between the previous fight snapshot and the current poll.

Given the snapshot written by the previous successful run and the fights
seen in this run, report:

- fights whose participants changed, grouped by the current event name
- fights that disappeared while their event is still on the schedule

A fight that vanished together with every other fight of its event is not
reported: the event concluded and was archived, it was not cancelled.
New fights are not reported here; the watcher compares against the
known-fights ledger for that.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..storage.models import ChangeReport, EventChanges, Fight, RemovedFight
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

CHANGE_ARROW = "→"


def participant_names(participants: Any) -> List[str]:
    """
    Sorted display names for a participant list

    Accepts plain strings, mappings (display_name / displayName / shortDisplay)
    or Fighter objects. Anything that isn't a list compares as empty.
    """
    if not isinstance(participants, (list, tuple)):
        return []

    names = []
    for p in participants:
        if isinstance(p, str):
            names.append(p)
        elif isinstance(p, Mapping):
            name = p.get("display_name") or p.get("displayName") or p.get("shortDisplay")
            names.append(name or "Unknown Fighter")
        elif hasattr(p, "display_name"):
            names.append(p.display_name or "Unknown Fighter")
    return sorted(names)


def _snapshot_participants(entry: Mapping) -> Any:
    if "participants" in entry:
        return entry.get("participants")
    return entry.get("athletes")


def _field(entry: Mapping, name: str, legacy_name: str) -> Any:
    # snapshots written by older versions used camelCase keys
    value = entry.get(name)
    return value if value is not None else entry.get(legacy_name)


def detect_fight_changes(
    previous_snapshot: Mapping[str, Mapping[str, Any]],
    current_fights: Iterable[Fight]
) -> ChangeReport:
    """
    Compare the previous snapshot with the current fights

    Args:
        previous_snapshot: fight_id -> snapshot entry from the last successful poll
        current_fights: Fights seen in this poll (upcoming events only)

    Returns:
        ChangeReport with changes_by_event and removed
    """
    current_fights = list(current_fights)
    report = ChangeReport()

    current_ids = {f.fight_id for f in current_fights}
    surviving_events = {f.event_id for f in current_fights}

    for fight_id, old in previous_snapshot.items():
        if fight_id in current_ids or not isinstance(old, Mapping):
            continue
        fight_name = (
            _field(old, "fight_name", "fightName")
            or " vs ".join(participant_names(_snapshot_participants(old)))
        )
        event_name = _field(old, "event_name", "eventName") or "Unknown Event"
        if _field(old, "event_id", "eventId") in surviving_events:
            report.removed.append(RemovedFight(
                fight_id=fight_id,
                fight_name=fight_name,
                event_name=event_name
            ))
            logger.debug(f"Fight removed: {fight_name} from {event_name}")
        else:
            logger.debug(f"Fight moved to past events: {fight_name} from {event_name}")

    for fight in current_fights:
        old = previous_snapshot.get(fight.fight_id)
        if not isinstance(old, Mapping):
            continue

        old_names = participant_names(_snapshot_participants(old))
        new_names = participant_names(fight.participants)
        if old_names == new_names:
            continue

        change = f"{' vs '.join(old_names)} {CHANGE_ARROW} {' vs '.join(new_names)}"
        event_changes = report.changes_by_event.setdefault(
            fight.event_name, EventChanges(event_date=fight.event_date)
        )
        event_changes.changes.append(change)
        logger.debug(f"Fight changed: {change} in {fight.event_name}")

    return report


def snapshot_from_fights(fights: Iterable[Fight], raw_dates: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    """Build the fight-details snapshot that replaces the previous one"""
    raw_dates = raw_dates or {}
    return {f.fight_id: f.to_snapshot(raw_dates.get(f.event_id)) for f in fights}
