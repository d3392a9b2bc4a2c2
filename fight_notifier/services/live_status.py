"""Fight/event status normalization"""
from enum import Enum
from typing import Any, Mapping


class FightStatus(Enum):
    """Closed set of statuses used by live tracking"""
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    UNKNOWN = "unknown"


# Every spelling observed from the upstream source, lower-cased
STATUS_TABLE = {
    "pre": FightStatus.SCHEDULED,
    "scheduled": FightStatus.SCHEDULED,
    "status_scheduled": FightStatus.SCHEDULED,
    "status_delayed": FightStatus.SCHEDULED,
    "status_postponed": FightStatus.SCHEDULED,
    "upcoming": FightStatus.SCHEDULED,

    "in": FightStatus.LIVE,
    "live": FightStatus.LIVE,
    "in_progress": FightStatus.LIVE,
    "status_in_progress": FightStatus.LIVE,
    "status_fighters_walking": FightStatus.LIVE,
    "status_fighters_introduced": FightStatus.LIVE,
    "status_end_of_round": FightStatus.LIVE,
    "status_end_period": FightStatus.LIVE,

    "post": FightStatus.COMPLETED,
    "final": FightStatus.COMPLETED,
    "completed": FightStatus.COMPLETED,
    "status_final": FightStatus.COMPLETED,
    "status_final_pen": FightStatus.COMPLETED,
    "status_canceled": FightStatus.COMPLETED,
    "status_cancelled": FightStatus.COMPLETED,
    "status_no_contest": FightStatus.COMPLETED,
}

# Only forward transitions are allowed
STATUS_ORDER = {
    FightStatus.SCHEDULED: 0,
    FightStatus.LIVE: 1,
    FightStatus.COMPLETED: 2,
}


def normalize_status(raw: Any) -> FightStatus:
    """
    Map an upstream status to a FightStatus

    Accepts a plain string or a status object ({"type": {"name": ..., "state": ...}}).
    The specific type name wins over the coarse state when both are known.
    """
    if isinstance(raw, Mapping):
        status_type = raw.get("type") if isinstance(raw.get("type"), Mapping) else raw
        for key in ("name", "state"):
            status = normalize_status(status_type.get(key))
            if status is not FightStatus.UNKNOWN:
                return status
        if status_type.get("completed") is True:
            return FightStatus.COMPLETED
        return FightStatus.UNKNOWN

    if not isinstance(raw, str) or not raw.strip():
        return FightStatus.UNKNOWN
    return STATUS_TABLE.get(raw.strip().lower(), FightStatus.UNKNOWN)
