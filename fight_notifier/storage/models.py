"""Data models for fighters, fights and events"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_FIGHTER_NAME = "Unknown Fighter"
PLACEHOLDER_TOKEN = "tba"


@dataclass
class Fighter:
    """A resolved athlete"""
    id: Optional[str]
    display_name: str
    nickname: Optional[str] = None
    record: Optional[str] = None
    weight_class: Optional[str] = None
    citizenship: Optional[str] = None
    country_flag: Optional[str] = None
    headshot: Optional[str] = None

    @classmethod
    def unknown(cls) -> "Fighter":
        """Sentinel used when an athlete reference can't be resolved"""
        return cls(id=None, display_name=UNKNOWN_FIGHTER_NAME)

    @property
    def is_placeholder(self) -> bool:
        return PLACEHOLDER_TOKEN in (self.display_name or "").lower()


@dataclass
class Fight:
    """Represents a single bout on a card"""
    fight_id: str
    event_id: str
    event_name: str
    event_date: Optional[datetime]
    participants: List[Fighter] = field(default_factory=list)
    weight_class: Optional[str] = None

    @property
    def announced(self) -> bool:
        # all() of an empty list is True, so a bout with no competitors counts as unannounced
        return not all(p.is_placeholder for p in self.participants)

    @property
    def fight_name(self) -> str:
        return " vs ".join(p.display_name for p in self.participants)

    @property
    def participant_names(self) -> List[str]:
        return [p.display_name for p in self.participants]

    def to_snapshot(self, raw_event_date: Optional[str] = None) -> Dict[str, Any]:
        """Serialize to a fight-details snapshot entry"""
        event_date = raw_event_date
        if event_date is None and self.event_date is not None:
            event_date = self.event_date.isoformat()
        return {
            "fight_name": self.fight_name,
            "participants": self.participant_names,
            "event_id": self.event_id,
            "event_name": self.event_name,
            "event_date": event_date,
            "announced": self.announced,
        }

    def __hash__(self):
        return hash(self.fight_id)

    def __eq__(self, other):
        if not isinstance(other, Fight):
            return False
        return self.fight_id == other.fight_id


class EventWindow(Enum):
    """Where an event falls relative to now and the forward horizon"""
    PAST = "past"
    UPCOMING = "upcoming"
    TOO_FAR_FUTURE = "too_far_future"


@dataclass
class Event:
    """Represents a card and its fights"""
    event_id: str
    name: str
    date: Optional[datetime]
    raw_date: Optional[str] = None
    competitions: List[Dict[str, Any]] = field(default_factory=list)
    fights: List[Fight] = field(default_factory=list)

    def __hash__(self):
        return hash(self.event_id)

    def __eq__(self, other):
        if not isinstance(other, Event):
            return False
        return self.event_id == other.event_id


@dataclass
class RemovedFight:
    """A fight that disappeared from an event that is still on the schedule"""
    fight_id: str
    fight_name: str
    event_name: str


@dataclass
class EventChanges:
    """Participant changes detected for one event"""
    event_date: Optional[datetime]
    changes: List[str] = field(default_factory=list)


@dataclass
class ChangeReport:
    """Output of the change detector"""
    changes_by_event: Dict[str, EventChanges] = field(default_factory=dict)
    removed: List[RemovedFight] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return sum(len(ec.changes) for ec in self.changes_by_event.values())
