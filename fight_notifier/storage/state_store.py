"""Flat JSON file persistence for watcher state"""
import json
from pathlib import Path
from typing import Any, Dict, List

from ..utils.logger import setup_logger

logger = setup_logger(__name__)

KNOWN_EVENTS_FILE = "knownEvents.json"
KNOWN_FIGHTS_FILE = "knownFights.json"
PAST_EVENTS_FILE = "pastEvents.json"
UNANNOUNCED_FILE = "upcomingUnannouncedFights.json"
FIGHT_LOG_FILE = "fightLog.json"
FIGHT_DETAILS_FILE = "fightDetails.json"


class StateStore:
    """
    Key -> JSON document store backed by one file per key.

    Loads never fail: a missing or corrupt file yields the empty default
    for that key. Saves replace the whole document.
    """

    def __init__(self, data_dir: str = "data"):
        """Initialize the store, creating the data directory if needed"""
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.data_dir / name

    def load(self, name: str, default: Any) -> Any:
        """
        Load a document

        Args:
            name: File name within the data directory
            default: Value returned when the file is missing, corrupt or of the wrong shape

        Returns:
            The parsed document or default
        """
        path = self._path(name)
        if not path.exists():
            logger.debug(f"No existing state file {path}, using default")
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load {path}, using default: {e}")
            return default

        if not isinstance(data, type(default)):
            logger.warning(f"Unexpected content in {path} ({type(data).__name__}), using default")
            return default
        return data

    def save(self, name: str, data: Any):
        """Replace a document"""
        path = self._path(name)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
        logger.debug(f"Saved {path}")

    # Typed accessors

    def load_known_events(self) -> List[str]:
        return [str(e) for e in self.load(KNOWN_EVENTS_FILE, [])]

    def save_known_events(self, event_ids: List[str]):
        self.save(KNOWN_EVENTS_FILE, event_ids)

    def load_known_fights(self) -> List[str]:
        return [str(f) for f in self.load(KNOWN_FIGHTS_FILE, [])]

    def save_known_fights(self, fight_ids: List[str]):
        self.save(KNOWN_FIGHTS_FILE, fight_ids)

    def load_unannounced(self) -> List[Dict[str, Any]]:
        return [e for e in self.load(UNANNOUNCED_FILE, []) if isinstance(e, dict)]

    def save_unannounced(self, entries: List[Dict[str, Any]]):
        self.save(UNANNOUNCED_FILE, entries)

    def load_fight_details(self) -> Dict[str, Dict[str, Any]]:
        return self.load(FIGHT_DETAILS_FILE, {})

    def save_fight_details(self, details: Dict[str, Dict[str, Any]]):
        self.save(FIGHT_DETAILS_FILE, details)

    def load_past_events(self) -> List[Dict[str, Any]]:
        return self.load(PAST_EVENTS_FILE, [])

    def append_past_event(self, past_event: Dict[str, Any]) -> bool:
        """
        Archive a concluded event once

        Returns:
            True if the event was appended, False if it was already archived
        """
        existing = self.load_past_events()
        if any(isinstance(e, dict) and e.get("event_id") == past_event["event_id"] for e in existing):
            return False
        existing.append(past_event)
        self.save(PAST_EVENTS_FILE, existing)
        logger.info(f"Archived past event {past_event.get('event_name')} ({past_event['event_id']})")
        return True

    def append_fight_log(self, entries: List[Dict[str, Any]]):
        """Append entries to the new-fight log"""
        if not entries:
            return
        log = self.load(FIGHT_LOG_FILE, [])
        log.extend(entries)
        self.save(FIGHT_LOG_FILE, log)
