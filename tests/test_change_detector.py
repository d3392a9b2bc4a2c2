"""Tests for fight change and removal detection"""
import random
from datetime import datetime

from conftest import make_fight
from fight_notifier.services.change_detector import (
    detect_fight_changes,
    participant_names,
    snapshot_from_fights,
)


def test_participant_change_is_reported_under_event():
    """A changed opponent shows up as 'old -> new' under the current event name"""
    previous = {"f1": {"participants": ["A", "B"], "eventId": "E1"}}
    event_date = datetime(2025, 7, 26, 16, 0)
    current = [make_fight("f1", ["A", "C"], event_id="E1", event_name="UFC 300", event_date=event_date)]

    report = detect_fight_changes(previous, current)

    assert report.changes_by_event["UFC 300"].changes == ["A vs B → A vs C"]
    assert report.changes_by_event["UFC 300"].event_date == event_date
    assert report.removed == []


def test_removal_suppressed_when_event_has_no_surviving_fights():
    """Every fight of an event vanishing means it concluded, not that it was cancelled"""
    previous = {"f1": {"participants": ["A", "B"], "eventId": "E1"}}

    report = detect_fight_changes(previous, [])

    assert report.removed == []
    assert report.changes_by_event == {}


def test_removal_reported_when_event_still_has_fights():
    previous = {
        "f1": {"fight_name": "A vs B", "participants": ["A", "B"], "event_id": "E1", "event_name": "UFC 300"},
        "f2": {"fight_name": "C vs D", "participants": ["C", "D"], "event_id": "E1", "event_name": "UFC 300"},
    }
    current = [make_fight("f2", ["C", "D"], event_id="E1")]

    report = detect_fight_changes(previous, current)

    assert [r.fight_id for r in report.removed] == ["f1"]
    assert report.removed[0].fight_name == "A vs B"
    assert report.removed[0].event_name == "UFC 300"


def test_reordered_participants_are_not_a_change():
    previous = {"f1": {"participants": ["B", "A"], "event_id": "E1"}}
    current = [make_fight("f1", ["A", "B"])]

    report = detect_fight_changes(previous, current)

    assert report.total_changes == 0


def test_drop_to_single_participant_is_a_change():
    previous = {"f1": {"participants": ["A", "B"], "event_id": "E1"}}
    current = [make_fight("f1", ["A"])]

    report = detect_fight_changes(previous, current)

    assert report.changes_by_event["UFC 300"].changes == ["A vs B → A"]


def test_malformed_participants_compare_as_empty():
    previous = {"f1": {"participants": "A vs B", "event_id": "E1"}}
    current = [make_fight("f1", ["A", "B"])]

    report = detect_fight_changes(previous, current)

    assert report.total_changes == 1
    assert report.changes_by_event["UFC 300"].changes[0].endswith("→ A vs B")


def test_removed_fight_name_falls_back_to_participants():
    previous = {
        "f1": {"athletes": [{"displayName": "B"}, {"displayName": "A"}], "eventId": "E1", "eventName": "UFC 300"},
        "f2": {"participants": ["C", "D"], "event_id": "E1"},
    }
    current = [make_fight("f2", ["C", "D"])]

    report = detect_fight_changes(previous, current)

    assert report.removed[0].fight_name == "A vs B"
    assert report.removed[0].event_name == "UFC 300"


def test_current_fights_are_never_removed():
    previous = {
        "f1": {"participants": ["A", "B"], "event_id": "E1"},
        "f2": {"participants": ["C", "D"], "event_id": "E1"},
        "f3": {"participants": ["E", "F"], "event_id": "E2"},
    }
    current = [make_fight("f1", ["A", "X"]), make_fight("f3", ["E", "F"], event_id="E2")]

    report = detect_fight_changes(previous, current)

    current_ids = {f.fight_id for f in current}
    assert current_ids.isdisjoint(r.fight_id for r in report.removed)
    assert [r.fight_id for r in report.removed] == ["f2"]


def test_detection_is_idempotent_and_order_independent():
    previous = {
        "f1": {"participants": ["A", "B"], "event_id": "E1"},
        "f2": {"participants": ["C", "D"], "event_id": "E1"},
        "f3": {"participants": ["E", "F"], "event_id": "E1"},
    }
    current = [make_fight("f1", ["A", "Z"]), make_fight("f3", ["F", "E"])]

    first = detect_fight_changes(previous, current)
    second = detect_fight_changes(previous, current)
    shuffled = list(current)
    random.Random(7).shuffle(shuffled)
    third = detect_fight_changes(previous, list(reversed(shuffled)))

    assert first == second
    assert first.changes_by_event == third.changes_by_event
    assert [r.fight_id for r in first.removed] == [r.fight_id for r in third.removed]


def test_participant_names_accepts_mixed_shapes():
    names = participant_names(["Zed", {"display_name": "Amy"}, {"shortDisplay": "Bo"}, {}])

    assert names == ["Amy", "Bo", "Unknown Fighter", "Zed"]
    assert participant_names(None) == []


def test_snapshot_round_trip_reports_nothing():
    event_date = datetime(2025, 7, 26, 16, 0)
    fights = [
        make_fight("f1", ["A", "B"], event_date=event_date),
        make_fight("f2", ["TBA", "TBA"], event_date=event_date),
    ]

    snapshot = snapshot_from_fights(fights, {"E1": "2025-07-26T16:00Z"})
    report = detect_fight_changes(snapshot, fights)

    assert snapshot["f1"]["event_date"] == "2025-07-26T16:00Z"
    assert snapshot["f1"]["fight_name"] == "A vs B"
    assert snapshot["f2"]["announced"] is False
    assert report.total_changes == 0
    assert report.removed == []
