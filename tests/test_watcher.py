"""End-to-end tests for a watcher run against a fake upstream"""
import copy
from datetime import datetime

import pytest

from conftest import FakeFetchClient
from fight_notifier.services.schedule_fetcher import EVENT_URL_TEMPLATE, SCOREBOARD_URL
from fight_notifier.services.watcher import FightWatcher, classify_event
from fight_notifier.storage.models import EventWindow
from fight_notifier.storage.state_store import StateStore

NOW = datetime(2025, 7, 1, 12, 0)

ATHLETES = {
    "pereira": "Alex Pereira",
    "prochazka": "Jiri Prochazka",
    "dricus": "Dricus Du Plessis",
    "chimaev": "Khamzat Chimaev",
    "tba1": "TBA",
    "tba2": "TBA",
}


def athlete_url(key):
    return f"https://sports.core.api.espn.com/v2/sports/mma/athletes/{key}?lang=en&region=us"


def competition(fight_id, *athletes):
    return {
        "id": fight_id,
        "type": {"text": "Middleweight"},
        "competitors": [{"athlete": {"$ref": athlete_url(a)}} for a in athletes],
    }


def event_doc(name, date, competitions):
    return {"name": name, "date": date, "competitions": competitions}


def upstream():
    """Scoreboard listing an upcoming, a past and a far-future card"""
    responses = {
        SCOREBOARD_URL: {
            "leagues": [{
                "calendar": [
                    {"event": {"$ref": "http://core/events/100?lang=en"}},
                    {"event": {"$ref": "http://core/events/200?lang=en"}},
                    {"event": {"$ref": "http://core/events/300?lang=en"}},
                ]
            }]
        },
        EVENT_URL_TEMPLATE.format(event_id="100"): event_doc("UFC 319", "2025-07-26T16:00Z", [
            competition("c1", "pereira", "prochazka"),
            competition("c2", "tba1", "tba2"),
        ]),
        EVENT_URL_TEMPLATE.format(event_id="200"): event_doc("UFC 316", "2025-06-07T22:00Z", [
            competition("c9", "pereira", "prochazka"),
        ]),
        EVENT_URL_TEMPLATE.format(event_id="300"): event_doc("UFC 330", "2026-03-07T22:00Z", [
            competition("c30", "dricus", "chimaev"),
        ]),
    }
    for key, name in ATHLETES.items():
        responses[athlete_url(key)] = {"displayName": name}
    return responses


def make_watcher(tmp_path, client, notifications, notify_run_status=False):
    store = StateStore(str(tmp_path))
    watcher = FightWatcher(client, store, notifications, notify_run_status=notify_run_status)
    return watcher, store


def test_classify_event():
    assert classify_event(datetime(2025, 6, 30), NOW) is EventWindow.PAST
    assert classify_event(datetime(2025, 10, 31), NOW) is EventWindow.UPCOMING
    assert classify_event(datetime(2025, 11, 2), NOW) is EventWindow.TOO_FAR_FUTURE
    assert classify_event(None, NOW) is EventWindow.UPCOMING


@pytest.mark.asyncio
async def test_first_run_reports_new_fights_and_saves_state(tmp_path, notifications, discord_sink):
    client = FakeFetchClient(upstream())
    watcher, store = make_watcher(tmp_path, client, notifications)

    result = await watcher.run_once(now=NOW)

    assert result.new_fight_ids == ["c1", "c2"]
    assert result.upcoming_event_ids == ["100"]
    assert result.archived_event_ids == ["200"]

    assert len(discord_sink.messages) == 1
    assert "🚨 **UFC 319**" in discord_sink.messages[0]
    assert "**Alex Pereira** vs **Jiri Prochazka** (Middleweight)" in discord_sink.messages[0]

    assert store.load_known_events() == ["100"]
    assert store.load_known_fights() == ["c1", "c2"]
    assert store.load_unannounced() == [{"event_id": "100", "event_name": "UFC 319", "fight_id": "c2"}]
    assert set(store.load_fight_details()) == {"c1", "c2"}
    assert store.load_fight_details()["c1"]["event_date"] == "2025-07-26T16:00Z"
    assert [e["event_id"] for e in store.load_past_events()] == ["200"]
    assert store.load_past_events()[0]["fights"] == [
        {"fight_id": "c9", "participants": ["Alex Pereira", "Jiri Prochazka"]}
    ]


@pytest.mark.asyncio
async def test_second_run_reports_updates_changes_and_removals(tmp_path, notifications, discord_sink):
    responses = upstream()
    client = FakeFetchClient(responses)
    watcher, store = make_watcher(tmp_path, client, notifications)
    await watcher.run_once(now=NOW)
    discord_sink.messages.clear()

    # c1 cancelled, c2 announced, c3 added
    client.responses[EVENT_URL_TEMPLATE.format(event_id="100")] = event_doc("UFC 319", "2025-07-26T16:00Z", [
        competition("c2", "dricus", "chimaev"),
        competition("c3", "pereira", "chimaev"),
    ])

    result = await watcher.run_once(now=NOW)

    assert result.new_fight_ids == ["c3"]
    assert result.updated_fight_ids == ["c2"]
    assert [r.fight_id for r in result.report.removed] == ["c1"]
    assert result.report.changes_by_event["UFC 319"].changes == [
        "TBA vs TBA → Dricus Du Plessis vs Khamzat Chimaev"
    ]
    assert result.archived_event_ids == []

    messages = discord_sink.messages
    assert len(messages) == 4
    assert "🥊 **New fights added:**" in messages[0]
    assert "⬆️ **Updated fights:**" in messages[1]
    assert "🔄 **Fight changes detected:**" in messages[2]
    assert messages[3] == "❌ **Fights Removed**\n\n**1.** UFC 319: Alex Pereira vs Jiri Prochazka\n\n"

    assert store.load_known_fights() == ["c2", "c3"]
    assert store.load_unannounced() == []
    assert len(store.load_past_events()) == 1


@pytest.mark.asyncio
async def test_unchanged_run_sends_no_changes_notice(tmp_path, notifications, discord_sink):
    client = FakeFetchClient(upstream())
    watcher, store = make_watcher(tmp_path, client, notifications)
    await watcher.run_once(now=NOW)
    discord_sink.messages.clear()

    result = await watcher.run_once(now=NOW)

    assert result.has_changes is False
    assert discord_sink.messages == ["✅ UFC watcher ran - no changes detected."]


@pytest.mark.asyncio
async def test_concluded_event_fights_are_not_reported_removed(tmp_path, notifications, discord_sink):
    client = FakeFetchClient(upstream())
    watcher, store = make_watcher(tmp_path, client, notifications)
    await watcher.run_once(now=NOW)
    discord_sink.messages.clear()

    result = await watcher.run_once(now=datetime(2025, 7, 27, 12, 0))

    assert result.report.removed == []
    assert result.archived_event_ids == ["100"]
    assert store.load_known_fights() == []
    assert store.load_fight_details() == {}


@pytest.mark.asyncio
async def test_unfetchable_schedule_leaves_state_untouched(tmp_path, notifications, discord_sink):
    responses = upstream()
    client = FakeFetchClient(responses)
    watcher, store = make_watcher(tmp_path, client, notifications)
    await watcher.run_once(now=NOW)
    details_before = copy.deepcopy(store.load_fight_details())
    discord_sink.messages.clear()

    del client.responses[SCOREBOARD_URL]
    result = await watcher.run_once(now=NOW)

    assert result is None
    assert discord_sink.messages[0].startswith("❌ UFC watcher failed: Could not fetch schedule index")
    assert store.load_known_fights() == ["c1", "c2"]
    assert store.load_fight_details() == details_before


@pytest.mark.asyncio
async def test_unavailable_event_documents_are_skipped(tmp_path, notifications, discord_sink):
    responses = upstream()
    del responses[EVENT_URL_TEMPLATE.format(event_id="100")]
    client = FakeFetchClient(responses)
    watcher, store = make_watcher(tmp_path, client, notifications)

    result = await watcher.run_once(now=NOW)

    assert result is not None
    assert result.upcoming_event_ids == []
    assert store.load_known_events() == []


@pytest.mark.asyncio
async def test_temporarily_unavailable_event_keeps_its_state(tmp_path, notifications, discord_sink):
    """A card whose document fails once is neither removed nor re-announced"""
    client = FakeFetchClient(upstream())
    watcher, store = make_watcher(tmp_path, client, notifications)
    await watcher.run_once(now=NOW)
    details_before = copy.deepcopy(store.load_fight_details())
    unannounced_before = store.load_unannounced()
    discord_sink.messages.clear()

    event_url = EVENT_URL_TEMPLATE.format(event_id="100")
    document = client.responses[event_url]
    client.responses[event_url] = None
    client.responses[SCOREBOARD_URL] = {"leagues": [{"calendar": []}]}

    glitch = await watcher.run_once(now=NOW)

    assert glitch.unavailable_event_ids == ["100"]
    assert glitch.report.removed == []
    assert store.load_known_events() == ["100"]
    assert store.load_known_fights() == ["c1", "c2"]
    assert store.load_fight_details() == details_before
    assert store.load_unannounced() == unannounced_before
    assert discord_sink.messages == ["✅ UFC watcher ran - no changes detected."]
    discord_sink.messages.clear()

    client.responses[event_url] = document
    recovered = await watcher.run_once(now=NOW)

    assert recovered.new_fight_ids == []
    assert recovered.upcoming_event_ids == ["100"]
    assert discord_sink.messages == ["✅ UFC watcher ran - no changes detected."]


@pytest.mark.asyncio
async def test_run_status_notices(tmp_path, notifications, discord_sink):
    client = FakeFetchClient(upstream())
    watcher, _ = make_watcher(tmp_path, client, notifications, notify_run_status=True)

    await watcher.run_once(now=NOW)

    assert discord_sink.messages[0] == "👀 Running UFC watcher at Tuesday, July 1, 2025 at 5:00 AM PDT"
    assert discord_sink.messages[-1].startswith("✅ UFC watcher completed in ")
    assert "Cache: 4 fighters, 0 changes, 0 removals" in discord_sink.messages[-1]
