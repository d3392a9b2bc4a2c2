"""Notification service: formats watcher results into Discord messages"""
from typing import Iterable, List, Optional, Sequence, Union

from ..storage.models import ChangeReport, Fight, Fighter, RemovedFight
from ..utils.logger import setup_logger
from ..utils.timezone import DEFAULT_DISPLAY_TZ, format_event_datetime
from .discord_client import DiscordClient

logger = setup_logger(__name__)

MESSAGE_SOFT_LIMIT = 1900


def truncate(content: str, marker: str = "\n\n*...truncated*") -> str:
    """Cut content to the soft limit, appending a marker"""
    if len(content) > MESSAGE_SOFT_LIMIT:
        return content[:MESSAGE_SOFT_LIMIT] + marker
    return content


def format_fighter(fighter: Fighter) -> str:
    """'**Name** 🇧🇷 "Nickname" (20-3-0)'"""
    text = f"**{fighter.display_name}**"
    if fighter.country_flag:
        text += f" {fighter.country_flag}"
    if fighter.nickname:
        text += f' "{fighter.nickname}"'
    if fighter.record:
        text += f" ({fighter.record})"
    return text


def format_fight(fight: Fight) -> str:
    """
    Format a fight for Discord

    Two-sided bouts show both fighters with flag, nickname and record plus the
    division; anything else falls back to the plain fight name.
    """
    if len(fight.participants) < 2:
        return fight.fight_name or "Unknown Fighter vs Unknown Fighter"

    first, second = fight.participants[0], fight.participants[1]
    text = f"{format_fighter(first)} vs {format_fighter(second)}"
    division = fight.weight_class or first.weight_class or second.weight_class
    if division:
        text += f" ({division})"
    return text


def _numbered(items: Iterable[str]) -> str:
    return "".join(f"**{index}.** {item}\n\n" for index, item in enumerate(items, 1))


class NotificationService:
    """Builds and sends watcher notifications"""

    def __init__(self, discord_client: DiscordClient, display_tz: str = DEFAULT_DISPLAY_TZ):
        """
        Initialize notification service

        Args:
            discord_client: Webhook sink
            display_tz: Timezone used for event dates in messages
        """
        self.discord_client = discord_client
        self.display_tz = display_tz

    def send(self, content: str) -> bool:
        return self.discord_client.send_message(content)

    def _event_header(self, emoji: str, event_name: str, event_date) -> str:
        date_info = format_event_datetime(event_date, self.display_tz)
        return f"{emoji} **{event_name}**\n\n📅 **{date_info}**\n\n"

    # Message builders

    def build_new_fights_message(self, event_name: str, event_date, fights: Sequence[Fight]) -> str:
        content = self._event_header("🚨", event_name, event_date) + "🥊 **New fights added:**\n\n"
        content += _numbered(format_fight(f) for f in fights)
        return truncate(content, "\n\n*...truncated (message too long)*")

    def build_updated_fights_message(
        self,
        event_name: str,
        event_date,
        fights: Sequence[Union[Fight, str]]
    ) -> str:
        content = self._event_header("🔄", event_name, event_date) + "⬆️ **Updated fights:**\n\n"
        content += _numbered(f if isinstance(f, str) else format_fight(f) for f in fights)
        return truncate(content)

    def build_changes_message(self, event_name: str, event_date, changes: Sequence[str]) -> str:
        content = self._event_header("⚠️", event_name, event_date) + "🔄 **Fight changes detected:**\n\n"
        content += _numbered(changes)
        return truncate(content)

    def build_removed_message(self, removed: Sequence[RemovedFight]) -> str:
        content = "❌ **Fights Removed**\n\n"
        content += _numbered(f"{r.event_name}: {r.fight_name}" for r in removed)
        return truncate(content)

    # Senders

    def send_new_fights(self, event_name: str, event_date, fights: Sequence[Fight]) -> bool:
        logger.info(f"Notifying {len(fights)} new fight(s) for {event_name}")
        return self.send(self.build_new_fights_message(event_name, event_date, fights))

    def send_updated_fights(self, event_name: str, event_date, fights: Sequence[Fight]) -> bool:
        logger.info(f"Notifying {len(fights)} newly announced fight(s) for {event_name}")
        return self.send(self.build_updated_fights_message(event_name, event_date, fights))

    def send_change_report(self, report: ChangeReport) -> int:
        """
        Send one message per event with changes and one for removals

        Returns:
            Number of messages attempted
        """
        sent = 0
        for event_name, event_changes in report.changes_by_event.items():
            self.send(self.build_changes_message(event_name, event_changes.event_date, event_changes.changes))
            sent += 1
        if report.removed:
            self.send(self.build_removed_message(report.removed))
            sent += 1
        return sent

    def send_run_started(self, when: str) -> bool:
        return self.send(f"👀 Running UFC watcher at {when}")

    def send_no_changes(self) -> bool:
        return self.send("✅ UFC watcher ran - no changes detected.")

    def send_run_summary(self, seconds: float, cached_fighters: int, changes: int, removals: int) -> bool:
        return self.send(
            f"✅ UFC watcher completed in {seconds:.2f}s - Cache: {cached_fighters} fighters, "
            f"{changes} changes, {removals} removals"
        )

    def send_failure(self, error: Exception) -> bool:
        return self.send(f"❌ UFC watcher failed: {error}")

    # Live mode

    def send_live_start(self, event_name: str, fight_count: int, poll_seconds: int) -> bool:
        return self.send(
            f"🔴 **LIVE EVENT STARTING!**\n\n🥊 **{event_name}**\n\n"
            f"🤖 Switching to live mode - updates every {poll_seconds} seconds!\n\n"
            f"📊 Monitoring {fight_count} fights"
        )

    def send_live_end(self, event_name: str, interval_text: str) -> bool:
        return self.send(
            f"🏁 **LIVE EVENT ENDED**\n\n✅ **{event_name}** has concluded\n\n"
            f"🤖 Returning to normal monitoring ({interval_text})"
        )

    def send_upcoming(self, event_name: str, minutes_until: int) -> bool:
        return self.send(
            f"⏰ **UPCOMING EVENT**\n\n🥊 **{event_name}**\n\n"
            f"📅 Starting in {minutes_until} minutes\n\n🤖 Increased monitoring frequency"
        )

    def send_fight_updates(self, event_name: str, updates: List[str]) -> Optional[bool]:
        """Batch live fight updates for an event into one message"""
        if not updates:
            return None
        content = f"🔴 **LIVE UPDATE** - {event_name}\n\n" + "\n".join(updates)
        return self.send(truncate(content))
