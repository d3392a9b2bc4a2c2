"""Fight normalizer: raw competitions -> Fight records with resolved fighters"""
import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..storage.models import Fight, Fighter
from ..utils.cache import RunCache
from ..utils.flags import flag_from_image_url, get_country_flag
from ..utils.logger import setup_logger
from .fetch_client import FetchClient
from .schedule_fetcher import CORE_API_BASE

logger = setup_logger(__name__)

RECORDS_URL_TEMPLATE = CORE_API_BASE + "/athletes/{athlete_id}/records?lang=en&region=us"


class FightNormalizer:
    """Service for turning event competitions into uniform Fight records"""

    def __init__(self, client: FetchClient, cache: Optional[RunCache] = None, batch_size: int = 6):
        """
        Initialize fight normalizer

        Args:
            client: Shared fetch client
            cache: Per-run cache of resolved fighters keyed by athlete reference
            batch_size: Number of athletes resolved concurrently
        """
        self.client = client
        self.cache = cache if cache is not None else RunCache()
        self.batch_size = max(1, batch_size)

    async def normalize(
        self,
        competitions: List[Dict[str, Any]],
        event_id: str,
        event_name: str,
        event_date: Optional[datetime]
    ) -> List[Fight]:
        """
        Normalize all competitions of an event

        Args:
            competitions: Raw competition objects from the event document
            event_id: Owning event id
            event_name: Owning event name
            event_date: Owning event start (naive UTC)

        Returns:
            Fights in card order; unresolvable fighters become 'Unknown Fighter'
        """
        all_refs: List[Optional[str]] = []
        pending = []

        for comp in competitions:
            fight_id = comp.get("id") if isinstance(comp, dict) else None
            if not fight_id:
                logger.warning(f"Skipping competition without id in {event_name}")
                continue
            competitors = comp.get("competitors")
            if not isinstance(competitors, list):
                competitors = []
            refs = [_athlete_ref(c) for c in competitors]
            pending.append((str(fight_id), len(all_refs), len(refs), _division(comp.get("type"))))
            all_refs.extend(refs)

        logger.debug(f"Collected {len(all_refs)} athlete refs for {event_name}")
        fighters = await self.resolve_fighters(all_refs)

        fights = []
        for fight_id, start, count, weight_class in pending:
            fights.append(Fight(
                fight_id=fight_id,
                event_id=str(event_id),
                event_name=event_name,
                event_date=event_date,
                participants=fighters[start:start + count],
                weight_class=weight_class
            ))
        return fights

    async def resolve_fighters(self, refs: List[Optional[str]]) -> List[Fighter]:
        """
        Resolve athlete references in batches, preserving order

        Args:
            refs: Athlete $ref URLs (None for competitors without a reference)

        Returns:
            One Fighter per reference
        """
        results: List[Optional[Fighter]] = [None] * len(refs)
        to_fetch = []

        for index, ref in enumerate(refs):
            cached = self.cache.get(ref) if ref else None
            if cached is not None:
                results[index] = cached
            elif ref:
                to_fetch.append((index, ref))
            else:
                results[index] = Fighter.unknown()

        if to_fetch:
            logger.info(f"  Fetching {len(to_fetch)} fighters...")

        fetched = 0
        for start in range(0, len(to_fetch), self.batch_size):
            chunk = to_fetch[start:start + self.batch_size]
            chunk_results = await asyncio.gather(*[
                asyncio.to_thread(self._resolve_fighter, ref) for _, ref in chunk
            ])
            for (index, ref), fighter in zip(chunk, chunk_results):
                results[index] = fighter
            fetched += len(chunk)
            if len(to_fetch) > 10:
                logger.debug(f"    Progress: {fetched}/{len(to_fetch)} fighters processed")

        return results

    def _resolve_fighter(self, ref: str) -> Fighter:
        """Fetch one athlete with record and flag; falls back to the sentinel on any failure"""
        try:
            athlete = self.client.fetch_json(_with_query(ref))
            if not isinstance(athlete, dict):
                return Fighter.unknown()

            athlete_id = athlete.get("id")
            record = self.fetch_record(str(athlete_id)) if athlete_id else None

            citizenship = athlete.get("citizenship")
            flag_href = (athlete.get("flag") or {}).get("href")
            country_flag = get_country_flag(None, citizenship) if citizenship else None
            if not country_flag:
                country_flag = flag_from_image_url(flag_href)

            fighter = Fighter(
                id=str(athlete_id) if athlete_id else None,
                display_name=athlete.get("displayName") or Fighter.unknown().display_name,
                nickname=athlete.get("nickname") or None,
                record=record,
                weight_class=(athlete.get("weightClass") or {}).get("text"),
                citizenship=citizenship,
                country_flag=country_flag,
                headshot=(athlete.get("headshot") or {}).get("href")
            )
            logger.debug(
                f"Fighter: {fighter.display_name} record={fighter.record} "
                f"weight_class={fighter.weight_class} flag={fighter.country_flag}"
            )
            self.cache.set(ref, fighter)
            return fighter

        except Exception as e:
            logger.warning(f"Error fetching fighter data for {ref}: {e}")
            return Fighter.unknown()

    def fetch_record(self, athlete_id: str) -> Optional[str]:
        """Fetch the overall W-L-D summary for an athlete"""
        data = self.client.fetch_json(RECORDS_URL_TEMPLATE.format(athlete_id=athlete_id))
        if not isinstance(data, dict):
            return None
        for item in data.get("items") or []:
            if isinstance(item, dict) and (item.get("name") == "overall" or item.get("type") == "total"):
                return item.get("summary")
        return None


def _athlete_ref(competitor: Any) -> Optional[str]:
    if not isinstance(competitor, dict):
        return None
    athlete = competitor.get("athlete")
    if not isinstance(athlete, dict):
        return None
    ref = athlete.get("$ref")
    return ref if isinstance(ref, str) and ref else None


def _division(comp_type: Any) -> Optional[str]:
    if not isinstance(comp_type, dict):
        return None
    return comp_type.get("text")


def _with_query(ref: str) -> str:
    if "?" in ref:
        return ref
    return ref + "?lang=en&region=us"
