"""
Scryfall catalog cache.

Fetches every card of a set once per process, split into rarity pools,
and keeps the result in memory for all later pack assembly.
Respects Scryfall rate limits (delay between page requests).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from sealedarena.config import FALLBACK_SETS, settings
from sealedarena.models.card import COLOR_ORDER, RARITIES, CardRecord
from sealedarena.models.failure import FailureKind, KnownError
from sealedarena.parsers.scryfall import SetInfo, parse_cards, parse_sets

logger = logging.getLogger(__name__)

_SEARCH_PARAMS = {
    "unique": "prints",
    "include_extras": "false",
    "include_variations": "false",
}


class CatalogError(KnownError):
    """Raised when the card catalog cannot be reached or answers with an error."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(FailureKind.CATALOG_UNAVAILABLE, message, detail)


@dataclass
class SetPool:
    """
    All boosterable cards of one set, indexed for pack assembly.

    Basic lands only live in basic_lands, never in a rarity pool.
    A multicolored common appears in the color pool of each of its colors.
    """

    set_code: str
    common: list[CardRecord] = field(default_factory=list)
    uncommon: list[CardRecord] = field(default_factory=list)
    rare: list[CardRecord] = field(default_factory=list)
    mythic: list[CardRecord] = field(default_factory=list)
    basic_lands: list[CardRecord] = field(default_factory=list)
    commons_by_color: dict[str, list[CardRecord]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        set_code: str,
        by_rarity: dict[str, list[CardRecord]],
        basic_lands: list[CardRecord],
    ) -> "SetPool":
        pools = {
            rarity: [c for c in by_rarity.get(rarity, []) if not c.is_basic_land]
            for rarity in RARITIES
        }

        commons_by_color: dict[str, list[CardRecord]] = {color: [] for color in COLOR_ORDER}
        for card in pools["common"]:
            for color in card.colors:
                commons_by_color[color].append(card)

        return cls(
            set_code=set_code,
            common=pools["common"],
            uncommon=pools["uncommon"],
            rare=pools["rare"],
            mythic=pools["mythic"],
            basic_lands=[c for c in basic_lands if c.is_basic_land],
            commons_by_color=commons_by_color,
        )

    def is_empty(self) -> bool:
        return not (self.common or self.uncommon or self.rare or self.mythic)


async def search_cards(client: httpx.AsyncClient, query: str) -> list[dict[str, Any]]:
    """
    Run a Scryfall card search, following every result page.

    Args:
        client: Client configured with the Scryfall base URL
        query: Scryfall search syntax (e.g., "set:otj rarity:common")

    Returns:
        Raw card objects from all pages. A 404 means "no matches" and
        yields an empty list.

    Raises:
        CatalogError: If any page request fails
    """
    cards: list[dict[str, Any]] = []
    url = "/cards/search"
    params: dict[str, str] | None = {"q": query, **_SEARCH_PARAMS}

    try:
        has_more = True
        while has_more:
            response = await client.get(url, params=params)
            if response.status_code == httpx.codes.NOT_FOUND:
                break
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as e:
                raise CatalogError(
                    f"Card catalog returned an unreadable page for '{query}'",
                    detail="Response body is not JSON",
                ) from e

            cards.extend(data.get("data", []))

            has_more = data.get("has_more", False)
            if has_more:
                url = data.get("next_page", "")
                params = None  # Next page URL includes params
                await asyncio.sleep(settings.scryfall_rate_limit_delay)
    except httpx.HTTPStatusError as e:
        raise CatalogError(
            f"Card catalog request failed for '{query}'",
            detail=f"HTTP {e.response.status_code}",
        ) from e
    except httpx.RequestError as e:
        raise CatalogError(f"Card catalog unreachable for '{query}'", detail=str(e)) from e

    return cards


class CatalogCache:
    """
    Per-set cache of catalog cards.

    The first ensure() for a set starts the fetch; callers arriving while it
    runs await the same task. Failed fetches are not cached.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.scryfall_api_url
        self.timeout = timeout if timeout is not None else settings.scryfall_timeout
        self._transport = transport
        self._pools: dict[str, SetPool] = {}
        self._inflight: dict[str, asyncio.Task[SetPool]] = {}
        self._sets: list[SetInfo] | None = None

    @property
    def cached_sets(self) -> list[str]:
        return sorted(self._pools)

    def cached(self, set_code: str) -> SetPool | None:
        return self._pools.get(set_code.lower())

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "User-Agent": settings.scryfall_user_agent,
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def ensure(self, set_code: str) -> SetPool:
        """
        Get the pool for a set, fetching it on first use.

        Raises:
            CatalogError: If the fetch fails
        """
        key = set_code.lower()

        pool = self._pools.get(key)
        if pool is not None:
            return pool

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key))
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))

        # A waiter being cancelled must not cancel the shared fetch
        return await asyncio.shield(task)

    async def _load(self, set_code: str) -> SetPool:
        logger.info("Fetching catalog for set %s", set_code)

        async with self._client() as client:
            results = await asyncio.gather(
                *(search_cards(client, f"set:{set_code} rarity:{r}") for r in RARITIES),
                search_cards(client, f"set:{set_code} type:basic"),
            )

        by_rarity = {rarity: parse_cards(raw) for rarity, raw in zip(RARITIES, results)}
        pool = SetPool.build(set_code, by_rarity, parse_cards(results[-1]))
        self._pools[set_code] = pool

        logger.info(
            "Cached set %s",
            set_code,
            extra={
                "set_code": set_code,
                "common": len(pool.common),
                "uncommon": len(pool.uncommon),
                "rare": len(pool.rare),
                "mythic": len(pool.mythic),
                "basic_lands": len(pool.basic_lands),
            },
        )
        return pool

    async def list_sets(self) -> list[SetInfo]:
        """
        List sets that can be opened as packs, newest first.

        Falls back to a fixed list when the catalog is unavailable.
        """
        if self._sets is not None:
            return self._sets

        try:
            async with self._client() as client:
                response = await client.get("/sets")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Set list unavailable, using fallback: %s", e)
            return [SetInfo(code=code, name=name, released_at=None) for code, name in FALLBACK_SETS]

        sets = parse_sets(data.get("data", []))
        if not sets:
            return [SetInfo(code=code, name=name, released_at=None) for code, name in FALLBACK_SETS]

        self._sets = sets
        return sets
