"""Tests for the Scryfall catalog cache."""

import asyncio
from typing import Any

import httpx
import pytest
import respx
from conftest import make_record

from sealedarena.config import FALLBACK_SETS, settings
from sealedarena.models.failure import FailureKind
from sealedarena.services.catalog import CatalogCache, CatalogError, SetPool, search_cards

SEARCH_URL = "https://api.scryfall.com/cards/search"


def _card(card_id: str, name: str, rarity: str, **extra: Any) -> dict[str, Any]:
    card = {
        "id": card_id,
        "oracle_id": f"oracle-{card_id}",
        "name": name,
        "set": "otj",
        "rarity": rarity,
        "colors": [],
        "layout": "normal",
        "type_line": "Creature — Test",
        "image_uris": {"normal": f"https://img.example/{card_id}.jpg"},
    }
    card.update(extra)
    return card


def _page(cards: list[dict[str, Any]], next_page: str | None = None) -> dict[str, Any]:
    page: dict[str, Any] = {"object": "list", "has_more": next_page is not None, "data": cards}
    if next_page:
        page["next_page"] = next_page
    return page


def scryfall_handler(request: httpx.Request) -> httpx.Response:
    """Answer set:otj searches the way Scryfall does."""
    query = request.url.params.get("q", "")
    page = request.url.params.get("page")

    if query == "set:otj rarity:common":
        if page == "2":
            return httpx.Response(
                200,
                json=_page(
                    [
                        _card("c2", "Common Two", "common", colors=["R"]),
                        _card("c2b", "Back Face", "common", side="b"),
                    ]
                ),
            )
        return httpx.Response(
            200,
            json=_page(
                [_card("c1", "Common One", "common", colors=["W", "U"])],
                next_page=f"{SEARCH_URL}?q=set%3Aotj+rarity%3Acommon&page=2",
            ),
        )
    if query == "set:otj rarity:uncommon":
        return httpx.Response(200, json=_page([_card("u1", "Uncommon One", "uncommon")]))
    if query == "set:otj rarity:rare":
        return httpx.Response(200, json=_page([_card("r1", "Rare One", "rare")]))
    if query == "set:otj type:basic":
        return httpx.Response(
            200,
            json=_page(
                [_card("p1", "Plains", "common", type_line="Basic Land — Plains")]
            ),
        )
    return httpx.Response(404, json={"object": "error", "code": "not_found"})


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "scryfall_rate_limit_delay", 0.0)


class TestSearchCards:
    """Tests for the paginated card search."""

    @respx.mock
    async def test_follows_next_page(self) -> None:
        """All result pages are collected."""
        respx.get(SEARCH_URL).mock(side_effect=scryfall_handler)

        async with httpx.AsyncClient(base_url="https://api.scryfall.com") as client:
            cards = await search_cards(client, "set:otj rarity:common")

        assert [c["id"] for c in cards] == ["c1", "c2", "c2b"]

    @respx.mock
    async def test_not_found_is_empty(self) -> None:
        """A 404 means the query matched nothing."""
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(404))

        async with httpx.AsyncClient(base_url="https://api.scryfall.com") as client:
            cards = await search_cards(client, "set:zzz rarity:mythic")

        assert cards == []

    @respx.mock
    async def test_server_error_raises(self) -> None:
        """HTTP errors are wrapped in CatalogError."""
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(500))

        async with httpx.AsyncClient(base_url="https://api.scryfall.com") as client:
            with pytest.raises(CatalogError, match="Card catalog request failed") as exc_info:
                await search_cards(client, "set:otj rarity:rare")

        assert exc_info.value.detail == "HTTP 500"

    @respx.mock
    async def test_connection_error_raises(self) -> None:
        """Network failures are wrapped in CatalogError."""
        respx.get(SEARCH_URL).mock(side_effect=httpx.ConnectError("boom"))

        async with httpx.AsyncClient(base_url="https://api.scryfall.com") as client:
            with pytest.raises(CatalogError, match="unreachable"):
                await search_cards(client, "set:otj rarity:rare")

    @respx.mock
    async def test_non_json_page_raises(self) -> None:
        """A maintenance page is a catalog failure, not a crash."""
        respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )

        async with httpx.AsyncClient(base_url="https://api.scryfall.com") as client:
            with pytest.raises(CatalogError, match="unreadable") as exc_info:
                await search_cards(client, "set:otj rarity:rare")

        assert exc_info.value.kind is FailureKind.CATALOG_UNAVAILABLE


class TestSetPool:
    def test_basic_lands_leave_rarity_pools(self) -> None:
        plains = make_record("Plains", basic=True)
        bear = make_record("Bear", colors=("G",))

        pool = SetPool.build("otj", {"common": [plains, bear]}, [plains])

        assert pool.common == [bear]
        assert pool.basic_lands == [plains]
        assert pool.commons_by_color["G"] == [bear]

    def test_multicolor_common_in_each_color(self) -> None:
        gold = make_record("Gold", colors=("W", "U"))

        pool = SetPool.build("otj", {"common": [gold]}, [])

        assert pool.commons_by_color["W"] == [gold]
        assert pool.commons_by_color["U"] == [gold]
        assert pool.commons_by_color["B"] == []

    def test_is_empty(self) -> None:
        assert SetPool.build("zzz", {}, []).is_empty()


class TestCatalogCache:
    """Tests for the per-set cache."""

    @respx.mock
    async def test_loads_set_pool(self) -> None:
        """Every rarity and the basic lands are fetched and parsed."""
        respx.get(SEARCH_URL).mock(side_effect=scryfall_handler)

        pool = await CatalogCache().ensure("OTJ")

        assert [c.name for c in pool.common] == ["Common One", "Common Two"]
        assert [c.name for c in pool.uncommon] == ["Uncommon One"]
        assert [c.name for c in pool.rare] == ["Rare One"]
        assert pool.mythic == []
        assert [c.name for c in pool.basic_lands] == ["Plains"]
        assert [c.name for c in pool.commons_by_color["U"]] == ["Common One"]

    @respx.mock
    async def test_caches_per_set(self) -> None:
        """A cached set is not fetched again."""
        route = respx.get(SEARCH_URL).mock(side_effect=scryfall_handler)
        cache = CatalogCache()

        first = await cache.ensure("otj")
        calls = route.call_count
        second = await cache.ensure("otj")

        assert first is second
        assert route.call_count == calls
        assert cache.cached_sets == ["otj"]
        assert cache.cached("OTJ") is first

    @respx.mock
    async def test_concurrent_callers_share_fetch(self) -> None:
        """Callers arriving during a fetch wait for the same one."""
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json=_page([_card("x1", "Only Card", "rare")]))
        )
        cache = CatalogCache()

        first, second = await asyncio.gather(cache.ensure("otj"), cache.ensure("otj"))

        assert first is second
        # 4 rarities + basic lands, once
        assert route.call_count == 5

    @respx.mock
    async def test_failed_fetch_not_cached(self) -> None:
        """A failed fetch is retried on the next call."""
        route = respx.get(SEARCH_URL).mock(return_value=httpx.Response(503))
        cache = CatalogCache()

        with pytest.raises(CatalogError):
            await cache.ensure("otj")
        assert cache.cached("otj") is None

        route.mock(side_effect=scryfall_handler)
        pool = await cache.ensure("otj")

        assert len(pool.common) == 2


class TestListSets:
    @respx.mock
    async def test_lists_playable_sets(self) -> None:
        respx.get("https://api.scryfall.com/sets").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "code": "otj",
                            "name": "Outlaws",
                            "set_type": "expansion",
                            "released_at": "2024-04-19",
                        },
                        {
                            "code": "totj",
                            "name": "Outlaws Tokens",
                            "set_type": "token",
                            "released_at": "2024-04-19",
                        },
                    ]
                },
            )
        )

        sets = await CatalogCache().list_sets()

        assert [s["code"] for s in sets] == ["otj"]

    @respx.mock
    async def test_falls_back_when_unavailable(self) -> None:
        respx.get("https://api.scryfall.com/sets").mock(return_value=httpx.Response(500))

        sets = await CatalogCache().list_sets()

        assert [s["code"] for s in sets] == [code for code, _ in FALLBACK_SETS]
