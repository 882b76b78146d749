import random
from typing import Any

import pytest

from sealedarena.models.card import COLOR_ORDER, RARITIES, CardInstance, CardRecord, new_instance
from sealedarena.services.catalog import SetPool
from sealedarena.services.pack_generator import PackGenerator


def make_record(
    name: str,
    rarity: str = "common",
    colors: tuple[str, ...] = (),
    oracle_id: str | None = None,
    scryfall_id: str | None = None,
    set_code: str = "otj",
    basic: bool = False,
) -> CardRecord:
    """Build a CardRecord with sensible defaults for tests."""
    return CardRecord(
        scryfall_id=scryfall_id or f"print-{name}",
        oracle_id=oracle_id or f"oracle-{name}",
        name=name,
        set_code=set_code,
        rarity=rarity,
        colors=colors,
        type_line="Basic Land — " + name if basic else "Creature — Test",
        is_basic_land=basic,
        image_uri=f"https://img.example/{name}.jpg",
    )


def make_deck(prefix: str, size: int = 40) -> list[CardInstance]:
    return [new_instance(make_record(f"{prefix}-{i}")) for i in range(size)]


def build_sample_pool(with_mythics: bool = True) -> SetPool:
    """
    A small but complete set.

    4 mono-colored commons per color, 3 colorless commons, 2 gold commons,
    a second printing of "W-common-0", 8 uncommons, 5 rares, 2 mythics and
    two printings of Plains plus one Island.
    """
    by_rarity: dict[str, list[CardRecord]] = {r: [] for r in RARITIES}

    for color in COLOR_ORDER:
        for i in range(4):
            by_rarity["common"].append(make_record(f"{color}-common-{i}", colors=(color,)))
    for i in range(3):
        by_rarity["common"].append(make_record(f"colorless-common-{i}"))
    by_rarity["common"].append(make_record("gold-common-WU", colors=("W", "U")))
    by_rarity["common"].append(make_record("gold-common-BR", colors=("B", "R")))
    by_rarity["common"].append(
        make_record(
            "W-common-0",
            colors=("W",),
            oracle_id="oracle-W-common-0",
            scryfall_id="print-W-common-0-reprint",
        )
    )

    for i in range(8):
        by_rarity["uncommon"].append(make_record(f"uncommon-{i}", rarity="uncommon"))
    for i in range(5):
        by_rarity["rare"].append(make_record(f"rare-{i}", rarity="rare"))
    if with_mythics:
        for i in range(2):
            by_rarity["mythic"].append(make_record(f"mythic-{i}", rarity="mythic"))

    lands = [
        make_record("Plains", basic=True, scryfall_id="plains-1", oracle_id="oracle-plains"),
        make_record("Plains", basic=True, scryfall_id="plains-2", oracle_id="oracle-plains"),
        make_record("Island", basic=True, scryfall_id="island-1", oracle_id="oracle-island"),
    ]
    return SetPool.build("otj", by_rarity, lands)


class FakeCatalog:
    """Stands in for CatalogCache with preloaded pools."""

    def __init__(self, pools: dict[str, SetPool] | None = None, error: Exception | None = None):
        self.pools = pools or {}
        self.error = error
        self.calls: list[str] = []

    async def ensure(self, set_code: str) -> SetPool:
        self.calls.append(set_code)
        if self.error is not None:
            raise self.error
        return self.pools[set_code.lower()]


class FakeChannel:
    """Records everything sent to one client."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.identity: str | None = None
        self.messages: list[tuple[str, Any]] = []

    async def send(self, event: str, data: Any) -> None:
        self.messages.append((event, data))

    def events(self, event: str) -> list[Any]:
        return [data for name, data in self.messages if name == event]

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture
def sample_pool() -> SetPool:
    return build_sample_pool()


@pytest.fixture
def fake_catalog(sample_pool: SetPool) -> FakeCatalog:
    return FakeCatalog({"otj": sample_pool})


@pytest.fixture
def generator(fake_catalog: FakeCatalog) -> PackGenerator:
    return PackGenerator(fake_catalog, rng=random.Random(1234))  # type: ignore[arg-type]


@pytest.fixture
def scryfall_card() -> dict[str, Any]:
    """A single-faced Scryfall card object."""
    return {
        "object": "card",
        "id": "c1",
        "oracle_id": "o1",
        "name": "Shoot the Sheriff",
        "set": "OTJ",
        "rarity": "common",
        "colors": ["B"],
        "layout": "normal",
        "type_line": "Instant",
        "image_uris": {"normal": "https://img.example/c1.jpg"},
    }
