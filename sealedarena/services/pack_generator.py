"""
Pack assembly for sealed pools.

Each pack is filled slot by slot:

1. Five commons, one per color in W, U, B, R, G order
2. Five more commons from the whole common pool
3. Three uncommons
4. One rare, upgraded to a mythic with probability 1/8 when the set has mythics

INVARIANT: Within one pack, each unique card (oracle identity) appears at most
once, no matter how many printings of it the set has.

INVARIANT: Every card placed in a pack is a new CardInstance.

A slot with no remaining candidate is filled from the next wider pool where
one exists (color pool -> all commons, rares -> mythics) and otherwise left
empty, so packs from tiny or odd sets can be shorter than 14 cards.
"""

import logging
import random
from dataclasses import dataclass, field

from sealedarena.config import DEFAULT_PACK_COUNT, MYTHIC_CHANCE
from sealedarena.models.card import COLOR_ORDER, CardInstance, CardRecord, Pack, new_instance
from sealedarena.models.failure import FailureKind, KnownError
from sealedarena.services.catalog import CatalogCache, SetPool

logger = logging.getLogger(__name__)

COLOR_SLOTS = len(COLOR_ORDER)
EXTRA_COMMON_SLOTS = 5
UNCOMMON_SLOTS = 3

IdentityGroups = dict[str, list[CardRecord]]


class PackAssemblyError(KnownError):
    """Raised when a set has nothing that can be put into a pack."""

    def __init__(self, set_code: str) -> None:
        super().__init__(
            FailureKind.EMPTY_POOL,
            f"No boosterable cards found for set '{set_code}'",
            detail="Check the set code; the catalog returned no common, uncommon, rare or mythic",
        )
        self.set_code = set_code


def group_by_identity(cards: list[CardRecord]) -> IdentityGroups:
    """Group printings by their shared oracle identity."""
    groups: IdentityGroups = {}
    for card in cards:
        groups.setdefault(card.oracle_id, []).append(card)
    return groups


@dataclass
class GroupedPool:
    """A SetPool with every rarity grouped by unique-card identity."""

    common: IdentityGroups = field(default_factory=dict)
    uncommon: IdentityGroups = field(default_factory=dict)
    rare: IdentityGroups = field(default_factory=dict)
    mythic: IdentityGroups = field(default_factory=dict)
    commons_by_color: dict[str, IdentityGroups] = field(default_factory=dict)

    @classmethod
    def from_pool(cls, pool: SetPool) -> "GroupedPool":
        return cls(
            common=group_by_identity(pool.common),
            uncommon=group_by_identity(pool.uncommon),
            rare=group_by_identity(pool.rare),
            mythic=group_by_identity(pool.mythic),
            commons_by_color={
                color: group_by_identity(pool.commons_by_color.get(color, []))
                for color in COLOR_ORDER
            },
        )


def _pick_one(groups: IdentityGroups, rng: random.Random, used: set[str]) -> CardRecord | None:
    """Pick one unused identity, then one of its printings."""
    keys = [k for k in groups if k not in used]
    if not keys:
        return None
    key = rng.choice(keys)
    used.add(key)
    return rng.choice(groups[key])


def _pick_many(
    groups: IdentityGroups,
    count: int,
    rng: random.Random,
    used: set[str],
) -> list[CardRecord]:
    """Pick up to count unused identities without replacement."""
    keys = [k for k in groups if k not in used]
    chosen = rng.sample(keys, min(count, len(keys)))
    used.update(chosen)
    return [rng.choice(groups[k]) for k in chosen]


def build_pack(
    grouped: GroupedPool,
    rng: random.Random,
    mythic_chance: float = MYTHIC_CHANCE,
) -> Pack:
    """
    Assemble one pack from a grouped set pool.

    Args:
        grouped: Identity-grouped pools of the set
        rng: Random source (seed it for reproducible packs)
        mythic_chance: Probability of a mythic in the rare slot

    Returns:
        Color commons, extra commons, uncommons, then the rare slot
    """
    picked: list[CardRecord] = []

    used_commons: set[str] = set()
    for color in COLOR_ORDER:
        card = _pick_one(grouped.commons_by_color.get(color, {}), rng, used_commons)
        if card is None:
            card = _pick_one(grouped.common, rng, used_commons)
        if card is not None:
            picked.append(card)

    picked.extend(_pick_many(grouped.common, EXTRA_COMMON_SLOTS, rng, used_commons))
    picked.extend(_pick_many(grouped.uncommon, UNCOMMON_SLOTS, rng, set()))

    if grouped.mythic and rng.random() < mythic_chance:
        top_slot = grouped.mythic
    else:
        top_slot = grouped.rare or grouped.mythic
    rare = _pick_one(top_slot, rng, set())
    if rare is not None:
        picked.append(rare)

    return [new_instance(card) for card in picked]


class PackGenerator:
    """Builds sealed pools from the catalog cache."""

    def __init__(
        self,
        catalog: CatalogCache,
        rng: random.Random | None = None,
        mythic_chance: float = MYTHIC_CHANCE,
    ) -> None:
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.mythic_chance = mythic_chance
        self._grouped: dict[str, GroupedPool] = {}

    async def _grouped_pool(self, set_code: str) -> GroupedPool:
        pool = await self.catalog.ensure(set_code)
        if pool.is_empty():
            raise PackAssemblyError(set_code)

        grouped = self._grouped.get(pool.set_code)
        if grouped is None:
            grouped = GroupedPool.from_pool(pool)
            self._grouped[pool.set_code] = grouped
        return grouped

    async def assemble(self, set_code: str, pack_count: int = DEFAULT_PACK_COUNT) -> list[Pack]:
        """
        Generate a sealed pool.

        Args:
            set_code: Set to open
            pack_count: Number of packs

        Returns:
            pack_count independently assembled packs

        Raises:
            CatalogError: If the catalog fetch fails
            PackAssemblyError: If the set has no boosterable cards
        """
        grouped = await self._grouped_pool(set_code)
        packs = [build_pack(grouped, self.rng, self.mythic_chance) for _ in range(pack_count)]

        logger.info(
            "Assembled %d packs for set %s",
            len(packs),
            set_code,
            extra={"set_code": set_code, "cards": sum(len(p) for p in packs)},
        )
        return packs

    async def fetch_basic_land(
        self,
        set_code: str,
        land_name: str,
        count: int,
    ) -> list[CardInstance]:
        """
        Get fresh copies of a basic land from a set.

        Cycles through the set's printings of that land.

        Returns:
            count new instances, or an empty list if the set has no such land

        Raises:
            CatalogError: If the catalog fetch fails
        """
        pool = await self.catalog.ensure(set_code)
        needle = land_name.lower()
        printings = [c for c in pool.basic_lands if needle in c.name.lower()]
        if not printings or count <= 0:
            return []
        return [new_instance(printings[i % len(printings)]) for i in range(count)]
