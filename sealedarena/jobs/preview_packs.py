"""
Preview a sealed pool.

Fetches a set from Scryfall and prints freshly opened packs, one card per
line. Useful for checking that a set opens cleanly before a session.
"""

import argparse
import asyncio
import logging

from sealedarena.config import DEFAULT_PACK_COUNT
from sealedarena.models.card import Pack
from sealedarena.models.failure import KnownError
from sealedarena.services.catalog import CatalogCache
from sealedarena.services.pack_generator import PackGenerator

logger = logging.getLogger(__name__)


def format_pack(index: int, pack: Pack) -> str:
    lines = [f"Pack {index} ({len(pack)} cards)"]
    for card in pack:
        colors = "".join(card.record.colors) or "C"
        lines.append(f"  {card.record.rarity[0].upper()} {colors:<5} {card.name}")
    return "\n".join(lines)


async def run_preview(set_code: str, pack_count: int) -> list[Pack]:
    """Open pack_count packs of a set."""
    logger.info("Opening %d packs of %s...", pack_count, set_code)

    generator = PackGenerator(CatalogCache())
    try:
        packs = await generator.assemble(set_code, pack_count)
    except KnownError as e:
        logger.error("Failed to open packs: %s (%s)", e.message, e.detail)
        raise
    return packs


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Preview a sealed pool for a set")
    parser.add_argument("set_code", help="Set code, e.g. otj")
    parser.add_argument("--packs", type=int, default=DEFAULT_PACK_COUNT)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    packs = asyncio.run(run_preview(args.set_code, args.packs))
    for i, pack in enumerate(packs, start=1):
        print(format_pack(i, pack))


if __name__ == "__main__":
    main()
