"""
Scryfall card object parser.

Turns raw Scryfall card JSON into CardRecords and drops objects that can
never appear in a pack (back faces, tokens, emblems, art cards, meld results).

Card objects: https://scryfall.com/docs/api/cards
"""

from typing import Any, TypedDict

from sealedarena.models.card import COLOR_ORDER, CardRecord

VALID_RARITIES = frozenset({"common", "uncommon", "rare", "mythic"})

NON_PLAYABLE_LAYOUTS = frozenset({"token", "double_faced_token", "emblem", "art_series"})

PLAYABLE_SET_TYPES = frozenset({"expansion", "core"})


class SetInfo(TypedDict):
    """Minimal set data we need from Scryfall."""

    code: str
    name: str
    released_at: str | None


def _normalize_rarity(rarity: str) -> str:
    """Normalize rarity to one of: common, uncommon, rare, mythic."""
    return rarity if rarity in VALID_RARITIES else "common"


def is_meld_result(card: dict[str, Any]) -> bool:
    """True if the card is the back half of a meld pair."""
    if card.get("layout") != "meld":
        return False
    for part in card.get("all_parts", []):
        if part.get("component") == "meld_result" and part.get("id") == card.get("id"):
            return True
    return False


def is_front_face(card: dict[str, Any]) -> bool:
    """
    Check whether a Scryfall object is a playable front face.

    Excludes back faces (side "b"), meld results and non-playable layouts.
    """
    if card.get("side") == "b":
        return False
    if card.get("layout") in NON_PLAYABLE_LAYOUTS:
        return False
    return not is_meld_result(card)


def grouping_key(card: dict[str, Any]) -> str:
    """
    Identity shared by every printing of the same card.

    Uses oracle_id; reversible cards carry it on their faces instead.
    Falls back to name + set when Scryfall supplies neither.
    """
    oracle_id = card.get("oracle_id")
    if not oracle_id:
        faces = card.get("card_faces") or []
        if faces:
            oracle_id = faces[0].get("oracle_id")
    if oracle_id:
        return str(oracle_id)
    return f"{card.get('name', '')}|{card.get('set', '')}"


def card_colors(card: dict[str, Any]) -> tuple[str, ...]:
    """
    Extract colors, ordered W, U, B, R, G.

    Multi-faced cards keep colors on the faces; the front face wins.
    """
    colors = card.get("colors")
    if colors is None:
        faces = card.get("card_faces") or []
        colors = faces[0].get("colors", []) if faces else []
    return tuple(c for c in COLOR_ORDER if c in colors)


def _image_uris(card: dict[str, Any]) -> tuple[str | None, str | None]:
    """Return (front, back) image references."""
    uris = card.get("image_uris")
    if uris:
        return uris.get("normal"), None

    faces = card.get("card_faces") or []
    front = faces[0].get("image_uris", {}).get("normal") if faces else None
    back = faces[1].get("image_uris", {}).get("normal") if len(faces) > 1 else None
    return front, back


def is_basic_land(card: dict[str, Any]) -> bool:
    type_line = card.get("type_line", "")
    return "Basic" in type_line and "Land" in type_line


def parse_card(card: dict[str, Any]) -> CardRecord | None:
    """
    Build a CardRecord from a Scryfall card object.

    Returns:
        CardRecord, or None if the object is not a playable front face
    """
    if not is_front_face(card):
        return None

    faces = card.get("card_faces") or []
    name = card.get("name", "")
    type_line = card.get("type_line", "")
    if faces and " // " in name:
        name = faces[0].get("name", name)
        type_line = faces[0].get("type_line", type_line)

    front, back = _image_uris(card)

    return CardRecord(
        scryfall_id=str(card.get("id", "")),
        oracle_id=grouping_key(card),
        name=name,
        set_code=str(card.get("set", "")).lower(),
        rarity=_normalize_rarity(card.get("rarity", "common")),
        colors=card_colors(card),
        layout=card.get("layout", "normal"),
        type_line=type_line,
        is_basic_land=is_basic_land(card),
        image_uri=front,
        back_image_uri=back,
    )


def parse_cards(cards: list[dict[str, Any]]) -> list[CardRecord]:
    """Parse a list of Scryfall card objects, dropping non-playable ones."""
    records: list[CardRecord] = []
    for card in cards:
        record = parse_card(card)
        if record is not None:
            records.append(record)
    return records


def parse_sets(sets: list[dict[str, Any]]) -> list[SetInfo]:
    """
    Select the sets that can be opened as packs, newest first.

    Args:
        sets: The "data" list of Scryfall's /sets response

    Returns:
        Expansion and core sets sorted by release date, descending
    """
    playable = [
        SetInfo(
            code=s["code"],
            name=s.get("name", s["code"]),
            released_at=s.get("released_at"),
        )
        for s in sets
        if s.get("set_type") in PLAYABLE_SET_TYPES
    ]
    playable.sort(key=lambda s: s["released_at"] or "", reverse=True)
    return playable
