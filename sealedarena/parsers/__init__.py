from sealedarena.parsers.scryfall import (
    SetInfo,
    card_colors,
    grouping_key,
    is_front_face,
    parse_card,
    parse_cards,
    parse_sets,
)

__all__ = [
    "SetInfo",
    "card_colors",
    "grouping_key",
    "is_front_face",
    "parse_card",
    "parse_cards",
    "parse_sets",
]
