import uuid
from dataclasses import dataclass, field
from typing import Any

COLOR_ORDER = ("W", "U", "B", "R", "G")
RARITIES = ("common", "uncommon", "rare", "mythic")


def mint_instance_id() -> str:
    """Mint a new session-unique instance identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    A catalog entry for one printing of a card.

    Attributes:
        scryfall_id: Scryfall's per-print identifier
        oracle_id: Identity shared by all printings of the same card
        name: Card name (front face name for multi-faced cards)
        set_code: Lowercase set code (e.g., "otj")
        rarity: common, uncommon, rare or mythic
        colors: Color symbols (W, U, B, R, G); empty for colorless cards
        layout: Scryfall layout ("normal", "transform", ...)
        type_line: Type line of the front face
        is_basic_land: True for basic lands, which are kept out of rarity pools
        image_uri: Front face image reference (opaque)
        back_image_uri: Back face image reference for multi-faced cards
    """

    scryfall_id: str
    oracle_id: str
    name: str
    set_code: str
    rarity: str
    colors: tuple[str, ...] = ()
    layout: str = "normal"
    type_line: str = ""
    is_basic_land: bool = False
    image_uri: str | None = None
    back_image_uri: str | None = None

    @property
    def is_multi_faced(self) -> bool:
        """True if the card has a back face to flip to."""
        return self.back_image_uri is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "scryfall_id": self.scryfall_id,
            "oracle_id": self.oracle_id,
            "name": self.name,
            "set_code": self.set_code,
            "rarity": self.rarity,
            "colors": list(self.colors),
            "layout": self.layout,
            "type_line": self.type_line,
            "is_basic_land": self.is_basic_land,
            "image_uri": self.image_uri,
            "back_image_uri": self.back_image_uri,
        }


@dataclass(frozen=True, slots=True)
class CardInstance:
    """
    One physical copy of a card inside a session.

    The instance_id is minted when the copy is created and never changes,
    so two copies of the same CardRecord stay distinguishable.
    """

    record: CardRecord
    instance_id: str = field(default_factory=mint_instance_id)

    @property
    def name(self) -> str:
        return self.record.name

    def to_dict(self) -> dict[str, Any]:
        data = self.record.to_dict()
        data["instance_id"] = self.instance_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardInstance":
        """Rebuild an instance from its wire form."""
        record = CardRecord(
            scryfall_id=str(data.get("scryfall_id", "")),
            oracle_id=str(data.get("oracle_id", "")),
            name=str(data.get("name", "")),
            set_code=str(data.get("set_code", "")),
            rarity=str(data.get("rarity", "common")),
            colors=tuple(data.get("colors") or ()),
            layout=str(data.get("layout", "normal")),
            type_line=str(data.get("type_line", "")),
            is_basic_land=bool(data.get("is_basic_land", False)),
            image_uri=data.get("image_uri"),
            back_image_uri=data.get("back_image_uri"),
        )
        return cls(record=record, instance_id=str(data["instance_id"]))


def new_instance(record: CardRecord) -> CardInstance:
    """Create a fresh physical copy of a record."""
    return CardInstance(record=record)


Pack = list[CardInstance]
