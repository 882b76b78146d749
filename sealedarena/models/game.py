"""
Game table state for one active session.

All containers here are plain mutable dataclasses. The GameStore is the only
writer; everything else reads snapshots produced by to_dict().

INVARIANT: A CardInstance is referenced by exactly one container at a time
(one of the four zones of one player, or one battlefield Placement).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sealedarena.config import STARTING_LIFE
from sealedarena.models.card import CardInstance


class Zone(str, Enum):
    """Private per-player card containers."""

    HAND = "hand"
    LIBRARY = "library"
    GRAVEYARD = "graveyard"
    EXILE = "exile"


class DeckInsertMode(str, Enum):
    """Where a card returned to the library goes."""

    TOP = "top"
    BOTTOM = "bottom"
    SHUFFLE = "shuffle"


class DeckAction(str, Enum):
    """Library actions that need the opponent's consent."""

    SHUFFLE = "shuffle"
    SCRY = "scry"
    SURVEIL = "surveil"
    SEARCH = "search"


class Role(str, Enum):
    """Table side, used by clients to mirror battlefield coordinates."""

    BOTTOM = "bottom"
    TOP = "top"


@dataclass
class Placement:
    """A card instance on the battlefield."""

    instance: CardInstance
    x: float
    y: float
    owner: str
    tapped: bool = False
    flipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = self.instance.to_dict()
        data.update(
            {
                "x": self.x,
                "y": self.y,
                "owner": self.owner,
                "tapped": self.tapped,
                "flipped": self.flipped,
            }
        )
        return data


@dataclass
class Token:
    """A battlefield-only object that is not backed by a catalog card."""

    id: str
    name: str
    type_line: str = ""
    power: int | str = ""
    toughness: int | str = ""
    x: float = 0.0
    y: float = 0.0
    tapped: bool = False
    flipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type_line": self.type_line,
            "power": self.power,
            "toughness": self.toughness,
            "x": self.x,
            "y": self.y,
            "tapped": self.tapped,
            "flipped": self.flipped,
        }


@dataclass
class Counter:
    """A free-floating numeric marker on the battlefield."""

    id: str
    value: int = 1
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "value": self.value, "x": self.x, "y": self.y}


@dataclass
class PlayerSessionState:
    """
    One participant's side of the table.

    Attributes:
        identity: Login identity (email)
        deck: The deck as submitted, kept for reference
        life: Life total, unbounded in both directions
        hand, library, graveyard, exile: Ordered zones; library[0] is the top
    """

    identity: str
    deck: list[CardInstance] = field(default_factory=list)
    life: int = STARTING_LIFE
    hand: list[CardInstance] = field(default_factory=list)
    library: list[CardInstance] = field(default_factory=list)
    graveyard: list[CardInstance] = field(default_factory=list)
    exile: list[CardInstance] = field(default_factory=list)

    def zone(self, zone: Zone) -> list[CardInstance]:
        return getattr(self, zone.value)

    def set_zone(self, zone: Zone, cards: list[CardInstance]) -> None:
        setattr(self, zone.value, cards)

    def find(self, instance_id: str) -> CardInstance | None:
        """Look up an instance in any of this player's zones."""
        for zone in Zone:
            for card in self.zone(zone):
                if card.instance_id == instance_id:
                    return card
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "life": self.life,
            "hand": [c.to_dict() for c in self.hand],
            "library": [c.to_dict() for c in self.library],
            "graveyard": [c.to_dict() for c in self.graveyard],
            "exile": [c.to_dict() for c in self.exile],
        }


@dataclass
class GameSession:
    """The authoritative state of one game between two participants."""

    players: dict[str, PlayerSessionState] = field(default_factory=dict)
    battlefield: list[Placement] = field(default_factory=list)
    counters: list[Counter] = field(default_factory=list)
    tokens: list[Token] = field(default_factory=list)
    roles: dict[str, Role] = field(default_factory=dict)
    turn: int = 1
    started: bool = False

    def opponent_of(self, identity: str) -> str | None:
        """Identity of the other participant, if one has joined the table."""
        for other in self.players:
            if other != identity:
                return other
        return None

    def placement(self, instance_id: str) -> Placement | None:
        for placement in self.battlefield:
            if placement.instance.instance_id == instance_id:
                return placement
        return None

    def token(self, token_id: str) -> Token | None:
        for token in self.tokens:
            if token.id == token_id:
                return token
        return None

    def counter(self, counter_id: str) -> Counter | None:
        for counter in self.counters:
            if counter.id == counter_id:
                return counter
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "players": {identity: p.to_dict() for identity, p in self.players.items()},
            "battlefield": [p.to_dict() for p in self.battlefield],
            "counters": [c.to_dict() for c in self.counters],
            "tokens": [t.to_dict() for t in self.tokens],
            "player_roles": {identity: role.value for identity, role in self.roles.items()},
            "turn": self.turn,
            "started": self.started,
        }
