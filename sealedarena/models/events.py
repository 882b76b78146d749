"""
Wire payloads for the relay's named events.

Every message in either direction is an Envelope: {"event": ..., "data": ...}.
Inbound payloads are validated against the model registered for their
event name in INBOUND_EVENTS.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sealedarena.models.card import CardInstance
from sealedarena.models.game import DeckAction, DeckInsertMode, Token

Target = Literal["hand", "library", "graveyard", "exile", "battlefield"]


class Envelope(BaseModel):
    """A named event with its payload."""

    event: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class CardPayload(BaseModel):
    """A card instance as clients send it back."""

    model_config = ConfigDict(extra="ignore")

    instance_id: str = Field(..., min_length=1)
    scryfall_id: str = ""
    oracle_id: str = ""
    name: str = ""
    set_code: str = ""
    rarity: str = "common"
    colors: list[str] = Field(default_factory=list)
    layout: str = "normal"
    type_line: str = ""
    is_basic_land: bool = False
    image_uri: str | None = None
    back_image_uri: str | None = None

    def to_instance(self) -> CardInstance:
        return CardInstance.from_dict(self.model_dump())


def _to_instances(cards: list[CardPayload]) -> list[CardInstance]:
    return [c.to_instance() for c in cards]


# =============================================================================
# LOBBY
# =============================================================================


class LoginPayload(BaseModel):
    identity: str = Field(..., min_length=1)


class SelectSetPayload(BaseModel):
    set_code: str = Field(..., min_length=1)

    @field_validator("set_code")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()


class SetReadyPayload(BaseModel):
    ready: bool


class FetchBasicLandPayload(BaseModel):
    set_code: str = Field(..., min_length=1)
    land_name: str = Field(..., min_length=1)
    count: int = Field(default=1, ge=1, le=60)


class ResetLobbyPayload(BaseModel):
    pass


# =============================================================================
# GAME TABLE
# =============================================================================


class SubmitDeckPayload(BaseModel):
    deck: list[CardPayload]

    def instances(self) -> list[CardInstance]:
        return _to_instances(self.deck)


class IdentityPayload(BaseModel):
    """Payload for events that only name the acting player."""

    identity: str = Field(..., min_length=1)


class UpdateLifePayload(BaseModel):
    identity: str = Field(..., min_length=1)
    life: int


class PlayCardPayload(BaseModel):
    identity: str = Field(..., min_length=1)
    card: CardPayload
    x: float = 0.0
    y: float = 0.0


class MoveCardZonePayload(BaseModel):
    identity: str = Field(..., min_length=1)
    card: CardPayload
    target: Target
    deck_insert_mode: DeckInsertMode | None = None
    x: float | None = None
    y: float | None = None

    @field_validator("target", mode="before")
    @classmethod
    def _deck_alias(cls, v: Any) -> Any:
        return "library" if v == "deck" else v


class InstanceRefPayload(BaseModel):
    instance_id: str = Field(..., min_length=1)


class MoveBattlefieldCardPayload(BaseModel):
    instance_id: str = Field(..., min_length=1)
    x: float
    y: float


# =============================================================================
# COUNTERS AND TOKENS
# =============================================================================


class AddCounterPayload(BaseModel):
    id: str | None = None
    value: int = 1
    x: float = 0.0
    y: float = 0.0


class MoveCounterPayload(BaseModel):
    id: str = Field(..., min_length=1)
    x: float | None = None
    y: float | None = None
    value: int | None = None


class IdPayload(BaseModel):
    id: str = Field(..., min_length=1)


class AddTokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str = Field(..., min_length=1)
    type_line: str = Field(default="", alias="type")
    power: int | str = ""
    toughness: int | str = ""
    x: float = 0.0
    y: float = 0.0
    tapped: bool = False
    flipped: bool = False

    def to_token(self, token_id: str) -> Token:
        return Token(
            id=token_id,
            name=self.name,
            type_line=self.type_line,
            power=self.power,
            toughness=self.toughness,
            x=self.x,
            y=self.y,
            tapped=self.tapped,
            flipped=self.flipped,
        )


class MoveTokenPayload(BaseModel):
    id: str = Field(..., min_length=1)
    x: float
    y: float


# =============================================================================
# DECK ACTIONS
# =============================================================================


class DeckActionRequestPayload(BaseModel):
    identity: str = Field(..., min_length=1)
    action: DeckAction
    n: int | None = Field(default=None, ge=0)


class DeckActionResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1)
    action: DeckAction
    n: int | None = None
    approved: bool


class ZoneMovePayload(BaseModel):
    card: CardPayload
    target: Target
    deck_insert_mode: DeckInsertMode | None = None
    x: float | None = None
    y: float | None = None


class ScryResultPayload(BaseModel):
    identity: str = Field(..., min_length=1)
    new_library: list[CardPayload]
    moves: list[ZoneMovePayload] = Field(default_factory=list)

    def library(self) -> list[CardInstance]:
        return _to_instances(self.new_library)


class SurveilResultPayload(BaseModel):
    identity: str = Field(..., min_length=1)
    new_library: list[CardPayload]
    new_graveyard: list[CardPayload] = Field(default_factory=list)

    def library(self) -> list[CardInstance]:
        return _to_instances(self.new_library)

    def graveyard(self) -> list[CardInstance]:
        return _to_instances(self.new_graveyard)


INBOUND_EVENTS: dict[str, type[BaseModel]] = {
    "login": LoginPayload,
    "select_set": SelectSetPayload,
    "set_ready": SetReadyPayload,
    "fetch_basic_land": FetchBasicLandPayload,
    "reset_lobby": ResetLobbyPayload,
    "submit_deck": SubmitDeckPayload,
    "update_life": UpdateLifePayload,
    "play_card_to_battlefield": PlayCardPayload,
    "move_card_zone": MoveCardZonePayload,
    "move_battlefield_card": MoveBattlefieldCardPayload,
    "tap_card": InstanceRefPayload,
    "flip_card": InstanceRefPayload,
    "draw_card": IdentityPayload,
    "deck_action_request": DeckActionRequestPayload,
    "deck_action_response": DeckActionResponsePayload,
    "scry_result": ScryResultPayload,
    "surveil_result": SurveilResultPayload,
    "shuffle_deck": IdentityPayload,
    "add_counter": AddCounterPayload,
    "move_counter": MoveCounterPayload,
    "remove_counter": IdPayload,
    "add_token": AddTokenPayload,
    "move_token": MoveTokenPayload,
    "tap_token": IdPayload,
    "flip_token": IdPayload,
    "remove_token": IdPayload,
}
