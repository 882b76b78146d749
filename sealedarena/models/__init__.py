from sealedarena.models.card import (
    COLOR_ORDER,
    RARITIES,
    CardInstance,
    CardRecord,
    Pack,
    mint_instance_id,
    new_instance,
)
from sealedarena.models.failure import (
    FailureDetail,
    FailureKind,
    KnownError,
    unknown_failure,
)
from sealedarena.models.game import (
    Counter,
    DeckAction,
    DeckInsertMode,
    GameSession,
    Placement,
    PlayerSessionState,
    Role,
    Token,
    Zone,
)
from sealedarena.models.lobby import LobbyParticipant, LobbySession, LobbyState

__all__ = [
    "COLOR_ORDER",
    "RARITIES",
    "CardInstance",
    "CardRecord",
    "Counter",
    "DeckAction",
    "DeckInsertMode",
    "FailureDetail",
    "FailureKind",
    "GameSession",
    "KnownError",
    "LobbyParticipant",
    "LobbySession",
    "LobbyState",
    "Pack",
    "Placement",
    "PlayerSessionState",
    "Role",
    "Token",
    "Zone",
    "mint_instance_id",
    "new_instance",
    "unknown_failure",
]
