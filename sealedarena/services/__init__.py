"""
Sealed Arena services.

Catalog caching, pack assembly and the relay's session state.
"""

from sealedarena.services.broadcaster import Channel, ChannelClosedError, ConnectionManager
from sealedarena.services.catalog import CatalogCache, CatalogError, SetPool, search_cards
from sealedarena.services.deck_actions import (
    ConsentResponse,
    ConsentState,
    DeckActionConsent,
    DeckActionGrant,
    PendingApprovalRequest,
    ZoneMove,
)
from sealedarena.services.game_store import BATTLEFIELD, GameStore
from sealedarena.services.pack_generator import (
    GroupedPool,
    PackAssemblyError,
    PackGenerator,
    build_pack,
    group_by_identity,
)
from sealedarena.services.relay_session import RelaySession, SessionHub
from sealedarena.services.session_registry import SessionRegistry

__all__ = [
    "BATTLEFIELD",
    "CatalogCache",
    "CatalogError",
    "Channel",
    "ChannelClosedError",
    "ConnectionManager",
    "ConsentResponse",
    "ConsentState",
    "DeckActionConsent",
    "DeckActionGrant",
    "GameStore",
    "GroupedPool",
    "PackAssemblyError",
    "PackGenerator",
    "PendingApprovalRequest",
    "RelaySession",
    "SessionHub",
    "SessionRegistry",
    "SetPool",
    "ZoneMove",
    "build_pack",
    "group_by_identity",
    "search_cards",
]
