"""
Deck-action consent protocol.

Shuffling, scrying, surveilling and searching a library need the
opponent's approval:

    IDLE -> REQUESTED -> APPROVED -> (result submitted) -> IDLE
                      -> DENIED -> IDLE

An approved shuffle happens immediately. An approved scry, surveil or
search opens a grant; the requester's private workflow later submits its
result, which is applied only while the matching grant is open.

INVARIANT: Without an approved request, scry/surveil/search results never
touch the requester's library or graveyard.

There is no timeout and no queue: a new request replaces the requester's
pending one.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from sealedarena.models.card import CardInstance
from sealedarena.models.game import DeckAction, DeckInsertMode, Zone
from sealedarena.services.game_store import GameStore

logger = logging.getLogger(__name__)

# Actions that look at the top N cards
_TOP_N_ACTIONS = frozenset({DeckAction.SCRY, DeckAction.SURVEIL})


class ConsentState(str, Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    APPROVED = "approved"


@dataclass(frozen=True)
class PendingApprovalRequest:
    """A deck action waiting for the opponent's answer."""

    requester: str
    action: DeckAction
    n: int = 0


@dataclass(frozen=True)
class DeckActionGrant:
    """An approved action whose result has not been submitted yet."""

    requester: str
    action: DeckAction
    n: int = 0


@dataclass
class ConsentResponse:
    """
    Outcome of an opponent's answer.

    Attributes:
        request: The request being answered
        approved: The opponent's decision
        cards: Cards revealed to the requester's workflow (top N, or the
            whole library for a search); empty when denied
        shuffled: True if an approved shuffle was applied
    """

    request: PendingApprovalRequest
    approved: bool
    cards: list[CardInstance] = field(default_factory=list)
    shuffled: bool = False


@dataclass(frozen=True)
class ZoneMove:
    """A card moved out of the library during a search."""

    card: CardInstance
    target: str
    insert_mode: DeckInsertMode | None = None
    x: float | None = None
    y: float | None = None


class DeckActionConsent:
    """Request/approval bookkeeping for one relay session."""

    def __init__(self, store: GameStore) -> None:
        self.store = store
        self.pending: dict[str, PendingApprovalRequest] = {}
        self.grants: dict[str, DeckActionGrant] = {}

    def reset(self) -> None:
        self.pending.clear()
        self.grants.clear()

    def state(self, identity: str) -> ConsentState:
        if identity in self.grants:
            return ConsentState.APPROVED
        if identity in self.pending:
            return ConsentState.REQUESTED
        return ConsentState.IDLE

    def request(
        self,
        requester: str,
        action: DeckAction,
        n: int | None = None,
    ) -> tuple[str, PendingApprovalRequest] | None:
        """
        Record a request for the opponent to answer.

        Returns:
            (opponent identity, request), or None if there is no game,
            the requester is not seated, or no opponent is seated yet
        """
        game = self.store.game
        if game is None or requester not in game.players:
            return None
        opponent = game.opponent_of(requester)
        if opponent is None:
            return None

        count = max(n or 0, 0)
        if action in _TOP_N_ACTIONS and count == 0:
            count = 1

        pending = PendingApprovalRequest(requester=requester, action=action, n=count)
        self.pending[requester] = pending
        logger.info(
            "Deck action requested",
            extra={"requester": requester, "action": action.value, "n": count},
        )
        return opponent, pending

    def respond(
        self,
        responder: str | None,
        requester: str,
        action: DeckAction,
        approved: bool,
    ) -> ConsentResponse | None:
        """
        Apply the opponent's answer to a pending request.

        Returns:
            The response to forward to the requester, or None if there is no
            matching pending request (or the requester answered themself)
        """
        pending = self.pending.get(requester)
        if pending is None or pending.action is not action:
            return None
        if responder == requester:
            return None

        del self.pending[requester]
        logger.info(
            "Deck action %s",
            "approved" if approved else "denied",
            extra={"requester": requester, "action": action.value},
        )

        response = ConsentResponse(request=pending, approved=approved)
        if not approved:
            return response

        player = self.store.player(requester)
        if player is None:
            return response

        if action is DeckAction.SHUFFLE:
            response.shuffled = self.store.shuffle_library(requester)
            return response

        self.grants[requester] = DeckActionGrant(
            requester=requester, action=action, n=pending.n
        )
        if action is DeckAction.SEARCH:
            response.cards = list(player.library)
        else:
            response.cards = player.library[: pending.n]
        return response

    def _consume(self, identity: str, allowed: set[DeckAction]) -> DeckActionGrant | None:
        grant = self.grants.get(identity)
        if grant is None or grant.action not in allowed:
            logger.warning("Ignoring deck result from %s without approval", identity)
            return None
        del self.grants[identity]
        return grant

    def submit_library_order(
        self,
        identity: str,
        new_library: list[CardInstance],
        moves: list[ZoneMove] | None = None,
    ) -> bool:
        """
        Finish a scry or search with the new library order.

        For a search, the zone moves made in the workflow are replayed
        first, so the moved cards leave the library before it is reordered.
        """
        grant = self._consume(identity, {DeckAction.SCRY, DeckAction.SEARCH})
        if grant is None:
            return False

        if grant.action is DeckAction.SEARCH:
            for move in moves or []:
                self.store.move_card(
                    identity, move.card, move.target, move.insert_mode, move.x, move.y
                )
        return self.store.reorder_zone(identity, Zone.LIBRARY, new_library)

    def submit_surveil(
        self,
        identity: str,
        new_library: list[CardInstance],
        new_graveyard: list[CardInstance],
    ) -> bool:
        """
        Finish a surveil with the kept library and the new graveyard.

        Library cards listed in the graveyard move there first; both zones
        are then reordered.
        """
        if self._consume(identity, {DeckAction.SURVEIL}) is None:
            return False
        player = self.store.player(identity)
        if player is None:
            return False

        in_library = {c.instance_id for c in player.library}
        for card in new_graveyard:
            if card.instance_id in in_library:
                self.store.move_card(identity, card, Zone.GRAVEYARD.value)
        self.store.reorder_zone(identity, Zone.LIBRARY, new_library)
        return self.store.reorder_zone(identity, Zone.GRAVEYARD, new_graveyard)

    def shuffle_after_search(self, identity: str) -> bool:
        """Finish a search by shuffling the library."""
        if self._consume(identity, {DeckAction.SEARCH}) is None:
            return False
        return self.store.shuffle_library(identity)
