"""
Authoritative game state store.

Every mutation of an active game goes through GameStore. Each operation
returns True when it changed state, so callers broadcast only real changes.

INVARIANT: A card instance is held by exactly one container. Moving a card
removes it from every zone of its player and from the battlefield before
inserting it anywhere.

Unknown identities and unknown instance/token/counter ids are ignored.
Ownership is not checked: either participant may move any card.
"""

import logging
import random

from sealedarena.config import OPENING_HAND_SIZE, STARTING_LIFE
from sealedarena.models.card import CardInstance, mint_instance_id
from sealedarena.models.game import (
    Counter,
    DeckInsertMode,
    GameSession,
    Placement,
    PlayerSessionState,
    Role,
    Token,
    Zone,
)

logger = logging.getLogger(__name__)

BATTLEFIELD = "battlefield"


class GameStore:
    """Holds the GameSession of one relay session and applies mutations to it."""

    def __init__(
        self,
        rng: random.Random | None = None,
        opening_hand_size: int = OPENING_HAND_SIZE,
        starting_life: int = STARTING_LIFE,
    ) -> None:
        self.rng = rng or random.Random()
        self.opening_hand_size = opening_hand_size
        self.starting_life = starting_life
        self.game: GameSession | None = None

    def reset(self) -> None:
        self.game = None

    def player(self, identity: str) -> PlayerSessionState | None:
        if self.game is None:
            return None
        return self.game.players.get(identity)

    # -------------------------------------------------------------------------
    # Deck submission
    # -------------------------------------------------------------------------

    def submit_deck(self, identity: str, deck: list[CardInstance]) -> bool:
        """
        Seat a participant with their finished deck.

        The first submission creates the game. The submitter's first cards
        become the opening hand and the rest the library, in order. Roles
        follow submission order: first "bottom", second "top". The game
        starts when the second participant submits.

        Returns:
            True if the deck was accepted. Submissions after the start,
            or from a third identity, are ignored.
        """
        if self.game is None:
            self.game = GameSession()
        game = self.game

        if game.started:
            logger.info("Game already started, ignoring deck from %s", identity)
            return False
        if identity not in game.players and len(game.players) >= 2:
            return False

        cards = _unique(deck)
        game.players[identity] = PlayerSessionState(
            identity=identity,
            deck=list(cards),
            life=self.starting_life,
            hand=cards[: self.opening_hand_size],
            library=cards[self.opening_hand_size :],
        )
        if identity not in game.roles:
            game.roles[identity] = Role.BOTTOM if not game.roles else Role.TOP

        if len(game.players) == 2:
            game.started = True
            logger.info("Game started", extra={"players": list(game.players)})
        return True

    # -------------------------------------------------------------------------
    # Zone transfers
    # -------------------------------------------------------------------------

    def _seat(self, identity: str) -> tuple[GameSession, PlayerSessionState] | None:
        if self.game is None:
            return None
        player = self.game.players.get(identity)
        if player is None:
            return None
        return self.game, player

    def _take(
        self, game: GameSession, player: PlayerSessionState, instance_id: str
    ) -> CardInstance | None:
        """Remove an instance from all of a player's zones and the battlefield."""
        found: CardInstance | None = None

        for zone in Zone:
            cards = player.zone(zone)
            for card in cards:
                if card.instance_id == instance_id:
                    found = card
            player.set_zone(zone, [c for c in cards if c.instance_id != instance_id])

        placement = game.placement(instance_id)
        if placement is not None:
            found = placement.instance
            game.battlefield = [
                p for p in game.battlefield if p.instance.instance_id != instance_id
            ]
        return found

    def move_card(
        self,
        identity: str,
        card: CardInstance,
        target: str,
        insert_mode: DeckInsertMode | None = None,
        x: float | None = None,
        y: float | None = None,
    ) -> bool:
        """
        Move a card instance to a zone or onto the battlefield.

        Args:
            identity: Player whose zones receive the card
            card: The instance to move; the store's own copy wins if it has one
            target: "hand", "library", "graveyard", "exile" or "battlefield"
            insert_mode: For the library: top (default), bottom or shuffle
            x, y: Battlefield coordinates

        Returns:
            True if the card was moved
        """
        seat = self._seat(identity)
        if seat is None:
            return False
        game, player = seat
        if target != BATTLEFIELD and target not in {z.value for z in Zone}:
            return False

        instance = self._take(game, player, card.instance_id) or card

        if target == BATTLEFIELD:
            game.battlefield.append(
                Placement(instance=instance, x=x or 0.0, y=y or 0.0, owner=identity)
            )
            return True

        zone = Zone(target)
        if zone is Zone.LIBRARY:
            mode = insert_mode or DeckInsertMode.TOP
            if mode is DeckInsertMode.TOP:
                player.library.insert(0, instance)
            else:
                player.library.append(instance)
                if mode is DeckInsertMode.SHUFFLE:
                    self.rng.shuffle(player.library)
        else:
            player.zone(zone).append(instance)
        return True

    def play_to_battlefield(self, identity: str, card: CardInstance, x: float, y: float) -> bool:
        return self.move_card(identity, card, BATTLEFIELD, x=x, y=y)

    def draw(self, identity: str) -> bool:
        """Move the top library card to hand. An empty library is a no-op."""
        player = self.player(identity)
        if player is None or not player.library:
            return False
        player.hand.append(player.library.pop(0))
        return True

    def shuffle_library(self, identity: str) -> bool:
        player = self.player(identity)
        if player is None:
            return False
        self.rng.shuffle(player.library)
        return True

    def reorder_zone(self, identity: str, zone: Zone, cards: list[CardInstance]) -> bool:
        """
        Reorder a zone to follow a client-supplied ordering.

        Only instances already in the zone are placed; ids held elsewhere,
        unknown ids and repeats are ignored. Zone entries the client left
        out follow the listed ones in their previous order, so the zone
        keeps exactly the instances it had.
        """
        player = self.player(identity)
        if player is None:
            return False

        current = player.zone(zone)
        own = {c.instance_id: c for c in current}
        ordered = [own[c.instance_id] for c in _unique(cards) if c.instance_id in own]
        placed = {c.instance_id for c in ordered}
        player.set_zone(zone, ordered + [c for c in current if c.instance_id not in placed])
        return True

    def set_life(self, identity: str, life: int) -> bool:
        player = self.player(identity)
        if player is None:
            return False
        player.life = life
        return True

    # -------------------------------------------------------------------------
    # Battlefield placements
    # -------------------------------------------------------------------------

    def move_placement(self, instance_id: str, x: float, y: float) -> bool:
        placement = self.game.placement(instance_id) if self.game else None
        if placement is None:
            return False
        placement.x = x
        placement.y = y
        return True

    def tap_card(self, instance_id: str) -> bool:
        placement = self.game.placement(instance_id) if self.game else None
        if placement is None:
            return False
        placement.tapped = not placement.tapped
        return True

    def flip_card(self, instance_id: str) -> bool:
        placement = self.game.placement(instance_id) if self.game else None
        if placement is None:
            return False
        placement.flipped = not placement.flipped
        return True

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def add_counter(
        self,
        counter_id: str | None,
        value: int = 1,
        x: float = 0.0,
        y: float = 0.0,
    ) -> Counter | None:
        if self.game is None:
            return None
        counter_id = counter_id or mint_instance_id()
        if self.game.counter(counter_id) is not None:
            return None
        counter = Counter(id=counter_id, value=value, x=x, y=y)
        self.game.counters.append(counter)
        return counter

    def move_counter(
        self,
        counter_id: str,
        x: float | None = None,
        y: float | None = None,
        value: int | None = None,
    ) -> bool:
        counter = self.game.counter(counter_id) if self.game else None
        if counter is None:
            return False
        if x is not None:
            counter.x = x
        if y is not None:
            counter.y = y
        if value is not None:
            counter.value = value
        return True

    def remove_counter(self, counter_id: str) -> bool:
        if self.game is None or self.game.counter(counter_id) is None:
            return False
        self.game.counters = [c for c in self.game.counters if c.id != counter_id]
        return True

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def add_token(self, token: Token) -> bool:
        if self.game is None or self.game.token(token.id) is not None:
            return False
        self.game.tokens.append(token)
        return True

    def move_token(self, token_id: str, x: float, y: float) -> bool:
        token = self.game.token(token_id) if self.game else None
        if token is None:
            return False
        token.x = x
        token.y = y
        return True

    def tap_token(self, token_id: str) -> bool:
        token = self.game.token(token_id) if self.game else None
        if token is None:
            return False
        token.tapped = not token.tapped
        return True

    def flip_token(self, token_id: str) -> bool:
        token = self.game.token(token_id) if self.game else None
        if token is None:
            return False
        token.flipped = not token.flipped
        return True

    def remove_token(self, token_id: str) -> bool:
        if self.game is None or self.game.token(token_id) is None:
            return False
        self.game.tokens = [t for t in self.game.tokens if t.id != token_id]
        return True


def _unique(cards: list[CardInstance]) -> list[CardInstance]:
    """Drop repeated instance ids, keeping the first occurrence."""
    seen: set[str] = set()
    result: list[CardInstance] = []
    for card in cards:
        if card.instance_id not in seen:
            seen.add(card.instance_id)
            result.append(card)
    return result
