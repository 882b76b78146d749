"""
Relay sessions: event dispatch for one lobby and its game.

A RelaySession owns everything two participants share (lobby, game state,
consent bookkeeping, connections). SessionHub keys sessions by id, so one
process can host several tables.

Handlers apply their mutation without awaiting in between, then broadcast.
On the single asyncio loop this makes every mutation run to completion
before the next event is looked at. The only awaits inside a handler are
the catalog fetch and the channel sends.
"""

import logging
from typing import Any

from pydantic import ValidationError

from sealedarena.models.card import mint_instance_id
from sealedarena.models.events import (
    INBOUND_EVENTS,
    AddCounterPayload,
    AddTokenPayload,
    DeckActionRequestPayload,
    DeckActionResponsePayload,
    Envelope,
    FetchBasicLandPayload,
    IdentityPayload,
    IdPayload,
    InstanceRefPayload,
    LoginPayload,
    MoveBattlefieldCardPayload,
    MoveCardZonePayload,
    MoveCounterPayload,
    MoveTokenPayload,
    PlayCardPayload,
    ResetLobbyPayload,
    ScryResultPayload,
    SelectSetPayload,
    SetReadyPayload,
    SubmitDeckPayload,
    SurveilResultPayload,
    UpdateLifePayload,
)
from sealedarena.models.failure import FailureKind, KnownError, unknown_failure
from sealedarena.models.lobby import LobbySession
from sealedarena.services.broadcaster import Channel, ConnectionManager
from sealedarena.services.deck_actions import DeckActionConsent, ZoneMove
from sealedarena.services.game_store import GameStore
from sealedarena.services.pack_generator import PackGenerator
from sealedarena.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class RelaySession:
    """One lobby, at most one game, and the connections watching them."""

    def __init__(self, session_id: str, generator: PackGenerator) -> None:
        self.session_id = session_id
        self.generator = generator
        self.connections = ConnectionManager()
        self.registry = SessionRegistry()
        self.store = GameStore()
        self.consent = DeckActionConsent(self.store)

    # -------------------------------------------------------------------------
    # Connections and dispatch
    # -------------------------------------------------------------------------

    def connect(self, channel: Channel) -> None:
        self.connections.add(channel)

    async def disconnect(self, channel: Channel) -> None:
        """
        Forget a channel. Its identity leaves the lobby unconditionally.

        A running game is kept; the identity can log in again to get a
        channel back.
        """
        self.connections.remove(channel)
        identity = channel.identity
        if identity is None:
            return
        if self.connections.channel_for(identity) is not None:
            return

        logger.info("%s disconnected from session %s", identity, self.session_id)
        self.registry.leave(identity)
        await self.broadcast_lobby()

    async def handle(self, channel: Channel, message: Any) -> None:
        """
        Validate and apply one inbound message.

        Malformed messages and unknown events are logged and dropped.
        """
        try:
            envelope = Envelope.model_validate(message)
        except ValidationError as e:
            logger.warning("Dropping malformed message: %s", e.errors()[:1])
            return

        model = INBOUND_EVENTS.get(envelope.event)
        if model is None:
            logger.warning("Dropping unknown event %s", envelope.event)
            return

        try:
            payload = model.model_validate(envelope.data)
        except ValidationError as e:
            logger.warning(
                "Dropping invalid %s payload",
                envelope.event,
                extra={"errors": e.errors(include_url=False)},
            )
            return

        logger.debug("event %s from %s", envelope.event, channel.identity)
        handler = getattr(self, f"on_{envelope.event}")
        await handler(channel, payload)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    async def broadcast_lobby(self) -> None:
        await self.connections.broadcast("lobby_update", self.registry.lobby.to_dict())

    async def broadcast_game(self, event: str = "game_update") -> None:
        if self.store.game is None:
            return
        await self.connections.broadcast(event, self.store.game.to_dict())

    async def _game_changed(self, changed: bool) -> None:
        if changed:
            await self.broadcast_game()

    # -------------------------------------------------------------------------
    # Lobby events
    # -------------------------------------------------------------------------

    async def on_login(self, channel: Channel, payload: LoginPayload) -> None:
        identity = payload.identity
        self.connections.bind(identity, channel)
        self.registry.join(identity)

        await self.connections.deliver(channel, "login_success", {"identity": identity})
        await self.broadcast_lobby()

        if self.store.player(identity) is not None and self.store.game is not None:
            await self.connections.deliver(channel, "game_update", self.store.game.to_dict())

    async def on_select_set(self, channel: Channel, payload: SelectSetPayload) -> None:
        if channel.identity and self.registry.select_set(channel.identity, payload.set_code):
            await self.broadcast_lobby()

    async def on_set_ready(self, channel: Channel, payload: SetReadyPayload) -> None:
        if not channel.identity or not self.registry.set_ready(channel.identity, payload.ready):
            return
        await self.broadcast_lobby()

        lobby = self.registry.begin_transition()
        if lobby is not None:
            await self._deal_packs(lobby)

    async def _deal_packs(self, lobby: LobbySession) -> None:
        """
        Open a sealed pool for each dealt identity, then start deckbuilding once.

        A reset during the catalog fetch abandons the deal: nothing more is
        sent and the fresh lobby is left alone.
        """
        set_code = lobby.chosen_set

        for identity in lobby.dealt:
            try:
                if set_code is None:
                    raise KnownError(FailureKind.MISSING_REQUIRED, "No set selected")
                packs = await self.generator.assemble(set_code)
            except KnownError as e:
                logger.warning("Pack generation failed for %s: %s", identity, e.message)
                detail = e.to_detail()
            except Exception as e:
                logger.exception("Unexpected error generating packs for %s", identity)
                detail = unknown_failure("Error generating packs", e)
            else:
                detail = None

            if not self.registry.is_current(lobby):
                logger.info("Lobby of session %s was reset, abandoning deal", self.session_id)
                return

            if detail is not None:
                await self.connections.send_to(
                    identity, "booster_error", detail.model_dump(mode="json")
                )
            else:
                await self.connections.send_to(
                    identity,
                    "booster_data",
                    {
                        "set_code": set_code,
                        "packs": [[card.to_dict() for card in pack] for pack in packs],
                    },
                )

        if not self.registry.finish_transition(lobby):
            return
        await self.connections.broadcast("start_deckbuilding", {"set_code": set_code})
        await self.broadcast_lobby()

    async def on_fetch_basic_land(self, channel: Channel, payload: FetchBasicLandPayload) -> None:
        try:
            cards = await self.generator.fetch_basic_land(
                payload.set_code, payload.land_name, payload.count
            )
        except KnownError as e:
            await self.connections.deliver(
                channel, "basic_land_error", e.to_detail().model_dump(mode="json")
            )
            return
        except Exception as e:
            logger.exception("Unexpected error fetching %s", payload.land_name)
            await self.connections.deliver(
                channel,
                "basic_land_error",
                unknown_failure("Error fetching basic lands", e).model_dump(mode="json"),
            )
            return
        await self.connections.deliver(
            channel,
            "basic_land_data",
            {"land_name": payload.land_name, "cards": [c.to_dict() for c in cards]},
        )

    async def on_reset_lobby(self, channel: Channel, payload: ResetLobbyPayload) -> None:
        logger.info("Resetting session %s", self.session_id)
        self.registry.reset()
        self.store.reset()
        self.consent.reset()
        await self.broadcast_lobby()

    # -------------------------------------------------------------------------
    # Game events
    # -------------------------------------------------------------------------

    async def on_submit_deck(self, channel: Channel, payload: SubmitDeckPayload) -> None:
        identity = channel.identity
        if identity is None or not self.registry.may_submit_deck(identity):
            return
        if not self.store.submit_deck(identity, payload.instances()):
            return

        logger.info("%s submitted a %d card deck", identity, len(payload.deck))
        if self.store.game is not None and self.store.game.started:
            await self.broadcast_game("game_start")

    async def on_update_life(self, channel: Channel, payload: UpdateLifePayload) -> None:
        await self._game_changed(self.store.set_life(payload.identity, payload.life))

    async def on_play_card_to_battlefield(self, channel: Channel, payload: PlayCardPayload) -> None:
        await self._game_changed(
            self.store.play_to_battlefield(
                payload.identity, payload.card.to_instance(), payload.x, payload.y
            )
        )

    async def on_move_card_zone(self, channel: Channel, payload: MoveCardZonePayload) -> None:
        await self._game_changed(
            self.store.move_card(
                payload.identity,
                payload.card.to_instance(),
                payload.target,
                payload.deck_insert_mode,
                payload.x,
                payload.y,
            )
        )

    async def on_move_battlefield_card(
        self, channel: Channel, payload: MoveBattlefieldCardPayload
    ) -> None:
        await self._game_changed(
            self.store.move_placement(payload.instance_id, payload.x, payload.y)
        )

    async def on_tap_card(self, channel: Channel, payload: InstanceRefPayload) -> None:
        await self._game_changed(self.store.tap_card(payload.instance_id))

    async def on_flip_card(self, channel: Channel, payload: InstanceRefPayload) -> None:
        await self._game_changed(self.store.flip_card(payload.instance_id))

    async def on_draw_card(self, channel: Channel, payload: IdentityPayload) -> None:
        await self._game_changed(self.store.draw(payload.identity))

    # -------------------------------------------------------------------------
    # Counters and tokens
    # -------------------------------------------------------------------------

    async def on_add_counter(self, channel: Channel, payload: AddCounterPayload) -> None:
        counter = self.store.add_counter(payload.id, payload.value, payload.x, payload.y)
        await self._game_changed(counter is not None)

    async def on_move_counter(self, channel: Channel, payload: MoveCounterPayload) -> None:
        await self._game_changed(
            self.store.move_counter(payload.id, payload.x, payload.y, payload.value)
        )

    async def on_remove_counter(self, channel: Channel, payload: IdPayload) -> None:
        await self._game_changed(self.store.remove_counter(payload.id))

    async def on_add_token(self, channel: Channel, payload: AddTokenPayload) -> None:
        token = payload.to_token(payload.id or mint_instance_id())
        await self._game_changed(self.store.add_token(token))

    async def on_move_token(self, channel: Channel, payload: MoveTokenPayload) -> None:
        await self._game_changed(self.store.move_token(payload.id, payload.x, payload.y))

    async def on_tap_token(self, channel: Channel, payload: IdPayload) -> None:
        await self._game_changed(self.store.tap_token(payload.id))

    async def on_flip_token(self, channel: Channel, payload: IdPayload) -> None:
        await self._game_changed(self.store.flip_token(payload.id))

    async def on_remove_token(self, channel: Channel, payload: IdPayload) -> None:
        await self._game_changed(self.store.remove_token(payload.id))

    # -------------------------------------------------------------------------
    # Deck actions (consent protocol)
    # -------------------------------------------------------------------------

    async def on_deck_action_request(
        self, channel: Channel, payload: DeckActionRequestPayload
    ) -> None:
        result = self.consent.request(payload.identity, payload.action, payload.n)
        if result is None:
            return
        opponent, request = result
        await self.connections.send_to(
            opponent,
            "deck_action_request",
            {"from": request.requester, "action": request.action.value, "n": request.n},
        )

    async def on_deck_action_response(
        self, channel: Channel, payload: DeckActionResponsePayload
    ) -> None:
        response = self.consent.respond(
            channel.identity, payload.from_, payload.action, payload.approved
        )
        if response is None:
            return

        request = response.request
        await self.connections.send_to(
            request.requester,
            "deck_action_response",
            {
                "from": request.requester,
                "action": request.action.value,
                "n": request.n,
                "approved": response.approved,
                "cards": [c.to_dict() for c in response.cards],
            },
        )
        await self._game_changed(response.shuffled)

    async def on_scry_result(self, channel: Channel, payload: ScryResultPayload) -> None:
        moves = [
            ZoneMove(
                card=m.card.to_instance(),
                target=m.target,
                insert_mode=m.deck_insert_mode,
                x=m.x,
                y=m.y,
            )
            for m in payload.moves
        ]
        await self._game_changed(
            self.consent.submit_library_order(payload.identity, payload.library(), moves)
        )

    async def on_surveil_result(self, channel: Channel, payload: SurveilResultPayload) -> None:
        await self._game_changed(
            self.consent.submit_surveil(payload.identity, payload.library(), payload.graveyard())
        )

    async def on_shuffle_deck(self, channel: Channel, payload: IdentityPayload) -> None:
        await self._game_changed(self.consent.shuffle_after_search(payload.identity))


class SessionHub:
    """All relay sessions of the process, keyed by session id."""

    def __init__(self, generator: PackGenerator) -> None:
        self.generator = generator
        self._sessions: dict[str, RelaySession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> RelaySession:
        session = self._sessions.get(session_id)
        if session is None:
            session = RelaySession(session_id, self.generator)
            self._sessions[session_id] = session
        return session
