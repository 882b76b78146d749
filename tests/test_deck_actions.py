"""Tests for the deck-action consent protocol."""

import random

import pytest
from conftest import make_deck

from sealedarena.models.game import DeckAction, Zone
from sealedarena.services.deck_actions import ConsentState, DeckActionConsent, ZoneMove
from sealedarena.services.game_store import GameStore

ALICE = "alice@example.com"
BOB = "bob@example.com"


@pytest.fixture
def store() -> GameStore:
    store = GameStore(rng=random.Random(11))
    store.submit_deck(ALICE, make_deck("a"))
    store.submit_deck(BOB, make_deck("b"))
    return store


@pytest.fixture
def consent(store: GameStore) -> DeckActionConsent:
    return DeckActionConsent(store)


def _library_ids(store: GameStore, identity: str) -> list[str]:
    return [c.instance_id for c in store.player(identity).library]


class TestRequest:
    def test_request_targets_opponent(self, consent: DeckActionConsent) -> None:
        opponent, request = consent.request(ALICE, DeckAction.SCRY, 2)

        assert opponent == BOB
        assert request.n == 2
        assert consent.state(ALICE) is ConsentState.REQUESTED

    def test_scry_defaults_to_one(self, consent: DeckActionConsent) -> None:
        _, request = consent.request(ALICE, DeckAction.SURVEIL)

        assert request.n == 1

    def test_no_opponent_yet(self) -> None:
        store = GameStore()
        store.submit_deck(ALICE, make_deck("a"))

        assert DeckActionConsent(store).request(ALICE, DeckAction.SHUFFLE) is None

    def test_unseated_requester(self, consent: DeckActionConsent) -> None:
        assert consent.request("ghost@example.com", DeckAction.SHUFFLE) is None

    def test_new_request_replaces_pending(self, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SCRY, 2)
        consent.request(ALICE, DeckAction.SEARCH)

        assert consent.pending[ALICE].action is DeckAction.SEARCH
        assert consent.respond(BOB, ALICE, DeckAction.SCRY, True) is None


class TestRespond:
    def test_denied_scry_changes_nothing(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        before = _library_ids(store, ALICE)
        consent.request(ALICE, DeckAction.SCRY, 2)

        response = consent.respond(BOB, ALICE, DeckAction.SCRY, False)

        assert not response.approved
        assert response.cards == []
        assert consent.state(ALICE) is ConsentState.IDLE

        reordered = list(reversed(store.player(ALICE).library))
        assert not consent.submit_library_order(ALICE, reordered)
        assert _library_ids(store, ALICE) == before

    def test_approved_scry_reveals_top_cards(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        top_two = _library_ids(store, ALICE)[:2]
        consent.request(ALICE, DeckAction.SCRY, 2)

        response = consent.respond(BOB, ALICE, DeckAction.SCRY, True)

        assert [c.instance_id for c in response.cards] == top_two
        assert consent.state(ALICE) is ConsentState.APPROVED

    def test_requester_cannot_approve_self(self, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SHUFFLE)

        assert consent.respond(ALICE, ALICE, DeckAction.SHUFFLE, True) is None
        assert consent.state(ALICE) is ConsentState.REQUESTED

    def test_response_without_request(self, consent: DeckActionConsent) -> None:
        assert consent.respond(BOB, ALICE, DeckAction.SHUFFLE, True) is None

    def test_approved_shuffle_applies_at_once(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        before = _library_ids(store, ALICE)
        consent.request(ALICE, DeckAction.SHUFFLE)

        response = consent.respond(BOB, ALICE, DeckAction.SHUFFLE, True)

        assert response.shuffled
        assert sorted(_library_ids(store, ALICE)) == sorted(before)
        assert _library_ids(store, ALICE) != before
        assert consent.state(ALICE) is ConsentState.IDLE

    def test_approved_search_reveals_library(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SEARCH)

        response = consent.respond(BOB, ALICE, DeckAction.SEARCH, True)

        assert len(response.cards) == 33


class TestResults:
    def test_scry_reorders_library(self, store: GameStore, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SCRY, 2)
        consent.respond(BOB, ALICE, DeckAction.SCRY, True)
        library = store.player(ALICE).library
        new_order = [library[1], *library[2:], library[0]]

        assert consent.submit_library_order(ALICE, new_order)

        assert _library_ids(store, ALICE) == [c.instance_id for c in new_order]
        assert consent.state(ALICE) is ConsentState.IDLE

    def test_grant_is_used_once(self, store: GameStore, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SCRY, 1)
        consent.respond(BOB, ALICE, DeckAction.SCRY, True)
        library = list(store.player(ALICE).library)

        assert consent.submit_library_order(ALICE, library)
        assert not consent.submit_library_order(ALICE, list(reversed(library)))

    def test_surveil_moves_to_graveyard(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SURVEIL, 2)
        response = consent.respond(BOB, ALICE, DeckAction.SURVEIL, True)
        milled = response.cards[0]
        kept = [c for c in store.player(ALICE).library if c.instance_id != milled.instance_id]

        assert consent.submit_surveil(ALICE, kept, [milled])

        alice = store.player(ALICE)
        assert [c.instance_id for c in alice.graveyard] == [milled.instance_id]
        assert len(alice.library) == 32

    def test_surveil_result_needs_surveil_grant(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SCRY, 1)
        consent.respond(BOB, ALICE, DeckAction.SCRY, True)
        top = store.player(ALICE).library[0]

        assert not consent.submit_surveil(ALICE, store.player(ALICE).library[1:], [top])
        assert store.player(ALICE).graveyard == []

    def test_search_replays_moves_then_shuffles(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SEARCH)
        consent.respond(BOB, ALICE, DeckAction.SEARCH, True)
        tutored = store.player(ALICE).library[10]
        remaining = [c for c in store.player(ALICE).library if c is not tutored]

        assert consent.submit_library_order(
            ALICE, remaining, [ZoneMove(card=tutored, target="hand")]
        )

        alice = store.player(ALICE)
        assert alice.hand[-1].instance_id == tutored.instance_id
        assert tutored.instance_id not in _library_ids(store, ALICE)
        assert len(alice.library) == 32

    def test_shuffle_after_search(self, store: GameStore, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SEARCH)
        consent.respond(BOB, ALICE, DeckAction.SEARCH, True)

        assert consent.shuffle_after_search(ALICE)
        assert not consent.shuffle_after_search(ALICE)

    def test_shuffle_without_search_ignored(self, consent: DeckActionConsent) -> None:
        assert not consent.shuffle_after_search(ALICE)

    def test_reset_clears_state(self, consent: DeckActionConsent) -> None:
        consent.request(ALICE, DeckAction.SCRY, 1)
        consent.request(BOB, DeckAction.SEARCH)
        consent.respond(ALICE, BOB, DeckAction.SEARCH, True)

        consent.reset()

        assert consent.state(ALICE) is ConsentState.IDLE
        assert consent.state(BOB) is ConsentState.IDLE


class TestZones:
    def test_results_cannot_duplicate_cards(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        hand_card = store.player(ALICE).hand[0]
        consent.request(ALICE, DeckAction.SCRY, 1)
        consent.respond(BOB, ALICE, DeckAction.SCRY, True)

        consent.submit_library_order(ALICE, [hand_card, *store.player(ALICE).library])

        assert hand_card.instance_id not in _library_ids(store, ALICE)
        assert store.player(ALICE).zone(Zone.HAND)[0].instance_id == hand_card.instance_id

    def test_partial_scry_result_keeps_library(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SCRY, 2)
        response = consent.respond(BOB, ALICE, DeckAction.SCRY, True)
        before = _library_ids(store, ALICE)

        assert consent.submit_library_order(ALICE, list(reversed(response.cards)))

        assert _library_ids(store, ALICE) == [before[1], before[0], *before[2:]]
        alice = store.player(ALICE)
        assert len(alice.hand) + len(alice.library) == 40

    def test_partial_surveil_result_keeps_library(
        self, store: GameStore, consent: DeckActionConsent
    ) -> None:
        consent.request(ALICE, DeckAction.SURVEIL, 2)
        response = consent.respond(BOB, ALICE, DeckAction.SURVEIL, True)
        milled, kept = response.cards

        assert consent.submit_surveil(ALICE, [kept], [milled])

        alice = store.player(ALICE)
        assert [c.instance_id for c in alice.graveyard] == [milled.instance_id]
        assert alice.library[0].instance_id == kept.instance_id
        assert len(alice.library) == 32
        assert len(alice.hand) + len(alice.library) + len(alice.graveyard) == 40
