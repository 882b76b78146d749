"""
Pre-game lobby registry.

Tracks who is waiting, which set will be opened and who is ready.
The deckbuilding transition fires once, when exactly two participants
are present and both are ready.
"""

import logging

from sealedarena.config import MAX_PARTICIPANTS
from sealedarena.models.lobby import LobbyParticipant, LobbySession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns the LobbySession of one relay session."""

    def __init__(self) -> None:
        self.lobby = LobbySession()

    def join(self, identity: str) -> bool:
        """
        Add a participant.

        Returns:
            True if the identity was added; False if it is already present,
            the lobby is full, or packs are already being dealt.
        """
        if self.lobby.started:
            return False
        if self.lobby.participant(identity) is not None:
            return False
        if len(self.lobby.participants) >= MAX_PARTICIPANTS:
            logger.info("Lobby full, %s not seated", identity)
            return False

        self.lobby.participants.append(LobbyParticipant(identity=identity))
        logger.info("%s joined the lobby", identity)
        return True

    def leave(self, identity: str) -> bool:
        """Remove a participant regardless of readiness."""
        before = len(self.lobby.participants)
        self.lobby.participants = [p for p in self.lobby.participants if p.identity != identity]
        return len(self.lobby.participants) != before

    def select_set(self, identity: str, set_code: str) -> bool:
        """Record a participant's set choice. The last selection wins for everyone."""
        participant = self.lobby.participant(identity)
        if participant is None:
            return False
        participant.chosen_set = set_code
        self.lobby.chosen_set = set_code
        return True

    def set_ready(self, identity: str, ready: bool) -> bool:
        participant = self.lobby.participant(identity)
        if participant is None:
            return False
        participant.ready = ready
        return True

    def ready_to_start(self) -> bool:
        participants = self.lobby.participants
        return (
            not self.lobby.started
            and len(participants) == MAX_PARTICIPANTS
            and all(p.ready for p in participants)
        )

    def begin_transition(self) -> LobbySession | None:
        """
        Start the deckbuilding transition if everyone is ready.

        The identities present now are recorded as dealt; they may submit
        decks even if they drop out of the lobby and log in again.

        Returns:
            The lobby the transition started on, or None if it does not
            fire (not ready, or already fired).
        """
        if not self.ready_to_start():
            return None
        self.lobby.started = True
        self.lobby.dealt = [p.identity for p in self.lobby.participants]
        logger.info("Lobby ready, dealing packs for set %s", self.lobby.chosen_set)
        return self.lobby

    def is_current(self, lobby: LobbySession) -> bool:
        """False once a reset has replaced the given lobby."""
        return lobby is self.lobby

    def finish_transition(self, lobby: LobbySession) -> bool:
        """Close the lobby, unless it has been reset since the transition began."""
        if not self.is_current(lobby):
            return False
        lobby.finished = True
        return True

    def may_submit_deck(self, identity: str) -> bool:
        """Lobby participants, plus anyone packs were dealt to."""
        return identity in self.lobby.dealt or self.lobby.participant(identity) is not None

    def reset(self) -> None:
        self.lobby = LobbySession()
