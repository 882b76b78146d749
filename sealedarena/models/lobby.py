from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LobbyState(str, Enum):
    """Lifecycle of the pre-game lobby."""

    EMPTY = "empty"
    FILLING = "filling"
    READY_CHECK = "ready_check"
    TRANSITIONING = "transitioning"
    CLOSED = "closed"


@dataclass
class LobbyParticipant:
    """A participant waiting in the lobby."""

    identity: str
    ready: bool = False
    chosen_set: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "ready": self.ready,
            "chosen_set": self.chosen_set,
        }


@dataclass
class LobbySession:
    """
    The pre-game lobby.

    Attributes:
        participants: In join order, at most two
        chosen_set: Session-wide set code; the last selection wins
        started: Set once the deckbuilding transition has begun
        finished: Set once packs have been handed out
        dealt: Identities the transition dealt packs to
    """

    participants: list[LobbyParticipant] = field(default_factory=list)
    chosen_set: str | None = None
    started: bool = False
    finished: bool = False
    dealt: list[str] = field(default_factory=list)

    @property
    def state(self) -> LobbyState:
        if self.finished:
            return LobbyState.CLOSED
        if self.started:
            return LobbyState.TRANSITIONING
        if not self.participants:
            return LobbyState.EMPTY
        if len(self.participants) == 1:
            return LobbyState.FILLING
        return LobbyState.READY_CHECK

    def participant(self, identity: str) -> LobbyParticipant | None:
        for participant in self.participants:
            if participant.identity == identity:
                return participant
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "participants": [p.to_dict() for p in self.participants],
            "chosen_set": self.chosen_set,
            "state": self.state.value,
        }
