"""
Snapshot broadcasting for one relay session.

After every accepted mutation the full lobby or game snapshot is pushed to
every connection of the session. There is no diffing and no
acknowledgement; clients replace their view wholesale. Each broadcast carries
an increasing version so clients can tell snapshots apart.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ChannelClosedError(Exception):
    """Raised by a channel whose peer has gone away."""


class Channel(Protocol):
    """A bidirectional connection to one client."""

    identity: str | None

    async def send(self, event: str, data: Any) -> None: ...


class ConnectionManager:
    """Tracks the channels of a session and which identity each speaks for."""

    def __init__(self) -> None:
        self._channels: list[Channel] = []
        self._by_identity: dict[str, Channel] = {}
        self.version = 0

    def __len__(self) -> int:
        return len(self._channels)

    def add(self, channel: Channel) -> None:
        if channel not in self._channels:
            self._channels.append(channel)

    def remove(self, channel: Channel) -> None:
        self._channels = [c for c in self._channels if c is not channel]
        if channel.identity and self._by_identity.get(channel.identity) is channel:
            del self._by_identity[channel.identity]

    def bind(self, identity: str, channel: Channel) -> None:
        """Route private messages for an identity to this channel."""
        previous = channel.identity
        if previous and self._by_identity.get(previous) is channel:
            del self._by_identity[previous]
        channel.identity = identity
        self._by_identity[identity] = channel
        self.add(channel)

    def channel_for(self, identity: str) -> Channel | None:
        return self._by_identity.get(identity)

    async def deliver(self, channel: Channel, event: str, data: Any) -> bool:
        try:
            await channel.send(event, data)
        except ChannelClosedError as e:
            logger.warning("Dropping closed channel for %s: %s", channel.identity, e)
            self.remove(channel)
            return False
        return True

    async def send_to(self, identity: str, event: str, data: Any) -> bool:
        """Send a private message. Returns False if the identity has no channel."""
        channel = self._by_identity.get(identity)
        if channel is None:
            logger.info("No channel for %s, dropping %s", identity, event)
            return False
        return await self.deliver(channel, event, data)

    async def broadcast(self, event: str, snapshot: dict[str, Any]) -> None:
        """Send a versioned snapshot to every channel of the session."""
        self.version += 1
        payload = {**snapshot, "version": self.version}
        for channel in list(self._channels):
            await self.deliver(channel, event, payload)
