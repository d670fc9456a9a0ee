"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`kinnode.protocol` so the protocol remains
transport-agnostic: a transport moves text frames, it never sees a
:class:`~kinnode.protocol.Message`.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union


# Sub-protocol negotiated with the signaling server.
SUBPROTOCOL = "signaling"

# Leading bytes every outbound buffer reserves ahead of the frame data.
FRAME_RESERVE = 16


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A write was not completed in time."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class PartialWrite(TransportError):
    """The transport accepted fewer bytes than were submitted."""

    def __init__(self, written: int, expected: int):
        self.written = written
        self.expected = expected
        super().__init__(f"wrote {written} of {expected} bytes")


class EventKind(enum.Enum):
    ESTABLISHED = "established"
    RECEIVE = "receive"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class TransportEvent:
    """One transport-level occurrence reported by :meth:`Transport.service`."""

    kind: EventKind
    data: Union[str, bytes, None] = None
    reason: Optional[str] = None


class Transport(ABC):
    """Minimal contract for a wire-level transport.

    :meth:`open` and :meth:`write` are called from application threads;
    :meth:`service` is only ever called by the event loop worker.
    """

    reserve = FRAME_RESERVE

    def __init__(self, address: str, subprotocol: str = SUBPROTOCOL):
        self.address = address
        self.subprotocol = subprotocol

    @abstractmethod
    def open(self) -> None:
        """Initiate the connection handshake.

        Raises :class:`TransportConnectionError` if the handshake cannot be
        started. Success of the handshake itself is reported later as an
        ESTABLISHED event. Calling :meth:`open` on an open transport is a
        no-op.
        """

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @abstractmethod
    def write(self, buffer: bytearray, offset: int) -> int:
        """Send ``buffer[offset:]`` as one text frame.

        Returns the number of frame bytes the transport accepted.
        """

    @abstractmethod
    def service(self, timeout: float) -> List[TransportEvent]:
        """Wait up to *timeout* seconds and return pending events, in order."""

    @property
    def is_open(self) -> bool:
        """Whether the transport currently holds a connection/socket."""
        return False
