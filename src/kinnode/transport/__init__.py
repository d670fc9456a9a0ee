"""Transport layer implementations."""

import os

from .base import (
    FRAME_RESERVE,
    SUBPROTOCOL,
    EventKind,
    PartialWrite,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportEvent,
    TransportTimeout,
)

DEFAULT_BACKEND = "websocket"


def create(address, backend=None, subprotocol=SUBPROTOCOL):
    """Return a new, unopened :class:`Transport` for *address*.

    The *backend* defaults to the KINNODE_TRANSPORT environment variable,
    or websocket if that is not set.
    """

    if backend is None:
        backend = os.environ.get("KINNODE_TRANSPORT", DEFAULT_BACKEND)

    if backend == "websocket":
        from .websocket import WebSocketTransport
        return WebSocketTransport(address, subprotocol)
    elif backend == "zmq":
        from .zmq import ZmqTransport
        return ZmqTransport(address, subprotocol)
    else:
        raise ValueError(f"unknown KINNODE_TRANSPORT backend: {backend!r}")
