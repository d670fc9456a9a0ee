"""WebSocket transport, built on the synchronous ``websockets`` client.

The handshake runs inside :meth:`WebSocketTransport.open`; its success is
queued as an ESTABLISHED event so that the connection state still changes
on the event loop thread, like every other transport event.
"""

from __future__ import annotations

import collections
import contextlib
import logging
import threading
from typing import Deque, List, Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException
from websockets.sync.client import ClientConnection, connect
from websockets.typing import Subprotocol

from .base import (
    SUBPROTOCOL,
    EventKind,
    Transport,
    TransportConnectionError,
    TransportEvent,
)


logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """Text-frame WebSocket connection to the signaling server."""

    open_timeout = 10.0
    close_timeout = 2.0

    def __init__(self, address: str, subprotocol: str = SUBPROTOCOL):
        super().__init__(address, subprotocol)
        self._ws: Optional[ClientConnection] = None
        self._stack: Optional[contextlib.ExitStack] = None
        self._events: Deque[TransportEvent] = collections.deque()
        self._lock = threading.Lock()
        self._open_lock = threading.Lock()
        self._idle = threading.Event()

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    def open(self) -> None:
        with self._open_lock:
            if self._ws is not None:
                return

            # The connection stays inside its context manager until close().

            stack = contextlib.ExitStack()
            try:
                ws = stack.enter_context(connect(
                    self.address,
                    subprotocols=[Subprotocol(self.subprotocol)],
                    open_timeout=self.open_timeout,
                    close_timeout=self.close_timeout,
                ))
            except (OSError, WebSocketException) as exc:
                raise TransportConnectionError(
                    f"cannot connect to {self.address}: {exc}"
                ) from exc

            with self._lock:
                self._ws = ws
                self._stack = stack
                self._events.append(TransportEvent(EventKind.ESTABLISHED))

            logger.debug("websocket handshake with %s complete", self.address)

    def close(self) -> None:
        with self._lock:
            stack, self._stack = self._stack, None
            self._ws = None
            self._events.clear()

        if stack is not None:
            stack.close()
            logger.debug("websocket to %s closed", self.address)

    def write(self, buffer: bytearray, offset: int) -> int:
        ws = self._ws
        if ws is None:
            raise TransportConnectionError(f"no connection to {self.address}")

        frame = bytes(memoryview(buffer)[offset:])

        try:
            ws.send(frame.decode("utf-8"))
        except ConnectionClosed as exc:
            raise TransportConnectionError(f"connection to {self.address} closed: {exc}") from exc

        return len(frame)

    def service(self, timeout: float) -> List[TransportEvent]:
        with self._lock:
            if self._events:
                events = list(self._events)
                self._events.clear()
                return events
            ws = self._ws

        if ws is None:
            self._idle.wait(timeout)
            return []

        try:
            frame = ws.recv(timeout=timeout)
        except TimeoutError:
            return []
        except ConnectionClosedOK as exc:
            self._release(ws)
            return [TransportEvent(EventKind.CLOSED, reason=str(exc))]
        except ConnectionClosed as exc:
            self._release(ws)
            return [TransportEvent(EventKind.ERROR, reason=str(exc))]

        return [TransportEvent(EventKind.RECEIVE, frame)]

    def _release(self, ws: ClientConnection) -> None:
        """Forget a connection the remote side has closed."""

        with self._lock:
            if self._ws is not ws:
                return
            stack, self._stack = self._stack, None
            self._ws = None

        stack.close()
