"""ZeroMQ transport.

A DEALER socket connects to the signaling endpoint. Connection progress is
read from the socket monitor; a completed ZMTP handshake is reported as an
ESTABLISHED event through :meth:`ZmqTransport.service`.

ZeroMQ sockets are not thread-safe. The event loop worker owns the socket;
writes from any other thread are queued in an outbox and announced over an
inproc PAIR socket, and the writing thread blocks until the worker has put
the frame on the wire.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from typing import List, Optional
from urllib.parse import urlsplit

import zmq
from zmq.utils.monitor import recv_monitor_message

from .base import (
    SUBPROTOCOL,
    EventKind,
    Transport,
    TransportConnectionError,
    TransportEvent,
    TransportTimeout,
)


logger = logging.getLogger(__name__)

zmq_context = zmq.Context.instance()
_socket_ids = itertools.count()

_DEFAULT_PORTS = {"ws": 80, "http": 80, "wss": 443, "https": 443}


def endpoint(address: str) -> str:
    """Map a ``ws://host:port`` style *address* to ``tcp://host:port``.

    ZeroMQ endpoints (``tcp://``, ``ipc://``, ...) are returned unchanged.
    """

    parts = urlsplit(address)
    if parts.scheme not in _DEFAULT_PORTS:
        return address

    port = parts.port or _DEFAULT_PORTS[parts.scheme]
    return f"tcp://{parts.hostname}:{port}"


class PendingWrite:
    """Caller-side handle for one frame waiting in the outbox."""

    def __init__(self, frame: bytes):
        self.frame = frame
        self.written = 0
        self.error: Optional[Exception] = None
        self.done = threading.Event()

    def wait(self, timeout: Optional[float]) -> bool:
        return self.done.wait(timeout)

    def _complete(self, written: int) -> None:
        self.written = written
        self.done.set()

    def _fail(self, error: Exception) -> None:
        self.error = error
        self.done.set()


class ZmqTransport(Transport):
    """DEALER-socket connection to a ZeroMQ signaling endpoint."""

    timeout = 5.0

    monitor_events = (
        zmq.EVENT_HANDSHAKE_SUCCEEDED | zmq.EVENT_DISCONNECTED | zmq.EVENT_CLOSED
    )

    def __init__(self, address: str, subprotocol: str = SUBPROTOCOL):
        super().__init__(address, subprotocol)
        self.endpoint = endpoint(address)

        self.socket: Optional[zmq.Socket] = None
        self.monitor: Optional[zmq.Socket] = None
        self._signal_rx: Optional[zmq.Socket] = None
        self._signal_tx: Optional[zmq.Socket] = None
        self._poller: Optional[zmq.Poller] = None
        self._worker: Optional[threading.Thread] = None

        self._outbox: "queue.SimpleQueue[PendingWrite]" = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._signal_lock = threading.Lock()
        self._idle = threading.Event()

    @property
    def is_open(self) -> bool:
        return self.socket is not None

    def open(self) -> None:
        with self._lock:
            if self.socket is not None:
                return

            number = next(_socket_ids)

            socket = zmq_context.socket(zmq.DEALER)
            socket.setsockopt(zmq.LINGER, 0)
            socket.setsockopt(zmq.RECONNECT_IVL, -1)
            socket.setsockopt(zmq.IMMEDIATE, 1)
            socket.identity = f"{self.subprotocol}.{number}".encode()
            monitor = socket.get_monitor_socket(self.monitor_events)

            try:
                socket.connect(self.endpoint)
            except zmq.ZMQError as exc:
                socket.disable_monitor()
                monitor.close()
                socket.close()
                raise TransportConnectionError(
                    f"cannot connect to {self.endpoint}: {exc}"
                ) from exc

            internal = f"inproc://kinnode.transport.zmq:signal:{number}"
            signal_rx = zmq_context.socket(zmq.PAIR)
            signal_rx.bind(internal)
            signal_tx = zmq_context.socket(zmq.PAIR)
            signal_tx.connect(internal)

            poller = zmq.Poller()
            poller.register(socket, zmq.POLLIN)
            poller.register(monitor, zmq.POLLIN)
            poller.register(signal_rx, zmq.POLLIN)

            self.socket = socket
            self.monitor = monitor
            self._signal_rx = signal_rx
            self._signal_tx = signal_tx
            self._poller = poller

        logger.debug("zmq DEALER connecting to %s", self.endpoint)

    def close(self) -> None:
        with self._lock, self._signal_lock:
            socket, self.socket = self.socket, None
            monitor, self.monitor = self.monitor, None
            signal_rx, self._signal_rx = self._signal_rx, None
            signal_tx, self._signal_tx = self._signal_tx, None
            self._poller = None

        if socket is None:
            return

        socket.disable_monitor()
        monitor.close()
        signal_rx.close()
        signal_tx.close()
        socket.close()

        while True:
            try:
                pending = self._outbox.get_nowait()
            except queue.Empty:
                break
            pending._fail(TransportConnectionError("transport closed"))

        logger.debug("zmq DEALER to %s closed", self.endpoint)

    def write(self, buffer: bytearray, offset: int) -> int:
        pending = PendingWrite(bytes(memoryview(buffer)[offset:]))

        # The worker thread can write directly; it owns the socket.

        if threading.current_thread() is self._worker:
            self._send(pending)
        else:
            with self._signal_lock:
                signal_tx = self._signal_tx
                if signal_tx is None:
                    raise TransportConnectionError(f"no connection to {self.endpoint}")
                self._outbox.put(pending)
                signal_tx.send(b"")

            if not pending.wait(self.timeout):
                raise TransportTimeout(
                    f"{self.endpoint}: frame not written in {self.timeout:.2f} sec"
                )

        if pending.error is not None:
            raise pending.error
        return pending.written

    def service(self, timeout: float) -> List[TransportEvent]:
        self._worker = threading.current_thread()

        poller = self._poller
        if poller is None:
            self._idle.wait(timeout)
            return []

        events: List[TransportEvent] = []

        for active, _flag in poller.poll(int(timeout * 1000)):
            if active is self.monitor:
                events.extend(self._monitor_incoming())
            elif active is self._signal_rx:
                self._handle_outgoing()
            elif active is self.socket:
                events.extend(self._frames_incoming())

        # With reconnection disabled a DEALER whose peer went away is dead;
        # release it so the next open() starts a fresh handshake.

        if any(event.kind == EventKind.CLOSED for event in events):
            self.close()

        return events

    # --- internal ---
    def _send(self, pending: PendingWrite) -> None:
        socket = self.socket
        if socket is None:
            pending._fail(TransportConnectionError(f"no connection to {self.endpoint}"))
            return

        try:
            socket.send(pending.frame, zmq.NOBLOCK)
        except zmq.Again:
            # No completed connection to queue the frame on.
            pending._complete(0)
        except zmq.ZMQError as exc:
            pending._fail(TransportConnectionError(f"{self.endpoint}: {exc}"))
        else:
            pending._complete(len(pending.frame))

    def _handle_outgoing(self) -> None:
        # One signal per queued frame.
        while True:
            try:
                self._signal_rx.recv(flags=zmq.NOBLOCK)
            except zmq.Again:
                return
            self._send(self._outbox.get(block=False))

    def _frames_incoming(self) -> List[TransportEvent]:
        events = []
        while True:
            try:
                parts = self.socket.recv_multipart(flags=zmq.NOBLOCK)
            except zmq.Again:
                return events
            events.append(TransportEvent(EventKind.RECEIVE, parts[-1]))

    def _monitor_incoming(self) -> List[TransportEvent]:
        events = []
        while True:
            try:
                event = recv_monitor_message(self.monitor, flags=zmq.NOBLOCK)
            except zmq.Again:
                return events

            kind = event["event"]
            if kind == zmq.EVENT_HANDSHAKE_SUCCEEDED:
                events.append(TransportEvent(EventKind.ESTABLISHED))
            elif kind in (zmq.EVENT_DISCONNECTED, zmq.EVENT_CLOSED):
                state = "disconnected" if kind == zmq.EVENT_DISCONNECTED else "closed"
                reason = f"{self.endpoint}: {state}"
                events.append(TransportEvent(EventKind.CLOSED, reason=reason))
