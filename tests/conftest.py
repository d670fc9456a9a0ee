import queue
import time

import pytest

import kinnode
from kinnode.transport import EventKind, Transport, TransportConnectionError, TransportEvent


class FakeTransport(Transport):
    """ In-memory transport. Tests push events with :func:`establish`,
        :func:`receive`, and :func:`drop`; everything written is kept in
        :attr:`buffers`.
    """

    def __init__(self, address='ws://unittest:8080'):
        Transport.__init__(self, address)
        self.buffers = list()
        self.accept = None
        self.refuse = False
        self.opened = 0
        self.closed = 0
        self._open = False
        self._events = queue.SimpleQueue()

    @property
    def is_open(self):
        return self._open

    def open(self):
        if self.refuse:
            raise TransportConnectionError('connection refused')
        if self._open:
            return
        self._open = True
        self.opened += 1

    def close(self):
        self._open = False
        self.closed += 1

    def write(self, buffer, offset):
        self.buffers.append((bytes(buffer), offset))
        length = len(buffer) - offset
        if self.accept is None:
            return length
        return min(self.accept, length)

    def service(self, timeout):
        try:
            events = [self._events.get(timeout=timeout)]
        except queue.Empty:
            return []

        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def establish(self):
        self._events.put(TransportEvent(EventKind.ESTABLISHED))

    def receive(self, frame):
        self._events.put(TransportEvent(EventKind.RECEIVE, frame))

    def drop(self, kind=EventKind.CLOSED, reason=None):
        self._events.put(TransportEvent(kind, reason=reason))

    def frames(self):
        """ Return the frames written so far, without the reserved prefix.
        """
        return [buffer[offset:].decode() for buffer,offset in self.buffers]


def _wait_until(condition, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return condition()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    client = kinnode.SignalingClient(transport.address, transport=transport)
    yield client
    client.close()


@pytest.fixture
def connected(client, transport):
    client.connect()
    client.start_event_loop()
    transport.establish()
    assert client.wait_connected(2.0)
    return client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
