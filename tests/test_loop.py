import threading
import time

import kinnode
import kinnode.protocol
from kinnode.protocol import MalformedMessage, MissingField, UnknownType


class Recorder:

    def __init__(self):
        self.established = 0
        self.closed = list()

    def on_established(self):
        self.established += 1

    def on_closed(self, reason):
        self.closed.append(reason)


def make_loop(transport):
    recorder = Recorder()
    dispatcher = kinnode.Dispatcher()
    loop = kinnode.EventLoop(transport, dispatcher,
                             recorder.on_established, recorder.on_closed)
    return loop, dispatcher, recorder


def test_start_stop(transport):

    loop, dispatcher, recorder = make_loop(transport)
    assert loop.running == False

    # Stopping a loop that never started is harmless.

    loop.stop()

    loop.start()
    first = loop._thread
    loop.start()
    assert loop._thread is first
    assert loop.running

    loop.stop()
    assert loop.running == False
    assert first.is_alive() == False
    loop.stop()

    # A stopped loop can be started again.

    loop.start()
    assert loop.running
    loop.stop()


def test_connection_events(transport, wait_until):

    loop, dispatcher, recorder = make_loop(transport)
    loop.start()

    try:
        transport.establish()
        assert wait_until(lambda: recorder.established == 1)

        transport.drop()
        transport.drop(kinnode.transport.EventKind.ERROR, 'reset by peer')
        assert wait_until(lambda: len(recorder.closed) == 2)
    finally:
        loop.stop()

    assert recorder.closed == ['connection closed', 'reset by peer']


def test_sequential_delivery(transport, wait_until, monkeypatch):
    """ Messages reach the callback in arrival order, one at a time, even
        when the first one takes longer to decode.
    """

    original = kinnode.protocol.deserialize

    def slow_deserialize(text):
        if '"first"' in text:
            time.sleep(0.1)
        return original(text)

    monkeypatch.setattr(kinnode.protocol, 'deserialize', slow_deserialize)

    loop, dispatcher, recorder = make_loop(transport)

    received = list()
    active = list()
    overlap = list()
    lock = threading.Lock()

    def handler(message):
        with lock:
            if active:
                overlap.append(message.id)
            active.append(message.id)
        time.sleep(0.01)
        with lock:
            active.remove(message.id)
        received.append(message.id)

    dispatcher.set_callback(handler)
    loop.start()

    try:
        transport.receive('{"type": "STATUS", "id": "first"}')
        transport.receive('{"type": "STATUS", "id": "second"}')
        assert wait_until(lambda: len(received) == 2)
    finally:
        loop.stop()

    assert received == ['first', 'second']
    assert overlap == []


def test_malformed_frames_dropped(transport, wait_until):

    loop, dispatcher, recorder = make_loop(transport)

    received = list()
    dispatcher.set_callback(received.append)
    loop.start()

    try:
        transport.receive('{"type": "STATUS", "id": ')
        transport.receive('{"id": "x"}')
        transport.receive('{"type": "BOGUS", "id": "x"}')
        transport.receive('{"type": "STATUS", "id": "after"}')
        assert wait_until(lambda: len(received) == 1)
    finally:
        loop.stop()

    assert [m.id for m in received] == ['after']
    assert loop.dropped == 3
    assert isinstance(loop.last_error, UnknownType)


def test_missing_id_dropped(transport, wait_until):

    loop, dispatcher, recorder = make_loop(transport)
    loop.start()

    try:
        transport.receive('{"type": "HEARTBEAT"}')
        assert wait_until(lambda: loop.dropped == 1)
    finally:
        loop.stop()

    assert isinstance(loop.last_error, MissingField)
    assert loop.last_error.field == 'id'
    assert dispatcher.pending() == 0


def test_callback_failure_contained(transport, wait_until):

    loop, dispatcher, recorder = make_loop(transport)
    received = list()

    def handler(message):
        if message.id == 'bad':
            raise RuntimeError('handler failure')
        received.append(message.id)

    dispatcher.set_callback(handler)
    loop.start()

    try:
        transport.receive('{"type": "STATUS", "id": "bad"}')
        transport.receive('{"type": "STATUS", "id": "good"}')
        assert wait_until(lambda: received == ['good'])
        assert loop.running
    finally:
        loop.stop()

    assert loop.dropped == 0


def test_queued_without_callback(transport, wait_until):

    loop, dispatcher, recorder = make_loop(transport)
    loop.start()

    try:
        transport.receive('{"type": "LOG", "id": "l1", "payload": {"line": "x"}}')
        assert wait_until(lambda: dispatcher.pending() == 1)
    finally:
        loop.stop()

    message = dispatcher.poll()
    assert message.payload == {'line': 'x'}


def test_transport_failure(transport, wait_until):

    class Failing(type(transport)):
        failures = 0

        def service(self, timeout):
            if self.failures == 0:
                self.failures += 1
                raise kinnode.transport.TransportError('socket gone')
            return type(transport).service(self, timeout)

    failing = Failing()
    loop, dispatcher, recorder = make_loop(failing)
    loop.start()

    try:
        assert wait_until(lambda: recorder.closed == ['socket gone'])
        failing.establish()
        assert wait_until(lambda: recorder.established == 1)
    finally:
        loop.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
