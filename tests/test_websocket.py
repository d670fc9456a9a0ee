import socket
import threading
import time

import pytest
from websockets.sync.server import serve

import kinnode
from kinnode.protocol import Message, MsgType
from kinnode.transport import EventKind, TransportConnectionError
from kinnode.transport.websocket import WebSocketTransport


def echo(connection):
    for frame in connection:
        if frame == 'bye':
            connection.close()
            return
        connection.send(frame)


@pytest.fixture
def server():
    server = serve(echo, '127.0.0.1', 0, subprotocols=['signaling'])
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()

    port = server.socket.getsockname()[1]

    try:
        yield 'ws://127.0.0.1:%d' % (port)
    finally:
        server.shutdown()
        thread.join(2)


def collect(transport, kind, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        for event in transport.service(0.05):
            if event.kind == kind:
                return event
    raise AssertionError('no %s event' % (kind.value))


def frame_buffer(text, reserve):
    buffer = bytearray(reserve)
    buffer.extend(text.encode())
    return buffer


def test_handshake(server):

    transport = WebSocketTransport(server)
    assert transport.is_open == False

    try:
        transport.open()
        assert transport.is_open
        assert transport._ws.subprotocol == 'signaling'

        # Opening again is a no-op.
        transport.open()

        event = collect(transport, EventKind.ESTABLISHED)
        assert event.data is None
    finally:
        transport.close()

    assert transport.is_open == False


def test_write_skips_reserve(server):

    transport = WebSocketTransport(server)
    transport.open()

    try:
        collect(transport, EventKind.ESTABLISHED)

        text = '{"type":"HEARTBEAT","id":"dev-1"}'
        buffer = frame_buffer(text, transport.reserve)
        assert transport.write(buffer, transport.reserve) == len(text)

        event = collect(transport, EventKind.RECEIVE)
        assert event.data == text
    finally:
        transport.close()


def test_remote_close(server):

    transport = WebSocketTransport(server)
    transport.open()

    try:
        collect(transport, EventKind.ESTABLISHED)
        transport.write(frame_buffer('bye', transport.reserve), transport.reserve)

        collect(transport, EventKind.CLOSED)
        assert transport.is_open == False

        with pytest.raises(TransportConnectionError):
            transport.write(frame_buffer('{}', transport.reserve), transport.reserve)
    finally:
        transport.close()


def test_connection_context(server, recwarn):

    transport = WebSocketTransport(server)
    transport.open()

    try:
        collect(transport, EventKind.ESTABLISHED)
        text = '{"type":"STATUS","id":"s1"}'
        transport.write(frame_buffer(text, transport.reserve), transport.reserve)
        assert collect(transport, EventKind.RECEIVE).data == text
    finally:
        transport.close()

    # The connection is held as a context manager.

    for warning in recwarn:
        assert 'context manager' not in str(warning.message)


def test_refused():

    listener = socket.socket()
    listener.bind(('127.0.0.1', 0))
    port = listener.getsockname()[1]
    listener.close()

    transport = WebSocketTransport('ws://127.0.0.1:%d' % (port))

    with pytest.raises(TransportConnectionError):
        transport.open()

    assert transport.is_open == False
    assert transport.service(0.01) == []


def test_client_round_trip(server):

    received = list()

    with kinnode.SignalingClient(server, backend='websocket') as client:
        assert isinstance(client.transport, WebSocketTransport)

        client.set_callback(received.append)
        client.connect()
        client.start_event_loop()
        assert client.wait_connected(2.0)

        message = Message(MsgType.STATUS, 'dev-1', {'streams': 1}, {'version': '1.0.0'})
        client.send(message)

        deadline = time.time() + 2.0
        while not received and time.time() < deadline:
            time.sleep(0.01)

    assert received == [message]
    assert client.is_connected() == False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
