""" The connection manager: one :class:`SignalingClient` owns the transport
    to the signaling server, the event loop servicing it, and the
    dispatcher delivering inbound messages.
"""

import enum
import logging
import threading

from . import transport as transport_module
from .dispatch import Dispatcher
from .loop import EventLoop
from .transport import PartialWrite


logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    DISCONNECTED = 'disconnected'
    CONNECTED = 'connected'


class StateError(RuntimeError):
    """ The operation is not allowed in the current connection state.
    """


class NotConnected(StateError):
    """ :func:`SignalingClient.send` was called while disconnected.
    """



class SignalingClient:
    """ Maintain the control connection to the signaling server at
        *address*. The *transport* argument is optional; if it is not
        specified, one is created by :func:`kinnode.transport.create`
        according to *backend*.

        The connection state starts out DISCONNECTED and only becomes
        CONNECTED when the event loop sees the transport report an
        established connection; :func:`connect` merely starts the
        handshake. Use :func:`wait_connected` to block until the connection
        is usable.

        Instances can be used as context managers; leaving the context
        calls :func:`close`.
    """

    def __init__(self, address, transport=None, backend=None):

        if transport is None:
            transport = transport_module.create(address, backend)

        self.address = address
        self.transport = transport
        self.dispatcher = Dispatcher()
        self.loop = EventLoop(transport, self.dispatcher,
                              self._established, self._closed)

        self._state = ConnectionState.DISCONNECTED
        self._state_changed = threading.Condition()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    @property
    def state(self):
        return self._state


    def _set_state(self, state, reason=None):

        with self._state_changed:
            previous = self._state
            self._state = state
            self._state_changed.notify_all()

        if previous == state:
            return

        if reason is None:
            logger.info('%s: %s', self.address, state.value)
        else:
            logger.warning('%s: %s (%s)', self.address, state.value, reason)


    def _established(self):
        self._set_state(ConnectionState.CONNECTED)


    def _closed(self, reason):
        self._set_state(ConnectionState.DISCONNECTED, reason)


    def is_connected(self):
        return self._state == ConnectionState.CONNECTED


    def wait_connected(self, timeout=None):
        """ Block until the connection is established, or until *timeout*
            seconds have passed. Returns True if the client is connected.
            Only useful while the event loop is running.
        """

        with self._state_changed:
            return self._state_changed.wait_for(self.is_connected, timeout)


    def connect(self):
        """ Start the handshake with the signaling server. Returns True
            immediately if the client is already connected. Raises
            :class:`kinnode.transport.TransportConnectionError` if the
            handshake could not be started.
        """

        if self.is_connected():
            return True

        self.transport.open()
        logger.debug('%s: handshake initiated', self.address)
        return True


    def disconnect(self):
        """ Stop the event loop, close the transport, and mark the client
            disconnected. Does nothing if the client is not connected.
        """

        if not self.is_connected():
            return

        self.close()


    def close(self):
        """ Stop the event loop and close the transport regardless of the
            connection state.
        """

        self.loop.stop()
        self.transport.close()
        self._set_state(ConnectionState.DISCONNECTED)


    def send(self, message):
        """ Serialize *message* and write it to the transport, returning once
            the transport has accepted the whole frame. Raises
            :class:`NotConnected` if the client is not connected, and
            :class:`kinnode.transport.PartialWrite` if the transport accepted
            only part of the frame.
        """

        if not self.is_connected():
            raise NotConnected('not connected to signaling server ' + self.address)

        frame = message.serialize().encode()
        expected = len(frame)

        # The transport requires a reserved region ahead of the frame data.

        reserve = self.transport.reserve
        buffer = bytearray(reserve + expected)
        buffer[reserve:] = frame

        written = self.transport.write(buffer, reserve)

        if written < expected:
            raise PartialWrite(written, expected)

        logger.debug('sent %s %r', message.type.value, message.id)


    def set_callback(self, callback):
        self.dispatcher.set_callback(callback)


    def start_event_loop(self):
        self.loop.start()


    def stop_event_loop(self):
        self.loop.stop()


# end of class SignalingClient


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
