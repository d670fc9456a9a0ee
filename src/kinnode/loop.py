""" The background worker that services a transport: it receives frames,
    decodes them, hands them to a :class:`kinnode.dispatch.Dispatcher`,
    and reports connection establishment and loss.
"""

import logging
import threading

from . import protocol
from . import transport as transport_module
from .transport import EventKind


logger = logging.getLogger(__name__)


class EventLoop:
    """ A single background thread servicing one transport. Each cycle
        waits up to *budget* seconds for transport events, handles them in
        the order the transport reported them, then pauses for *pause*
        seconds before the next cycle. The cycle continues until
        :func:`stop` is called; a closed connection does not end it, and
        no reconnection is attempted.

        *on_established* and *on_closed* are called on the worker thread;
        *on_closed* receives a short description of why the connection
        ended.

        :ivar dropped: The number of inbound frames that failed to decode.
        :ivar last_error: The most recent decode failure, if any.
    """

    budget = 0.05
    pause = 0.01

    def __init__(self, transport, dispatcher, on_established, on_closed):

        self.transport = transport
        self.dispatcher = dispatcher
        self.on_established = on_established
        self.on_closed = on_closed

        self.dropped = 0
        self.last_error = None

        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread = None


    @property
    def running(self):
        thread = self._thread
        return thread is not None and thread.is_alive()


    def start(self):
        """ Start the worker thread. Calling :func:`start` while the worker
            is running is a no-op.
        """

        with self._lock:
            if self.running:
                return

            self._stop = threading.Event()
            self._thread = threading.Thread(target=self.run, args=(self._stop,),
                                            name='kinnode.EventLoop')
            self._thread.daemon = True
            self._thread.start()


    def stop(self):
        """ Ask the worker to exit and wait for it to do so. The worker
            notices within one cycle. Called from the worker itself (from a
            message callback, for example) this only asks; the worker exits
            once the callback returns.
        """

        with self._lock:
            thread = self._thread
            if thread is None:
                return

            self._stop.set()
            self._thread = None

        if thread is not threading.current_thread():
            thread.join()


    def run(self, stop):

        while not stop.is_set():
            try:
                events = self.transport.service(self.budget)
            except transport_module.TransportError as e:
                logger.error('transport failure: %s', e)
                self.on_closed(str(e))
                events = ()

            for event in events:
                self._handle(event)

            stop.wait(self.pause)


    def _handle(self, event):

        kind = event.kind

        if kind == EventKind.RECEIVE:
            self._receive(event.data)
        elif kind == EventKind.ESTABLISHED:
            self.on_established()
        elif kind == EventKind.CLOSED:
            self.on_closed(event.reason or 'connection closed')
        elif kind == EventKind.ERROR:
            self.on_closed(event.reason or 'connection error')


    def _receive(self, frame):
        """ Decode one inbound frame and deliver it. Frames that do not
            decode are logged and dropped; so are failures raised by the
            application's callback.
        """

        try:
            message = protocol.deserialize(frame)
        except protocol.ProtocolError as e:
            self.dropped += 1
            self.last_error = e
            logger.warning('dropping inbound frame: %s', e)
            return

        try:
            self.dispatcher.deliver(message)
        except Exception:
            logger.exception('message callback failed for %s %r',
                             message.type.value, message.id)


# end of class EventLoop


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
