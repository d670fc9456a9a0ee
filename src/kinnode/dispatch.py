""" Hand decoded inbound messages to the application.
"""

import collections
import threading


class Dispatcher:
    """ The :class:`Dispatcher` holds at most one registered callback, plus
        a queue of messages that arrived while no callback was registered.

        One lock guards both. A delivery holds the lock for as long as the
        callback runs, so replacing the callback never overlaps a delivery,
        and every message goes to exactly one callback: whichever one is
        registered when the delivery happens. A callback must not call
        :func:`set_callback`, :func:`poll`, or :func:`drain` on its own
        dispatcher; the lock is not reentrant, and the call will never
        return.

        Queued messages stay queued until the application calls
        :func:`poll` or :func:`drain`; registering a callback does not
        replay them.
    """

    def __init__(self):

        self._lock = threading.Lock()
        self._callback = None
        self._pending = collections.deque()


    def set_callback(self, callback):
        """ Register *callback*, a callable accepting one
            :class:`kinnode.protocol.Message`, replacing any previously
            registered callback. None unregisters the current callback.
        """

        with self._lock:
            self._callback = callback


    def deliver(self, message):
        """ Invoke the registered callback with *message*, or queue the
            message if no callback is registered. Returns True if a callback
            was invoked. Exceptions raised by the callback propagate to the
            caller.
        """

        with self._lock:
            callback = self._callback

            if callback is None:
                self._pending.append(message)
                return False

            callback(message)
            return True


    def pending(self):
        """ Return the number of queued messages.
        """

        with self._lock:
            return len(self._pending)


    def poll(self):
        """ Remove and return the oldest queued message, or None if the
            queue is empty.
        """

        with self._lock:
            try:
                return self._pending.popleft()
            except IndexError:
                return None


    def drain(self):
        """ Remove and return all queued messages, oldest first.
        """

        with self._lock:
            messages = list(self._pending)
            self._pending.clear()

        return messages


# end of class Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
