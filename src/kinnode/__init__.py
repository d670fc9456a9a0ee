""" Python implementation of the kinnode signaling client. This includes the
    signaling message protocol, the transports that carry it, and the
    connection manager that services a transport in the background and
    hands inbound messages to the device application.
"""

# Utility components.

from . import json

# Submodules used by multiple other components.

from . import protocol
from . import transport
from . import config

# Primary public-facing interfaces.

from .protocol import Message, MsgType
from .client import ConnectionState, NotConnected, SignalingClient
from .dispatch import Dispatcher
from .loop import EventLoop

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
