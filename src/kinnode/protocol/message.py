""" A class representation of a signaling message, plus the functions that
    put a :class:`Message` on the wire and take it back off again.
"""

import copy
import enum

from .. import json
from . import fields


class ProtocolError(ValueError):
    """ Base class for failures to decode an inbound frame.
    """


class MalformedMessage(ProtocolError):
    """ The frame is not a JSON object, or one of its sections has the
        wrong shape.
    """


class MissingField(ProtocolError):
    """ A required envelope field is absent or is not a string.
    """

    def __init__(self, field):
        self.field = field
        ProtocolError.__init__(self, 'missing or invalid message field: ' + field)


class UnknownType(ProtocolError):
    """ The message type is not one of the known :class:`MsgType` names.
    """

    def __init__(self, name):
        self.name = name
        ProtocolError.__init__(self, 'unknown message type: ' + repr(name))



class MsgType(str, enum.Enum):
    """ The closed set of message types. The value of each member is the
        name used on the wire.
    """

    REGISTER = 'REGISTER'
    REQUEST = 'REQUEST'
    RESPONSE = 'RESPONSE'
    OFFER = 'OFFER'
    ANSWER = 'ANSWER'
    ICE = 'ICE'
    HEARTBEAT = 'HEARTBEAT'
    ERROR = 'ERROR'
    DISCONNECT = 'DISCONNECT'
    STATUS = 'STATUS'
    CONFIG_UPDATE = 'CONFIG_UPDATE'
    STREAM_INFO = 'STREAM_INFO'
    LOG = 'LOG'
    DIAGNOSTICS = 'DIAGNOSTICS'


    @classmethod
    def lookup(cls, name):
        """ Return the :class:`MsgType` for the wire *name*, raising
            :class:`UnknownType` if there is no such type.
        """

        try:
            return cls(name)
        except ValueError:
            raise UnknownType(name) from None


# end of class MsgType



class Message:
    """ The :class:`Message` is the only unit exchanged with the signaling
        server. The fields are in order of how they are represented on the
        wire: the message *type*, the correlation *id*, the optional
        *payload*, and the string-valued *metadata*.

        The payload is any JSON-compatible structure, and it belongs to
        exactly one :class:`Message`: assigning a payload stores a deep
        copy, copying a message copies the payload, and :func:`move` hands
        the payload to a new message while leaving this one without. A
        payload of None means there is no payload at all.

        Reading :attr:`payload` returns the message's own structure, not a
        copy: changing it in place changes this message, and no other.

        An empty *id* is allowed while a message is being assembled; such a
        message will not pass :func:`validate`.

        :ivar type: A :class:`MsgType` member.
        :ivar id: The correlation string.
        :ivar metadata: A dictionary mapping strings to strings.
    """

    def __init__(self, type, id='', payload=None, metadata=None):

        if isinstance(type, MsgType):
            self.type = type
        else:
            self.type = MsgType.lookup(type)

        self.id = id
        self._payload = None
        self.payload = payload

        self.metadata = dict()
        if metadata:
            for key,value in metadata.items():
                self.add_metadata(key, value)


    def __copy__(self):
        return self.copy()


    def __deepcopy__(self, memo):
        return self.copy()


    def __eq__(self, other):
        if not isinstance(other, Message):
            return NotImplemented

        return (self.type == other.type and self.id == other.id and
                self._payload == other._payload and
                self.metadata == other.metadata)


    def __repr__(self):
        return 'Message(%s, id=%r, payload=%r, metadata=%r)' % (
                self.type.value, self.id, self._payload, self.metadata)


    @property
    def payload(self):
        return self._payload


    @payload.setter
    def payload(self, value):
        if value is None:
            self._payload = None
        else:
            self._payload = copy.deepcopy(value)


    def add_metadata(self, key, value):
        """ Set the metadata entry *key* to *value*; both must be strings.
        """

        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError('metadata keys and values must be strings')

        self.metadata[key] = value


    def get_metadata(self, key, default=''):
        """ Return the metadata value for *key*, or *default* if the key
            is not present.
        """

        return self.metadata.get(key, default)


    def copy(self):
        """ Return an independent duplicate of this message.
        """

        return Message(self.type, self.id, self._payload, self.metadata)


    def move(self):
        """ Return a new :class:`Message` that takes over this message's
            payload. This message keeps its type, id, and metadata, but no
            longer has a payload.
        """

        moved = Message(self.type, self.id, metadata=self.metadata)
        moved._payload = self._payload
        self._payload = None
        return moved


    def serialize(self):
        """ Return the JSON text for this message. The *payload* and
            *metadata* sections are left out when they are empty.
        """

        document = dict()
        document[fields.TYPE] = self.type.value
        document[fields.ID] = self.id

        if self._payload is not None:
            document[fields.PAYLOAD] = self._payload

        if self.metadata:
            document[fields.METADATA] = dict(self.metadata)

        return json.dumps(document).decode()


    @classmethod
    def deserialize(cls, text):
        """ Parse the JSON *text* (str or bytes) of an inbound frame and
            return a new :class:`Message`. Raises a :class:`ProtocolError`
            subclass if the frame is not a usable message; a partially
            decoded message is never returned.

            The frame must be a JSON object, else :class:`MalformedMessage`
            is raised before any field is checked. A *metadata* section
            that is neither an object nor null also makes the frame
            malformed, while non-string values inside an object are
            silently dropped.
        """

        try:
            document = json.loads(text)
        except (json.DecodeError, TypeError) as e:
            raise MalformedMessage('frame is not valid JSON: ' + str(e)) from e

        if not isinstance(document, dict):
            raise MalformedMessage('frame is not a JSON object')

        type = document.get(fields.TYPE)
        if not isinstance(type, str):
            raise MissingField(fields.TYPE)

        type = MsgType.lookup(type)

        id = document.get(fields.ID)
        if not isinstance(id, str):
            raise MissingField(fields.ID)

        # JSON null is the same as no payload at all.

        payload = document.get(fields.PAYLOAD)

        # Metadata entries that are not strings are dropped rather than
        # failing the whole message.

        metadata = document.get(fields.METADATA)

        if metadata is None:
            metadata = dict()
        elif isinstance(metadata, dict):
            metadata = {key: value for key,value in metadata.items() if isinstance(value, str)}
        else:
            raise MalformedMessage('metadata is not a JSON object')

        message = cls(type, id, metadata=metadata)

        # The decoded payload is already private to this message.

        message._payload = payload
        return message


# end of class Message



def serialize(message):
    return message.serialize()


def deserialize(text):
    return Message.deserialize(text)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
