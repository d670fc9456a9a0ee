"""
kinnode Protocol Layer
======================

This package defines the signaling message protocol spoken between the
device and the cloud signaling server: the typed envelope, its JSON wire
form, and the per-type validation rules.

The protocol layer MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Device Logic (device.py)
    │
    ▼
Message Builder (builder.py)
    Fluent construction of outbound messages
    - Applies the device id as the default correlation id

    │
    ▼
Message Model (message.py)
    - MsgType, the closed set of 14 message types
    - Message, the envelope: type, id, payload, metadata
    - serialize() / deserialize() and the ProtocolError family

    │
    ▼
Validation (rules.py)
    Per-type rule table; advisory, never called by the codec

    │
    ▼
Field Vocabulary (fields.py)
    Canonical names for envelope/payload/metadata keys

---------------------------------------------------------------------

Wire Format
-----------

    {"type": "<name>", "id": "<string>", "payload": {...}, "metadata": {"k": "v"}}

payload and metadata are optional; metadata values are always strings.

---------------------------------------------------------------------
"""

from . import fields
from .builder import MessageBuilder
from .message import (
    MalformedMessage,
    Message,
    MissingField,
    MsgType,
    ProtocolError,
    UnknownType,
    deserialize,
    serialize,
)
from .rules import ValidationError, require, validate


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
