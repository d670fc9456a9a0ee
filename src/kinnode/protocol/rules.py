"""Per-type validation rules for signaling messages.

Validation is advisory: nothing in the codec calls it. Code acting on a
decoded message calls :func:`validate` (or :func:`require`) first.
"""

from __future__ import annotations

from typing import Callable, Dict

from . import fields
from .message import Message, MsgType


class ValidationError(ValueError):
    """Raised by :func:`require` when a message fails its type's rule."""

    def __init__(self, message: Message, reason: str):
        self.msg = message
        self.reason = reason
        super().__init__(f"{message.type.value} message {message.id!r}: {reason}")


Rule = Callable[[Message], bool]


def _always(msg: Message) -> bool:
    return True

_always.reason = "always valid"


def _has_payload(msg: Message) -> bool:
    return msg.payload is not None

_has_payload.reason = "payload is required"


def _has_string(field: str) -> Rule:
    def rule(msg: Message) -> bool:
        payload = msg.payload
        return isinstance(payload, dict) and isinstance(payload.get(field), str)

    rule.reason = f"payload must carry a string {field!r}"
    return rule


RULES: Dict[MsgType, Rule] = {
    MsgType.REGISTER: _has_payload,
    MsgType.REQUEST: _has_payload,
    MsgType.RESPONSE: _always,
    MsgType.OFFER: _has_string(fields.SDP),
    MsgType.ANSWER: _has_string(fields.SDP),
    MsgType.ICE: _has_string(fields.CANDIDATE),
    MsgType.HEARTBEAT: _always,
    MsgType.ERROR: _has_payload,
    MsgType.DISCONNECT: _always,
    MsgType.STATUS: _always,
    MsgType.CONFIG_UPDATE: _always,
    MsgType.STREAM_INFO: _always,
    MsgType.LOG: _always,
    MsgType.DIAGNOSTICS: _always,
}

_missing = set(MsgType) - set(RULES)
if _missing:
    raise RuntimeError(f"no validation rule for: {sorted(t.value for t in _missing)}")


def validate(msg: Message) -> bool:
    """Return True if *msg* has a non-empty id and satisfies its type's rule."""

    if not msg.id:
        return False
    return RULES[msg.type](msg)


def require(msg: Message) -> Message:
    """Return *msg* unchanged, or raise :class:`ValidationError`."""

    if not msg.id:
        raise ValidationError(msg, "id is empty")

    rule = RULES[msg.type]
    if not rule(msg):
        raise ValidationError(msg, rule.reason)
    return msg
