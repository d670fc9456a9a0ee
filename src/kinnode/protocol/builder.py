from __future__ import annotations

from typing import Any, Dict, Optional

from . import fields
from .message import Message, MsgType


class MessageBuilder:
    """Fluent construction of outbound messages.

    The *default_id* is used for every message built without an explicit
    :meth:`id`; the device uses its own device id there. A builder is
    reset by :meth:`build` and can be reused.
    """

    def __init__(self, default_id: str = ""):
        self._default_id = default_id
        self._reset()

    def _reset(self) -> None:
        self._type: Optional[MsgType] = None
        self._id: Optional[str] = None
        self._payload: Optional[Any] = None
        self._meta: Dict[str, str] = {}

    # Semantic type setters
    def type(self, msg_type: MsgType):
        self._type = MsgType.lookup(msg_type)
        return self

    def register(self):
        return self.type(MsgType.REGISTER)

    def request(self):
        return self.type(MsgType.REQUEST)

    def response(self, request_id: Optional[str] = None):
        self.type(MsgType.RESPONSE)
        if request_id is not None:
            self._meta[fields.REQUEST_ID] = request_id
        return self

    def offer(self, sdp: str):
        self.type(MsgType.OFFER)
        self._payload = {fields.SDP: sdp}
        return self

    def answer(self, sdp: str):
        self.type(MsgType.ANSWER)
        self._payload = {fields.SDP: sdp}
        return self

    def ice(self, candidate: str):
        self.type(MsgType.ICE)
        self._payload = {fields.CANDIDATE: candidate}
        return self

    def heartbeat(self):
        return self.type(MsgType.HEARTBEAT)

    def error(self, text: str):
        self.type(MsgType.ERROR)
        self._payload = {"error": text}
        return self

    def disconnect(self):
        return self.type(MsgType.DISCONNECT)

    def status(self):
        return self.type(MsgType.STATUS)

    # Identity
    def id(self, msg_id: str):
        self._id = msg_id
        return self

    # Data
    def payload(self, data: Any):
        self._payload = data
        return self

    def meta(self, data: Dict[str, str]):
        self._meta.update(data)
        return self

    # Finalize
    def build(self) -> Message:

        if self._type is None:
            raise ValueError("Message type not specified")

        msg_id = self._id if self._id is not None else self._default_id
        msg = Message(self._type, msg_id, self._payload, self._meta)
        self._reset()
        return msg
