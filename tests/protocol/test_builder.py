import pytest

from kinnode import protocol
from kinnode.protocol import MsgType


def test_default_id():

    builder = protocol.MessageBuilder('dev-123')

    message = builder.heartbeat().build()
    assert message.type is MsgType.HEARTBEAT
    assert message.id == 'dev-123'
    assert message.payload is None

    message = builder.status().id('status-9').build()
    assert message.id == 'status-9'

    # The explicit id does not stick to the next message.

    message = builder.status().build()
    assert message.id == 'dev-123'


def test_semantic_setters():

    builder = protocol.MessageBuilder('dev-1')

    assert protocol.validate(builder.offer('v=0').build())
    assert protocol.validate(builder.answer('v=0').build())
    assert protocol.validate(builder.ice('candidate:1').build())
    assert protocol.validate(builder.error('no stream').build())

    response = builder.response('req-7').payload({'status': 'available'}).build()
    assert response.type is MsgType.RESPONSE
    assert response.get_metadata('request_id') == 'req-7'

    message = builder.type('DIAGNOSTICS').meta({'a': 'b'}).build()
    assert message.type is MsgType.DIAGNOSTICS
    assert message.metadata == {'a': 'b'}


def test_payload_is_copied():

    payload = {'device_type': 'camera'}
    message = protocol.MessageBuilder('dev-1').register().payload(payload).build()

    payload['device_type'] = 'doorbell'
    assert message.payload == {'device_type': 'camera'}


def test_no_type():

    builder = protocol.MessageBuilder('dev-1')

    with pytest.raises(ValueError):
        builder.build()

    with pytest.raises(protocol.UnknownType):
        builder.type('BOGUS')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
