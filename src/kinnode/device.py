""" The device application: register with the signaling server, send a
    heartbeat on a fixed interval, and answer stream requests.
"""

import logging
import os
import signal
import sys
import threading

from . import config
from . import protocol
from . import telemetry
from .client import NotConnected, SignalingClient
from .transport import TransportError
from .protocol import MsgType, fields


logger = logging.getLogger(__name__)

server = 'ws://192.30.240.10:8080'
version = '1.0.0'

device_type = 'camera'
heartbeat_interval = 30
connect_timeout = 10


class DeviceManager:
    """ Tie a :class:`kinnode.config.DeviceConfig` to a
        :class:`kinnode.client.SignalingClient`. Messages sent by the
        device carry the device id as their correlation id.
    """

    def __init__(self, device_config, client):

        self.config = device_config
        self.client = client
        self.builder = protocol.MessageBuilder(device_config.device_id)

        client.set_callback(self.handle_message)


    def initialize(self, timeout=connect_timeout):
        """ Connect, start the event loop, wait for the connection to be
            established, and register. Returns False if the connection was
            not established within *timeout* seconds.
        """

        self.client.connect()
        self.client.start_event_loop()

        if not self.client.wait_connected(timeout):
            logger.error('no connection to %s after %s seconds',
                         self.client.address, timeout)
            return False

        self.send_registration()
        return True


    def run(self, stop):
        """ Send heartbeats until the *stop* event is set, then disconnect.
        """

        while not stop.is_set():
            self.send_heartbeat()
            stop.wait(heartbeat_interval)

        self.client.close()


    def send_registration(self):

        payload = dict()
        payload['device_type'] = device_type
        payload['mac_address'] = self.config.mac_address
        payload['csn'] = self.config.cloud_serial_number

        message = (
            self.builder
            .register()
            .payload(payload)
            .meta({fields.VERSION: version, fields.STREAM_COUNT: '1'})
            .build()
        )

        self.client.send(message)


    def send_heartbeat(self):

        payload = dict()
        payload['uptime'] = telemetry.uptime()
        payload['temperature'] = telemetry.temperature()

        message = self.builder.heartbeat().payload(payload).build()

        # A lost connection is not fatal; heartbeats stop until a restart.

        try:
            self.client.send(message)
        except NotConnected:
            logger.warning('heartbeat skipped, not connected')
        except TransportError as e:
            logger.warning('heartbeat not sent: %s', e)


    def handle_message(self, message):

        if not protocol.validate(message):
            logger.warning('ignoring invalid %s message %r',
                           message.type.value, message.id)
            return

        if message.type == MsgType.REQUEST:
            self.handle_stream_request(message)
        elif message.type == MsgType.OFFER:
            self.handle_offer(message)
        else:
            logger.info('received unhandled message type: %s', message.type.value)


    def handle_stream_request(self, message):

        payload = dict()
        payload['status'] = 'available'
        payload['stream_url'] = self.config.rtsp_url

        response = self.builder.response(message.id).payload(payload).build()
        self.client.send(response)


    def handle_offer(self, message):
        # Media negotiation happens elsewhere.
        logger.info('received WebRTC offer %r', message.id)


# end of class DeviceManager



def main():
    """ Entry point for the kinnode command. Returns the process exit code.
    """

    level = os.environ.get('KINNODE_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(level=level,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    stop = threading.Event()

    def interrupt(signum, frame):
        logger.info('interrupt signal (%d) received', signum)
        stop.set()

    signal.signal(signal.SIGINT, interrupt)
    signal.signal(signal.SIGTERM, interrupt)

    client = None

    try:
        device_config = config.load()
        client = SignalingClient(server)
        device = DeviceManager(device_config, client)

        if not device.initialize():
            logger.error('device initialization failed')
            return 1

        device.run(stop)
    except Exception:
        logger.exception('fatal error')
        return 1
    finally:
        if client is not None:
            client.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
