""" Device configuration: a small JSON file describing this camera, read
    once at startup.
"""

import glob
import random

from . import json


path = '/etc/kinnode/config.json'
interfaces = '/sys/class/net/*/address'

default_rtp_port = 5004


class ConfigError(RuntimeError):
    """ The configuration file could not be read or parsed.
    """



class DeviceConfig:
    """ A convenience class to represent the device configuration. All
        fields are strings except *default_rtp_port*; fields absent from the
        configuration file are empty strings, except for *device_id*, which
        is generated by :func:`generate_device_id`.
    """

    def __init__(self, device_id, mac_address='', cloud_serial_number='',
                 rtsp_url='', default_rtp_port=default_rtp_port):

        self.device_id = device_id
        self.mac_address = mac_address
        self.cloud_serial_number = cloud_serial_number
        self.rtsp_url = rtsp_url
        self.default_rtp_port = default_rtp_port


    def __repr__(self):
        return 'DeviceConfig(%r)' % (vars(self),)


# end of class DeviceConfig



def load(filename=None):
    """ Read the JSON configuration file at *filename*, or the default
        location if none is specified, and return a :class:`DeviceConfig`.
    """

    if filename is None:
        filename = path

    try:
        with open(filename, 'rb') as contents:
            raw_json = contents.read()
    except OSError as e:
        raise ConfigError('could not open config file %s: %s' % (filename, e)) from e

    try:
        block = json.loads(raw_json)
    except json.DecodeError as e:
        raise ConfigError('failed to parse config file %s: %s' % (filename, e)) from e

    if not isinstance(block, dict):
        raise ConfigError('config file %s does not contain a JSON object' % (filename,))

    device_id = _string(block, 'device_id')
    if not device_id:
        device_id = generate_device_id()

    port = block.get('default_rtp_port')
    if isinstance(port, bool) or not isinstance(port, int):
        port = default_rtp_port

    return DeviceConfig(device_id,
                        mac_address=_string(block, 'mac_address'),
                        cloud_serial_number=_string(block, 'cloud_serial_number'),
                        rtsp_url=_string(block, 'rtsp_url'),
                        default_rtp_port=port)



def _string(block, key):

    value = block.get(key)
    if isinstance(value, str):
        return value
    return ''



def generate_device_id():
    """ Return an identifier for this device: the first non-zero hardware
        address of a network interface, or a random 'device-N' string if
        none can be read.
    """

    for filename in sorted(glob.glob(interfaces)):
        try:
            with open(filename, 'r') as contents:
                address = contents.readline().strip()
        except OSError:
            continue

        if address and address.strip('0:') != '':
            return address

    return 'device-%d' % (random.randrange(2 ** 31))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
