""" System figures reported in heartbeats. Both readers fall back to fixed
    values on hardware that does not expose them.
"""

uptime_path = '/proc/uptime'
thermal_path = '/sys/class/thermal/thermal_zone0/temp'

fallback_uptime = 3600.0
fallback_temperature = 45.5


def uptime():
    """ Return the system uptime in seconds.
    """

    try:
        with open(uptime_path, 'r') as contents:
            return float(contents.read().split()[0])
    except (OSError, ValueError, IndexError):
        return fallback_uptime


def temperature():
    """ Return the SoC temperature in degrees Celsius. The kernel reports
        millidegrees.
    """

    try:
        with open(thermal_path, 'r') as contents:
            return float(contents.read().strip()) / 1000.0
    except (OSError, ValueError):
        return fallback_temperature


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
