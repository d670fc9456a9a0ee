''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`.
'''

# orjson is a declared dependency; the standard library module remains as a
# fallback for platforms without an orjson wheel.

orjson = None
json = None

try:
    import orjson
except ImportError:
    import json


# orjson.dumps returns bytes. To maintain alignment the fallback 'dumps'
# needs to do so as well. Both libraries raise a ValueError subclass when
# the input cannot be decoded.

DecodeError = ValueError


def json_dumps(value):
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False).encode()

if orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
else:
    dumps = json_dumps
    loads = json.loads


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
