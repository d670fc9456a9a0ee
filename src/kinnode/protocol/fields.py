"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Envelope keys, in the order they appear on the wire.
TYPE = "type"
ID = "id"
PAYLOAD = "payload"
METADATA = "metadata"

# Payload keys inspected by validation.
SDP = "sdp"
CANDIDATE = "candidate"

# Metadata keys set by the device.
REQUEST_ID = "request_id"
VERSION = "version"
STREAM_COUNT = "stream_count"
