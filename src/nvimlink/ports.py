"""Point-in-time TCP reachability probe."""

import logging
import socket

from nvimlink.models import DEFAULT_HOST

log = logging.getLogger(__name__)

PORT_PROBE_TIMEOUT_SECONDS = 1.0


def is_port_in_use(
    port: int, host: str = DEFAULT_HOST, timeout: float = PORT_PROBE_TIMEOUT_SECONDS
) -> bool:
    """Return whether something accepts TCP connections on ``host:port``.

    Refused connections and timeouts both count as "not in use".
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        log.debug("port probe %s:%s failed: %s", host, port, e)
        return False
