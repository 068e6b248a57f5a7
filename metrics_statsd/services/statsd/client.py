"""StatsD transport: IStatsDClient protocol and a UDP implementation.

Each sample is one datagram in the StatsD gauge framing::

    <name>:<value>|g

The reporter opens the client at the start of every export cycle and
closes it at the end, so a client never outlives a cycle.
"""

import re
import socket
from typing import Callable, Optional, Protocol, Tuple

from metrics_statsd.core.logging_config import get_logger
from .errors import TransportCloseError, TransportConnectError

logger = get_logger(__name__)

WHITESPACE = re.compile(r"\s+")
METRIC_TYPE = "g"

SocketFactory = Callable[[int], socket.socket]


def _udp_socket(family: int) -> socket.socket:
    return socket.socket(family, socket.SOCK_DGRAM)


class IStatsDClient(Protocol):
    """Protocol for the transport used by StatsDReporter."""

    def connect(self) -> None:
        """Open the channel.

        Either fully succeeds or leaves the client closed.

        Raises:
            TransportConnectError: the channel could not be opened
        """
        ...

    def send(self, name: str, value: str) -> None:
        """Send one sample. Best effort: failures are recorded, never raised."""
        ...

    def close(self) -> None:
        """Release the channel.

        Raises:
            TransportCloseError: the channel failed while closing
        """
        ...


class StatsDClient:
    """UDP StatsD client.

    ``failures`` counts consecutive send failures and resets on the next
    successful send. Only the first failure of a run is logged as a warning.
    """

    def __init__(self, host: str, port: int = 8125, socket_factory: Optional[SocketFactory] = None):
        self.host = host
        self.port = port
        self.failures = 0
        self._socket_factory = socket_factory or _udp_socket
        self._socket: Optional[socket.socket] = None
        self._address: Optional[Tuple] = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        if self._socket is not None:
            raise TransportConnectError(f"Already connected to statsd at {self.host}:{self.port}")

        try:
            infos = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_DGRAM)
        except OSError as e:
            raise TransportConnectError(f"Unable to resolve statsd host {self.host}:{self.port}: {e}") from e
        if not infos:
            raise TransportConnectError(f"Unable to resolve statsd host {self.host}:{self.port}")

        family, _, _, _, address = infos[0]
        try:
            sock = self._socket_factory(family)
        except OSError as e:
            raise TransportConnectError(f"Unable to open socket for statsd at {self.host}:{self.port}: {e}") from e

        self._address = address
        self._socket = sock

    def send(self, name: str, value: str) -> None:
        line = f"{WHITESPACE.sub('-', name)}:{WHITESPACE.sub('-', value)}|{METRIC_TYPE}"
        try:
            if self._socket is None:
                raise OSError("statsd client is not connected")
            self._socket.sendto(line.encode("utf-8"), self._address)
            self.failures = 0
        except (OSError, UnicodeError) as e:
            self.failures += 1
            if self.failures == 1:
                logger.warning(f"Unable to send packet to statsd at {self.host}:{self.port}: {e}")
            else:
                logger.debug(f"Unable to send packet to statsd at {self.host}:{self.port} ({self.failures} failures): {e}")

    def close(self) -> None:
        sock = self._socket
        self._socket = None
        self._address = None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            raise TransportCloseError(f"Failed to close statsd socket for {self.host}:{self.port}: {e}") from e
