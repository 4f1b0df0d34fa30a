"""TCP client for the NeoHub TCP module."""

from __future__ import annotations

import logging
import socket

from .const import (
    MESSAGE_ENCODING,
    MESSAGE_TERMINATOR,
    RESPONSE_BUFFER_SIZE,
    TCP_SOCKET_TIMEOUT,
)
from .models import NeoHubError

_LOGGER = logging.getLogger(__name__)


class NeoHubSocket:
    """
    Blocking request/response exchange with a NeoHub.

    Each exchange opens a fresh TCP connection, writes the NUL terminated
    request and reads until the hub sends its own NUL terminator or closes
    the connection. Callers serialize exchanges; the hub does not cope with
    concurrent sessions.
    """

    def __init__(
        self,
        host_name: str,
        port_number: int,
        timeout: float = TCP_SOCKET_TIMEOUT,
        logger: logging.Logger = None,
    ):
        self.host_name = host_name
        self.port_number = port_number
        self.timeout = timeout
        self.logger = logger or _LOGGER

    def send_message(self, request: str) -> str:
        """
        Sends a request to the hub and returns its response.

        Raises:
            OSError: On connect failure, timeout or connection reset
            NeoHubError: If the hub answers with an empty response
        """
        self.logger.debug("NeoHub-Socket: sending %s to %s:%s", request, self.host_name, self.port_number)

        response = bytearray()
        with socket.create_connection((self.host_name, self.port_number), timeout=self.timeout) as sock:
            sock.settimeout(self.timeout)
            sock.sendall(request.encode(MESSAGE_ENCODING) + MESSAGE_TERMINATOR)

            while True:
                chunk = sock.recv(RESPONSE_BUFFER_SIZE)
                if not chunk:
                    break
                end = chunk.find(MESSAGE_TERMINATOR)
                if end >= 0:
                    response.extend(chunk[:end])
                    break
                response.extend(chunk)

        text = response.decode(MESSAGE_ENCODING, errors="replace").strip()
        if not text:
            raise NeoHubError("empty response string")

        self.logger.debug("NeoHub-Socket: received %d characters", len(text))
        return text
