import socket
from typing import Iterable

from pillar.config.logger import get_logger
from pillar.errors import InvalidState

log = get_logger(__name__)


def local_port_is_free(host: str, port: int) -> bool:
    """
    Check if the specified port is free.

    Returns True if the port is free, False otherwise.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            return True
        except OSError:
            return False


def find_available_local_port(host: str, ports: Iterable[int]) -> int:
    """
    Find the first available port from an iterable of port numbers.

    Raises InvalidState if none of the ports are available.
    """
    for port in ports:
        if local_port_is_free(host, port):
            log.info("Found available port: %s:%s", host, port)
            return port
    raise InvalidState("No available ports found.")


## Tests


def test_find_available_local_port():
    import pytest

    host = "127.0.0.1"
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        sock.listen()
        busy_port = sock.getsockname()[1]

        assert not local_port_is_free(host, busy_port)
        with pytest.raises(InvalidState):
            find_available_local_port(host, [busy_port])
