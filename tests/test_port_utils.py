import socket

from aiohttp.test_utils import unused_port

from core.proxy_manager import ProxyManager
from utils.port_utils import check_port_availability, is_port_in_use


def test_free_port_is_available():
    port = unused_port()

    assert not is_port_in_use(port)
    assert check_port_availability(port) == (True, "Порт свободен")


def test_listening_port_is_reported_busy():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        port = sock.getsockname()[1]

        available, message = check_port_availability(port)

    assert available is False
    assert str(port) in message


def test_proxy_manager_refuses_busy_port(config):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        config.set("server.port", sock.getsockname()[1])

        manager = ProxyManager(config)
        assert manager.start() is False

    status = manager.get_status()
    assert status["running"] is False
    assert status["error_type"] == "port"
