"""
Fixtures running a real relay server on an ephemeral port.
"""

import pytest
import pytest_asyncio

from uniclip.server import RelayServer

PROXY_VARIABLES = (
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "WS_PROXY", "WSS_PROXY",
    "http_proxy", "https_proxy", "all_proxy", "ws_proxy", "wss_proxy",
)


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch):
    """Keep loopback traffic away from any proxy configured in the environment."""
    for name in PROXY_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def server():
    """A started RelayServer bound to 127.0.0.1 on a free port."""
    logs = []
    relay_server = RelayServer(host="127.0.0.1", port=0, ping_interval=None, on_log=logs.append)
    await relay_server.start_serving()
    yield relay_server
    await relay_server.close()
