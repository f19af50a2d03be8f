# -*- coding: utf-8 -*-
"""
discovery.py - Locating a relay server on the local network
Server side builds the /serverinfo document; client side queries it and turns
the answer into a WebSocket URL.
"""

import socket
from typing import Any, Dict, Optional

import requests

from .errors import DiscoveryError

DEFAULT_PORT = 5000
WS_PATH = "/ws"
INFO_PATH = "/serverinfo"


def get_local_ip() -> Optional[str]:
    """Get the primary IPv4 address of this machine, or None"""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            # No packet is sent; connect() only selects the outbound interface
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
        finally:
            s.close()
    except OSError:
        pass
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return None


def get_machine_name() -> str:
    return socket.gethostname()


def server_info() -> Dict[str, Any]:
    """Body of the /serverinfo endpoint"""
    return {
        'ip': get_local_ip(),
        'machineName': get_machine_name()
    }


def build_ws_url(host: str, port: int = DEFAULT_PORT, path: str = WS_PATH) -> str:
    """Build the relay URL for a host name or address"""
    host = host.strip()
    if host.startswith(("ws://", "wss://")):
        return host
    if ":" in host and not host.startswith("["):
        # host:port typed by the user
        return f"ws://{host}{path}"
    return f"ws://{host}:{port}{path}"


def fetch_server_info(host: str, port: int = DEFAULT_PORT, timeout: float = 5) -> Dict[str, Any]:
    """Query /serverinfo on a host"""
    url = f"http://{host}:{port}{INFO_PATH}"
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise DiscoveryError(f"No relay server answered at {url}: {e}") from e
    if not isinstance(data, dict):
        raise DiscoveryError(f"Unexpected server info from {url}: {data!r}")
    return data


def discover_server(server_ip: Optional[str] = None, port: int = DEFAULT_PORT, timeout: float = 5) -> str:
    """
    Resolve the WebSocket URL of a relay server.

    With an explicit address the URL is built directly. Without one, the
    server is looked up on this machine's own host name and the address it
    reports in /serverinfo is used.

    Raises:
        DiscoveryError: automatic discovery found no usable server
    """
    if server_ip and server_ip.strip():
        return build_ws_url(server_ip, port)

    info = fetch_server_info(get_machine_name(), port, timeout)
    ip = info.get('ip')
    if not ip:
        raise DiscoveryError("Server not found automatically")
    return build_ws_url(ip, port)
