# -*- coding: utf-8 -*-
"""
server.py - WebSocket rendezvous and relay server
Accepts connections on /ws, pairs them two by two through short codes and
relays text payloads inside each room. Also answers GET /serverinfo so
clients can find the server on the local network.
"""

import asyncio
import json
import signal
import threading
import uuid
from http import HTTPStatus
from typing import Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode
from websockets.http11 import Request, Response

from . import protocol
from .config import Config
from .discovery import server_info
from .lifecycle import LifecycleManager
from .pairing import PairingCoordinator
from .protocol import Command
from .registry import Registry
from .relay import RelayEngine


class RelayServer:
    """
    WebSocket server pairing clients into two-member rooms.
    Each connection gets its own handler task; they share state only through
    the registry.
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 5000,
        ws_path: str = "/ws",
        info_path: str = "/serverinfo",
        code_length: int = 5,
        max_message_size: Optional[int] = 1024 * 1024,
        ping_interval: Optional[float] = 30,
        ping_timeout: Optional[float] = 10,
        registry: Optional[Registry] = None,
        on_log: Optional[Callable[[str], None]] = None,
        on_client_change: Optional[Callable[[int], None]] = None
    ):
        self.host = host
        self.port = port
        self.ws_path = ws_path
        self.info_path = info_path
        self.max_message_size = max_message_size
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.on_log = on_log or (lambda x: None)
        self.on_client_change = on_client_change or (lambda x: None)

        self.registry = registry or Registry(code_length=code_length)
        self.pairing = PairingCoordinator(self.registry, on_log=self.on_log)
        self.relay = RelayEngine(self.registry, on_log=self.on_log)
        self.lifecycle = LifecycleManager(self.registry, on_log=self.on_log)

        self._server: Optional[Server] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._running = False

    @classmethod
    def from_config(cls, cfg: Config, **kwargs) -> 'RelayServer':
        """Create a server from a Config"""
        return cls(
            host=cfg.host,
            port=cfg.port,
            ws_path=cfg.ws_path,
            info_path=cfg.info_path,
            code_length=cfg.code_length,
            max_message_size=cfg.max_message_size,
            ping_interval=cfg.ping_interval,
            ping_timeout=cfg.ping_timeout,
            **kwargs
        )

    def _log(self, message: str):
        self.on_log(f"[SERVER] {message}")

    # -- HTTP --------------------------------------------------------------

    def _process_request(self, connection: ServerConnection, request: Request) -> Optional[Response]:
        """Serve plain HTTP routes; let WebSocket upgrades on ws_path through"""
        path = urlsplit(request.path).path

        if path == self.info_path:
            response = connection.respond(HTTPStatus.OK, json.dumps(server_info()))
            del response.headers["Content-Type"]
            response.headers["Content-Type"] = "application/json"
            return response

        if path != self.ws_path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")

        if "websocket" not in request.headers.get("Upgrade", "").lower():
            return connection.respond(HTTPStatus.BAD_REQUEST, "WebSocket upgrade required\n")

        return None

    # -- WebSocket ---------------------------------------------------------

    async def _handler(self, websocket: ServerConnection):
        """Handle one client connection for its whole lifetime"""
        connection_id = str(uuid.uuid4())
        client_addr = websocket.remote_address
        self.registry.register(connection_id, websocket, client_addr)
        self._log(f"Client connected: {client_addr} as {connection_id} (Total: {len(self.registry)})")
        self.on_client_change(len(self.registry))

        try:
            async for message in websocket:
                if isinstance(message, bytes):
                    try:
                        message = message.decode('utf-8')
                    except UnicodeDecodeError:
                        self._log(f"Closing {connection_id}: frame is not valid UTF-8")
                        await websocket.close(CloseCode.INVALID_DATA, "Invalid UTF-8")
                        break
                await self._handle_message(connection_id, message)
        except ConnectionClosed:
            pass
        except Exception as e:
            self._log(f"Closing {connection_id} after handler error: {e}")
            await websocket.close(CloseCode.INTERNAL_ERROR, "Internal error")
        finally:
            await self.lifecycle.cleanup(connection_id)
            self._log(f"Client disconnected: {client_addr} (Total: {len(self.registry)})")
            self.on_client_change(len(self.registry))

    async def _handle_message(self, connection_id: str, message: str):
        """Dispatch one inbound frame"""
        parsed = protocol.parse_command(message)

        if parsed.kind is Command.OPEN:
            await self.pairing.handle_open(connection_id)
        elif parsed.kind is Command.JOIN:
            await self.pairing.handle_join(connection_id, parsed.argument)
        elif parsed.kind is Command.PING:
            await self.relay.handle_ping(connection_id)
        elif parsed.kind is Command.PAYLOAD:
            await self.relay.relay(connection_id, parsed.argument)

    # -- running -----------------------------------------------------------

    async def start_serving(self) -> Server:
        """Bind the listening socket and start accepting connections"""
        self._server = await serve(
            self._handler,
            self.host,
            self.port,
            process_request=self._process_request,
            max_size=self.max_message_size,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout
        )
        if self.port == 0 and self._server.sockets:
            self.port = self._server.sockets[0].getsockname()[1]
        self._running = True
        self._log(f"Server started on {self.host}:{self.port} (ws path {self.ws_path})")
        return self._server

    async def close(self):
        """Stop accepting, close every connection and wait for cleanup"""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._running = False
        self._log("Server stopped")

    async def serve_until(self, stop: asyncio.Event):
        """Serve until the event is set, then shut down"""
        await self.start_serving()
        try:
            await stop.wait()
        finally:
            await self.close()

    def run(self):
        """Run in the foreground until SIGINT or SIGTERM"""
        asyncio.run(self._run_with_signals())

    async def _run_with_signals(self):
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no signal handlers; Ctrl+C still raises
                pass
        await self.serve_until(stop)

    def start(self, timeout: float = 5) -> bool:
        """Start server in background thread; True once it is listening"""
        if self._thread and self._thread.is_alive():
            return self._running
        self._started.clear()
        self._thread = threading.Thread(target=self._run_in_thread, daemon=True)
        self._thread.start()
        self._started.wait(timeout)
        return self._running

    def _run_in_thread(self):
        """Run asyncio event loop in thread"""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._serve_in_thread())
        except Exception as e:
            self._log(f"Server error: {e}")
        finally:
            self._started.set()
            self._loop.close()
            self._loop = None

    async def _serve_in_thread(self):
        self._stop_event = asyncio.Event()
        await self.start_serving()
        self._started.set()
        try:
            await self._stop_event.wait()
        finally:
            await self.close()

    def stop(self, timeout: float = 5):
        """Stop a server started with start()"""
        if self._loop and self._stop_event:
            self._loop.call_soon_threadsafe(self._stop_event.set)
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def connection_count(self) -> int:
        return len(self.registry)

    @property
    def url(self) -> str:
        """WebSocket URL for reaching this server from the same machine"""
        host = "127.0.0.1" if self.host in ("0.0.0.0", "") else self.host
        return f"ws://{host}:{self.port}{self.ws_path}"
