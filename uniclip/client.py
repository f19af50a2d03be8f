# -*- coding: utf-8 -*-
"""
client.py - WebSocket room client
Connects to a relay server, creates or joins a room and exchanges text
payloads with the partner in that room.
"""

import asyncio
import threading
from typing import Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from . import protocol
from .protocol import ServerEvent


class RoomClient:
    """
    Client side of the pairing protocol.

    The async methods run on the caller's event loop. start()/stop() and
    send_text_threadsafe() wrap them for callers living on other threads,
    such as a clipboard poller.

    A session lasts for one room: a rejected join or the partner leaving
    closes the connection and ends it.
    """

    def __init__(
        self,
        server_url: str,
        ping_interval: Optional[float] = 20,
        on_log: Optional[Callable[[str], None]] = None,
        on_code: Optional[Callable[[str], None]] = None,
        on_room_change: Optional[Callable[[bool], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_payload: Optional[Callable[[str], None]] = None,
        on_closed: Optional[Callable[[], None]] = None
    ):
        self.server_url = server_url
        self.ping_interval = ping_interval
        self.on_log = on_log or (lambda x: None)
        self.on_code = on_code or (lambda x: None)
        self.on_room_change = on_room_change or (lambda x: None)
        self.on_error = on_error or (lambda x: None)
        self.on_payload = on_payload or (lambda x: None)
        self.on_closed = on_closed or (lambda: None)

        self.room_code: Optional[str] = None
        self._websocket: Optional[ClientConnection] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._ping_task: Optional[asyncio.Task] = None
        self._in_room = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._closed_event: Optional[asyncio.Event] = None
        self._session_over = False

    def _log(self, message: str):
        self.on_log(f"[CLIENT] {message}")

    # -- connection --------------------------------------------------------

    async def connect(self):
        """Open the WebSocket and start receiving"""
        if self.is_connected:
            return
        self._log(f"Connecting to {self.server_url}...")
        self._websocket = await connect(self.server_url)
        self._closed_event = asyncio.Event()
        self._session_over = False
        self._receive_task = asyncio.create_task(self._receive_loop())
        if self.ping_interval:
            self._ping_task = asyncio.create_task(self._ping_loop())
        self._log("Connected successfully!")

    async def close(self):
        """Leave the room and close the connection"""
        if self._ping_task:
            self._ping_task.cancel()
            self._ping_task = None
        if self._websocket:
            await self._websocket.close()
        if self._receive_task:
            await self._receive_task
            self._receive_task = None

    async def wait_closed(self):
        """Wait until the server side or close() ends the connection"""
        if self._closed_event:
            await self._closed_event.wait()

    async def _receive_loop(self):
        try:
            async for message in self._websocket:
                if isinstance(message, bytes):
                    message = message.decode('utf-8', errors='replace')
                self._handle_message(message)
                if self._session_over:
                    await self._websocket.close()
                    break
        except ConnectionClosed:
            self._log("Connection closed")
        finally:
            if self._in_room:
                self._in_room = False
                self.on_room_change(False)
            if self._ping_task:
                self._ping_task.cancel()
                self._ping_task = None
            self._websocket = None
            self._closed_event.set()
            self.on_closed()

    async def _ping_loop(self):
        while self.is_connected:
            await asyncio.sleep(self.ping_interval)
            try:
                await self._websocket.send(protocol.PING)
            except (ConnectionClosed, AttributeError):
                return

    def _handle_message(self, message: str):
        """Handle incoming message from server"""
        parsed = protocol.parse_server_message(message)

        if parsed.kind is ServerEvent.CODE:
            self.room_code = parsed.argument
            self._log(f"Room code: {self.room_code}")
            self.on_code(self.room_code)

        elif parsed.kind is ServerEvent.CONNECTED:
            self._in_room = True
            self._log("Joined room successfully")
            self.on_room_change(True)

        elif parsed.kind is ServerEvent.ERROR:
            self._log(f"Server error: {parsed.argument}")
            # A failed join leaves nothing to wait for on this connection
            self._session_over = not self._in_room
            self.on_error(parsed.argument)

        elif parsed.kind is ServerEvent.DISCONNECTED:
            # The room is gone and its code was released with the partner
            self._in_room = False
            self._session_over = True
            self._log("Partner left the room")
            self.on_room_change(False)

        elif parsed.kind is ServerEvent.PAYLOAD:
            self._log(f"Received text: {protocol.preview(parsed.argument)}")
            self.on_payload(parsed.argument)

    # -- commands ----------------------------------------------------------

    async def open_room(self) -> bool:
        """Ask the server for a room code; refused while already in a room"""
        if self._in_room:
            self._log(f"Room already created with code {self.room_code}")
            return False
        await self._send(protocol.OPEN_PREFIX)
        return True

    async def join_room(self, code: str) -> bool:
        """Redeem a room code; refused while already in a room"""
        code = code.strip()
        if self._in_room:
            self._log(f"Device already in room with code {self.room_code}")
            return False
        if not code:
            raise ValueError("room code must not be empty")
        self.room_code = code
        await self._send(protocol.join_message(code))
        return True

    async def ping(self):
        await self._send(protocol.PING)

    async def send_text(self, text: str) -> bool:
        """Send a payload to the partner; empty text and text outside a room are skipped"""
        if not text or not self._in_room:
            return False
        await self._send(text)
        return True

    async def _send(self, message: str):
        if not self._websocket:
            raise ConnectionError("not connected to a relay server")
        await self._websocket.send(message)

    # -- background thread -------------------------------------------------

    def start(self, join_code: Optional[str] = None):
        """Connect in a background thread, then open a room or join join_code"""
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run_in_thread, args=(join_code,), daemon=True)
        self._thread.start()

    def _run_in_thread(self, join_code: Optional[str]):
        """Run asyncio event loop in thread"""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._session(join_code))
        except Exception as e:
            self._log(f"Client error: {e}")
            self.on_error(str(e))
        finally:
            self._loop.close()
            self._loop = None

    async def _session(self, join_code: Optional[str]):
        await self.connect()
        if join_code:
            await self.join_room(join_code)
        else:
            await self.open_room()
        await self.wait_closed()

    def send_text_threadsafe(self, text: str):
        """Thread-safe method to send a payload"""
        if self._loop and self._in_room:
            asyncio.run_coroutine_threadsafe(self.send_text(text), self._loop)

    def stop(self, timeout: float = 5):
        """Stop a client started with start()"""
        if self._loop and self._loop.is_running():
            future = asyncio.run_coroutine_threadsafe(self.close(), self._loop)
            try:
                future.result(timeout)
            except Exception as e:
                self._log(f"Close error: {e}")
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a client started with start() has finished; True if it has"""
        if self._thread:
            self._thread.join(timeout)
            return not self._thread.is_alive()
        return True

    @property
    def is_connected(self) -> bool:
        return self._websocket is not None

    @property
    def in_room(self) -> bool:
        return self._in_room
