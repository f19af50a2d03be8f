"""
Test doubles shared across the suite.
"""

import asyncio
from typing import Callable, Iterable, List, Optional, Tuple


class FakeTransport:
    """In-memory stand-in for a WebSocket connection."""

    def __init__(self, name: str = "", journal: Optional[List[Tuple[str, str]]] = None, fail: bool = False):
        self.name = name
        self.sent: List[str] = []
        self.journal = journal
        self.fail = fail

    async def send(self, message: str):
        if self.fail:
            raise ConnectionError("transport closed")
        self.sent.append(message)
        if self.journal is not None:
            self.journal.append((self.name, message))


def fixed_codes(codes: Iterable[str]) -> Callable[[int], str]:
    """Code factory handing out a predetermined sequence."""
    iterator = iter(codes)
    return lambda length: next(iterator)


async def recv(websocket, timeout: float = 2):
    """Receive one frame or fail the test instead of hanging."""
    return await asyncio.wait_for(websocket.recv(), timeout)


async def wait_until(predicate, timeout: float = 2):
    """Poll a condition that settles asynchronously on the server."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
