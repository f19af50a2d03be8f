"""
RoomClient against a real relay server.
"""

import asyncio

import pytest

from uniclip.client import RoomClient

from tests.helpers import wait_until


class Recorder:
    """Collects client callbacks into queues."""

    def __init__(self):
        self.codes = asyncio.Queue()
        self.rooms = asyncio.Queue()
        self.errors = asyncio.Queue()
        self.payloads = asyncio.Queue()

    def client(self, url: str) -> RoomClient:
        return RoomClient(
            url,
            ping_interval=None,
            on_code=self.codes.put_nowait,
            on_room_change=self.rooms.put_nowait,
            on_error=self.errors.put_nowait,
            on_payload=self.payloads.put_nowait
        )


async def next_item(queue: asyncio.Queue, timeout: float = 2):
    return await asyncio.wait_for(queue.get(), timeout)


@pytest.mark.asyncio
async def test_two_clients_share_text(server):
    host_events = Recorder()
    joiner_events = Recorder()
    host = host_events.client(server.url)
    joiner = joiner_events.client(server.url)

    await host.connect()
    assert await host.open_room()
    code = await next_item(host_events.codes)
    assert host.room_code == code

    await joiner.connect()
    assert await joiner.join_room(f" {code} ")
    assert await next_item(joiner_events.rooms) is True
    assert await next_item(host_events.rooms) is True
    assert host.in_room and joiner.in_room

    assert await host.send_text("copied on host")
    assert await next_item(joiner_events.payloads) == "copied on host"
    assert await joiner.send_text("copied on joiner")
    assert await next_item(host_events.payloads) == "copied on joiner"

    assert not await host.open_room()
    assert not await joiner.join_room(code)

    await joiner.close()
    assert await next_item(host_events.rooms) is False
    assert not host.in_room
    await asyncio.wait_for(host.wait_closed(), 2)
    assert not host.is_connected
    await host.close()


@pytest.mark.asyncio
async def test_bad_code_reports_error(server):
    events = Recorder()
    client = events.client(server.url)
    await client.connect()
    await client.join_room("ZZZZZ")
    assert await next_item(events.errors) == "Invalid or expired code"
    assert not client.in_room
    await asyncio.wait_for(client.wait_closed(), 2)
    assert not client.is_connected
    await client.close()


@pytest.mark.asyncio
async def test_threaded_join_with_bad_code_finishes(server):
    errors = []
    client = RoomClient(server.url, ping_interval=None, on_error=errors.append)
    client.start("ZZZZZ")
    # The server shares this loop, so block in a worker thread
    assert await asyncio.to_thread(client.wait, 2)
    assert errors == ["Invalid or expired code"]
    assert not client.is_connected
    await wait_until(lambda: server.connection_count == 0)


@pytest.mark.asyncio
async def test_partner_leaving_ends_threaded_host(server):
    codes = []
    host = RoomClient(server.url, ping_interval=None, on_code=codes.append)
    host.start()
    await wait_until(lambda: len(codes) == 1)

    joiner = RoomClient(server.url, ping_interval=None)
    await joiner.connect()
    await joiner.join_room(codes[0])
    await wait_until(lambda: host.in_room)
    await joiner.close()

    assert await asyncio.to_thread(host.wait, 2)
    assert not host.in_room


@pytest.mark.asyncio
async def test_send_outside_room_is_skipped(server):
    client = Recorder().client(server.url)
    await client.connect()
    assert not await client.send_text("nobody listening")
    assert not await client.send_text("")
    await client.close()


@pytest.mark.asyncio
async def test_commands_need_a_connection(server):
    client = Recorder().client(server.url)
    with pytest.raises(ConnectionError):
        await client.open_room()


@pytest.mark.asyncio
async def test_server_shutdown_ends_client_session(server):
    closed = asyncio.Event()
    client = RoomClient(server.url, ping_interval=None, on_closed=closed.set)
    await client.connect()
    await server.close()
    await asyncio.wait_for(closed.wait(), 2)
    assert not client.is_connected


@pytest.mark.asyncio
async def test_protocol_ping_keeps_connection_alive(server):
    client = RoomClient(server.url, ping_interval=0.05)
    await client.connect()
    await asyncio.sleep(0.2)
    assert client.is_connected
    await client.close()
