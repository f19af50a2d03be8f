# -*- coding: utf-8 -*-
"""
protocol.py - Text wire protocol shared by the relay server and its clients
One command or payload per WebSocket text frame:

    client -> server   OPEN:          request a pairing code
    server -> client   CODE:<code>    pairing code issued
    client -> server   JOIN:<code>    redeem a pairing code
    server -> client   CONNECTED      room established (sent to both peers)
    server -> client   ERROR:<text>   pairing failed
    client -> server   PING           liveness probe
    server -> client   PONG           liveness reply
    server -> client   DISCONNECTED   partner left the room
    either             anything else  opaque payload for the partner
"""

from dataclasses import dataclass
from enum import Enum

# Client commands
OPEN_PREFIX = "OPEN:"
JOIN_PREFIX = "JOIN:"
PING = "PING"

# Server replies
CODE_PREFIX = "CODE:"
ERROR_PREFIX = "ERROR:"
CONNECTED = "CONNECTED"
PONG = "PONG"
DISCONNECTED = "DISCONNECTED"

INVALID_CODE = "Invalid or expired code"


class Command(Enum):
    """Kind of frame received by the server"""
    OPEN = "open"
    JOIN = "join"
    PING = "ping"
    PAYLOAD = "payload"
    EMPTY = "empty"


class ServerEvent(Enum):
    """Kind of frame received by a client"""
    CODE = "code"
    CONNECTED = "connected"
    ERROR = "error"
    PONG = "pong"
    DISCONNECTED = "disconnected"
    PAYLOAD = "payload"


@dataclass(frozen=True)
class Message:
    """A classified frame: its kind plus the argument or payload it carries"""
    kind: Enum
    argument: str = ""


def parse_command(text: str) -> Message:
    """Classify a frame sent by a client"""
    if text.startswith(OPEN_PREFIX):
        return Message(Command.OPEN)
    if text.startswith(JOIN_PREFIX):
        return Message(Command.JOIN, text[len(JOIN_PREFIX):].strip())
    if text == PING:
        return Message(Command.PING)
    if not text.strip():
        return Message(Command.EMPTY)
    return Message(Command.PAYLOAD, text)


def parse_server_message(text: str) -> Message:
    """Classify a frame sent by the server"""
    if text.startswith(CODE_PREFIX):
        return Message(ServerEvent.CODE, text[len(CODE_PREFIX):].strip())
    if text.startswith(ERROR_PREFIX):
        return Message(ServerEvent.ERROR, text[len(ERROR_PREFIX):])
    if text == CONNECTED:
        return Message(ServerEvent.CONNECTED)
    if text == PONG:
        return Message(ServerEvent.PONG)
    if text == DISCONNECTED:
        return Message(ServerEvent.DISCONNECTED)
    return Message(ServerEvent.PAYLOAD, text)


def code_message(code: str) -> str:
    return f"{CODE_PREFIX}{code}"


def error_message(reason: str) -> str:
    return f"{ERROR_PREFIX}{reason}"


def join_message(code: str) -> str:
    return f"{JOIN_PREFIX}{code}"


def preview(text: str, limit: int = 30) -> str:
    """Shorten a payload for log lines"""
    return f"{text[:limit]}..." if len(text) > limit else text
