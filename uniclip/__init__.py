# -*- coding: utf-8 -*-
"""
uniclip - Pair two machines with a short code and share clipboard text
"""

from .client import RoomClient
from .config import Config
from .registry import Connection, Registry
from .server import RelayServer

__version__ = "1.0.0"

__all__ = ['RelayServer', 'RoomClient', 'Registry', 'Connection', 'Config']
