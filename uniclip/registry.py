# -*- coding: utf-8 -*-
"""
registry.py - Process-wide connection registry
Single source of truth for live connections, their partner bindings and the
outstanding pairing codes. Every operation runs under one lock and returns
snapshots, so handlers never share a mutable record.
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from .codes import CODE_LENGTH, generate_code
from .errors import RegistryError

MAX_CODE_ATTEMPTS = 64


@dataclass
class Connection:
    """One live client session"""
    id: str
    transport: Any
    partner_id: Optional[str] = None
    remote_address: Any = None
    connected_at: datetime = field(default_factory=datetime.now)

    @property
    def is_paired(self) -> bool:
        return self.partner_id is not None


@dataclass(frozen=True)
class RegistryStats:
    """Point-in-time counters for logging and status output"""
    connections: int
    paired: int
    outstanding_codes: int


class Registry:
    """
    Thread-safe registry of connections and pairing codes.

    Three maps are kept consistent under a single lock:
    connection id -> Connection, code -> host id, and host id -> its codes.
    """

    def __init__(
        self,
        code_length: int = CODE_LENGTH,
        code_factory: Optional[Callable[[int], str]] = None
    ):
        self.code_length = code_length
        self._code_factory = code_factory or generate_code
        self._lock = threading.Lock()
        self._connections: Dict[str, Connection] = {}
        self._codes: Dict[str, str] = {}
        self._host_codes: Dict[str, Set[str]] = {}

    # -- connections -------------------------------------------------------

    def register(self, connection_id: str, transport: Any, remote_address: Any = None) -> Connection:
        """Add a new, unpaired connection"""
        with self._lock:
            if connection_id in self._connections:
                raise RegistryError(f"connection {connection_id} is already registered")
            connection = Connection(
                id=connection_id,
                transport=transport,
                remote_address=remote_address
            )
            self._connections[connection_id] = connection
            return replace(connection)

    def get(self, connection_id: str) -> Optional[Connection]:
        """Look up a connection; None once it has been removed"""
        with self._lock:
            connection = self._connections.get(connection_id)
            return replace(connection) if connection else None

    def partner_of(self, connection_id: str) -> Optional[Connection]:
        """Return the registered partner of a connection, if it has one"""
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None or connection.partner_id is None:
                return None
            partner = self._connections.get(connection.partner_id)
            return replace(partner) if partner else None

    def bind(self, id_a: str, id_b: str) -> bool:
        """
        Pair two connections.

        Both must be registered, distinct and unpaired. Returns False and
        changes nothing when any of that does not hold.
        """
        if id_a == id_b:
            return False
        with self._lock:
            a = self._connections.get(id_a)
            b = self._connections.get(id_b)
            if a is None or b is None or a.is_paired or b.is_paired:
                return False
            a.partner_id = id_b
            b.partner_id = id_a
            return True

    def unbind_one(self, connection_id: str) -> bool:
        """Clear one side of a binding; the partner does not need to exist"""
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                return False
            connection.partner_id = None
            return True

    def remove(self, connection_id: str) -> Optional[Connection]:
        """Remove a connection and return its last state; None if already gone"""
        with self._lock:
            return self._connections.pop(connection_id, None)

    # -- pairing codes -----------------------------------------------------

    def issue_code(self, host_id: str) -> str:
        """Generate a code that is not currently outstanding and assign it to a host"""
        with self._lock:
            if host_id not in self._connections:
                raise RegistryError(f"cannot issue a code for unknown connection {host_id}")
            # Redraw on collision instead of re-pointing a live code to a new host
            for _ in range(MAX_CODE_ATTEMPTS):
                code = self._code_factory(self.code_length)
                if code not in self._codes:
                    break
            else:
                raise RegistryError("could not draw an unused pairing code")
            self._codes[code] = host_id
            self._host_codes.setdefault(host_id, set()).add(code)
            return code

    def redeem_code(self, code: str) -> Optional[str]:
        """Consume a code and return its host id; None if the code is not outstanding"""
        with self._lock:
            host_id = self._codes.pop(code, None)
            if host_id is not None:
                codes = self._host_codes.get(host_id)
                if codes is not None:
                    codes.discard(code)
                    if not codes:
                        del self._host_codes[host_id]
            return host_id

    def release_code_for(self, host_id: str) -> List[str]:
        """Drop every outstanding code issued to a host; returns what was dropped"""
        with self._lock:
            codes = self._host_codes.pop(host_id, set())
            for code in codes:
                self._codes.pop(code, None)
            return sorted(codes)

    def codes_for(self, host_id: str) -> List[str]:
        with self._lock:
            return sorted(self._host_codes.get(host_id, ()))

    # -- introspection -----------------------------------------------------

    def snapshot(self) -> RegistryStats:
        with self._lock:
            return RegistryStats(
                connections=len(self._connections),
                paired=sum(1 for c in self._connections.values() if c.is_paired),
                outstanding_codes=len(self._codes)
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._connections
