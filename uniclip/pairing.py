# -*- coding: utf-8 -*-
"""
pairing.py - Room pairing coordinator
Handles OPEN and JOIN: issues codes to hosts, redeems them for joiners and
binds the two connections in the registry.
"""

from typing import Callable, Optional

from . import protocol
from .registry import Registry
from .transport import send_best_effort


class PairingCoordinator:
    """
    Pairs connections through single-use codes.

    A connection is either unpaired or paired; binding happens in one
    registry operation, so no half-paired state is ever visible.
    """

    def __init__(self, registry: Registry, on_log: Optional[Callable[[str], None]] = None):
        self.registry = registry
        self.on_log = on_log or (lambda x: None)

    def _log(self, message: str):
        self.on_log(f"[PAIRING] {message}")

    async def handle_open(self, connection_id: str) -> Optional[str]:
        """
        Issue a fresh code to the requesting connection and send it CODE:<code>.
        Codes issued by earlier OPENs stay live until redeemed or released.
        """
        connection = self.registry.get(connection_id)
        if connection is None:
            return None
        code = self.registry.issue_code(connection_id)
        self._log(f"Issued code {code} to {connection_id}")
        await connection.transport.send(protocol.code_message(code))
        return code

    async def handle_join(self, connection_id: str, code: str) -> bool:
        """
        Redeem a code on behalf of a joiner.

        The code is consumed as soon as it is looked up, even when the host
        turns out to be gone or already paired. On success CONNECTED goes to
        the joiner first, then to the host.
        """
        connection = self.registry.get(connection_id)
        if connection is None:
            return False

        code = code.strip()
        host_id = self.registry.redeem_code(code) if code else None
        if host_id is None:
            self._log(f"Rejected join from {connection_id}: unknown code {code!r}")
            await connection.transport.send(protocol.error_message(protocol.INVALID_CODE))
            return False

        if not self.registry.bind(connection_id, host_id):
            self._log(f"Rejected join from {connection_id}: host {host_id} unavailable")
            await connection.transport.send(protocol.error_message(protocol.INVALID_CODE))
            return False

        host = self.registry.get(host_id)
        self._log(f"Paired {connection_id} with {host_id} via {code}")
        await connection.transport.send(protocol.CONNECTED)
        if host is not None:
            await send_best_effort(
                host.transport,
                protocol.CONNECTED,
                on_error=lambda e: self._log(f"Could not notify host {host_id}: {e}")
            )
        return True
