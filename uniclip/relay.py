# -*- coding: utf-8 -*-
"""
relay.py - Payload relay between paired connections
"""

from typing import Callable, Optional

from . import protocol
from .registry import Registry
from .transport import send_best_effort


class RelayEngine:
    """
    Forwards opaque payloads to the sender's partner.

    Delivery is at-most-once and best effort: nothing is buffered, nothing
    is retried, and the sender is never told whether the frame arrived.
    """

    def __init__(self, registry: Registry, on_log: Optional[Callable[[str], None]] = None):
        self.registry = registry
        self.on_log = on_log or (lambda x: None)

    def _log(self, message: str):
        self.on_log(f"[RELAY] {message}")

    async def handle_ping(self, connection_id: str):
        """Answer a liveness probe"""
        connection = self.registry.get(connection_id)
        if connection is not None:
            await connection.transport.send(protocol.PONG)

    async def relay(self, connection_id: str, payload: str) -> bool:
        """
        Send a payload verbatim to the partner of connection_id.
        Returns True if it was handed to the partner's transport.
        """
        if not payload:
            return False
        partner = self.registry.partner_of(connection_id)
        if partner is None:
            return False
        delivered = await send_best_effort(
            partner.transport,
            payload,
            on_error=lambda e: self._log(f"Dropped payload for {partner.id}: {e}")
        )
        if delivered:
            self._log(f"Relayed {len(payload)} chars {connection_id} -> {partner.id}: {protocol.preview(payload)}")
        return delivered
