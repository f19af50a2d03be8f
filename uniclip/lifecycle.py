# -*- coding: utf-8 -*-
"""
lifecycle.py - Connection teardown
Runs once per connection after its receive loop exits, however it exited.
"""

from typing import Callable, List, Optional

from . import protocol
from .registry import Connection, Registry
from .transport import send_best_effort


class LifecycleManager:
    """Removes a finished connection and cleans up everything that pointed at it"""

    def __init__(self, registry: Registry, on_log: Optional[Callable[[str], None]] = None):
        self.registry = registry
        self.on_log = on_log or (lambda x: None)

    def _log(self, message: str):
        self.on_log(f"[SERVER] {message}")

    async def cleanup(self, connection_id: str) -> Optional[Connection]:
        """
        Tear down a connection.

        1. Remove it from the registry (no-op if already removed).
        2. Unpair a still-registered partner and send it DISCONNECTED.
        3. Release any codes it issued that nobody redeemed.

        Registry state is settled before the notification is sent, so the
        survivor can OPEN or JOIN again as soon as it reads DISCONNECTED.
        Delivery of DISCONNECTED is best effort and never aborts cleanup.
        """
        removed = self.registry.remove(connection_id)
        released: List[str] = self.registry.release_code_for(connection_id)
        if released:
            self._log(f"Released unused code(s) {', '.join(released)} of {connection_id}")
        if removed is None:
            return None

        if removed.partner_id is not None:
            partner = self.registry.get(removed.partner_id)
            if partner is not None and partner.partner_id == connection_id:
                self.registry.unbind_one(partner.id)
                self._log(f"Room closed: {connection_id} left, {partner.id} is unpaired")
                await send_best_effort(
                    partner.transport,
                    protocol.DISCONNECTED,
                    on_error=lambda e: self._log(f"Could not notify {partner.id}: {e}")
                )
        return removed
