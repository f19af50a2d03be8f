# -*- coding: utf-8 -*-
"""
transport.py - Sending frames to peers other than the one being served
"""

from typing import Any, Callable, Optional


async def send_best_effort(
    transport: Any,
    message: str,
    on_error: Optional[Callable[[Exception], None]] = None
) -> bool:
    """
    Send a text frame and discard any delivery failure.

    Used for frames addressed to another connection (relayed payloads,
    CONNECTED to a host, DISCONNECTED to a survivor): that connection's own
    receive loop notices the broken transport and runs its cleanup, so the
    sender carries on. Returns True when the frame was handed to the transport.
    """
    try:
        await transport.send(message)
        return True
    except Exception as e:
        if on_error:
            on_error(e)
        return False
