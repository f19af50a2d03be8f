# -*- coding: utf-8 -*-
"""
uniclip - Clipboard Sharing Between Two Machines
================================================

A rendezvous-and-relay server plus a small clipboard client.
Features:
- Pair two machines with a five character room code
- Real-time text clipboard relay inside the room
- Server discovery on the local network via /serverinfo

Usage:
    python main.py serve
    python main.py open [--server IP]
    python main.py join CODE [--server IP]

Version: 1.0.0
"""

import sys

from uniclip.app import main

if __name__ == "__main__":
    sys.exit(main())
