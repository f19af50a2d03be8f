# -*- coding: utf-8 -*-
"""
app.py - Application entry points for uniclip
Command line front end for the relay server and the clipboard sync client
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Callable, List, Optional

import pyperclip

from .client import RoomClient
from .clipboard_monitor import ClipboardMonitor
from .config import Config, config
from .discovery import discover_server, fetch_server_info, get_machine_name
from .errors import DiscoveryError
from .server import RelayServer

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: str = "INFO"):
    """Configure root logging for command line use"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr
    )


def log_callback(name: str) -> Callable[[str], None]:
    """Route a component's on_log messages to a named logger"""
    return logging.getLogger(f"uniclip.{name}").info


class ClipboardSync:
    """
    Client-side controller.
    Wires a clipboard monitor to a room client: local copies go to the
    partner, text from the partner lands on the local clipboard.
    """

    def __init__(
        self,
        server_url: str,
        cfg: Optional[Config] = None,
        on_log: Optional[Callable[[str], None]] = None,
        on_code: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None
    ):
        cfg = cfg or config
        self.on_log = on_log or (lambda x: None)
        self._client = RoomClient(
            server_url,
            ping_interval=cfg.client_ping_interval,
            on_log=self.on_log,
            on_code=on_code,
            on_room_change=self._on_room_change,
            on_error=on_error,
            on_payload=self._on_remote_text
        )
        self._monitor = ClipboardMonitor(
            on_change=self._on_local_change,
            interval_ms=cfg.sync_interval_ms,
            on_log=self.on_log
        )

    def _on_room_change(self, in_room: bool):
        """Only watch the clipboard while a partner is there to receive it"""
        if in_room:
            self._monitor.start()
        else:
            # Called on the client's event loop; joining the poller would stall it
            self._monitor.stop(wait=False)

    def _on_local_change(self, text: str):
        """Handle local clipboard change"""
        self._client.send_text_threadsafe(text)

    def _on_remote_text(self, text: str):
        """Handle text received from the partner"""
        try:
            self._monitor.set_content(text)
        except pyperclip.PyperclipException as e:
            self.on_log(f"[CLIPBOARD] Could not write clipboard: {e}")

    def start(self, join_code: Optional[str] = None):
        self._client.start(join_code)

    def stop(self):
        self._monitor.stop()
        self._client.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._client.wait(timeout)

    @property
    def client(self) -> RoomClient:
        return self._client


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uniclip",
        description="Pair two machines with a short code and share clipboard text between them."
    )
    parser.add_argument("--log-level", default=None, help=f"Logging level (default: {config.log_level})")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the rendezvous and relay server")
    serve.add_argument("--host", default=None, help=f"Interface to bind (default: {config.host})")
    serve.add_argument("--port", type=int, default=None, help=f"Port to listen on (default: {config.port})")

    open_cmd = commands.add_parser("open", help="Create a room and sync the clipboard")
    open_cmd.add_argument("--server", default=None, help="Server address; discovered automatically if omitted")
    open_cmd.add_argument("--port", type=int, default=None, help="Server port")

    join = commands.add_parser("join", help="Join a room by code and sync the clipboard")
    join.add_argument("code", help="Room code shown on the other machine")
    join.add_argument("--server", default=None, help="Server address; discovered automatically if omitted")
    join.add_argument("--port", type=int, default=None, help="Server port")

    info = commands.add_parser("info", help="Show what a server reports at /serverinfo")
    info.add_argument("--server", default=None, help="Server address (default: this machine)")
    info.add_argument("--port", type=int, default=None, help="Server port")
    return parser


def run_server(args: argparse.Namespace, cfg: Config) -> int:
    if args.host:
        cfg.host = args.host
    if args.port is not None:
        cfg.port = args.port
    server = RelayServer.from_config(cfg, on_log=log_callback("server"))
    server.run()
    return 0


def run_client(args: argparse.Namespace, cfg: Config, join_code: Optional[str] = None) -> int:
    log = logging.getLogger("uniclip.client")
    port = args.port if args.port is not None else cfg.port
    try:
        url = discover_server(args.server, port, timeout=cfg.discovery_timeout)
    except DiscoveryError as e:
        log.error(f"{e}. Pass --server with the server address.")
        return 2

    sync = ClipboardSync(
        url,
        cfg,
        on_log=log_callback("client"),
        on_code=lambda code: print(f"Room code: {code}", flush=True),
        on_error=lambda reason: log.error(reason)
    )
    sync.start(join_code)
    try:
        # join() with a timeout keeps Ctrl+C responsive
        while not sync.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        log.info("Closing room")
    finally:
        sync.stop()
    return 0


def show_info(args: argparse.Namespace, cfg: Config) -> int:
    host = args.server or get_machine_name()
    port = args.port if args.port is not None else cfg.port
    try:
        info = fetch_server_info(host, port, timeout=cfg.discovery_timeout)
    except DiscoveryError as e:
        logging.getLogger("uniclip").error(str(e))
        return 2
    print(json.dumps(info, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point"""
    args = build_parser().parse_args(argv)
    cfg = replace(config)
    if args.log_level:
        cfg.log_level = args.log_level
    setup_logging(cfg.log_level)

    if args.command == "serve":
        return run_server(args, cfg)
    if args.command == "open":
        return run_client(args, cfg)
    if args.command == "join":
        return run_client(args, cfg, join_code=args.code)
    return show_info(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
