# -*- coding: utf-8 -*-
"""
config.py - Configuration management for uniclip
Settings for the relay server and the room client, read from a JSON file in
the per-user application directory and overridable from the environment.
"""

import os
import sys
import json
from pathlib import Path
from dataclasses import dataclass, asdict, fields
from typing import Mapping, Optional

APP_NAME = "uniclip"


def get_app_dir() -> Path:
    """Get application data directory"""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
    else:
        base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(base) / APP_NAME


APP_DIR = get_app_dir()
CONFIG_FILE = APP_DIR / "config.json"

# Environment variable -> (field, converter)
ENV_OVERRIDES = {
    "UNICLIP_HOST": ("host", str),
    "UNICLIP_PORT": ("port", int),
    "UNICLIP_LOG_LEVEL": ("log_level", str),
}


@dataclass
class Config:
    """Application configuration dataclass"""
    # Network settings
    host: str = "0.0.0.0"
    port: int = 5000
    ws_path: str = "/ws"
    info_path: str = "/serverinfo"

    # Pairing settings
    code_length: int = 5

    # Transport settings
    max_message_size: int = 1024 * 1024  # 1MB per frame
    ping_interval: float = 30  # WebSocket keep-alive
    ping_timeout: float = 10
    client_ping_interval: float = 20  # PING/PONG at protocol level

    # Client settings
    sync_interval_ms: int = 500
    discovery_timeout: float = 5

    # Logging
    log_level: str = "INFO"

    def save(self, path: Optional[Path] = None):
        """Save configuration to file"""
        path = Path(path) if path else CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """Load configuration from file, then apply environment overrides"""
        path = Path(path) if path else CONFIG_FILE
        environ = os.environ if environ is None else environ

        data = {}
        if path.exists():
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    known = {f.name for f in fields(cls)}
                    data = {k: v for k, v in loaded.items() if k in known}
            except (OSError, ValueError):
                data = {}

        for var, (name, convert) in ENV_OVERRIDES.items():
            if var in environ:
                try:
                    data[name] = convert(environ[var])
                except ValueError:
                    pass

        try:
            return cls(**data)
        except TypeError:
            return cls()

    @property
    def server_url(self) -> str:
        """WebSocket URL of a server on this machine"""
        host = "127.0.0.1" if self.host in ("0.0.0.0", "") else self.host
        return f"ws://{host}:{self.port}{self.ws_path}"


# Global config instance
config = Config.load()
