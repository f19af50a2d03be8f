# -*- coding: utf-8 -*-
"""
clipboard_monitor.py - Clipboard monitoring module
Polls the system clipboard for text changes and triggers callbacks
"""

import threading
import hashlib
from typing import Callable, Optional

import pyperclip


def text_hash(text: str) -> str:
    return hashlib.md5(text.encode('utf-8')).hexdigest()


class ClipboardMonitor:
    """
    Monitors clipboard for changes in a background thread.
    Triggers callback when clipboard text changes.
    """

    def __init__(
        self,
        on_change: Callable[[str], None],
        interval_ms: int = 500,
        on_log: Optional[Callable[[str], None]] = None
    ):
        self.on_change = on_change
        self.interval = interval_ms / 1000.0
        self.on_log = on_log or (lambda x: None)
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._last_hash: str = ""
        self._lock = threading.Lock()

    def start(self):
        """Start monitoring clipboard"""
        if self._running:
            return
        # Whatever is on the clipboard before the room opens is not sent
        self._last_hash = self._read_hash()
        self._running = True
        # Each poller owns its stop event, so one left over from a
        # non-waiting stop() exits instead of polling alongside this one
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._monitor_loop, args=(self._stop_event,), daemon=True)
        self._thread.start()

    def stop(self, wait: bool = True):
        """
        Stop monitoring clipboard.

        Args:
            wait: Join the polling thread. Pass False from an event loop,
                where a join would block every other task.
        """
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._thread and wait:
            self._thread.join(timeout=2)
            if not self._thread.is_alive():
                self._thread = None

    def set_content(self, content: str):
        """Write remote text to the clipboard without reporting it back as a change"""
        with self._lock:
            pyperclip.copy(content)
            self._last_hash = text_hash(content)

    def _read_hash(self) -> str:
        try:
            content = pyperclip.paste()
        except pyperclip.PyperclipException:
            return ""
        return text_hash(content) if content else ""

    def poll(self) -> Optional[str]:
        """Check the clipboard once; returns the new text if it changed"""
        with self._lock:
            content = pyperclip.paste()
            if not content:
                return None
            content_hash = text_hash(content)
            if content_hash == self._last_hash:
                return None
            self._last_hash = content_hash
        return content

    def _monitor_loop(self, stop: threading.Event):
        """Main monitoring loop"""
        while not stop.is_set():
            try:
                content = self.poll()
                if content is not None and not stop.is_set():
                    self.on_change(content)
            except pyperclip.PyperclipException as e:
                self.on_log(f"[CLIPBOARD] Clipboard unavailable: {e}")
            stop.wait(self.interval)

    @property
    def is_running(self) -> bool:
        return self._running
