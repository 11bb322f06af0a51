#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import threading

from authn.Errors import AuthNError
from authn.session.Srp6aSessionStore import Srp6aSessionStore
from utils.ConfigLoader import ConfigLoader
from utils.Logger import Logger


class SessionReaper:
    """
    Background thread that purges expired handshakes every `interval` seconds.

    Expiry is otherwise only enforced when a session is touched, so a
    long-running service with idle periods uses this to bound table growth.
    The store must be usable from another thread (file or server database,
    not a per-thread in-memory SQLite).
    """

    def __init__(self, store: Srp6aSessionStore, interval: float = 300):
        if interval <= 0:
            raise ValueError("Reaper interval must be positive")
        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, store: Srp6aSessionStore) -> "SessionReaper":
        cfg = ConfigLoader.get_config().get("srp6a", {})
        return cls(store, float(cfg.get("reaper_interval", 300)))

    def run_once(self) -> int:
        try:
            return self.store.purge_expired()
        except AuthNError as e:
            Logger.error(f"[Session] Reaper pass failed: {e}")
            return 0

    def _loop(self):
        while not self._stop.wait(self.interval):
            self.run_once()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="srp6a-reaper", daemon=True)
        self._thread.start()
        Logger.info(f"[Session] Reaper started (every {self.interval}s)")

    def stop(self, timeout: float | None = None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
