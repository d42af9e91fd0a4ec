"""Sampler — polls the current SSID and records sightings of the target network.

Runs tick() on a background daemon thread at a fixed interval. A failed
OS query or storage write is logged and the loop simply waits for the
next tick; there are no retries and no backoff.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from typing import Callable

import wifilog.config as config
from wifilog.db import Database
from wifilog.ssid import SsidProvider, SsidQueryError

log = logging.getLogger(__name__)


class Sampler:
    """Compares the associated SSID against the target once per interval."""

    def __init__(
        self,
        db: Database,
        provider: SsidProvider,
        target_ssid: str | None = None,
        interval: float | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.provider = provider
        self.target_ssid = target_ssid if target_ssid is not None else config.TARGET_SSID
        self.interval = interval if interval is not None else config.SAMPLE_INTERVAL
        self.clock = clock
        if not self.target_ssid:
            raise ValueError("target SSID is empty — set WIFILOG_TARGET_SSID")
        if self.interval <= 0:
            raise ValueError(f"sample interval must be positive, got {self.interval}")
        # outcome of the most recent tick
        self.last_ssid: str | None = None
        self.last_error: SsidQueryError | None = None
        self.last_recorded: tuple[str, str] | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    # ── one cycle ───────────────────────────────────────────────────────
    def tick(self) -> bool:
        """Run one sampling cycle. Returns True if a sighting was recorded."""
        self.last_ssid = self.last_error = self.last_recorded = None
        try:
            ssid = self.provider.current_ssid()
        except SsidQueryError as e:
            self.last_error = e
            log.warning("SSID query failed: %s", e)
            return False
        self.last_ssid = ssid

        if ssid is None:
            log.info("no wifi connection detected")
            return False

        if ssid != self.target_ssid:
            log.debug("connected to %r, not %r", ssid, self.target_ssid)
            return False

        now = self.clock()
        date, time = now.strftime("%Y-%m-%d"), now.strftime("%H:%M")
        try:
            self.db.upsert_connection(date, time)
        except (sqlite3.Error, RuntimeError):
            log.exception("failed to record connection for %s %s", date, time)
            return False

        self.last_recorded = (date, time)
        log.info("ssid %r matched, recorded %s %s", ssid, date, time)
        return True

    # ── lifecycle ───────────────────────────────────────────────────────
    def start(self) -> None:
        """Start sampling in a background daemon thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="wifilog-sampler", daemon=True
        )
        self._thread.start()
        log.info(
            "sampler started (target=%r, interval=%.1fs, provider=%s)",
            self.target_ssid, self.interval, self.provider.name,
        )

    def stop(self) -> None:
        """Signal the sampler to stop and wait for its thread."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self.interval + 2)
        self._thread = None
        log.info("sampler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    # ── internal ────────────────────────────────────────────────────────
    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                log.exception("sampler tick error")
            self._stop_event.wait(timeout=self.interval)
