"""wifilog daemon — main orchestrator.

Owns the single database handle, starts the sampler thread, and runs the
health heartbeat loop until SIGTERM/SIGINT. The same handle serves the
read path via connections().
"""

import logging
import os
import signal
import sys
import threading
import time

from wifilog.config import (
    DATA_DIR, LOG_PATH, PID_PATH,
    HEALTH_HEARTBEAT_INTERVAL,
)
from wifilog.db import Database
from wifilog.query import get_connections
from wifilog.sampler import Sampler
from wifilog.ssid import SsidProvider, provider_for_platform

log = logging.getLogger("wifilog")


def _setup_logging() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(str(LOG_PATH)),
            logging.StreamHandler(sys.stderr),
        ],
    )


def _write_pid() -> None:
    PID_PATH.write_text(str(os.getpid()))


def _remove_pid() -> None:
    PID_PATH.unlink(missing_ok=True)


class Daemon:
    """Main daemon process that owns the DB handle and the sampler."""

    def __init__(
        self,
        db: Database | None = None,
        provider: SsidProvider | None = None,
        target_ssid: str | None = None,
        interval: float | None = None,
    ):
        self.db = db or Database()
        self.sampler = Sampler(
            self.db,
            provider or provider_for_platform(),
            target_ssid=target_ssid,
            interval=interval,
        )
        self._stop_event = threading.Event()
        self._stopped = False

    def open(self) -> None:
        """Open storage and start sampling, without blocking."""
        self.db.open()
        self.db.log_health(time.time(), "startup", f"pid={os.getpid()}")
        self.sampler.start()

    def start(self) -> None:
        _setup_logging()
        _write_pid()
        log.info("wifilog daemon starting (pid=%d)", os.getpid())

        self.open()

        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

        self._run_heartbeat_loop()
        self.stop()

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        log.info("wifilog daemon shutting down")
        self._stop_event.set()
        self.sampler.stop()
        if self.db.is_open:
            self.db.log_health(time.time(), "shutdown", "clean")
            self.db.close()
        _remove_pid()
        log.info("wifilog daemon stopped")

    def connections(self) -> list[dict]:
        """Query interface for a UI sharing this process."""
        return get_connections(self.db)

    def _run_heartbeat_loop(self) -> None:
        while not self._stop_event.wait(timeout=HEALTH_HEARTBEAT_INTERVAL):
            try:
                self.db.log_health(time.time(), "heartbeat")
            except Exception:
                log.exception("heartbeat failed")

    def _handle_signal(self, signum, frame) -> None:
        log.info("received signal %d", signum)
        self._stop_event.set()


def main() -> None:
    daemon = Daemon()
    daemon.start()


if __name__ == "__main__":
    main()
