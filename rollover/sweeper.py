"""Retention sweeper — background thread that deletes archives beyond the retention count."""

import os
import threading
import logging
from dataclasses import dataclass, field

from rollover.naming import NamingScheme

logger = logging.getLogger(__name__)

THREAD_NAME = "Expiring Log File Cleanup"


class DeleteFailure(Exception):
    """Raised for a single archive that could not be removed."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Failed to delete {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass
class SweepResult:
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)


class RetentionSweeper:
    """Keeps at most ``file_count`` archives for one naming scheme.

    Runs first after ``initial_delay`` seconds and then every ``interval``
    seconds counted from the end of the previous pass. ``exclude_identity``
    returns the ``(st_dev, st_ino)`` of the live file (or None); a file with
    that identity is never deleted.
    """

    def __init__(
        self,
        scheme: NamingScheme,
        file_count: int,
        initial_delay: float = 60,
        interval: float = 24 * 60 * 60,
        exclude_identity=None,
    ):
        self._scheme = scheme
        self._file_count = max(1, file_count)
        self._initial_delay = initial_delay
        self._interval = interval
        self._exclude_identity = exclude_identity or (lambda: None)

        self._sweep_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._sweep_count = 0

    @property
    def sweep_count(self) -> int:
        return self._sweep_count

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # Public API

    def start(self):
        if self._thread is not None:
            if self._thread.is_alive():
                logger.warning("Retention sweeper for %s is already running", self._scheme.active_name)
                return
            self._thread = None
        self._stop_event.clear()
        self._wake_event.clear()
        self._thread = threading.Thread(target=self._run, name=THREAD_NAME, daemon=True)
        self._thread.start()
        logger.info(
            "Retention sweeper started for %s (keep %d, first run in %.0fs, every %.0fs)",
            self._scheme.active_name, self._file_count, self._initial_delay, self._interval,
        )

    def request_sweep(self):
        """Wake the background thread for an early pass without waiting for it."""
        self._wake_event.set()

    def stop(self, timeout: float | None = 30):
        """Cancel the schedule; an in-flight pass is allowed to finish."""
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Retention sweeper did not stop within %ss", timeout)
                return
            self._thread = None

    def sweep(self) -> SweepResult:
        """One retention pass. Per-file failures are logged and skipped."""
        with self._sweep_lock:
            result = SweepResult()
            candidates = self._candidates()
            for position, archive in enumerate(candidates):
                if position < self._file_count:
                    result.kept.append(archive.name)
                    continue
                try:
                    self._delete(archive.path)
                except DeleteFailure as exc:
                    logger.warning("%s", exc)
                    result.failed.append(archive.name)
                else:
                    result.deleted.append(archive.name)

            self._sweep_count += 1
            if result.deleted:
                logger.info("Purged %d archive(s): %s", len(result.deleted), ", ".join(result.deleted))
            return result

    # Internal helpers

    def _candidates(self):
        names = os.listdir(self._scheme.directory)
        live = self._exclude_identity()
        archives = []
        for archive in self._scheme.list_archives(names):
            if live is not None and self._identity_of(archive.path) == live:
                continue
            archives.append(archive)
        return archives

    @staticmethod
    def _identity_of(path: str):
        try:
            st = os.stat(path)
        except OSError:
            return None
        return (st.st_dev, st.st_ino)

    @staticmethod
    def _delete(path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Archive %s already removed", path)
        except OSError as exc:
            raise DeleteFailure(path, exc) from exc

    def _run(self):
        delay = self._initial_delay
        while not self._stop_event.is_set():
            self._wake_event.wait(timeout=delay)
            self._wake_event.clear()
            if self._stop_event.is_set():
                break
            try:
                self.sweep()
            except Exception:
                logger.exception("Retention sweep of %s failed", self._scheme.directory)
            delay = self._interval
