"""Append-only log writer with daily and size-based rollover and background retention."""

import os
import threading
import logging
from dataclasses import replace
from datetime import datetime

from rollover.config import RotationConfig
from rollover.naming import NamingScheme, RolloverMode
from rollover.policy import Trigger, TriggeringPolicy, TriggerState
from rollover.sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


class InitializationError(Exception):
    """Raised when the log directory or active file cannot be opened."""


class WriteFailure(Exception):
    """Raised when appending to the active file fails."""


class RolloverCollisionError(Exception):
    """Raised when the chosen archive name already exists."""


class RotationCoordinator:
    def __init__(self, config: RotationConfig, time_func=None):
        self._config = config
        self._time_func = time_func or datetime.now
        self._scheme = NamingScheme.from_config(config)
        self._policy = TriggeringPolicy(config.mode, config.size_limit_bytes)
        self._lock = threading.Lock()
        self._file = None
        self._state = None
        self._closed = False

        self._sweeper = None
        if config.mode is not RolloverMode.NONE:
            self._sweeper = RetentionSweeper(
                self._scheme,
                config.file_count,
                initial_delay=config.sweep_initial_delay_seconds,
                interval=config.sweep_interval_seconds,
                exclude_identity=self.active_identity,
            )

    @property
    def active_path(self) -> str:
        return self._config.active_path

    @property
    def mode(self) -> RolloverMode:
        return self._config.mode

    @property
    def sweeper(self) -> RetentionSweeper | None:
        return self._sweeper

    def initialize(self):
        """Open (or create) the active file in append mode and start the sweeper."""
        with self._lock:
            if self._file is not None or self._closed:
                raise InitializationError("Coordinator can only be initialized once")
            try:
                os.makedirs(self._config.directory, exist_ok=True)
                # Rollover renames need write access to the directory itself.
                if not os.access(self._config.directory, os.W_OK | os.X_OK):
                    raise PermissionError(13, "Directory is not writable", self._config.directory)
                self._open()
                st = os.fstat(self._file.fileno())
            except OSError as exc:
                self._close()
                raise InitializationError(f"Cannot open {self.active_path}: {exc}") from exc

            if st.st_size > 0:
                self._state = TriggerState(
                    day=datetime.fromtimestamp(st.st_mtime).date(), size=st.st_size
                )
            else:
                self._state = self._policy.fresh_state(self._time_func())

        logger.info(
            "Writing to %s (mode=%s, %d bytes existing)",
            self.active_path, self.mode.value, self._state.size,
        )
        if self._sweeper is not None:
            self._sweeper.start()

    def write(self, data) -> str | None:
        """Append already-formatted bytes. Returns the archive path if a rollover occurred."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._lock:
            if self._closed or self._state is None:
                raise WriteFailure("Coordinator is not open")

            now = self._time_func()
            archived = None
            trigger = self._policy.evaluate(self._state, len(data), now)
            if trigger is not Trigger.NONE:
                archived = self._roll_over(trigger, now)

            if self._file is None:
                try:
                    self._open()
                except OSError as exc:
                    raise WriteFailure(f"Cannot reopen {self.active_path}: {exc}") from exc
            try:
                self._file.write(data)
                self._file.flush()
            except OSError as exc:
                self._resync_size()
                raise WriteFailure(f"Append to {self.active_path} failed: {exc}") from exc
            self._state = self._policy.advance(self._state, len(data))

        if archived and self._config.sweep_after_rollover and self._sweeper is not None:
            self._sweeper.request_sweep()
        return archived

    def active_identity(self):
        """(st_dev, st_ino) of the live file, read under the write lock."""
        with self._lock:
            if self._file is None or self._file.closed:
                return None
            try:
                st = os.fstat(self._file.fileno())
            except OSError:
                return None
            return (st.st_dev, st.st_ino)

    def shutdown(self):
        if self._sweeper is not None:
            self._sweeper.stop()
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._close()
        logger.info("Closed %s", self.active_path)

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    # Internal helpers, called with self._lock held

    def _open(self):
        self._file = open(self.active_path, "ab")

    def _close(self):
        if self._file is not None and not self._file.closed:
            try:
                self._file.flush()
            finally:
                self._file.close()
        self._file = None

    def _resync_size(self):
        """Take the byte count from disk after a partial append."""
        try:
            size = os.path.getsize(self.active_path)
        except OSError:
            return
        self._state = replace(self._state, size=size)

    def _roll_over(self, trigger: Trigger, now: datetime) -> str | None:
        """Archive the active file and start a fresh one. Returns the archive path."""
        self._close()

        if self._state.size == 0:
            self._state = self._policy.fresh_state(now)
            return None

        archived = self._rename_to_archive()
        if archived is None:
            self._state = self._policy.defer(self._state, now)
            return None

        self._state = self._policy.fresh_state(now)
        logger.info("Rolled over %s -> %s (%s)", self.active_path, archived, trigger.value)
        return archived

    def _rename_to_archive(self) -> str | None:
        day = self._state.day
        try:
            index = self._scheme.next_index(day, os.listdir(self._config.directory))
        except OSError as exc:
            logger.warning("Cannot list %s, keeping %s: %s", self._config.directory, self.active_path, exc)
            return None

        for _ in range(self._config.max_rollover_attempts):
            target = self._scheme.archive_path(day, index)
            try:
                self._rename(target)
            except RolloverCollisionError:
                index += 1
                continue
            except OSError as exc:
                logger.warning("Rollover of %s failed, keeping it: %s", self.active_path, exc)
                return None
            return target

        logger.warning(
            "No free archive name for %s after %d attempts, continuing to append",
            self.active_path, self._config.max_rollover_attempts,
        )
        return None

    def _rename(self, target: str):
        if os.path.exists(target):
            raise RolloverCollisionError(target)
        try:
            os.rename(self.active_path, target)
        except FileExistsError as exc:
            raise RolloverCollisionError(target) from exc
