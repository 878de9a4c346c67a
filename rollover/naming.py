"""Archive naming: build rollover file names and recognize them in a directory listing."""

import os
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

DATE_FORMAT = "%Y-%m-%d"


class RolloverMode(Enum):
    NONE = "none"
    SIZE = "size"
    DAILY = "daily"
    DAILY_SIZE = "daily+size"

    @classmethod
    def for_settings(cls, daily: bool, size_limit_bytes: int) -> "RolloverMode":
        if daily:
            return cls.DAILY_SIZE if size_limit_bytes > 0 else cls.DAILY
        return cls.SIZE if size_limit_bytes > 0 else cls.NONE

    @property
    def is_daily(self) -> bool:
        return self in (RolloverMode.DAILY, RolloverMode.DAILY_SIZE)


@dataclass(frozen=True)
class ArchiveFile:
    name: str
    path: str
    day: date | None
    index: int

    @property
    def sort_key(self) -> tuple:
        if self.day is None:
            return (self.index,)
        return (self.day, self.index)


class NamingScheme:
    """Maps (day, index) to archive names for one active file, and back.

    Indexes grow incrementally: the highest index is the most recent archive,
    so a listing alone is enough to pick the next name after a restart. In
    daily modes the index sequence restarts for every day; a bare
    ``prefix.YYYY-MM-DD`` (DAILY mode only) counts as index 0.
    """

    def __init__(self, active_path: str, directory: str, mode: RolloverMode):
        if not active_path or not directory:
            raise ValueError("active_path and directory must be non-empty")
        if active_path.endswith(("/", os.sep)):
            raise ValueError(f"active_path must name a file, got {active_path!r}")
        abs_dir = os.path.abspath(directory)
        if os.path.dirname(os.path.abspath(active_path)) != abs_dir:
            raise ValueError(f"{active_path!r} is not inside directory {directory!r}")

        self._directory = directory
        self._active_path = active_path
        self._base = os.path.basename(active_path)
        self._mode = mode

        base = re.escape(self._base)
        if mode is RolloverMode.SIZE:
            self._pattern = re.compile(rf"^{base}\.(\d+)$")
        elif mode.is_daily:
            self._pattern = re.compile(rf"^{base}\.(\d{{4}}-\d{{2}}-\d{{2}})(?:\.(\d+))?$")
        else:
            self._pattern = None

    @classmethod
    def from_config(cls, config) -> "NamingScheme":
        return cls(config.active_path, config.directory, config.mode)

    @property
    def mode(self) -> RolloverMode:
        return self._mode

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def active_name(self) -> str:
        return self._base

    def archive_name(self, day: date | None, index: int) -> str:
        if self._mode is RolloverMode.SIZE:
            return f"{self._base}.{index}"
        if self._mode is RolloverMode.DAILY and index == 0:
            return f"{self._base}.{day.strftime(DATE_FORMAT)}"
        if self._mode.is_daily:
            return f"{self._base}.{day.strftime(DATE_FORMAT)}.{index}"
        raise ValueError("mode NONE has no archive names")

    def archive_path(self, day: date | None, index: int) -> str:
        return os.path.join(self._directory, self.archive_name(day, index))

    def parse(self, name: str) -> ArchiveFile | None:
        """Return the ArchiveFile for a generated name, None for anything else."""
        if self._pattern is None:
            return None
        match = self._pattern.match(name)
        if match is None:
            return None
        path = os.path.join(self._directory, name)
        if self._mode is RolloverMode.SIZE:
            return ArchiveFile(name=name, path=path, day=None, index=int(match.group(1)))

        try:
            day = date.fromisoformat(match.group(1))
        except ValueError:
            return None
        if match.group(2) is None:
            if self._mode is RolloverMode.DAILY_SIZE:
                return None
            index = 0
        else:
            index = int(match.group(2))
        return ArchiveFile(name=name, path=path, day=day, index=index)

    def list_archives(self, names) -> list[ArchiveFile]:
        """Recognized archives among *names*, newest first."""
        archives = [a for a in (self.parse(n) for n in names) if a is not None]
        archives.sort(key=lambda a: a.sort_key, reverse=True)
        return archives

    def next_index(self, day: date | None, names) -> int:
        """First candidate index for a new archive of *day* given existing *names*."""
        archives = self.list_archives(names)
        if self._mode is RolloverMode.SIZE:
            return archives[0].index + 1 if archives else 1
        same_day = [a.index for a in archives if a.day == day]
        if not same_day:
            return 0 if self._mode is RolloverMode.DAILY else 1
        return max(same_day) + 1
