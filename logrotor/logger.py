"""A writable log file that rotates itself by size or by a time pattern."""

from __future__ import annotations

import gzip
import os
import queue
import shutil
import stat
import sys
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Callable

from .ownership import chown
from .timefmt import (
    format_backup_time,
    parse_backup_time,
    parse_with_pattern,
    strftime_to_parse_pattern,
)

__all__ = [
    "COMPRESS_SUFFIX",
    "DEFAULT_MAX_SIZE",
    "MEGABYTE",
    "LogInfo",
    "Logger",
    "backup_name",
    "compress_log_file",
]

COMPRESS_SUFFIX = ".gz"
DEFAULT_MAX_SIZE = 100
MEGABYTE = 1024 * 1024


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _split_ext(base: str) -> tuple[str, str]:
    """Split ``base`` at its last dot, keeping the dot with the extension."""
    dot = base.rfind(".")
    if dot < 0:
        return base, ""
    return base[:dot], base[dot:]


def backup_name(name: str, local: bool, now: datetime) -> str:
    """Return ``name`` with the timestamp of ``now`` put before its extension.

    The timestamp is in UTC unless ``local`` is true.
    """
    directory, base = os.path.split(name)
    prefix, ext = _split_ext(base)
    moment = now if local else now.astimezone(timezone.utc)
    return os.path.join(directory, f"{prefix}-{format_backup_time(moment)}{ext}")


def compress_log_file(src: str, dst: str) -> None:
    """Gzip ``src`` into ``dst`` and remove ``src`` once that succeeded.

    Raises :class:`OSError` on failure; a partly written ``dst`` is removed.
    """
    try:
        source = open(src, "rb")
    except OSError as exc:
        raise OSError(f"failed to open log file: {exc}") from exc

    with source:
        try:
            info = os.stat(src)
        except OSError as exc:
            raise OSError(f"failed to stat log file: {exc}") from exc

        try:
            chown(dst, info)
        except OSError as exc:
            raise OSError(f"failed to chown compressed log file: {exc}") from exc

        # An existing dst is presumed to be left over from an earlier attempt.
        try:
            fd = os.open(dst, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, stat.S_IMODE(info.st_mode))
        except OSError as exc:
            raise OSError(f"failed to open compressed log file: {exc}") from exc

        try:
            with os.fdopen(fd, "wb") as raw, gzip.GzipFile(fileobj=raw, mode="wb") as gz:
                shutil.copyfileobj(source, gz)
            source.close()
            os.remove(src)
        except OSError as exc:
            try:
                os.remove(dst)
            except OSError:
                pass
            raise OSError(f"failed to compress log file: {exc}") from exc


@dataclass(frozen=True)
class LogInfo:
    """A backup log file with the time encoded in its name."""

    timestamp: datetime
    name: str
    mod_time: datetime


@dataclass(eq=False)
class Logger:
    """A log file that moves itself aside when it grows too large.

    ``path`` is the active log file; backups are kept beside it. Without a
    ``pattern`` the file is rotated once a write would take it past
    ``max_size`` megabytes. With a ``pattern`` (a strftime file name) the file
    is rotated whenever the formatted name changes, and moved to the name of
    the period that just ended. After each rotation, old backups beyond
    ``max_backups`` or older than ``max_age`` days are removed and, if
    ``compress`` is set, the rest are gzipped, in a background thread.
    ``clock`` must return timezone-aware datetimes.
    """

    path: str = ""
    max_size: int = 0
    max_age: int = 0
    max_backups: int = 0
    local_time: bool = False
    compress: bool = False
    pattern: str = ""
    clock: Callable[[], datetime] = field(default=_local_now, repr=False)

    _file: BinaryIO | None = field(default=None, init=False, repr=False)
    _size: int = field(default=0, init=False, repr=False)
    _pre_name: str = field(default="", init=False, repr=False)
    _current_name: str = field(default="", init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _mill_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _mill_queue: queue.Queue = field(
        default_factory=lambda: queue.Queue(maxsize=1), init=False, repr=False
    )
    _mill_thread: threading.Thread | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, data: bytes) -> int:
        """Write ``data`` to the log, rotating first if needed; return its length.

        Raises :class:`ValueError` if, without a pattern, ``data`` alone is
        larger than the maximum file size.
        """
        with self._lock:
            write_len = len(data)
            if not self.pattern and write_len > self.max_bytes():
                raise ValueError(
                    f"write length {write_len} exceeds maximum file size {self.max_bytes()}"
                )

            if self._file is None:
                self._open_existing_or_new(write_len)

            if self.pattern:
                previous = self._pre_name
                self._current_name = self._gen_filename()
                self._pre_name = self._current_name
                if previous and self._current_name != previous:
                    self._rotate(previous)
            elif self._size + write_len > self.max_bytes():
                self._rotate("")

            assert self._file is not None
            written = self._file.write(data) or 0
            self._size += written
            return written

    def close(self) -> None:
        """Close the current log file, if one is open."""
        with self._lock:
            self._close()

    def rotate(self) -> None:
        """Move the current log file aside now and start a new one."""
        with self._lock:
            self._rotate("")

    def filename(self) -> str:
        """Return the active log file's path."""
        if self.path:
            return self.path
        name = os.path.basename(sys.argv[0] if sys.argv else "") + "-logrotor.log"
        return os.path.join(tempfile.gettempdir(), name)

    def directory(self) -> str:
        """Return the directory holding the log file and its backups."""
        return os.path.dirname(self.filename()) or "."

    def max_bytes(self) -> int:
        """Return the size in bytes at which the log file is rotated."""
        if self.max_size == 0:
            return DEFAULT_MAX_SIZE * MEGABYTE
        return self.max_size * MEGABYTE

    def prefix_and_ext(self) -> tuple[str, str]:
        """Return the name prefix (with a trailing dash) and extension of backups."""
        prefix, ext = _split_ext(os.path.basename(self.filename()))
        return prefix + "-", ext

    def old_log_files(self) -> list[LogInfo]:
        """Return the backups beside the log file, newest name timestamp first."""
        directory = self.directory()
        try:
            entries = list(os.scandir(directory))
        except OSError as exc:
            raise OSError(f"can't read log file directory: {exc}") from exc

        prefix, ext = self.prefix_and_ext()
        parsers = (
            (self._time_from_name, ext),
            (self._time_from_name, ext + COMPRESS_SUFFIX),
            (self._time_pattern_from_name, ext),
            (self._time_pattern_from_name, ext + COMPRESS_SUFFIX),
        )
        found: list[LogInfo] = []
        for entry in entries:
            try:
                if entry.is_dir():
                    continue
                info = entry.stat()
            except OSError:
                continue
            for parse, suffix in parsers:
                try:
                    stamp = parse(entry.name, prefix, suffix)
                except ValueError:
                    continue
                mod_time = datetime.fromtimestamp(info.st_mtime, timezone.utc)
                found.append(LogInfo(stamp, entry.name, mod_time))
                break

        found.sort(key=lambda item: item.timestamp, reverse=True)
        return found

    def mill_run_once(self) -> None:
        """Remove stale backups and compress the rest as configured.

        Every removal and compression is attempted; the first failure is
        raised afterwards.
        """
        if self.max_backups == 0 and self.max_age == 0 and not self.compress:
            return

        with self._mill_lock:
            files = self.old_log_files()
            remove: list[LogInfo] = []

            if 0 < self.max_backups < len(files):
                preserved: set[str] = set()
                remaining: list[LogInfo] = []
                for item in files:
                    # A backup and its compressed copy count once.
                    preserved.add(item.name.removesuffix(COMPRESS_SUFFIX))
                    if len(preserved) > self.max_backups:
                        remove.append(item)
                    else:
                        remaining.append(item)
                files = remaining

            if self.max_age > 0:
                cutoff = self._now() - timedelta(days=self.max_age)
                remaining = []
                for item in files:
                    if item.mod_time < cutoff:
                        remove.append(item)
                    else:
                        remaining.append(item)
                files = remaining

            to_compress = (
                [item for item in files if not item.name.endswith(COMPRESS_SUFFIX)]
                if self.compress
                else []
            )

            directory = self.directory()
            first_error: OSError | None = None
            for item in remove:
                try:
                    os.remove(os.path.join(directory, item.name))
                except OSError as exc:
                    first_error = first_error or exc
            for item in to_compress:
                path = os.path.join(directory, item.name)
                try:
                    compress_log_file(path, path + COMPRESS_SUFFIX)
                except OSError as exc:
                    first_error = first_error or exc

            if first_error is not None:
                raise first_error

    def _now(self) -> datetime:
        moment = self.clock()
        return moment if moment.tzinfo is not None else moment.astimezone()

    def _gen_filename(self) -> str:
        try:
            return self._now().strftime(self.pattern)
        except ValueError:
            return ""

    def _close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        finally:
            self._file = None

    def _rotate(self, backup: str) -> None:
        self._close()
        self._open_new(backup)
        self._mill()

    def _open_new(self, backup: str) -> None:
        try:
            os.makedirs(self.directory(), 0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"can't make directories for new logfile: {exc}") from exc

        name = self.filename()
        mode = 0o600
        try:
            info = os.stat(name)
        except OSError:
            info = None
        if info is not None:
            mode = stat.S_IMODE(info.st_mode)
            new_name = backup or backup_name(name, self.local_time, self._now())
            try:
                os.rename(name, new_name)
            except OSError as exc:
                raise OSError(f"can't rename log file: {exc}") from exc
            chown(name, info)

        # Truncate: the old file was just moved away, so anything here now
        # was created by someone else in the meantime.
        try:
            fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        except OSError as exc:
            raise OSError(f"can't open new logfile: {exc}") from exc
        self._file = os.fdopen(fd, "wb", buffering=0)
        self._size = 0

    def _open_existing_or_new(self, write_len: int) -> None:
        self._mill()

        name = self.filename()
        if self.pattern:
            self._current_name = self._gen_filename()
        try:
            info = os.stat(name)
        except FileNotFoundError:
            self._open_new(self._current_name)
            return
        except OSError as exc:
            raise OSError(f"error getting log file info: {exc}") from exc

        if self.pattern:
            previous = self._pre_name
            self._pre_name = self._current_name
            if previous and self._current_name != previous:
                self._rotate(previous)
                return
        elif info.st_size + write_len >= self.max_bytes():
            self._rotate("")
            return

        try:
            self._file = open(name, "ab", buffering=0)
        except OSError:
            # An unusable old file is simply replaced by a new one.
            self._open_new(self._pre_name)
            return
        self._size = info.st_size

    def _mill(self) -> None:
        if self._mill_thread is None:
            self._mill_thread = threading.Thread(target=self._mill_loop, daemon=True)
            self._mill_thread.start()
        try:
            self._mill_queue.put_nowait(True)
        except queue.Full:
            pass

    def _mill_loop(self) -> None:
        while True:
            self._mill_queue.get()
            try:
                self.mill_run_once()
            except Exception:
                # Nowhere to report failures from the background thread.
                pass

    @staticmethod
    def _time_from_name(filename: str, prefix: str, ext: str) -> datetime:
        if not filename.startswith(prefix):
            raise ValueError("mismatched prefix")
        if not filename.endswith(ext) or len(filename) < len(prefix) + len(ext):
            raise ValueError("mismatched extension")
        return parse_backup_time(filename[len(prefix):len(filename) - len(ext)])

    def _time_pattern_from_name(self, filename: str, prefix: str, ext: str) -> datetime:
        if not filename.startswith(prefix):
            raise ValueError("mismatched prefix")
        if not filename.endswith(ext) or len(filename) < len(prefix) + len(ext):
            raise ValueError("mismatched extension")
        if not self.pattern:
            raise ValueError("no file name pattern")
        full = strftime_to_parse_pattern(self.pattern)
        index = full.find(prefix)
        if index < 0:
            raise ValueError("file name pattern does not hold the log file prefix")
        start = index + len(prefix)
        bare_ext = ext.removesuffix(COMPRESS_SUFFIX)
        end = len(full) - len(bare_ext)
        if end < start:
            raise ValueError("file name pattern does not hold the log file extension")
        stamp = filename[len(prefix):len(filename) - len(ext)]
        return parse_with_pattern(full[start:end], stamp)