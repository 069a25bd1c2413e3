"""Content-addressed report storage.

Generated reports are published under ``<key>_<stamp><ext>`` where ``stamp``
is the UTC generation time (``YYYYMMDD_HHMMSS_ffffff``). Renderers ``put`` new
files for a key; fetch endpoints ask for the ``latest`` file of a key. The
store is the only coordination medium between the two: nothing records
whether a render is pending or has failed.

Contract shared by both implementations:

* ``put`` never exposes a partially written file to ``latest``.
* Stamps for the same store are strictly increasing, so repeated renders of
  one key produce distinct files and "latest" is well defined.
* ``latest`` orders candidates by the embedded stamp, not by listing order.
* ``latest`` returns ``None`` when nothing matches and raises
  :class:`ReportStorageError` only for genuine I/O failures.

``DirectoryReportStore`` is the durable implementation. ``MemoryReportStore``
keeps files in process memory (single-process dev runs and unit tests).
"""
from __future__ import annotations

import io
import os
import re
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Union

from farm_market.config import REPORT_SETTINGS
from farm_market.utils import get_logger, utc_now

logger = get_logger(__name__)

STAMP_PATTERN = re.compile(r"\d{8}_\d{6}_\d{6}")
CHUNK_SIZE = 64 * 1024

Writer = Callable[[BinaryIO], None]


class ReportStorageError(Exception):
    """Storage could not be read or written (permissions, disk, missing mount)."""


@dataclass(frozen=True, slots=True)
class ReportFile:
    key: str
    filename: str
    stamp: str


def _format_stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime(str(REPORT_SETTINGS["stamp_format"]))


def match_report_file(key: str, filename: str, extension: str) -> Optional[ReportFile]:
    """Return the ReportFile if ``filename`` is exactly ``<key>_<stamp><ext>``."""
    prefix = f"{key}_"
    if not filename.startswith(prefix) or not filename.endswith(extension):
        return None
    stamp = filename[len(prefix):len(filename) - len(extension)]
    if not STAMP_PATTERN.fullmatch(stamp):
        return None
    return ReportFile(key=key, filename=filename, stamp=stamp)


def _newest(candidates: list[ReportFile]) -> Optional[ReportFile]:
    if not candidates:
        return None
    return max(candidates, key=lambda f: (f.stamp, f.filename))


class _StampClock:
    """Strictly increasing generation stamps for one store."""

    def __init__(self, clock: Callable[[], datetime]):
        self._clock = clock
        self._last: Optional[datetime] = None

    def next(self) -> str:
        moment = self._clock()
        if self._last is not None and moment <= self._last:
            moment = self._last + timedelta(microseconds=1)
        self._last = moment
        return _format_stamp(moment)


class DirectoryReportStore:
    """Reports on local disk, one flat directory."""

    def __init__(
        self,
        directory: Union[str, Path],
        *,
        extension: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.directory = Path(directory)
        self.extension = extension or str(REPORT_SETTINGS["extension"])
        self._lock = threading.Lock()
        self._stamps = _StampClock(clock)
        self.directory.mkdir(parents=True, exist_ok=True)

    def put(self, key: str, writer: Writer) -> ReportFile:
        """Render into a hidden temp file, then publish it with an atomic rename."""
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".part", dir=self.directory)
        except OSError as e:
            raise ReportStorageError(f"cannot create temp file in {self.directory}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as fh:
                writer(fh)
                fh.flush()
                os.fsync(fh.fileno())
            with self._lock:
                stamp = self._stamps.next()
                filename = f"{key}_{stamp}{self.extension}"
                while (self.directory / filename).exists():
                    stamp = self._stamps.next()
                    filename = f"{key}_{stamp}{self.extension}"
                os.replace(tmp_name, self.directory / filename)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.info("Report file published", key=key, filename=filename, directory=str(self.directory))
        return ReportFile(key=key, filename=filename, stamp=stamp)

    def latest(self, key: str) -> Optional[ReportFile]:
        candidates: list[ReportFile] = []
        try:
            with os.scandir(self.directory) as entries:
                for entry in entries:
                    match = match_report_file(key, entry.name, self.extension)
                    if match is not None and entry.is_file():
                        candidates.append(match)
        except FileNotFoundError:
            # Nothing has ever been generated here
            return None
        except OSError as e:
            raise ReportStorageError(f"cannot scan {self.directory}: {e}") from e
        return _newest(candidates)

    def path_of(self, report: ReportFile) -> Path:
        return self.directory / report.filename

    def iter_bytes(self, report: ReportFile) -> Iterator[bytes]:
        with open(self.path_of(report), "rb") as fh:
            while True:
                chunk = fh.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def describe(self) -> dict:
        return {"backend": "directory", "directory": str(self.directory)}


class MemoryReportStore:
    """Same contract as DirectoryReportStore, held in a dict."""

    def __init__(
        self,
        *,
        extension: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.extension = extension or str(REPORT_SETTINGS["extension"])
        self._lock = threading.Lock()
        self._stamps = _StampClock(clock)
        self._files: dict[str, bytes] = {}

    def put(self, key: str, writer: Writer) -> ReportFile:
        buf = io.BytesIO()
        writer(buf)
        with self._lock:
            stamp = self._stamps.next()
            filename = f"{key}_{stamp}{self.extension}"
            self._files[filename] = buf.getvalue()
        logger.info("Report file published", key=key, filename=filename, directory="memory")
        return ReportFile(key=key, filename=filename, stamp=stamp)

    def latest(self, key: str) -> Optional[ReportFile]:
        with self._lock:
            names = list(self._files)
        candidates = [m for m in (match_report_file(key, n, self.extension) for n in names) if m is not None]
        return _newest(candidates)

    def read(self, report: ReportFile) -> bytes:
        with self._lock:
            return self._files[report.filename]

    def iter_bytes(self, report: ReportFile) -> Iterator[bytes]:
        data = self.read(report)
        for offset in range(0, len(data), CHUNK_SIZE):
            yield data[offset:offset + CHUNK_SIZE]

    def filenames(self) -> list[str]:
        with self._lock:
            return sorted(self._files)

    def describe(self) -> dict:
        with self._lock:
            count = len(self._files)
        return {"backend": "memory", "files": count}


ReportStore = Union[DirectoryReportStore, MemoryReportStore]


def create_store() -> ReportStore:
    """Build the store selected by REPORT_SETTINGS['store_backend']."""
    backend = str(REPORT_SETTINGS.get("store_backend", "directory")).lower()
    if backend == "memory":
        logger.info("Using in-memory report store")
        return MemoryReportStore()
    if backend != "directory":
        logger.warning("Unknown report store backend, using directory", backend=backend)
    directory = str(REPORT_SETTINGS["reports_dir"])
    logger.info("Using directory report store", directory=directory)
    return DirectoryReportStore(directory)


__all__ = [
    "ReportFile",
    "ReportStorageError",
    "DirectoryReportStore",
    "MemoryReportStore",
    "ReportStore",
    "create_store",
    "match_report_file",
]
