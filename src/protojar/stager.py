"""Stager - materialize scanned schema entries into the staging directory.

Each entry lands at ``staging_dir / <entry path inside the archive>``, so the
archive's own package layout is kept and ``import`` statements between
bundled schema files keep resolving once the staging directory is on the
compiler's include path.
"""

import logging
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable

from .output import LogSink
from .scanner import ScannedEntry

logger = logging.getLogger(__name__)

# Project-relative staging location
STAGING_DIR = Path("target") / "protos"


class UnsafeEntryError(Exception):
    """Raised when an entry name would resolve outside the staging directory."""

    pass


@dataclass
class StageResult:
    """Outcome of one staging pass.

    Attributes:
        staged: Files written, deduplicated, in write order
        failed: Entries that could not be written
        collisions: Staged paths written more than once (last write wins)
    """

    staged: list[Path] = field(default_factory=list)
    failed: list[ScannedEntry] = field(default_factory=list)
    collisions: list[Path] = field(default_factory=list)

    @property
    def did_extract(self) -> bool:
        """True iff at least one entry was written."""
        return bool(self.staged)


def staged_path(staging_dir: Path, entry_name: str) -> Path:
    """Compute where an entry is written.

    Args:
        staging_dir: Staging directory root
        entry_name: Entry path inside its archive

    Returns:
        Destination path under staging_dir

    Raises:
        UnsafeEntryError: If the name has an anchor (root or drive) or climbs out with '..'
    """
    relative = PurePosixPath(entry_name)
    if relative.is_absolute() or PureWindowsPath(entry_name).anchor or ".." in relative.parts:
        raise UnsafeEntryError(f"Refusing to stage {entry_name!r} outside {staging_dir}")
    return staging_dir.joinpath(*relative.parts)


class Stager:
    """Copies schema entries out of their archives."""

    def __init__(self, staging_dir: Path, sink: LogSink, clear: bool = True, verbose: bool = False):
        """Initialize the stager.

        Args:
            staging_dir: Absolute staging directory
            sink: Where progress and per-entry failures are reported
            clear: Remove the staging directory before the first write of a run
            verbose: Report every staged file
        """
        self.staging_dir = staging_dir
        self.sink = sink
        self.clear = clear
        self.verbose = verbose

    def stage(self, entries: Iterable[ScannedEntry]) -> StageResult:
        """Write every entry under the staging directory.

        The staging directory is cleared (if enabled) once, right before the
        first write, and never afterwards. A failure on one entry is reported
        and the remaining entries are still written.

        Args:
            entries: Entries produced by the ArchiveScanner

        Returns:
            StageResult describing what was written
        """
        result = StageResult()
        by_archive: dict[Path, list[ScannedEntry]] = {}
        for entry in entries:
            by_archive.setdefault(entry.archive, []).append(entry)

        if not by_archive:
            return result

        if self.clear:
            self._clear_staging_dir()

        owners: dict[Path, Path] = {}
        for archive, archive_entries in by_archive.items():
            try:
                zf = zipfile.ZipFile(archive, "r")
            except (zipfile.BadZipFile, OSError) as e:
                self.sink.error(f"Could not reopen {archive}: {e}")
                result.failed.extend(archive_entries)
                continue
            with zf:
                for entry in archive_entries:
                    destination = self._extract(zf, entry)
                    if destination is None:
                        result.failed.append(entry)
                        continue
                    if destination in owners:
                        self.sink.warn(f"{entry.name} from {archive.name} overwrites the copy staged from {owners[destination].name}")
                        result.collisions.append(destination)
                    else:
                        result.staged.append(destination)
                    owners[destination] = archive

        logger.debug("Staged %d files into %s (%d failed)", len(result.staged), self.staging_dir, len(result.failed))
        return result

    def _clear_staging_dir(self) -> None:
        if not self.staging_dir.exists():
            return
        if self.verbose:
            self.sink.info(f"Deleting temp dir {self.staging_dir}")
        try:
            shutil.rmtree(self.staging_dir)
        except OSError as e:
            self.sink.warn(f"Could not delete {self.staging_dir}: {e}")

    def _extract(self, zf: zipfile.ZipFile, entry: ScannedEntry) -> Path | None:
        if self.verbose:
            self.sink.info(f"Found proto file {entry.name}")
        try:
            destination = staged_path(self.staging_dir, entry.name)
            destination.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(entry.name) as src, open(destination, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except (UnsafeEntryError, KeyError, zipfile.BadZipFile, OSError) as e:
            self.sink.error(f"Could not extract {entry.name} from {entry.archive}: {e}")
            return None
        return destination
