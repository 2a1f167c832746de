from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from . import config


class MediaKind(Enum):
    IMAGE = 'Image'
    VIDEO = 'Video'

    @classmethod
    def from_extension(cls, ext: str) -> 'MediaKind':
        return cls.VIDEO if ext.lower() in config.VIDEO_DETECT_EXTS else cls.IMAGE

    @property
    def prefix(self) -> str:
        return config.VIDEO_PREFIX if self is MediaKind.VIDEO else config.IMAGE_PREFIX


class Provenance(Enum):
    """Which metadata source supplied a resolved timestamp."""
    EXIF_METADATA = 'ExifMetadata'
    CONTAINER_METADATA = 'ContainerMetadata'
    FILESYSTEM_MOD_TIME = 'FilesystemModTime'

    @property
    def tag(self) -> str:
        return _PROVENANCE_TAGS[self]


_PROVENANCE_TAGS = {
    Provenance.EXIF_METADATA: 'EXIF',
    Provenance.CONTAINER_METADATA: 'CONTAINER',
    Provenance.FILESYSTEM_MOD_TIME: 'FILE_TIME',
}


class Outcome(Enum):
    MOVED = 'moved'
    ALREADY_CLASSIFIED = 'already_classified'
    SKIPPED = 'skipped'


@dataclass
class MediaFile:
    """
    A supported file found during a scan. Lives for one classification pass.
    """
    path: Path
    ext: str                # lower-cased, with leading dot
    kind: MediaKind

    @classmethod
    def from_path(cls, path: Path) -> 'MediaFile':
        ext = path.suffix.lower()
        return cls(path=path, ext=ext, kind=MediaKind.from_extension(ext))

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ResolvedTime:
    timestamp: datetime
    provenance: Provenance


@dataclass(frozen=True)
class TargetLocation:
    directory: Path
    filename: str

    @property
    def path(self) -> Path:
        return self.directory / self.filename

    @staticmethod
    def directory_name(timestamp: datetime) -> str:
        return config.FOLDER_PATTERN.format(year=timestamp.year, month=timestamp.month)


@dataclass
class FileResult:
    """One row of the run report."""
    source: Path
    outcome: Outcome
    destination: Optional[Path] = None
    timestamp: Optional[datetime] = None
    provenance: Optional[Provenance] = None
    reason: Optional[str] = None

    @property
    def renamed(self) -> bool:
        return self.destination is not None and self.destination.name != self.source.name


@dataclass
class RunSummary:
    """
    Counters and per-file results for one classification pass.
    Owned by the Classifier and returned from it.
    """
    root: Path
    results: List[FileResult] = field(default_factory=list)

    def add(self, result: FileResult):
        self.results.append(result)

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def found(self) -> int:
        """Supported files that were not already classified."""
        return len(self.results) - self.already_classified

    @property
    def moved(self) -> int:
        return self._count(Outcome.MOVED)

    @property
    def skipped(self) -> int:
        return self._count(Outcome.SKIPPED)

    @property
    def already_classified(self) -> int:
        return self._count(Outcome.ALREADY_CLASSIFIED)

    @property
    def renamed(self) -> int:
        return sum(1 for r in self.results if r.outcome is Outcome.MOVED and r.renamed)

    @property
    def by_provenance(self) -> Dict[Provenance, int]:
        counts = {p: 0 for p in Provenance}
        for r in self.results:
            if r.outcome is Outcome.MOVED and r.provenance is not None:
                counts[r.provenance] += 1
        return counts
