import logging
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .exceptions import FileSkipped, TimeUnavailable
from .metadata.resolver import TimeResolver
from .models import FileResult, MediaFile, Outcome, RunSummary, TargetLocation
from .organization.mover import FileMover
from .organization.naming import NameAllocator
from .scanning.filesystem import DiskScanner


class Classifier:
    """
    Sorts media files under a root into <root>/<YYYY-MM>/ with canonical names.

    Pipeline per file:
      1. Skip files already inside a YYYY-MM directory
      2. Resolve capture time (EXIF / container / mtime)
      3. Create the YYYY-MM directory
      4. Allocate a collision-free canonical name
      5. Move (copy + delete), never overwriting
    """

    def __init__(self,
                 resolver: Optional[TimeResolver] = None,
                 allocator: Optional[NameAllocator] = None,
                 mover: Optional[FileMover] = None,
                 scanner: Optional[DiskScanner] = None):
        self.resolver = resolver or TimeResolver()
        self.allocator = allocator or NameAllocator()
        self.mover = mover or FileMover()
        self.scanner = scanner or DiskScanner()

    def classify(self, root: Path, show_progress: bool = False) -> RunSummary:
        """
        Classifies every supported file under root.

        Per-file problems are recorded as skipped and the run continues.
        Raises TraversalError if the walk itself fails.
        """
        root = root.resolve()
        summary = RunSummary(root=root)

        logging.info(f"Scanning {root}...")
        paths = self.scanner.scan(root)

        for path in tqdm(paths, desc="Classifying", unit="file", disable=not show_progress):
            result = self._process(path, root)
            self._log_result(result)
            summary.add(result)

        return summary

    def _process(self, path: Path, root: Path) -> FileResult:
        if self.scanner.is_already_classified(path, root):
            return FileResult(source=path, outcome=Outcome.ALREADY_CLASSIFIED,
                              reason="already in a year-month directory")

        media = MediaFile.from_path(path)

        try:
            resolved = self.resolver.resolve(path, media.kind)
        except TimeUnavailable as e:
            return FileResult(source=path, outcome=Outcome.SKIPPED, reason=str(e))

        target_dir = root / TargetLocation.directory_name(resolved.timestamp)
        result = FileResult(source=path, outcome=Outcome.SKIPPED,
                            timestamp=resolved.timestamp, provenance=resolved.provenance)

        try:
            self.mover.ensure_directory(target_dir)
            name = self.allocator.allocate(target_dir, media.name, resolved.timestamp,
                                           media.ext, media.kind, source=path)
            target = TargetLocation(target_dir, name)
            if target.path == path:
                result.outcome = Outcome.ALREADY_CLASSIFIED
                result.reason = "already at its canonical location"
                return result
            self.mover.move(path, target.path)
        except FileSkipped as e:
            result.reason = str(e)
            return result
        except OSError as e:
            result.reason = f"File operation failed: {e}"
            return result

        result.outcome = Outcome.MOVED
        result.destination = target.path
        return result

    def _log_result(self, result: FileResult):
        if result.outcome is Outcome.ALREADY_CLASSIFIED:
            logging.debug(f"Skip: {result.source} is already in a year-month directory")
        elif result.outcome is Outcome.SKIPPED:
            logging.warning(f"Skipped {result.source}: {result.reason}")
        else:
            note = "" if result.renamed else " (name unchanged)"
            logging.info(
                f"[{result.provenance.tag}] {result.source} -> {result.destination}: "
                f"{result.timestamp:%Y-%m-%d %H:%M:%S}{note}"
            )
