import shutil
import logging
from pathlib import Path

from ..exceptions import DirectoryCreateFailed, FileOperationError, TargetExists


class FileMover:
    """
    Moves files into their target directory.

    A move is copy (preserving mtime and mode) followed by deleting the
    source, so source and destination may live on different filesystems.
    Existing destinations are never overwritten.
    """

    def ensure_directory(self, directory: Path):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailed(f"Cannot create directory {directory}: {e}") from e

    def move(self, src: Path, dest: Path):
        if dest.exists() or self._has_case_twin(dest):
            raise TargetExists(f"Target file {dest} already exists")

        try:
            shutil.copy2(str(src), str(dest))
        except OSError as e:
            self._discard_partial(dest)
            raise FileOperationError(f"Failed to copy {src} -> {dest}: {e}") from e

        try:
            src.unlink()
        except OSError as e:
            # Leave the copy in place; the source is still intact too
            raise FileOperationError(f"Copied {src} -> {dest} but could not remove source: {e}") from e

    def _has_case_twin(self, dest: Path) -> bool:
        """True when dest.parent holds the same name in a different letter case."""
        if not dest.parent.is_dir():
            return False
        wanted = dest.name.lower()
        return any(p.name.lower() == wanted for p in dest.parent.iterdir())

    def _discard_partial(self, dest: Path):
        try:
            dest.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logging.debug(f"Could not remove partial copy {dest}: {e}")
