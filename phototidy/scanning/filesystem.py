import os
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterator, List

from .. import config
from ..exceptions import TraversalError


class DiskScanner:
    """Finds supported media files below a root directory."""

    def scan(self, root: Path) -> List[Path]:
        """
        Walks root once and returns every supported file, in traversal order.

        The snapshot is taken up front so that directories created while
        classifying are never walked in the same pass.
        """
        if not root.is_dir():
            raise TraversalError(f"{root} is not a directory")

        files = [p for p in self._iter_files(root) if self.is_supported(p)]
        logging.debug(f"Scan of {root} found {len(files)} supported files")
        return files

    def is_supported(self, path: Path) -> bool:
        return path.suffix.lower() in config.SUPPORTED_EXTS

    def is_already_classified(self, path: Path, root: Path) -> bool:
        """True when the file's parent directory (below root) is named YYYY-MM."""
        parent = path.parent
        if parent == root:
            return False
        return is_year_month(parent.name)

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                raise TraversalError(f"Cannot list directory {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f


def is_year_month(name: str) -> bool:
    if not config.YEAR_MONTH_DIR_RE.match(name):
        return False
    try:
        datetime.strptime(name, "%Y-%m")
    except ValueError:
        return False
    return True
