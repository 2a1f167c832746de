import logging
import os
import re
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .. import config
from ..exceptions import RenameConflict
from ..models import MediaKind

_CANONICAL_STEMS: Dict[MediaKind, re.Pattern] = {
    kind: re.compile(config.CANONICAL_STEM_TEMPLATE.format(prefix=kind.prefix))
    for kind in MediaKind
}


def is_canonical_name(name: str, kind: MediaKind) -> bool:
    """True for PREFIX_YYYYMMDD_HHMMSS[_NNN].<ext> with the kind's prefix."""
    return bool(_CANONICAL_STEMS[kind].match(Path(name).stem))


def base_name(timestamp: datetime, kind: MediaKind) -> str:
    return f"{kind.prefix}_{timestamp.year:04d}{timestamp.strftime(config.STEM_TIME_FORMAT)}"


def sequenced_name(base: str, seq: int, ext: str) -> str:
    return f"{base}_{seq:0{config.SEQUENCE_WIDTH}d}{ext}"


class NameAllocator:
    """
    Assigns collision-free canonical names inside a target directory.

    Every decision is made from directory state at call time. All existence
    checks and the retroactive rename of a bare occupant happen under one
    lock, so callers treat ``allocate`` as a single critical section.
    Names are compared case-insensitively, so IMG_x.JPG occupies IMG_x.jpg.

    Sequencing rule: a base name is either a lone unsuffixed file, or a run of
    _001, _002, ... files. When a second file arrives for an unsuffixed base,
    the occupant is renamed to _001 first and the newcomer takes the next
    free number.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def allocate(self,
                 target_dir: Path,
                 original_name: str,
                 timestamp: datetime,
                 ext: str,
                 kind: MediaKind,
                 source: Optional[Path] = None) -> str:
        """
        Returns the file name the current file should take inside target_dir.

        If ``source`` is given and it already sits at the bare base name, its
        current name is returned and nothing is renamed.

        Raises:
            RenameConflict: the bare occupant cannot be moved to _001 because
                            _001 is already taken.
        """
        if is_canonical_name(original_name, kind):
            return original_name

        base = base_name(timestamp, kind)
        ext = ext.lower()

        with self._lock:
            taken = self._listing(target_dir)
            bare = f"{base}{ext}"
            occupant = taken.get(bare.lower())

            if occupant is not None:
                if source is not None and _same_file(target_dir / occupant, source):
                    return occupant
                self._promote_occupant(target_dir, occupant, base, taken)
            elif sequenced_name(base, 1, ext).lower() not in taken:
                return bare
            # Otherwise the base is already a numbered run; take the next number

            for seq in range(1, config.MAX_SEQUENCE + 1):
                candidate = sequenced_name(base, seq, ext)
                if candidate.lower() not in taken:
                    return candidate

            return self._exhausted_name(target_dir, base, ext, taken)

    def _listing(self, target_dir: Path) -> Dict[str, str]:
        """Lower-cased name -> actual name for every entry in target_dir."""
        if not target_dir.is_dir():
            return {}
        return {p.name.lower(): p.name for p in target_dir.iterdir()}

    def _promote_occupant(self, target_dir: Path, occupant: str, base: str, taken: Dict[str, str]):
        """Renames the unsuffixed occupant to _001, keeping its extension spelling."""
        old_path = target_dir / occupant
        new_name = sequenced_name(base, 1, Path(occupant).suffix)
        new_path = target_dir / new_name

        if new_name.lower() in taken:
            raise RenameConflict(
                f"Cannot renumber {occupant}: {taken[new_name.lower()]} already exists in {target_dir}"
            )

        os.rename(old_path, new_path)
        del taken[occupant.lower()]
        taken[new_name.lower()] = new_name
        logging.info(f"Renumbered {old_path} -> {new_name}")

    def _exhausted_name(self, target_dir: Path, base: str, ext: str, taken: Dict[str, str]) -> str:
        """All sequence numbers are taken; use a sub-second discriminator instead."""
        logging.warning(f"Sequence space exhausted for {base}{ext} in {target_dir}")
        while True:
            candidate = f"{base}_{time.time_ns() % 1_000_000_000:09d}{ext}"
            if candidate.lower() not in taken and not (target_dir / candidate).exists():
                return candidate


def _same_file(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False
