"""
Minimal ISO-BMFF (MP4/MOV) box walker.

Only locates the two creation-time fields the resolver cares about:
the movie header (moov/mvhd) and the media headers (moov/trak/mdia/mdhd).
Everything else in the file is skipped by seeking over it, so even
multi-gigabyte videos cost a handful of small reads.
"""
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .. import config
from ..exceptions import MetadataUnavailable

BOX_HEADER = struct.Struct('>I4s')
LARGE_SIZE = struct.Struct('>Q')
UINT32 = struct.Struct('>I')
UINT64 = struct.Struct('>Q')


class NotIsoBmff(MetadataUnavailable):
    """The file does not start with a recognizable ISO-BMFF box."""
    pass


@dataclass
class HeaderTimes:
    """Raw creation times in seconds since 1904-01-01 UTC."""
    movie: Optional[int] = None
    media: List[int] = field(default_factory=list)

    def best(self) -> Optional[int]:
        """
        Movie-level value if it is set, else the earliest set media-level value.
        Zero (and anything that lands on the Unix epoch) counts as unset.
        """
        if not is_sentinel(self.movie):
            return self.movie
        candidates = [t for t in self.media if not is_sentinel(t)]
        return min(candidates) if candidates else None


def is_sentinel(raw: Optional[int]) -> bool:
    return raw is None or raw == 0 or raw == config.BMFF_EPOCH_OFFSET


def to_unix(raw: int) -> int:
    return raw - config.BMFF_EPOCH_OFFSET


def read_creation_times(path: Path) -> HeaderTimes:
    """
    Walks the box tree of ``path`` and collects mvhd/mdhd creation times.

    Raises:
        NotIsoBmff: the first box type is not a known top-level box.
        MetadataUnavailable: the box structure is truncated or inconsistent.
    """
    times = HeaderTimes()
    with path.open('rb') as f:
        end = f.seek(0, os.SEEK_END)
        f.seek(0)
        head = f.read(BOX_HEADER.size)
        if len(head) < BOX_HEADER.size or head[4:8] not in config.BMFF_TOP_LEVEL_BOXES:
            raise NotIsoBmff(f"{path.name} is not an ISO-BMFF file")

        for box_type, start, stop in _iter_boxes(f, 0, end):
            if box_type == b'moov':
                _walk(f, start, stop, times)
                break
    return times


def _walk(f: BinaryIO, start: int, stop: int, times: HeaderTimes):
    for box_type, payload, box_end in _iter_boxes(f, start, stop):
        if box_type == b'mvhd':
            if times.movie is None:
                times.movie = _read_creation_time(f, payload, box_end)
        elif box_type == b'mdhd':
            times.media.append(_read_creation_time(f, payload, box_end))
        elif box_type in config.BMFF_CONTAINER_BOXES:
            _walk(f, payload, box_end, times)


def _iter_boxes(f: BinaryIO, start: int, end: int) -> Iterator[Tuple[bytes, int, int]]:
    """Yields (type, payload_offset, box_end) for each box in [start, end)."""
    offset = start
    while offset + BOX_HEADER.size <= end:
        f.seek(offset)
        size, box_type = BOX_HEADER.unpack(_read_exact(f, BOX_HEADER.size))
        header_len = BOX_HEADER.size

        if size == 1:
            size = LARGE_SIZE.unpack(_read_exact(f, LARGE_SIZE.size))[0]
            header_len += LARGE_SIZE.size
        elif size == 0:
            # Box extends to the end of its parent
            size = end - offset

        if size < header_len or offset + size > end:
            raise MetadataUnavailable(f"Malformed {box_type!r} box at offset {offset}")

        yield box_type, offset + header_len, offset + size
        offset += size


def _read_creation_time(f: BinaryIO, payload: int, box_end: int) -> int:
    # Full box: 1 byte version + 3 bytes flags, then creation_time
    f.seek(payload)
    version = _read_exact(f, 4)[0]
    field_struct = UINT64 if version == 1 else UINT32
    if payload + 4 + field_struct.size > box_end:
        raise MetadataUnavailable(f"Header box at offset {payload} is too short")
    return field_struct.unpack(_read_exact(f, field_struct.size))[0]


def _read_exact(f: BinaryIO, n: int) -> bytes:
    data = f.read(n)
    if len(data) < n:
        raise MetadataUnavailable("Unexpected end of file inside box structure")
    return data
