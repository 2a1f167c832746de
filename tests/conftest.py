import os
import struct
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from phototidy import config


def _box(box_type: bytes, payload: bytes) -> bytes:
    return struct.pack('>I4s', 8 + len(payload), box_type) + payload


def _header_box(box_type: bytes, creation: int, version: int) -> bytes:
    # version/flags, creation_time, modification_time, then padding for the rest
    if version == 1:
        body = struct.pack('>B3xQQ', 1, creation, creation)
    else:
        body = struct.pack('>B3xII', 0, creation, creation)
    return _box(box_type, body + b'\x00' * 16)


def qt_seconds(dt: datetime) -> int:
    """Local naive datetime -> seconds since 1904-01-01 UTC, as stored in mvhd/mdhd."""
    return int(dt.timestamp()) + config.BMFF_EPOCH_OFFSET


def build_mp4(movie=None, media=(), version=0, mdat_first=False) -> bytes:
    ftyp = _box(b'ftyp', b'isom\x00\x00\x02\x00isomiso2mp41')
    children = b''
    if movie is not None:
        children += _header_box(b'mvhd', movie, version)
    for creation in media:
        mdia = _box(b'mdia', _header_box(b'mdhd', creation, version))
        children += _box(b'trak', _box(b'tkhd', b'\x00' * 84) + mdia)
    moov = _box(b'moov', children)
    mdat = _box(b'mdat', b'\x00' * 32)
    return ftyp + (mdat + moov if mdat_first else moov + mdat)


@pytest.fixture
def make_mp4():
    """Writes a minimal MP4 whose movie/media headers carry the given raw creation times."""
    def _make(path: Path, movie=None, media=(), version=0, mdat_first=False) -> Path:
        path.write_bytes(build_mp4(movie, media, version, mdat_first))
        return path
    return _make


@pytest.fixture
def make_exif_jpeg():
    """Writes a tiny JPEG whose IFD0 DateTime holds the given EXIF date string."""
    def _make(path: Path, exif_date: str) -> Path:
        exif = Image.Exif()
        exif[306] = exif_date
        Image.new("RGB", (8, 8), "white").save(path, "JPEG", exif=exif.tobytes())
        return path
    return _make


@pytest.fixture
def set_mtime():
    def _set(path: Path, dt: datetime) -> Path:
        ts = dt.timestamp()
        os.utime(path, (ts, ts))
        return path
    return _set
