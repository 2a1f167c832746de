import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import exifread
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import MetadataUnavailable, TimeUnavailable
from ..models import Provenance
from . import boxes


class MetadataSource:
    """
    A capability that tries to produce a capture timestamp for a file.

    ``read`` returns a naive datetime truncated to whole seconds, or raises
    MetadataUnavailable when this source has nothing usable.
    """
    provenance: Provenance

    def read(self, path: Path) -> datetime:
        raise NotImplementedError


class ExifSource(MetadataSource):
    """Original-capture date from the embedded EXIF block, via 'exifread'."""
    provenance = Provenance.EXIF_METADATA

    def read(self, path: Path) -> datetime:
        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataUnavailable(f"ExifRead failed for {path}: {e}") from e

        dt = self._parse_exif_date(tags)
        if dt is None:
            raise MetadataUnavailable(f"No capture date tag in {path}")
        return dt

    def _parse_exif_date(self, tags) -> Optional[datetime]:
        for tag in config.DATE_TAGS:
            if tag in tags:
                try:
                    # EXIF format is "YYYY:MM:DD HH:MM:SS"
                    dt_str = str(tags[tag]).strip().replace(':', '-', 2)
                    return datetime.strptime(dt_str[:19], "%Y-%m-%d %H:%M:%S")
                except ValueError:
                    # Blank or "0000:00:00 00:00:00" placeholders land here
                    continue
        return None


class ContainerSource(MetadataSource):
    """
    Creation time from the video container's structural metadata.

    Strategies:
      - ISO-BMFF (MP4/MOV): movie header first, then media headers.
      - Anything else (AVI, MKV, ...): 'pymediainfo' General track dates.
    """
    provenance = Provenance.CONTAINER_METADATA

    def read(self, path: Path) -> datetime:
        try:
            times = boxes.read_creation_times(path)
        except boxes.NotIsoBmff:
            return self._read_mediainfo(path)
        except OSError as e:
            raise MetadataUnavailable(f"Cannot read {path}: {e}") from e

        raw = times.best()
        if raw is None:
            raise MetadataUnavailable(f"No creation time in movie or media headers of {path}")
        try:
            return datetime.fromtimestamp(boxes.to_unix(raw))
        except (OverflowError, OSError, ValueError) as e:
            raise MetadataUnavailable(f"Creation time {raw} out of range in {path}") from e

    def _read_mediainfo(self, path: Path) -> datetime:
        try:
            mi = MediaInfo.parse(str(path))
        except Exception as e:
            raise MetadataUnavailable(f"MediaInfo failed for {path}: {e}") from e

        for track in mi.tracks:
            if track.track_type != "General":
                continue
            for field in config.CONTAINER_DATE_FIELDS:
                dt = self._parse_flexible_date(getattr(track, field, None))
                if dt is not None:
                    return dt
        raise MetadataUnavailable(f"No container date in {path}")

    def _parse_flexible_date(self, dt_str: Optional[str]) -> Optional[datetime]:
        """
        Handles MediaInfo's date spellings ("UTC 2020-01-01 12:00:00",
        ISO strings, EXIF-style). UTC-marked values become local time.
        Anything at or before the Unix epoch is an unset field.
        """
        if not dt_str:
            return None

        text = str(dt_str).strip()
        is_utc = "UTC" in text
        clean = text.replace("UTC", "").strip()
        # Multiple values are separated by " / "
        clean = clean.split(" / ")[0].strip()
        if "." in clean:
            clean = clean.split(".")[0]

        dt = None
        try:
            dt = datetime.fromisoformat(clean)
        except ValueError:
            try:
                dt = datetime.strptime(clean.replace(":", "-", 2), "%Y-%m-%d %H:%M:%S")
            except ValueError:
                return None

        if dt.tzinfo is not None:
            dt = dt.astimezone().replace(tzinfo=None)
        elif is_utc:
            dt = dt.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

        if dt <= datetime(1970, 1, 1):
            logging.debug(f"Ignoring zero container date {dt_str!r}")
            return None
        return dt.replace(microsecond=0)


class FileModTimeSource(MetadataSource):
    """Filesystem modification time. Fails only on stat errors or an out-of-range mtime."""
    provenance = Provenance.FILESYSTEM_MOD_TIME

    def read(self, path: Path) -> datetime:
        try:
            mtime = path.stat().st_mtime
        except OSError as e:
            raise TimeUnavailable(f"Cannot stat {path}: {e}") from e
        try:
            return datetime.fromtimestamp(mtime).replace(microsecond=0)
        except (OverflowError, OSError, ValueError) as e:
            raise TimeUnavailable(f"Modification time {mtime} of {path} is out of range") from e
