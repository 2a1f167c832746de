#!/usr/bin/env python3
"""
Diagnostic tool showing what each capture-time source reports for a set of files,
and which one phototidy would use.

Usage:
  python tools/check_capture_time.py <file_or_dir> [<output_csv>]

Example:
  python tools/check_capture_time.py ~/Pictures/import capture_times.csv

Output:
  CSV file (or stdout) with columns: file, kind, exif, container, file_time, chosen, provenance, notes
  One row per supported file.
"""

import csv
import sys
from pathlib import Path

from phototidy import config
from phototidy.exceptions import PhotoTidyError
from phototidy.metadata import boxes
from phototidy.metadata.extract import ContainerSource, ExifSource, FileModTimeSource
from phototidy.metadata.resolver import TimeResolver
from phototidy.models import MediaKind

HEADERS = ["file", "kind", "exif", "container", "file_time", "chosen", "provenance", "notes"]


def try_source(source, path):
    """Returns (formatted time, error message)."""
    try:
        return source.read(path).strftime("%Y-%m-%d %H:%M:%S"), ""
    except PhotoTidyError as e:
        return "", str(e)


def box_notes(path):
    """Raw movie/media header values for ISO-BMFF files."""
    try:
        times = boxes.read_creation_times(path)
    except (PhotoTidyError, OSError) as e:
        return f"boxes: {e}"
    return f"mvhd={times.movie} mdhd={times.media}"


def inspect(path, resolver):
    kind = MediaKind.from_extension(path.suffix)
    exif, exif_err = try_source(ExifSource(), path)
    container, container_err = try_source(ContainerSource(), path)
    file_time, _ = try_source(FileModTimeSource(), path)

    notes = [n for n in (exif_err, container_err) if n]
    if kind is MediaKind.VIDEO:
        notes.append(box_notes(path))

    try:
        resolved = resolver.resolve(path, kind)
        chosen = resolved.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        provenance = resolved.provenance.value
    except PhotoTidyError as e:
        chosen, provenance = "", ""
        notes.append(str(e))

    return [str(path), kind.value, exif, container, file_time, chosen, provenance, "; ".join(notes)]


def iter_targets(target):
    if target.is_file():
        yield target
        return
    for p in sorted(target.rglob("*")):
        if p.is_file() and p.suffix.lower() in config.SUPPORTED_EXTS:
            yield p


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    target = Path(sys.argv[1])
    if not target.exists():
        print(f"Error: {target} does not exist")
        sys.exit(1)

    resolver = TimeResolver()
    rows = [inspect(p, resolver) for p in iter_targets(target)]

    if len(sys.argv) > 2:
        out_csv = Path(sys.argv[2])
        with open(out_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(HEADERS)
            writer.writerows(rows)
        print(f"Wrote {len(rows)} rows to {out_csv}")
    else:
        writer = csv.writer(sys.stdout)
        writer.writerow(HEADERS)
        writer.writerows(rows)


if __name__ == "__main__":
    main()
