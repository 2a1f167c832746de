import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from . import config
from .core import Classifier
from .exceptions import PhotoTidyError
from .reporting import log_summary, write_csv_report


def setup_logging(root: Path, verbose: bool, log_to_file: bool = True) -> Optional[Path]:
    """Sets up logging to the console and, optionally, a timestamped file in root."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = None
    if log_to_file:
        log_file = root / datetime.now().strftime(config.LOG_FILE_FORMAT)
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    return log_file


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="phototidy",
        description="phototidy: sort photos and videos into YYYY-MM directories by capture date",
    )
    sub = p.add_subparsers(dest="command", required=True)

    date = sub.add_parser(
        "date",
        help="Classify photos and videos into year-month directories",
        description="Reads each file's capture time (EXIF, video container, or file mtime), "
                    "moves it into <dir>/<YYYY-MM>/ and renames it IMG_/VID_<YYYYMMDD>_<HHMMSS>.",
    )
    date.add_argument("-d", "--dir", type=Path, default=Path("."),
                      help="Directory to process (default: current directory)")
    date.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    date.add_argument("--no-log-file", action="store_true",
                      help="Do not write a timestamped log file into the directory")
    date.add_argument("--report-csv", type=Path, default=None,
                      help="Also write a per-file CSV report to this path")
    date.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def run_date(args: argparse.Namespace) -> int:
    root = args.dir.resolve()
    if not root.is_dir():
        print(f"Error: {root} is not a directory", file=sys.stderr)
        return 1

    try:
        log_file = setup_logging(root, args.verbose, log_to_file=not args.no_log_file)
    except OSError as e:
        print(f"Error: cannot create log file in {root}: {e}", file=sys.stderr)
        return 1

    logging.info("=== phototidy started ===")
    logging.info(f"Directory: {root}")
    if log_file:
        logging.debug(f"Log file: {log_file}")

    classifier = Classifier()
    try:
        summary = classifier.classify(root, show_progress=not (args.no_progress or args.verbose))
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except PhotoTidyError as e:
        logging.error(f"Failed to process directory: {e}")
        return 1

    log_summary(summary)

    if args.report_csv:
        try:
            write_csv_report(summary, args.report_csv)
        except OSError as e:
            logging.error(f"Failed to write report {args.report_csv}: {e}")

    return 0


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    if args.command == "date":
        sys.exit(run_date(args))


if __name__ == "__main__":
    main()
