import csv
import logging
from pathlib import Path
from typing import List

from .models import Provenance, RunSummary


def summary_lines(summary: RunSummary) -> List[str]:
    """Human-readable run summary, one line per counter."""
    lines = [
        f"Processed directory: {summary.root}",
        f"Media files found:   {summary.found}",
        f"Moved:               {summary.moved} ({summary.renamed} renamed)",
        f"Skipped:             {summary.skipped}",
        f"Already classified:  {summary.already_classified}",
    ]
    counts = summary.by_provenance
    for provenance in Provenance:
        lines.append(f"  via {provenance.tag:<10} {counts[provenance]}")
    return lines


def log_summary(summary: RunSummary):
    logging.info("=" * 37)
    for line in summary_lines(summary):
        logging.info(line)
    logging.info("=" * 37)


def write_csv_report(summary: RunSummary, output_csv: Path):
    """Writes one row per supported file seen during the run."""
    headers = [
        "Source Path",
        "Outcome",
        "Destination Path",
        "Capture Time",
        "Time Source",
        "Notes",
    ]

    with open(output_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for r in summary.results:
            writer.writerow([
                str(r.source),
                r.outcome.value,
                str(r.destination) if r.destination else "",
                r.timestamp.strftime("%Y-%m-%d %H:%M:%S") if r.timestamp else "",
                r.provenance.value if r.provenance else "",
                r.reason or "",
            ])

    logging.info(f"Report written to {output_csv} ({len(summary.results)} rows)")
