"""Export price records to CSV."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path

from polyhistory.models import PriceRecord

CSV_HEADER = ("Timestamp", "MarketName", "Price", "Probability")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_export_path(
    output_directory: str | Path,
    file_pattern: str,
    now: datetime | None = None,
) -> Path:
    """Substitute {timestamp} in file_pattern and join with output_directory."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(output_directory) / file_pattern.replace("{timestamp}", stamp)


def export_records_to_csv(records: list[PriceRecord], output_path: str | Path) -> int:
    """Write records (in the given order) with a header row. Returns row count."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for r in records:
            writer.writerow(
                [r.timestamp.strftime(TIMESTAMP_FORMAT), r.market_name, str(r.price), str(r.probability)]
            )
    return len(records)
