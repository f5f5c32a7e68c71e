"""CSV export and file naming."""

import csv
from datetime import datetime
from decimal import Decimal

from polyhistory.models import PriceRecord
from polyhistory.storage.export import CSV_HEADER, build_export_path, export_records_to_csv


def test_build_export_path_substitutes_timestamp(tmp_path):
    path = build_export_path(tmp_path / "out", "btc_{timestamp}.csv", now=datetime(2024, 1, 21, 9, 5, 3))
    assert path == tmp_path / "out" / "btc_20240121_090503.csv"


def test_export_quotes_delimiters_and_creates_directory(tmp_path):
    records = [
        PriceRecord(
            timestamp=datetime(2024, 1, 21, 12, 0, 0),
            market_name='Bitcoin above 40,000 on "Jan 21"?',
            price=Decimal("0.65"),
        ),
    ]
    out = tmp_path / "nested" / "dir" / "export.csv"
    assert export_records_to_csv(records, out) == 1

    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == list(CSV_HEADER)
    assert rows[1] == ["2024-01-21 12:00:00", 'Bitcoin above 40,000 on "Jan 21"?', "0.65", "65.00"]


def test_export_empty_list_writes_header_only(tmp_path):
    out = tmp_path / "empty.csv"
    assert export_records_to_csv([], out) == 0
    assert out.read_text(encoding="utf-8").splitlines() == [",".join(CSV_HEADER)]
