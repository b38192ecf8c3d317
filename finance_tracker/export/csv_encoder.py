"""
CSV Export

Serializes the displayed transaction list to CSV text.

The default format quotes every field and leaves embedded quotes as they
are. Files already exported this way are read by other tools, so that
format is the default. `escape_quotes=True` doubles embedded quotes
(RFC 4180) for consumers that need strictly valid CSV.
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

from finance_tracker.models.transaction import CsvExport, Transaction, format_amount

CSV_COLUMNS = ["Date", "Type", "Category", "Amount", "Notes"]
CSV_MIME_TYPE = "text/csv"
DEFAULT_FILENAME_PREFIX = "finance-tracker"


def _row(txn: Transaction) -> list[str]:
    return [
        txn.date.isoformat(),
        txn.type.value,
        txn.category,
        format_amount(txn.amount),
        txn.notes or "",
    ]


def to_csv(transactions: Iterable[Transaction], escape_quotes: bool = False) -> str:
    """
    Encode transactions as CSV, in the order given.

    Header row unquoted, every data field double-quoted, '\\n' between
    lines and no trailing newline.
    """
    lines = [",".join(CSV_COLUMNS)]

    if escape_quotes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for txn in transactions:
            writer.writerow(_row(txn))
        body = buffer.getvalue()
        if body:
            lines.append(body.rstrip("\n"))
    else:
        for txn in transactions:
            lines.append(",".join(f'"{cell}"' for cell in _row(txn)))

    return "\n".join(lines)


def export_filename(
    on: Optional[date] = None,
    prefix: str = DEFAULT_FILENAME_PREFIX,
) -> str:
    """finance-tracker-YYYY-MM-DD.csv for the given day (default: today)."""
    on = on or date.today()
    return f"{prefix}-{on.isoformat()}.csv"


def build_export(
    transactions: Iterable[Transaction],
    on: Optional[date] = None,
    prefix: str = DEFAULT_FILENAME_PREFIX,
    escape_quotes: bool = False,
) -> CsvExport:
    """A downloadable file: name, MIME type and content."""
    return CsvExport(
        filename=export_filename(on, prefix),
        mime_type=CSV_MIME_TYPE,
        content=to_csv(transactions, escape_quotes=escape_quotes),
    )
