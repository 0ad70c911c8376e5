"""Load transactions from CSV/Excel exports and write summaries back out."""

import csv
import hashlib
import io
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from spendwise.models import CategoryTotal, Transaction
from spendwise.utils import clean_description, parse_amount, parse_date, read_file

# Accepted header names for each field, compared lower-cased
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "transaction_id", "reference"),
    "date": ("date", "timestamp", "transaction date"),
    "amount": ("amount", "value"),
    "description": ("description", "details", "narrative"),
    "merchant": ("merchant", "merchant_name", "payee"),
    "account": ("account", "account_id"),
    "category": ("category",),
    "currency": ("currency",),
}


def generate_transaction_id(
    date_str: str, amount: str, description: str, account: str, occurrence: int = 0
) -> str:
    """Deterministic ID for rows that carry none.

    ``occurrence`` counts earlier identical rows in the same file, so two equal
    purchases on one day get different IDs while re-loading a file does not.
    """
    data = f"{date_str}|{amount}|{description}|{account}"
    if occurrence:
        data = f"{data}|{occurrence}"
    return hashlib.sha256(data.encode()).hexdigest()[:32]


def _resolve_columns(header: list[str]) -> dict[str, int]:
    lowered = [h.strip().lower() for h in header]
    columns: dict[str, int] = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                columns[field_name] = lowered.index(alias)
                break
    return columns


def parse_csv(content: str, source: str = "") -> list[Transaction]:
    """
    Parse CSV content into transactions.

    Args:
        content: CSV text with a header row
        source: Name used in error messages

    Returns:
        List of Transaction objects

    Raises:
        ValueError: If required columns are missing or a row is malformed
    """
    rows = list(csv.reader(io.StringIO(content)))
    if not rows:
        return []

    columns = _resolve_columns(rows[0])
    missing = [name for name in ("date", "amount") if name not in columns]
    if missing or ("description" not in columns and "merchant" not in columns):
        raise ValueError(f"{source or 'input'}: missing columns {', '.join(missing) or 'description'}")

    def cell(row: list[str], name: str) -> str:
        idx = columns.get(name)
        if idx is None or idx >= len(row):
            return ""
        return row[idx].strip()

    transactions: list[Transaction] = []
    seen_rows: Counter[tuple[str, ...]] = Counter()
    for line_no, row in enumerate(rows[1:], start=2):
        if not any(c.strip() for c in row):
            continue

        tx_date = parse_date(cell(row, "date"))
        amount = parse_amount(cell(row, "amount"))
        if tx_date is None or amount is None:
            raise ValueError(f"{source or 'input'} line {line_no}: bad date or amount")

        description = clean_description(cell(row, "description"))
        account = cell(row, "account")
        tx_id = cell(row, "id")
        if not tx_id:
            key = (tx_date.isoformat(), str(amount), description, account)
            tx_id = generate_transaction_id(*key, occurrence=seen_rows[key])
            seen_rows[key] += 1

        transactions.append(
            Transaction(
                id=tx_id,
                timestamp=tx_date,
                amount=amount,
                description=description,
                merchant_name=cell(row, "merchant") or None,
                account_id=account,
                category=cell(row, "category") or None,
                currency=cell(row, "currency") or "GBP",
            )
        )

    return transactions


class TransactionLoader:
    """
    Loads transactions from export files.

    Usage:
        loader = TransactionLoader()
        transactions = loader.load_files([Path("march.csv"), Path("april.xls")])
    """

    def __init__(self, deduplicate: bool = True, sort_descending: bool = True) -> None:
        """
        Initialize loader.

        Args:
            deduplicate: Drop transactions whose ID was already loaded
            sort_descending: Sort by date descending (newest first)
        """
        self.deduplicate = deduplicate
        self.sort_descending = sort_descending
        self._errors: list[tuple[Path, str]] = []

    @property
    def errors(self) -> list[tuple[Path, str]]:
        """Get list of (filepath, error_message) for failed files."""
        return self._errors.copy()

    def load_file(self, filepath: Path) -> list[Transaction]:
        """Load a single file; failures are recorded in ``errors``."""
        try:
            content = read_file(filepath)
        except ValueError as e:
            self._errors.append((filepath, str(e)))
            return []

        try:
            return parse_csv(content, source=filepath.name)
        except ValueError as e:
            self._errors.append((filepath, f"Parse error: {e}"))
            return []

    def load_files(self, filepaths: Iterable[Path]) -> list[Transaction]:
        """Load several files into one list."""
        self._errors = []
        transactions: list[Transaction] = []

        for filepath in filepaths:
            transactions.extend(self.load_file(filepath))

        if self.deduplicate:
            transactions = self._deduplicate(transactions)

        if self.sort_descending:
            transactions.sort(key=lambda t: t.timestamp, reverse=True)

        return transactions

    def load_directory(self, directory: Path, extensions: list[str] | None = None) -> list[Transaction]:
        """Load all matching files in a directory."""
        return self.load_files(collect_files([directory], extensions))

    @staticmethod
    def _deduplicate(transactions: list[Transaction]) -> list[Transaction]:
        seen: set[str] = set()
        unique: list[Transaction] = []
        for tx in transactions:
            if tx.id not in seen:
                seen.add(tx.id)
                unique.append(tx)
        return unique


def collect_files(paths: Iterable[Path], extensions: list[str] | None = None) -> list[Path]:
    """Expand directories into the export files they contain."""
    if extensions is None:
        extensions = [".csv", ".xls", ".xlsx"]

    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for ext in extensions:
                files.extend(sorted(path.glob(f"*{ext}")))
                files.extend(sorted(path.glob(f"*{ext.upper()}")))
        elif path.exists():
            files.append(path)
    return files


def write_transactions_csv(transactions: Iterable[Transaction], output_path: Path) -> None:
    """Write transactions with every field."""
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(
            f,
            fieldnames=["id", "date", "amount", "description", "merchant", "account", "category", "currency"],
        )
        writer.writeheader()
        for tx in transactions:
            writer.writerow(tx.to_dict())


def write_category_csv(totals: Iterable[CategoryTotal], output_path: Path, delimiter: str = ",") -> None:
    """Write category totals as CSV."""
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(
            f,
            fieldnames=["category", "total", "transactions", "percentage"],
            delimiter=delimiter,
        )
        writer.writeheader()
        for total in totals:
            writer.writerow(total.to_dict())
