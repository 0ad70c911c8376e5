"""Parsing utilities for bank transaction exports."""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path


def parse_date(date_str: str) -> date | None:
    """
    Parse various date formats to date object.

    Supported formats:
    - YYYY-MM-DD (2025-03-14), optionally followed by a time part
    - DD/MM/YYYY (14/03/2025)
    - DD MMM YYYY (14 Mar 2025)
    - DD-MM-YYYY (14-03-2025)

    Args:
        date_str: Date string to parse

    Returns:
        date object if successful, None otherwise
    """
    date_str = date_str.strip().strip('"').strip()

    if not date_str:
        return None

    # Provider timestamps look like 2025-03-14T09:30:00+00:00
    if re.match(r"^\d{4}-\d{2}-\d{2}T", date_str):
        date_str = date_str[:10]

    formats = [
        "%Y-%m-%d",  # 2025-03-14
        "%d/%m/%Y",  # 14/03/2025
        "%d %b %Y",  # 14 Mar 2025
        "%d-%m-%Y",  # 14-03-2025
        "%d %B %Y",  # 14 March 2025
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def parse_amount(amount_str: str) -> Decimal | None:
    """
    Parse amount string to Decimal.

    Handles:
    - Currency symbols (£, GBP, $)
    - Thousands separators (commas)
    - Negative values (both -123 and (123))
    - Quoted values

    Args:
        amount_str: Amount string to parse

    Returns:
        Decimal if successful, None otherwise
    """
    if not amount_str or not amount_str.strip():
        return None

    amount_str = amount_str.strip().strip('"').strip()

    if not amount_str:
        return None

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"GBP|[£$\s]", "", amount_str)
    amount_str = amount_str.replace(",", "")

    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]

    try:
        value = Decimal(amount_str)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return -value if is_negative else value


def clean_description(desc: str) -> str:
    """
    Clean up transaction description.

    Removes:
    - Extra whitespace and newlines
    - Card number masks
    - Trailing "CARD PAYMENT TO" style prefixes some banks add

    Args:
        desc: Raw description string

    Returns:
        Cleaned description
    """
    desc = " ".join(desc.split())

    desc = re.sub(r"[*X]{4}[-\s]*[*X]{4}[-\s]*[*X]{4}[-\s]*\d{4}", "", desc)
    desc = re.sub(r"^(CARD PAYMENT TO|DIRECT DEBIT PAYMENT TO|FASTER PAYMENT TO)\s+", "", desc)

    return " ".join(desc.split()).strip()


def read_file(filepath: Path) -> str:
    """
    Read file content, handling both text and Excel files.

    Args:
        filepath: Path to the file

    Returns:
        File content as string (Excel files converted to CSV format)

    Raises:
        ValueError: If file cannot be read
    """
    if not filepath.exists():
        raise ValueError(f"File not found: {filepath}")

    is_xls = filepath.suffix.lower() in [".xls", ".xlsx"]
    if not is_xls:
        with open(filepath, "rb") as f:
            magic = f.read(4)
        # OLE2 magic bytes (used by .xls)
        is_xls = magic == b"\xd0\xcf\x11\xe0"

    if is_xls:
        return _read_excel(filepath)
    return _read_text(filepath)


def _read_text(filepath: Path) -> str:
    """Read text file with encoding detection."""
    encodings = ["utf-8-sig", "utf-8", "latin-1", "cp1252"]

    for encoding in encodings:
        try:
            with open(filepath, encoding=encoding) as f:
                return f.read()
        except UnicodeDecodeError:
            continue

    raise ValueError(f"Could not decode file {filepath} with any known encoding")


def _read_excel(filepath: Path) -> str:
    """Read Excel file and convert to CSV string."""
    import xlrd  # type: ignore[import-untyped]

    try:
        wb = xlrd.open_workbook(str(filepath))
        sheet = wb.sheet_by_index(0)

        lines = []
        for row in range(sheet.nrows):
            row_data = []
            for col in range(sheet.ncols):
                cell = sheet.cell(row, col)
                if cell.ctype == xlrd.XL_CELL_DATE:
                    dt = xlrd.xldate_as_datetime(cell.value, wb.datemode)
                    row_data.append(dt.strftime("%Y-%m-%d"))
                else:
                    value = str(cell.value)
                    if "," in value or '"' in value or "\n" in value:
                        value = '"' + value.replace('"', '""') + '"'
                    row_data.append(value)
            lines.append(",".join(row_data))

        return "\n".join(lines)

    except xlrd.XLRDError as e:
        raise ValueError(f"Could not read Excel file {filepath}: {e}") from e
