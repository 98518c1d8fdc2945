# shiptrack/parsers.py
"""
CSV codec for the product catalog.

The import template and the export share one column layout so an export
can be edited and re-imported in update mode.
"""
import csv
import io
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple, Union

# (label, product field). Order is the file's column order.
COLUMNS: List[Tuple[str, str]] = [
    ("Ürün Adı", "name"),
    ("ASIN", "asin"),
    ("Merchant SKU", "merchant_sku"),
    ("Üretici Kodu", "manufacturer_code"),
    ("Amazon Barkod", "amazon_barcode"),
    ("Ürün Maliyeti", "product_cost"),
    ("Amazon Fiyatı", "amazon_price"),
    ("Referans Ücreti", "referral_fee_percent"),
    ("Fulfillment Ücreti", "fulfillment_fee"),
    ("Reklam Maliyeti", "advertising_cost"),
    ("İlk Yatırım", "initial_investment"),
    ("Tedarikçi Adı", "supplier_name"),
    ("Notlar", "notes"),
]

HEADER: List[str] = [label for label, _ in COLUMNS]
LABELS: Dict[str, str] = {f: label for label, f in COLUMNS}

NUMERIC_FIELDS = (
    "product_cost",
    "amazon_price",
    "referral_fee_percent",
    "fulfillment_fee",
    "advertising_cost",
    "initial_investment",
)

SAMPLE_ROW = [
    "Örnek Ürün", "B0EXAMPLE1", "SKU-001", "M-001", "8680000000001",
    "5.00", "20.00", "15", "3.00", "1.00", "", "", "",
]


def _fold(s: str) -> str:
    # casefold keeps "İ" and "i̇" comparable
    return " ".join(s.split()).casefold()


# Labels and raw field names are both accepted, case-insensitively
_HEADER_ALIASES: Dict[str, str] = {}
for _label, _field in COLUMNS:
    _HEADER_ALIASES[_fold(_label)] = _field
    _HEADER_ALIASES[_fold(_field)] = _field


class CsvFormatError(ValueError):
    """The file as a whole cannot be read (empty, undecodable, no known columns)."""


@dataclass(frozen=True)
class CsvRow:
    line: int                 # 1-based file line; the header is line 1
    values: Dict[str, str]    # product field -> stripped cell text

    def get(self, field_name: str) -> str:
        return self.values.get(field_name, "")

    @property
    def is_blank(self) -> bool:
        return not any(self.values.values())


_CURRENCY = re.compile(r"(?i)(tl|try|usd|₺|\$)")
_AMOUNT = re.compile(r"^-?\d+(\.\d+)?$")


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """
    "1.234,56 ₺" -> Decimal("1234.56"); blank -> None.

    When both "." and "," appear, the right-most one is the decimal mark.

    Raises:
        ValueError: the cell is not a number
    """
    if raw is None:
        return None
    s = _CURRENCY.sub("", raw).replace("\u00a0", "").replace(" ", "").strip()
    if not s:
        return None

    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")

    if not _AMOUNT.match(s):
        raise ValueError(f"'{raw.strip()}' is not a valid number")
    try:
        return Decimal(s)
    except InvalidOperation:
        raise ValueError(f"'{raw.strip()}' is not a valid number")


def decode(contents: Union[bytes, str], encoding: str = "utf-8-sig") -> str:
    if isinstance(contents, str):
        return contents.lstrip("\ufeff")
    try:
        return contents.decode(encoding)
    except UnicodeDecodeError as e:
        raise CsvFormatError(f"File is not valid {encoding} text") from e


def read_rows(contents: Union[bytes, str], encoding: str = "utf-8-sig") -> Tuple[List[str], List[CsvRow]]:
    """
    Parse the file into (recognised fields, rows).

    Unknown columns are dropped. Rows whose cells are all blank are skipped.
    """
    text = decode(contents, encoding)
    if not text.strip():
        raise CsvFormatError("CSV file is empty")

    # Spreadsheets with a decimal-comma locale export ";"-separated files
    first_line = text.split("\n", 1)[0]
    delimiter = max(",;\t", key=first_line.count)

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    try:
        header = next(reader)
    except StopIteration:
        raise CsvFormatError("CSV file is empty")

    mapping: Dict[int, str] = {}
    for idx, label in enumerate(header):
        field_name = _HEADER_ALIASES.get(_fold(label))
        if field_name and field_name not in mapping.values():
            mapping[idx] = field_name
    if not mapping:
        raise CsvFormatError("No recognised columns in header")

    rows: List[CsvRow] = []
    try:
        while True:
            # First physical line of the record; quoted cells may span several
            line = reader.line_num + 1
            cells = next(reader, None)
            if cells is None:
                break
            values = {
                field_name: cells[idx].strip() if idx < len(cells) else ""
                for idx, field_name in mapping.items()
            }
            row = CsvRow(line=line, values=values)
            if row.is_blank:
                continue
            rows.append(row)
    except csv.Error as e:
        raise CsvFormatError(f"Line {reader.line_num}: {e}") from e

    return list(mapping.values()), rows


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        # plain notation; never "1E+1"
        return format(value, "f")
    return str(value)


def write_csv(rows: Iterable[List[str]]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(HEADER)
    for row in rows:
        w.writerow(row)
    return buf.getvalue()


def export_products(records: Iterable[dict]) -> str:
    """Render product dicts (``CatalogRecord.as_dict`` shape) in the import layout."""
    return write_csv([_cell(r.get(f)) for _, f in COLUMNS] for r in records)


def template() -> str:
    return write_csv([SAMPLE_ROW])
