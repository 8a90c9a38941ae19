"""Statement conversion pipeline: bytes in, ``ParsedResult`` out."""

import logging
import os
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .balance import validate_with_balance
from .columns import DEFAULT_CATALOG, ColumnMapping, KeywordCatalog
from .config import ExtractionConfig
from .currency import detect_currency
from .dates import detect_date_order
from .errors import ColumnMappingError, StatementError, UnreadableDocumentError, UnsupportedFormatError
from .extraction import ExtractionEngine, cell_text
from .layout import group_lines, reconstruct_text
from .models import Currency, DocumentFormat, ParsedResult, Transaction
from .readers import find_header_row, grid_to_records, read_delimited_rows, read_pdf_pages, read_workbook_sheets

logger = logging.getLogger(__name__)

EXTENSIONS = {
  ".pdf": DocumentFormat.PDF,
  ".csv": DocumentFormat.CSV,
  ".tsv": DocumentFormat.CSV,
  ".txt": DocumentFormat.CSV,
  ".xlsx": DocumentFormat.XLSX,
  ".xlsm": DocumentFormat.XLSX,
  ".xls": DocumentFormat.XLS,
}

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"

NUMERIC_DATE_RE = re.compile(r"(?<!\d)\d{1,2}[-/]\d{1,2}[-/]\d{2,4}(?!\d)")


class StatementConverter:
  def __init__(self, config: Optional[ExtractionConfig] = None, catalog: Optional[KeywordCatalog] = None,
               pdf_backend: str = "pdfplumber"):
    self.config = config or ExtractionConfig()
    self.catalog = catalog or DEFAULT_CATALOG
    self.pdf_backend = pdf_backend
    self.engine = ExtractionEngine(self.catalog, self.config)

  @staticmethod
  def detect_format(content: bytes, file_name: str = "") -> DocumentFormat:
    """Pick the format from the file extension, then from the leading bytes."""
    ext = os.path.splitext(file_name or "")[1].lower()
    if ext in EXTENSIONS:
      return EXTENSIONS[ext]
    head = content[:8]
    if head.startswith(PDF_MAGIC):
      return DocumentFormat.PDF
    if head.startswith(ZIP_MAGIC):
      return DocumentFormat.XLSX
    if head.startswith(OLE2_MAGIC):
      return DocumentFormat.XLS
    raise UnsupportedFormatError(f"Cannot determine the format of {file_name or 'document'!r}")

  def convert(self, content: bytes, file_name: str,
              fmt: Union[DocumentFormat, str, None] = None) -> ParsedResult:
    """Parse one statement document."""
    if not content:
      raise UnreadableDocumentError(f"{file_name} is empty")
    if isinstance(fmt, str):
      try:
        fmt = DocumentFormat(fmt.lower())
      except ValueError as e:
        raise UnsupportedFormatError(f"Unsupported format {fmt!r}") from e
    fmt = fmt or self.detect_format(content, file_name)
    logger.info(f"Converting {file_name} as {fmt.value}")

    raw_text = None
    if fmt is DocumentFormat.PDF:
      transactions, currency, raw_text = self._convert_pdf(content)
    elif fmt is DocumentFormat.CSV:
      transactions, currency = self._convert_delimited(content)
    else:
      transactions, currency = self._convert_workbook(content, fmt)

    if len(transactions) < self.config.min_transactions:
      logger.warning(f"Only found {len(transactions)} transaction(s) in {file_name}")
    logger.info(f"{file_name}: {len(transactions)} transactions")

    return ParsedResult(
      transactions=transactions,
      format=fmt,
      file_name=file_name,
      currency=currency,
      raw_text=raw_text,
    )

  def convert_file(self, path: str, fmt: Union[DocumentFormat, str, None] = None) -> ParsedResult:
    with open(path, "rb") as fh:
      content = fh.read()
    return self.convert(content, os.path.basename(path), fmt)

  def convert_multiple(self, paths: Sequence[str], progress_callback: Optional[Callable] = None,
                       fmt: Union[DocumentFormat, str, None] = None) -> List[ParsedResult]:
    """Convert several files; a file that fails is logged and skipped."""
    results = []
    total_files = len(paths)

    for i, path in enumerate(paths):
      if progress_callback:
        progress_callback(i * 100 // max(total_files, 1), f"Processing {os.path.basename(path)}...")
      try:
        results.append(self.convert_file(path, fmt))
      except (StatementError, OSError) as e:
        logger.error(f"Error processing {path}: {str(e)}")
        continue

    if progress_callback:
      progress_callback(100, "Processing complete!")
    return results

  # ------------------------------------------------------------------
  # PDF
  # ------------------------------------------------------------------
  def _convert_pdf(self, content: bytes) -> Tuple[List[Transaction], Optional[Currency], str]:
    pages = read_pdf_pages(content, self.pdf_backend)
    page_lines = [group_lines(frags, self.config.line_tolerance) for frags in pages]
    lines = [line for page in page_lines for line in page]
    raw_text = reconstruct_text(page_lines)

    currency = detect_currency(raw_text)
    order = detect_date_order(NUMERIC_DATE_RE.findall(raw_text))
    transactions = self.engine.extract_lines(lines, order)
    return validate_with_balance(transactions, self.config), currency, raw_text

  # ------------------------------------------------------------------
  # Tabular
  # ------------------------------------------------------------------
  def _locate_table(self, grid) -> Tuple[ColumnMapping, List[str], List[Dict]]:
    found = find_header_row(grid, self.catalog, self.config.header_scan_lines)
    if found is None:
      first = [cell_text(c) for c in grid[0]] if grid else []
      raise ColumnMappingError(
        "Could not find a date column and an amount/debit/credit column. "
        f"Headers found: {', '.join(h for h in first if h)}", headers=first)
    header_idx, mapping = found
    headers, records = grid_to_records(grid, header_idx)
    logger.info(f"Header row {header_idx}: date={mapping.date!r} descriptions={mapping.descriptions} "
                f"amount={mapping.amount!r} debit={mapping.debit!r} credit={mapping.credit!r} "
                f"type={mapping.type!r} balance={mapping.balance!r}")
    return mapping, headers, records

  def _convert_records(self, mapping: ColumnMapping, headers: List[str],
                       records: List[Dict]) -> Tuple[List[Transaction], Optional[Currency]]:
    samples = [cell_text(r.get(mapping.date)) for r in records[: self.config.date_order_sample_rows]]
    order = detect_date_order(samples)

    sample_text = " ".join(headers) + " " + " ".join(
      " ".join(cell_text(v) for v in r.values()) for r in records[: self.config.currency_sample_rows])
    currency = detect_currency(sample_text)

    transactions = self.engine.extract_rows(records, mapping, order)
    return validate_with_balance(transactions, self.config), currency

  def _convert_delimited(self, content: bytes) -> Tuple[List[Transaction], Optional[Currency]]:
    grid = read_delimited_rows(content)
    mapping, headers, records = self._locate_table(grid)
    if not records:
      raise UnreadableDocumentError("CSV file is empty or has no data rows.")
    return self._convert_records(mapping, headers, records)

  def _convert_workbook(self, content: bytes, fmt: DocumentFormat) -> Tuple[List[Transaction], Optional[Currency]]:
    sheets = read_workbook_sheets(content, fmt)
    best: Optional[Tuple[List[Transaction], Optional[Currency]]] = None
    mapped = 0
    last_error = None

    for name, grid in sheets.items():
      try:
        mapping, headers, records = self._locate_table(grid)
      except ColumnMappingError as e:
        logger.debug(f"Sheet {name!r} skipped: {e}")
        last_error = e
        continue
      mapped += 1
      transactions, currency = self._convert_records(mapping, headers, records)
      logger.info(f"Sheet {name!r}: {len(transactions)} transactions")
      # Strictly more: ties keep the earlier sheet
      if best is None or len(transactions) > len(best[0]):
        best = (transactions, currency)

    if not mapped:
      raise ColumnMappingError(f"No sheet has a usable header row ({len(sheets)} sheet(s) checked)",
                               headers=last_error.headers if last_error else None)
    return best


def parse_statement(content: bytes, file_name: str, fmt: Union[DocumentFormat, str, None] = None,
                    config: Optional[ExtractionConfig] = None, pdf_backend: str = "pdfplumber") -> ParsedResult:
  """One-shot convenience wrapper around ``StatementConverter.convert``."""
  return StatementConverter(config=config, pdf_backend=pdf_backend).convert(content, file_name, fmt)
