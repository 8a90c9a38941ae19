"""Format adapters: turn document bytes into positioned fragments or cell grids.

PDF pages become lists of ``PositionedFragment`` (y grows upwards). CSV and
workbook sheets become plain grids (lists of rows of cells) from which the
header row is located and named records are built.
"""

import csv
import io
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import fitz  # PyMuPDF
import pandas as pd
import pdfplumber

from .columns import DEFAULT_CATALOG, ColumnMapping, KeywordCatalog, map_columns
from .errors import UnreadableDocumentError
from .extraction import cell_text
from .models import DocumentFormat, PositionedFragment

logger = logging.getLogger(__name__)

PDF_BACKENDS = ("pdfplumber", "pymupdf")
CSV_DELIMITERS = ",;\t|"
CSV_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")
WORKBOOK_ENGINES = {DocumentFormat.XLSX: "openpyxl", DocumentFormat.XLS: "xlrd"}

Grid = List[List[Any]]


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

def _pdfplumber_pages(content: bytes) -> List[List[PositionedFragment]]:
  pages = []
  with pdfplumber.open(io.BytesIO(content)) as pdf:
    for page_num, page in enumerate(pdf.pages):
      words = page.extract_words(keep_blank_chars=True)
      frags = [
        PositionedFragment(w["text"].strip(), round(w["x0"]), round(page.height - w["bottom"]))
        for w in words if w["text"].strip()
      ]
      logger.debug(f"Page {page_num + 1}: {len(frags)} fragments")
      pages.append(frags)
  return pages


def _pymupdf_pages(content: bytes) -> List[List[PositionedFragment]]:
  pages = []
  with fitz.open(stream=content, filetype="pdf") as doc:
    if doc.needs_pass:
      raise UnreadableDocumentError("PDF is password protected")
    for page_num, page in enumerate(doc):
      height = page.rect.height
      frags = []
      current = None  # [x0, y1, x1, text, block, line, word height]
      for x0, y0, x1, y1, text, block_no, line_no, _ in page.get_text("words"):
        # Words of one visual phrase share a block/line and sit close together
        if (current is not None and current[4] == block_no and current[5] == line_no
            and x0 - current[2] <= 0.5 * current[6]):
          current[2] = x1
          current[3] += " " + text
          continue
        if current is not None:
          frags.append(PositionedFragment(current[3], round(current[0]), round(height - current[1])))
        current = [x0, y1, x1, text, block_no, line_no, y1 - y0]
      if current is not None:
        frags.append(PositionedFragment(current[3], round(current[0]), round(height - current[1])))
      logger.debug(f"Page {page_num + 1}: {len(frags)} fragments")
      pages.append(frags)
  return pages


def read_pdf_pages(content: bytes, backend: str = "pdfplumber") -> List[List[PositionedFragment]]:
  """Positioned text fragments for every page, in page order."""
  if backend not in PDF_BACKENDS:
    raise ValueError(f"Unknown PDF backend {backend!r}; expected one of {', '.join(PDF_BACKENDS)}")
  reader = _pdfplumber_pages if backend == "pdfplumber" else _pymupdf_pages
  try:
    pages = reader(content)
  except UnreadableDocumentError:
    raise
  except Exception as e:
    raise UnreadableDocumentError(f"Could not read PDF with {backend}: {e}") from e
  logger.info(f"Read {len(pages)} page(s) with {backend}")
  return pages


# ---------------------------------------------------------------------------
# Delimited text
# ---------------------------------------------------------------------------

def decode_text(content: bytes) -> str:
  for encoding in CSV_ENCODINGS:
    try:
      return content.decode(encoding)
    except UnicodeDecodeError:
      logger.debug(f"Not {encoding}, trying next encoding")
  raise UnreadableDocumentError("Could not decode delimited file with any known encoding")


def read_delimited_rows(content: bytes) -> Grid:
  """Rows of a CSV/TSV file; the delimiter is sniffed from the first lines."""
  text = decode_text(content)
  if not text.strip():
    raise UnreadableDocumentError("CSV file is empty or has no data rows.")

  sample = text[:8192]
  try:
    dialect = csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
  except csv.Error:
    dialect = csv.excel
  try:
    rows = [row for row in csv.reader(io.StringIO(text), dialect) if any(c.strip() for c in row)]
  except csv.Error as e:
    raise UnreadableDocumentError(f"Malformed delimited file: {e}") from e
  logger.info(f"Read {len(rows)} non-empty row(s), delimiter {getattr(dialect, 'delimiter', ',')!r}")
  return rows


# ---------------------------------------------------------------------------
# Workbooks
# ---------------------------------------------------------------------------

def read_workbook_sheets(content: bytes, fmt: DocumentFormat = DocumentFormat.XLSX) -> Dict[str, Grid]:
  """Every sheet of a workbook as a grid, keyed by sheet name in workbook order."""
  engine = WORKBOOK_ENGINES.get(fmt, "openpyxl")
  try:
    frames = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, dtype=object, engine=engine)
  except ImportError as e:
    raise UnreadableDocumentError(f"Reading {fmt.value} workbooks needs the {engine} package: {e}") from e
  except Exception as e:
    raise UnreadableDocumentError(f"Could not read workbook: {e}") from e

  sheets = {}
  for name, df in frames.items():
    df = df.dropna(how="all")
    sheets[str(name)] = df.astype(object).where(df.notna(), None).values.tolist()
  logger.info(f"Read {len(sheets)} sheet(s) with {engine}")
  return sheets


# ---------------------------------------------------------------------------
# Header row and records
# ---------------------------------------------------------------------------

def find_header_row(
  grid: Sequence[Sequence[Any]], catalog: KeywordCatalog = DEFAULT_CATALOG, limit: int = 60
) -> Optional[Tuple[int, ColumnMapping]]:
  """Index and mapping of the first row that names a date and a money column."""
  for idx, row in enumerate(grid[:limit]):
    headers = [cell_text(c) for c in row]
    if sum(1 for h in headers if h) < 2:
      continue
    mapping = map_columns(unique_headers(headers), catalog)
    if mapping.usable:
      return idx, mapping
  return None


def unique_headers(headers: Sequence[str]) -> List[str]:
  """Blank headers stay blank; repeated names get a ".1", ".2" suffix."""
  seen: Dict[str, int] = {}
  out = []
  for h in headers:
    if not h:
      out.append("")
      continue
    count = seen.get(h, 0)
    seen[h] = count + 1
    out.append(h if count == 0 else f"{h}.{count}")
  return out


def grid_to_records(grid: Sequence[Sequence[Any]], header_idx: int) -> Tuple[List[str], List[Dict[str, Any]]]:
  """Header names and one dict per non-blank data row below the header."""
  headers = unique_headers([cell_text(c) for c in grid[header_idx]])
  records = []
  for row in grid[header_idx + 1:]:
    record = {h: (row[i] if i < len(row) else None) for i, h in enumerate(headers) if h}
    if any(cell_text(v) for v in record.values()):
      records.append(record)
  return [h for h in headers if h], records
