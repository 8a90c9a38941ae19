"""Data model shared by the readers, the extraction engine and the converter."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

JOIN_MARKER = "  "
DEFAULT_DESCRIPTION = "Transaction"
DEFAULT_CATEGORY = "other"


class Role(Enum):
  """Semantic role of a statement column."""

  DATE = "date"
  DESCRIPTION = "description"
  DEBIT = "debit"
  CREDIT = "credit"
  AMOUNT = "amount"
  BALANCE = "balance"
  TYPE = "type"


MONEY_ROLES = (Role.DEBIT, Role.CREDIT, Role.AMOUNT)
VALUE_ROLES = (Role.DEBIT, Role.CREDIT, Role.AMOUNT, Role.BALANCE)


class TransactionType(Enum):
  INCOME = "income"
  EXPENSE = "expense"

  @property
  def sign(self) -> int:
    return 1 if self is TransactionType.INCOME else -1


class DateOrder(Enum):
  DMY = "DMY"
  MDY = "MDY"


class DocumentFormat(Enum):
  PDF = "pdf"
  CSV = "csv"
  XLSX = "xlsx"
  XLS = "xls"


# ---------------------------------------------------------------------------
# Geometry (PDF only)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PositionedFragment:
  """A run of text at (x, y); y grows towards the top of the page."""

  text: str
  x: float
  y: float


@dataclass
class Line:
  y: float
  fragments: List[PositionedFragment] = field(default_factory=list)

  @property
  def text(self) -> str:
    return JOIN_MARKER.join(f.text for f in self.fragments)


@dataclass(frozen=True)
class ColumnDefinition:
  role: Role
  x_start: float
  x_end: float

  @property
  def center(self) -> float:
    return (self.x_start + self.x_end) / 2


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@dataclass
class CandidateTransaction:
  """Accumulator for one transaction while lines are scanned."""

  date: date
  desc_parts: List[str] = field(default_factory=list)
  debit: Optional[float] = None
  credit: Optional[float] = None
  amount: Optional[float] = None
  balance: Optional[float] = None
  type_indicator: str = ""
  source_text: str = ""

  @property
  def description(self) -> str:
    return " ".join(" ".join(self.desc_parts).split())

  def add_desc_part(self, txt: str):
    txt = txt.strip()
    if txt:
      self.desc_parts.append(txt)

  def assign(self, role: Optional[Role], value: float):
    """Store a numeric value under the column it was matched to."""
    if role is Role.DEBIT:
      self.debit = abs(value)
    elif role is Role.CREDIT:
      self.credit = abs(value)
    elif role is Role.AMOUNT:
      self.amount = value
    elif role is Role.BALANCE:
      self.balance = value


@dataclass(frozen=True)
class Transaction:
  id: str
  date: date
  description: str
  amount: float
  type: TransactionType
  balance: Optional[float] = None
  original_text: str = ""
  category: str = DEFAULT_CATEGORY
  merchant: Optional[str] = None

  def to_dict(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "date": self.date.isoformat(),
      "description": self.description,
      "amount": self.amount,
      "type": self.type.value,
      "balance": self.balance,
      "category": self.category,
      "merchant": self.merchant,
      "original_text": self.original_text,
    }


@dataclass(frozen=True)
class CurrencyPattern:
  regex: Any  # compiled re.Pattern
  weight: int


@dataclass(frozen=True)
class Currency:
  code: str
  symbol: str
  name: str
  locale: str = "en-US"
  patterns: Tuple[CurrencyPattern, ...] = field(default=(), repr=False, compare=False)

  def to_dict(self) -> Dict[str, str]:
    return {"code": self.code, "symbol": self.symbol, "name": self.name}


@dataclass
class ParsedResult:
  transactions: List[Transaction]
  format: DocumentFormat
  file_name: str
  parse_timestamp: datetime = field(default_factory=datetime.now)
  currency: Optional[Currency] = None
  raw_text: Optional[str] = None

  def to_dict(self, include_raw_text: bool = False) -> Dict[str, Any]:
    data = {
      "transactions": [t.to_dict() for t in self.transactions],
      "format": self.format.value,
      "fileName": self.file_name,
      "parseTimestamp": self.parse_timestamp.isoformat(),
      "currency": self.currency.to_dict() if self.currency else None,
    }
    if include_raw_text:
      data["rawText"] = self.raw_text
    return data

  def to_dataframe(self) -> pd.DataFrame:
    """Tabular view of the ledger, one row per transaction."""
    columns = ["Date", "Description", "Amount", "Type", "Balance", "Currency"]
    code = self.currency.code if self.currency else ""
    data = [
      {
        "Date": t.date,
        "Description": t.description,
        "Amount": t.amount,
        "Type": t.type.value,
        "Balance": np.nan if t.balance is None else t.balance,
        "Currency": code,
      }
      for t in self.transactions
    ]
    return pd.DataFrame(data, columns=columns)
