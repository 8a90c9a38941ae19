"""Header classification: which column of a statement plays which role."""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .models import MONEY_ROLES, Role

# Keep "/", "(", ")" and "." so "cr/dr" and "debit(dr)" survive; \w keeps accents.
_PUNCT_RE = re.compile(r"[^\w\s/().]")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeywordCatalog:
  """Role keywords, tried in field order; the first role with a hit wins."""

  date: Tuple[str, ...] = (
    "date", "txn date", "transaction date", "trans date", "value date",
    "posting date", "book date", "txn dt", "value dt",
    "datum", "buchungsdatum", "valuta", "fecha", "tarikh", "tanggal",
  )
  description: Tuple[str, ...] = (
    "description", "narration", "particulars", "details", "transaction details",
    "memo", "reference", "remark", "merchant", "payee", "beneficiary", "name",
    "keterangan", "uraian", "omschrijving", "mededelingen", "verwendungszweck",
    "buchungstext", "beschreibung", "libellé", "concepto", "descripción",
  )
  # Before debit/credit so "Cr/Dr" is a type column, not a credit column
  type: Tuple[str, ...] = (
    "type", "transaction type", "txn type", "cr/dr", "dr/cr", "af/bij", "soll/haben",
  )
  debit: Tuple[str, ...] = (
    "debit", "dr", "dr.", "debit(dr)", "debit amount", "withdrawal", "withdrawals",
    "withdrawal amount", "money out", "spent", "expense",
    "debet", "soll", "débit", "cargo", "afschrijving",
  )
  credit: Tuple[str, ...] = (
    "credit", "cr", "cr.", "credit(cr)", "credit amount", "deposit", "deposits",
    "deposit amount", "money in", "received",
    "kredit", "haben", "crédit", "abono", "bijschrijving",
  )
  balance: Tuple[str, ...] = (
    "balance", "closing balance", "running balance", "available balance",
    "closing bal", "bal", "saldo", "solde",
  )
  amount: Tuple[str, ...] = (
    "amount", "transaction amount", "txn amount", "txn amt",
    "betrag", "montant", "importe", "bedrag", "jumlah",
  )

  # Words inside a type-column cell
  expense_indicators: Tuple[str, ...] = ("debit", "dr", "withdrawal", "expense")
  income_indicators: Tuple[str, ...] = ("credit", "cr", "deposit", "income")

  def roles(self) -> List[Tuple[Role, Tuple[str, ...]]]:
    return [
      (Role.DATE, self.date),
      (Role.DESCRIPTION, self.description),
      (Role.TYPE, self.type),
      (Role.DEBIT, self.debit),
      (Role.CREDIT, self.credit),
      (Role.BALANCE, self.balance),
      (Role.AMOUNT, self.amount),
    ]


DEFAULT_CATALOG = KeywordCatalog()


def normalize_header(text) -> str:
  norm = _PUNCT_RE.sub("", str(text or "").lower())
  return _WS_RE.sub(" ", norm).strip()


def _keyword_hit(norm: str, keyword: str) -> bool:
  if norm == keyword:
    return True
  # Keyword must start a word: "cr" is in "credit" but not in "description"
  return re.search(r"(?<!\w)" + re.escape(keyword), norm) is not None


def classify_header(text, catalog: KeywordCatalog = DEFAULT_CATALOG) -> Optional[Role]:
  """Role for a single header cell or header fragment, or None."""
  norm = normalize_header(text)
  if len(norm) < 2:
    return None
  for role, keywords in catalog.roles():
    if any(_keyword_hit(norm, kw) for kw in keywords):
      return role
  return None


@dataclass
class ColumnMapping:
  date: Optional[str] = None
  descriptions: List[str] = field(default_factory=list)
  amount: Optional[str] = None
  debit: Optional[str] = None
  credit: Optional[str] = None
  type: Optional[str] = None
  balance: Optional[str] = None

  @property
  def usable(self) -> bool:
    return self.date is not None and any(getattr(self, r.value) is not None for r in MONEY_ROLES)

  def claimed(self) -> List[str]:
    return [h for h in (self.date, self.amount, self.debit, self.credit, self.type, self.balance) if h is not None]


def map_columns(headers: Iterable[str], catalog: KeywordCatalog = DEFAULT_CATALOG) -> ColumnMapping:
  """Map header names to roles; the first header seen for a role is kept."""
  headers = [h for h in headers if h is not None and str(h).strip()]
  mapping = ColumnMapping()
  for header in headers:
    role = classify_header(header, catalog)
    if role is None:
      continue
    if role is Role.DESCRIPTION:
      mapping.descriptions.append(header)
    elif getattr(mapping, role.value) is None:
      setattr(mapping, role.value, header)

  if not mapping.descriptions:
    taken = set(mapping.claimed())
    for header in headers:
      if header not in taken:
        mapping.descriptions.append(header)
        break
  return mapping
