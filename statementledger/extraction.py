# -*- coding: utf-8 -*-
"""extraction.py
Turn reconstructed statement lines (or tabular rows) into transactions.

Three entry points share one finalisation path:

1.  ``column_strategy`` - locate the header row, remember where each column
    sits horizontally, then drop every numeric fragment into the nearest money
    column.  A tiny two-state machine owns the transaction being assembled.
2.  ``text_strategy`` - no usable header: anchor entries on dated lines, pull
    every number out of the entry text and type it with the running balance,
    or with debit/credit keywords when the balance column cannot be trusted.
3.  ``extract_rows`` - named-field rows from CSV/workbook readers.

Whatever the path, ``LedgerBuilder`` drops duplicates by
(day, absolute amount, description prefix) and assigns deterministic ids.
"""
from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .amounts import AMOUNT_TOKEN_RE, CURRENCY_SYMBOLS, clean_amount, is_numeric_fragment
from .columns import DEFAULT_CATALOG, ColumnMapping, KeywordCatalog, classify_header
from .config import DEFAULT_CONFIG, ExtractionConfig
from .dates import MONTHS_RE, coerce_date, extract_date_from_text
from .models import (
    DEFAULT_DESCRIPTION,
    MONEY_ROLES,
    VALUE_ROLES,
    CandidateTransaction,
    ColumnDefinition,
    DateOrder,
    Line,
    Role,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regex helpers
# ---------------------------------------------------------------------------
SKIP_LINE_RE = re.compile(r"\b(page|total|opening balance|closing balance|statement|account)\b", re.IGNORECASE)

CREDIT_WORDS_RE = re.compile(r"\b(CREDIT|CR|CREDITED|DEPOSIT|RECEIVED|INCOME|REFUND|CASHBACK)\b", re.IGNORECASE)
DEBIT_WORDS_RE = re.compile(
    r"\b(DEBIT|DR|DEBITED|WITHDRAW|WITHDRAWAL|PAID|PAYMENT|PURCHASE|SPENT|EXPENSE|SENT)\b", re.IGNORECASE
)
TYPE_WORDS_RE = re.compile(r"\b(CREDIT|DEBIT|CR|DR|CREDITED|DEBITED)\b", re.IGNORECASE)

# Month names are spelled out so "Salary 50000" is never mistaken for a date
_MONTH = rf"(?:{MONTHS_RE})\b\.?"
DATE_STRIP_RES = [
    re.compile(r"(?<!\d)\d{4}[-/]\d{1,2}[-/]\d{1,2}(?!\d)"),
    re.compile(r"(?<!\d)\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}(?!\d)"),
    re.compile(rf"(?<!\d)\d{{1,2}}(?:st|nd|rd|th)?[-/\s]?{_MONTH}[-/\s,]*\d{{2,4}}(?!\d)", re.IGNORECASE),
    re.compile(rf"\b{_MONTH}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s*\d{{2,4}}(?!\d)", re.IGNORECASE),
]
TIME_RE = re.compile(r"\b\d{1,2}:\d{2}(?::\d{2})?\s*(?:am|pm)?", re.IGNORECASE)
SYMBOL_AMOUNT_RE = re.compile(rf"[{CURRENCY_SYMBOLS}]\s*[\d,]+\.?\d*")
DECIMAL_AMOUNT_RE = re.compile(r"\b[\d,]+\.\d{2}\b")
REFERENCE_NOISE_RE = re.compile(r"\b(Transaction ID|UTR No\.?|Ref\.?\s*No\.?)\s*\S+", re.IGNORECASE)
WS_RE = re.compile(r"\s+")

DESCRIPTION_SEPARATOR = " — "

_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "statementledger")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def strip_dates(text: str) -> str:
    for regex in DATE_STRIP_RES:
        text = regex.sub(" ", text)
    return text


def numeric_tokens(text: str) -> List[float]:
    """Absolute values of every amount-looking token, dates and times removed."""
    text = TIME_RE.sub(" ", strip_dates(text))
    tokens: List[float] = []
    for raw in AMOUNT_TOKEN_RE.findall(text):
        value = clean_amount(raw)
        if value is not None and abs(value) >= 0.01:
            tokens.append(abs(value))
    return tokens


def clean_description(text: str) -> str:
    """Strip dates, amounts, type words and reference noise from entry text."""
    desc = strip_dates(text or "")
    desc = SYMBOL_AMOUNT_RE.sub("", desc)
    desc = DECIMAL_AMOUNT_RE.sub("", desc)
    desc = TYPE_WORDS_RE.sub("", desc)
    desc = REFERENCE_NOISE_RE.sub("", desc)
    desc = TIME_RE.sub("", desc)
    desc = WS_RE.sub(" ", desc).strip()
    return desc or DEFAULT_DESCRIPTION


def nearest_column(
    x: float,
    columns: Sequence[ColumnDefinition],
    roles: Collection[Role],
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> Optional[Role]:
    """Role of the column whose centre is closest to *x*, or None if too far.

    Positions inside ``[x_start - margin, x_end + margin]`` count at a discount
    so a right-aligned number still lands in its own column.
    """
    best: Optional[ColumnDefinition] = None
    best_dist = float("inf")
    for col in columns:
        if col.role not in roles:
            continue
        dist = abs(x - col.center)
        if col.x_start - config.column_margin <= x <= col.x_end + config.column_margin:
            dist *= config.in_range_discount
        if dist < best_dist:
            best, best_dist = col, dist
    if best is not None and best_dist <= config.max_column_distance:
        return best.role
    return None


def dedup_key(day: date, amount: float, description: str, length: int = 30) -> str:
    return f"{day.isoformat()}|{abs(amount):.2f}|{description[:length]}"


class LedgerBuilder:
    """Collects finished transactions, dropping later duplicates."""

    def __init__(self, config: ExtractionConfig = DEFAULT_CONFIG):
        self.config = config
        self.transactions: List[Transaction] = []
        self._seen = set()

    def add(
        self,
        day: date,
        description: str,
        amount: float,
        txn_type: TransactionType,
        balance: Optional[float] = None,
        original_text: str = "",
    ) -> bool:
        description = description or DEFAULT_DESCRIPTION
        key = dedup_key(day, amount, description, self.config.dedup_description_length)
        if key in self._seen:
            logger.debug(f"Duplicate dropped: {key}")
            return False
        self._seen.add(key)

        position = len(self.transactions)
        self.transactions.append(
            Transaction(
                id=str(uuid.uuid5(_ID_NAMESPACE, f"{position}|{key}")),
                date=day,
                description=description,
                amount=abs(amount) * txn_type.sign,
                type=txn_type,
                balance=balance,
                original_text=(original_text or "")[: self.config.original_text_limit],
            )
        )
        return True


@dataclass
class HeaderInfo:
    index: int
    columns: List[ColumnDefinition]

    @property
    def roles(self) -> set:
        return {c.role for c in self.columns}


class ScanState(Enum):
    NO_PENDING = "no_pending"
    PENDING = "pending"


@dataclass
class TextEntry:
    date: date
    text: str
    tokens: List[float]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ExtractionEngine:
    """Extraction strategies bound to one keyword catalog and one config."""

    def __init__(self, catalog: KeywordCatalog = DEFAULT_CATALOG, config: ExtractionConfig = DEFAULT_CONFIG):
        self.catalog = catalog
        self.config = config

    # ------------------------------------------------------------------
    # Amount resolution (shared by PDF candidates and tabular rows)
    # ------------------------------------------------------------------
    def indicator_type(self, indicator: str) -> Optional[TransactionType]:
        ti = (indicator or "").lower().strip()
        if not ti:
            return None
        if any(word in ti for word in self.catalog.expense_indicators):
            return TransactionType.EXPENSE
        if any(word in ti for word in self.catalog.income_indicators):
            return TransactionType.INCOME
        return None

    def resolve_amount(
        self, cand: CandidateTransaction, roles: Collection[Role]
    ) -> Optional[Tuple[float, TransactionType]]:
        """Signed amount and type for a candidate, given which columns exist."""
        has_debit = Role.DEBIT in roles
        has_credit = Role.CREDIT in roles

        if has_debit and has_credit:
            if cand.debit:
                return -abs(cand.debit), TransactionType.EXPENSE
            if cand.credit:
                return abs(cand.credit), TransactionType.INCOME
            return None

        if Role.AMOUNT in roles and cand.amount:
            forced = self.indicator_type(cand.type_indicator) if Role.TYPE in roles else None
            if forced is not None:
                return abs(cand.amount) * forced.sign, forced
            if cand.amount >= 0:
                return cand.amount, TransactionType.INCOME
            return cand.amount, TransactionType.EXPENSE

        if has_debit and cand.debit:
            return -abs(cand.debit), TransactionType.EXPENSE
        if has_credit and cand.credit:
            return abs(cand.credit), TransactionType.INCOME
        return None

    def _finalize(self, cand: Optional[CandidateTransaction], roles: Collection[Role], ledger: LedgerBuilder):
        if cand is None:
            return
        resolved = self.resolve_amount(cand, roles)
        if resolved is None:
            logger.debug(f"Discarding candidate without amount: {cand.source_text[:60]!r}")
            return
        amount, txn_type = resolved
        ledger.add(cand.date, cand.description, amount, txn_type, cand.balance, cand.source_text)

    # ------------------------------------------------------------------
    # Column-position strategy
    # ------------------------------------------------------------------
    def find_header(self, lines: Sequence[Line]) -> Optional[HeaderInfo]:
        """First line in the scan window naming a date column and a money column."""
        for idx, line in enumerate(lines[: self.config.header_scan_lines]):
            if len(line.fragments) < 2:
                continue
            classified = []
            for frag in line.fragments:
                role = classify_header(frag.text, self.catalog)
                if role is not None:
                    classified.append((frag, role))
            roles = {role for _, role in classified}
            if Role.DATE in roles and roles.intersection(MONEY_ROLES) and len(classified) >= 2:
                columns = [
                    ColumnDefinition(role, frag.x, frag.x + len(frag.text) * self.config.char_width)
                    for frag, role in classified
                ]
                logger.info(
                    f"Header at line {idx}: " + ", ".join(f"{c.role.value}@x={c.x_start:g}" for c in columns)
                )
                return HeaderInfo(idx, columns)
        return None

    def _assign_numeric(self, cand: CandidateTransaction, frag, columns: Sequence[ColumnDefinition]):
        value = clean_amount(frag.text)
        if value is None:
            return
        # Unassigned numbers are usually cheque or reference numbers
        cand.assign(nearest_column(frag.x, columns, VALUE_ROLES, self.config), value)

    def column_strategy(self, lines: Sequence[Line], order: DateOrder = DateOrder.DMY) -> List[Transaction]:
        header = self.find_header(lines)
        if header is None:
            logger.info("No header row found; column strategy skipped")
            return []

        columns = header.columns
        roles = header.roles
        ledger = LedgerBuilder(self.config)
        state = ScanState.NO_PENDING
        pending: Optional[CandidateTransaction] = None

        for line in lines[header.index + 1:]:
            text = line.text
            day = extract_date_from_text(text, order)

            if day is None and SKIP_LINE_RE.search(text):
                continue

            if day is not None:
                if state is ScanState.PENDING:
                    self._finalize(pending, roles, ledger)
                pending = CandidateTransaction(date=day, source_text=text)
                state = ScanState.PENDING
                for frag in line.fragments:
                    if is_numeric_fragment(frag.text):
                        self._assign_numeric(pending, frag, columns)
                        continue
                    if Role.TYPE in roles and nearest_column(frag.x, columns, (Role.TYPE,), self.config) is Role.TYPE:
                        pending.type_indicator = frag.text
                        continue
                    if extract_date_from_text(frag.text, order) is None:
                        pending.add_desc_part(frag.text)

            elif state is ScanState.PENDING:
                # Continuation line
                for frag in line.fragments:
                    if is_numeric_fragment(frag.text):
                        self._assign_numeric(pending, frag, columns)
                    else:
                        pending.add_desc_part(frag.text)
                pending.source_text += " " + text

        if state is ScanState.PENDING:
            self._finalize(pending, roles, ledger)

        logger.info(f"Column strategy: {len(ledger.transactions)} transactions")
        return ledger.transactions

    # ------------------------------------------------------------------
    # Text-heuristic strategy
    # ------------------------------------------------------------------
    def collect_entries(self, lines: Sequence[Line], order: DateOrder = DateOrder.DMY) -> List[TextEntry]:
        """Dated lines plus up to ``context_lines`` undated followers."""
        dates = [extract_date_from_text(line.text, order) for line in lines]
        entries: List[TextEntry] = []
        for i, line in enumerate(lines):
            if dates[i] is None:
                continue
            parts = [line.text]
            for j in range(i + 1, min(i + 1 + self.config.context_lines, len(lines))):
                if dates[j] is not None:
                    break
                parts.append(lines[j].text)
            full = " ".join(parts)
            tokens = numeric_tokens(full)
            if tokens:
                entries.append(TextEntry(dates[i], full, tokens))
        return entries

    def balance_tracking_holds(self, entries: Sequence[TextEntry]) -> bool:
        """Is the last token of each entry a running balance?"""
        prev: Optional[float] = None
        for entry in entries[: self.config.balance_check_entries]:
            if len(entry.tokens) < 2:
                return False
            balance = entry.tokens[-1]
            if prev is not None:
                diff = abs(balance - prev)
                others = entry.tokens[:-1]
                matched = any(abs(a - diff) < diff * self.config.relative_tolerance + self.config.absolute_tolerance for a in others)
                if not matched and diff > 0.1:
                    return False
            prev = balance
        return True

    def _track_balances(self, entries: Sequence[TextEntry], ledger: LedgerBuilder):
        prev: Optional[float] = None
        for entry in entries:
            balance = entry.tokens[-1]
            if prev is None:
                # Opening reference only
                prev = balance
                continue
            diff = balance - prev
            prev = balance
            txn_type = TransactionType.INCOME if diff >= 0 else TransactionType.EXPENSE
            magnitude = abs(diff)
            others = entry.tokens[:-1]
            tol = magnitude * self.config.relative_tolerance + self.config.absolute_tolerance
            match = next((a for a in others if abs(a - magnitude) < tol), None)
            if match is not None:
                amount = match
            elif others:
                amount = others[0]
            else:
                amount = magnitude
            if amount < 0.01:
                continue
            ledger.add(entry.date, clean_description(entry.text), amount, txn_type, balance, entry.text)

    def _keyword_typing(self, entries: Sequence[TextEntry], ledger: LedgerBuilder):
        for entry in entries:
            has_credit = CREDIT_WORDS_RE.search(entry.text) is not None
            has_debit = DEBIT_WORDS_RE.search(entry.text) is not None
            txn_type = TransactionType.INCOME if has_credit and not has_debit else TransactionType.EXPENSE
            amount = entry.tokens[0]
            if amount < 0.01:
                continue
            balance = entry.tokens[-1] if len(entry.tokens) >= 2 else None
            ledger.add(entry.date, clean_description(entry.text), amount, txn_type, balance, entry.text)

    def text_strategy(self, lines: Sequence[Line], order: DateOrder = DateOrder.DMY) -> List[Transaction]:
        entries = self.collect_entries(lines, order)

        if len(entries) >= self.config.min_transactions and self.balance_tracking_holds(entries):
            ledger = LedgerBuilder(self.config)
            self._track_balances(entries, ledger)
            if ledger.transactions:
                logger.info(f"Text strategy (balance tracking): {len(ledger.transactions)} transactions")
                return ledger.transactions

        ledger = LedgerBuilder(self.config)
        self._keyword_typing(entries, ledger)
        logger.info(f"Text strategy (keywords): {len(ledger.transactions)} transactions")
        return ledger.transactions

    def extract_lines(self, lines: Sequence[Line], order: DateOrder = DateOrder.DMY) -> List[Transaction]:
        """Column strategy first; fall back to text heuristics when it finds little."""
        transactions = self.column_strategy(lines, order)
        if len(transactions) < self.config.min_transactions:
            fallback = self.text_strategy(lines, order)
            if len(fallback) > len(transactions):
                transactions = fallback
        return transactions

    # ------------------------------------------------------------------
    # Tabular rows
    # ------------------------------------------------------------------
    def extract_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        mapping: ColumnMapping,
        order: DateOrder = DateOrder.DMY,
    ) -> List[Transaction]:
        roles = {role for role in (Role.DEBIT, Role.CREDIT, Role.AMOUNT, Role.TYPE, Role.BALANCE)
                 if getattr(mapping, role.value) is not None}
        ledger = LedgerBuilder(self.config)
        skipped = 0

        for row in rows:
            day = coerce_date(row.get(mapping.date), order)
            if day is None:
                skipped += 1
                continue

            cand = CandidateTransaction(date=day)
            if mapping.debit is not None:
                cand.debit = _abs_or_none(clean_amount(row.get(mapping.debit)))
            if mapping.credit is not None:
                cand.credit = _abs_or_none(clean_amount(row.get(mapping.credit)))
            if mapping.amount is not None:
                cand.amount = clean_amount(row.get(mapping.amount))
            if mapping.type is not None:
                cand.type_indicator = cell_text(row.get(mapping.type))
            if mapping.balance is not None:
                cand.balance = clean_amount(row.get(mapping.balance))

            resolved = self.resolve_amount(cand, roles)
            if resolved is None:
                skipped += 1
                continue
            amount, txn_type = resolved
            desc_parts = [cell_text(row.get(col)) for col in mapping.descriptions]
            description = DESCRIPTION_SEPARATOR.join(p for p in desc_parts if p) or DEFAULT_DESCRIPTION
            ledger.add(day, description, amount, txn_type, cand.balance, row_json(row))

        logger.info(f"Tabular rows: {len(ledger.transactions)} transactions, {skipped} rows skipped")
        return ledger.transactions


def _abs_or_none(value: Optional[float]) -> Optional[float]:
    return None if value is None else abs(value)


def cell_text(value) -> str:
    """Trimmed text of a cell; blanks and NaN become ""."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def row_json(row: Mapping[str, Any]) -> str:
    data: Dict[str, Any] = {str(k): cell_text(v) for k, v in row.items()}
    return json.dumps(data, ensure_ascii=False)
