# -*- coding: utf-8 -*-
"""balance.py
Running-balance cross-check.

Consecutive balances are the most trustworthy signal on a statement: if the
balance went up the transaction was income, if it went down it was an
expense, and the size of the move is the size of the transaction.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from .config import DEFAULT_CONFIG, ExtractionConfig
from .models import Transaction, TransactionType

logger = logging.getLogger(__name__)


def validate_with_balance(
    transactions: Sequence[Transaction], config: ExtractionConfig = DEFAULT_CONFIG
) -> List[Transaction]:
    """Return a corrected copy of *transactions*; the input is not touched."""
    result = list(transactions)
    if not result:
        return result

    with_balance = sum(1 for t in result if t.balance is not None)
    if with_balance < len(result) * config.balance_coverage:
        logger.debug(f"Balance check skipped: {with_balance}/{len(result)} rows carry a balance")
        return result

    flipped = 0
    resized = 0
    for i in range(1, len(result)):
        prev, curr = result[i - 1], result[i]
        if prev.balance is None or curr.balance is None:
            continue

        delta = curr.balance - prev.balance
        if abs(delta) < 0.01:
            continue

        expected = TransactionType.INCOME if delta >= 0 else TransactionType.EXPENSE
        if curr.type is not expected:
            curr = replace(curr, type=expected, amount=abs(curr.amount) * expected.sign)
            flipped += 1

        magnitude = abs(delta)
        if abs(abs(curr.amount) - magnitude) > magnitude * config.relative_tolerance + config.absolute_tolerance:
            curr = replace(curr, amount=magnitude * curr.type.sign)
            resized += 1

        result[i] = curr

    if flipped or resized:
        logger.info(f"Balance check corrected {flipped} type(s) and {resized} amount(s)")
    return result
