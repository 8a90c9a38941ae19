import unittest
from datetime import date

from statementledger.balance import validate_with_balance
from statementledger.models import Transaction, TransactionType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


def txn(i, amount, txn_type, balance=None):
  return Transaction(id=str(i), date=date(2024, 1, i + 1), description=f'txn {i}', amount=amount,
                     type=txn_type, balance=balance)


class ValidateWithBalanceTest(unittest.TestCase):
  def test_flips_type_against_balance(self):
    txns = [txn(0, 100.0, INCOME, 100.0), txn(1, 50.0, INCOME, 150.0), txn(2, 30.0, INCOME, 120.0)]
    result = validate_with_balance(txns)
    self.assertEqual(result[:2], txns[:2])
    self.assertIs(result[2].type, EXPENSE)
    self.assertEqual(result[2].amount, -30.0)

  def test_input_not_mutated(self):
    txns = [txn(0, 100.0, INCOME, 100.0), txn(1, 50.0, INCOME, 150.0), txn(2, 30.0, INCOME, 120.0)]
    validate_with_balance(txns)
    self.assertIs(txns[2].type, INCOME)

  def test_resizes_amount_to_delta(self):
    txns = [txn(0, 1000.0, INCOME, 1000.0), txn(1, -10.0, EXPENSE, 900.0)]
    result = validate_with_balance(txns)
    self.assertEqual(result[1].amount, -100.0)
    self.assertIs(result[1].type, EXPENSE)

  def test_within_tolerance_untouched(self):
    txns = [txn(0, 1000.0, INCOME, 1000.0), txn(1, -100.01, EXPENSE, 900.0)]
    self.assertEqual(validate_with_balance(txns)[1].amount, -100.01)

  def test_needs_balance_coverage(self):
    txns = [txn(0, 100.0, INCOME, 100.0), txn(1, 50.0, INCOME), txn(2, 30.0, INCOME)]
    self.assertEqual(validate_with_balance(txns), txns)

  def test_skips_pairs_without_balance_or_change(self):
    txns = [txn(0, 100.0, INCOME, 100.0), txn(1, 5.0, INCOME), txn(2, 5.0, INCOME, 100.0),
            txn(3, 5.0, INCOME, 100.0)]
    self.assertEqual(validate_with_balance(txns), txns)

  def test_empty(self):
    self.assertEqual(validate_with_balance([]), [])


if __name__ == '__main__':
  unittest.main()
