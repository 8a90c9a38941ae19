import dataclasses
import unittest

from statementledger.columns import DEFAULT_CATALOG, KeywordCatalog, classify_header, map_columns, normalize_header
from statementledger.models import Role


class ClassifyHeaderTest(unittest.TestCase):
  def test_english_headers(self):
    cases = {
      'Date': Role.DATE,
      'Txn Date': Role.DATE,
      'Value Date': Role.DATE,
      'Narration': Role.DESCRIPTION,
      'Description': Role.DESCRIPTION,
      'Withdrawal Amt.': Role.DEBIT,
      'Debit(Dr)': Role.DEBIT,
      'Deposit Amt.': Role.CREDIT,
      'Closing Balance': Role.BALANCE,
      'Amount (INR)': Role.AMOUNT,
      'Transaction Amount': Role.AMOUNT,
      'Cr/Dr': Role.TYPE,
    }
    for header, role in cases.items():
      with self.subTest(header=header):
        self.assertIs(classify_header(header), role)

  def test_other_languages(self):
    cases = {
      'Buchungsdatum': Role.DATE,
      'Verwendungszweck': Role.DESCRIPTION,
      'Soll': Role.DEBIT,
      'Haben': Role.CREDIT,
      'Saldo': Role.BALANCE,
      'Débit': Role.DEBIT,
      'Montant': Role.AMOUNT,
      'Fecha': Role.DATE,
      'Keterangan': Role.DESCRIPTION,
    }
    for header, role in cases.items():
      with self.subTest(header=header):
        self.assertIs(classify_header(header), role)

  def test_keyword_must_start_a_word(self):
    # "cr" hides inside "description"
    self.assertIs(classify_header('Description'), Role.DESCRIPTION)
    self.assertIsNone(classify_header('Chq No'))

  def test_short_or_empty(self):
    self.assertIsNone(classify_header('X'))
    self.assertIsNone(classify_header(''))
    self.assertIsNone(classify_header(None))

  def test_normalize(self):
    self.assertEqual(normalize_header('  Debit  (₹) '), 'debit ()')
    self.assertEqual(normalize_header('Cr/Dr'), 'cr/dr')


class MapColumnsTest(unittest.TestCase):
  def test_debit_credit_layout(self):
    mapping = map_columns(['Date', 'Narration', 'Debit', 'Credit', 'Balance'])
    self.assertEqual(mapping.date, 'Date')
    self.assertEqual(mapping.descriptions, ['Narration'])
    self.assertEqual(mapping.debit, 'Debit')
    self.assertEqual(mapping.credit, 'Credit')
    self.assertEqual(mapping.balance, 'Balance')
    self.assertIsNone(mapping.amount)
    self.assertTrue(mapping.usable)

  def test_description_collects_all(self):
    mapping = map_columns(['Date', 'Description', 'Reference', 'Amount'])
    self.assertEqual(mapping.descriptions, ['Description', 'Reference'])

  def test_first_header_per_role_wins(self):
    mapping = map_columns(['Date', 'Value Date', 'Amount'])
    self.assertEqual(mapping.date, 'Date')

  def test_description_fallback(self):
    mapping = map_columns(['Date', 'Info', 'Amount'])
    self.assertEqual(mapping.descriptions, ['Info'])

  def test_not_usable(self):
    self.assertFalse(map_columns(['Description', 'Amount']).usable)
    self.assertFalse(map_columns(['Date', 'Description']).usable)


class KeywordCatalogTest(unittest.TestCase):
  def test_custom_catalog(self):
    catalog = KeywordCatalog(amount=('umsatz',))
    self.assertIs(classify_header('Umsatz', catalog), Role.AMOUNT)
    self.assertIsNone(classify_header('Umsatz'))

  def test_catalog_is_immutable(self):
    with self.assertRaises(dataclasses.FrozenInstanceError):
      DEFAULT_CATALOG.date = ()


if __name__ == '__main__':
  unittest.main()
