import unittest

from statementledger.amounts import clean_amount, is_numeric_fragment


class CleanAmountTest(unittest.TestCase):
  def test_separators(self):
    self.assertEqual(clean_amount('1,234.56'), 1234.56)
    self.assertEqual(clean_amount('1.234,56'), 1234.56)
    self.assertEqual(clean_amount('1 234,56'), 1234.56)
    self.assertEqual(clean_amount('1.234.567,89'), 1234567.89)
    self.assertEqual(clean_amount('1,234,567'), 1234567.0)
    self.assertEqual(clean_amount('5,5'), 5.5)

  def test_negatives(self):
    self.assertEqual(clean_amount('(1,234.56)'), -1234.56)
    self.assertEqual(clean_amount('-500'), -500.0)

  def test_currency_noise(self):
    self.assertEqual(clean_amount('₹ 2,500.00'), 2500.0)
    self.assertEqual(clean_amount('INR 299.00'), 299.0)
    self.assertEqual(clean_amount("CHF 1'250.50"), 1250.5)

  def test_word_prefix_with_dot(self):
    self.assertEqual(clean_amount('Rs.500'), 500.0)
    self.assertEqual(clean_amount('Rs. 1,250.00'), 1250.0)
    self.assertEqual(clean_amount('Cr. 500'), 500.0)
    self.assertEqual(clean_amount('Dr. 1,000'), 1000.0)
    self.assertEqual(clean_amount('500.00 Cr.'), 500.0)

  def test_blank_and_zero(self):
    for raw in [None, '', '-', '--', 'abc', '0.00', 0, float('nan'), True]:
      with self.subTest(raw=raw):
        self.assertIsNone(clean_amount(raw))

  def test_numbers_pass_through(self):
    self.assertEqual(clean_amount(12.5), 12.5)
    self.assertEqual(clean_amount(-3), -3.0)


class NumericFragmentTest(unittest.TestCase):
  def test_numeric(self):
    self.assertTrue(is_numeric_fragment('50,000.00'))
    self.assertTrue(is_numeric_fragment('₹1,200'))
    self.assertTrue(is_numeric_fragment('(12.00)'))

  def test_not_numeric(self):
    self.assertFalse(is_numeric_fragment('Salary'))
    self.assertFalse(is_numeric_fragment('01/01/2024'))
    self.assertFalse(is_numeric_fragment(''))
    self.assertFalse(is_numeric_fragment('--'))


if __name__ == '__main__':
  unittest.main()
