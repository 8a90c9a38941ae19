import io
import unittest

from app import app

CSV_STATEMENT = (
  'Date,Description,Amount,Balance\n'
  '2024-03-01,Coffee,-4.50,95.50\n'
  '2024-03-02,Lunch,-10.00,85.50\n'
  '2024-03-03,Refund,4.50,90.00\n'
).encode()


class AppTest(unittest.TestCase):
  def setUp(self):
    app.config['TESTING'] = True
    self.client = app.test_client()
    self._max_length = app.config['MAX_CONTENT_LENGTH']

  def tearDown(self):
    app.config['MAX_CONTENT_LENGTH'] = self._max_length

  def _upload(self, content, filename='statement.csv', **form):
    data = dict(form)
    data['file'] = (io.BytesIO(content), filename)
    return self.client.post('/parse', data=data, content_type='multipart/form-data')

  def test_index(self):
    resp = self.client.get('/')
    self.assertEqual(resp.status_code, 200)
    self.assertEqual(resp.get_json()['service'], 'statementledger')

  def test_parse_csv(self):
    resp = self._upload(CSV_STATEMENT)
    self.assertEqual(resp.status_code, 200)
    body = resp.get_json()
    self.assertTrue(body['success'])
    result = body['result']
    self.assertEqual(result['format'], 'csv')
    self.assertEqual(result['fileName'], 'statement.csv')
    self.assertEqual([t['amount'] for t in result['transactions']], [-4.5, -10.0, 4.5])
    self.assertNotIn('rawText', result)

  def test_forced_format(self):
    resp = self._upload(CSV_STATEMENT, filename='statement.bin', format='csv')
    self.assertEqual(resp.status_code, 200)
    self.assertEqual(len(resp.get_json()['result']['transactions']), 3)

  def test_missing_file(self):
    resp = self.client.post('/parse', data={}, content_type='multipart/form-data')
    self.assertEqual(resp.status_code, 400)
    self.assertFalse(resp.get_json()['success'])

  def test_unparseable_document(self):
    resp = self._upload(b'Name,Value\nfoo,1\n', filename='bad.csv')
    self.assertEqual(resp.status_code, 400)
    self.assertIn('date column', resp.get_json()['error'])

  def test_too_large(self):
    app.config['MAX_CONTENT_LENGTH'] = 10
    resp = self._upload(CSV_STATEMENT)
    self.assertEqual(resp.status_code, 413)
    self.assertFalse(resp.get_json()['success'])


if __name__ == '__main__':
  unittest.main()
