import logging
import os

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from statementledger import __version__
from statementledger.config import ExtractionConfig, configure_logging
from statementledger.converter import StatementConverter
from statementledger.errors import StatementError
from statementledger.models import DocumentFormat

configure_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 100 * 1024 * 1024  # 100MB max file size
app.config['PDF_BACKEND'] = os.environ.get('STATEMENTLEDGER_PDF_BACKEND', 'pdfplumber')


def get_converter():
  return StatementConverter(config=ExtractionConfig.from_env(), pdf_backend=app.config['PDF_BACKEND'])


@app.route('/')
def index():
  return jsonify({
    'service': 'statementledger',
    'version': __version__,
    'formats': [f.value for f in DocumentFormat],
    'endpoints': {'parse': 'POST /parse (multipart field "file", optional "format")'},
  })


@app.route('/parse', methods=['POST'])
def parse():
  if 'file' not in request.files:
    return jsonify({'success': False, 'error': 'No file uploaded'}), 400

  upload = request.files['file']
  if not upload or upload.filename == '':
    return jsonify({'success': False, 'error': 'No file selected'}), 400

  filename = secure_filename(upload.filename) or 'statement'
  fmt = request.form.get('format') or None
  include_raw_text = request.form.get('raw_text', '').lower() in ('1', 'true', 'yes')

  try:
    result = get_converter().convert(upload.read(), filename, fmt)
  except StatementError as e:
    logger.warning(f"Could not parse {filename}: {e}")
    return jsonify({'success': False, 'error': str(e)}), 400

  return jsonify({'success': True, 'result': result.to_dict(include_raw_text=include_raw_text)})


@app.errorhandler(RequestEntityTooLarge)
def too_large(e):
  limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
  return jsonify({'success': False, 'error': f'File too large (max {limit_mb}MB)'}), 413


if __name__ == '__main__':
  app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
