import argparse
import json
import sys

import pandas as pd

from .config import ExtractionConfig, configure_logging
from .converter import StatementConverter
from .models import DocumentFormat
from .readers import PDF_BACKENDS


def main(argv=None):
  parser = argparse.ArgumentParser(description='Convert bank statements into a normalized transaction ledger')
  parser.add_argument('files', nargs='+', help='Input statement files (PDF, CSV, XLSX, XLS)')
  parser.add_argument('--output', help='Output file (defaults to stdout)')
  parser.add_argument('--json', action='store_true', help='Write JSON instead of CSV')
  parser.add_argument('--format', choices=[f.value for f in DocumentFormat], help='Force the input format')
  parser.add_argument('--pdf-backend', choices=PDF_BACKENDS, default='pdfplumber', help='PDF text backend')
  parser.add_argument('--log-level', default=None, help='Logging level (default INFO)')
  args = parser.parse_args(argv)

  configure_logging(args.log_level)
  converter = StatementConverter(config=ExtractionConfig.from_env(), pdf_backend=args.pdf_backend)
  results = converter.convert_multiple(args.files, fmt=args.format)
  if not results:
    print('No statement could be converted', file=sys.stderr)
    return 1

  if args.json:
    payload = json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2)
    if args.output:
      with open(args.output, 'w', encoding='utf-8') as fh:
        fh.write(payload)
    else:
      print(payload)
    return 0

  frames = []
  for result in results:
    df = result.to_dataframe()
    df['source_file'] = result.file_name
    frames.append(df)
  combined = pd.concat(frames, ignore_index=True)
  if args.output:
    combined.to_csv(args.output, index=False)
  else:
    combined.to_csv(sys.stdout, index=False)
  return 0


if __name__ == '__main__':
  sys.exit(main())
