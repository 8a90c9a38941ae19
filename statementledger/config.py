"""Tunables for the extraction pipeline and logging setup for entry points."""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

ENV_PREFIX = "STATEMENTLEDGER_"
LOG_FORMAT = "%(levelname)s | %(message)s"


@dataclass(frozen=True)
class ExtractionConfig:
  """Geometry and heuristic constants shared by every stage.

  Instances are immutable so a single config can be handed to any number of
  concurrent conversions.
  """

  # Layout reconstruction
  line_tolerance: float = 3.0

  # Column-position strategy
  header_scan_lines: int = 60
  char_width: float = 6.0
  column_margin: float = 40.0
  in_range_discount: float = 0.5
  max_column_distance: float = 100.0

  # Strategy selection / text heuristics
  min_transactions: int = 3
  context_lines: int = 4
  balance_check_entries: int = 10

  # Balance validation
  balance_coverage: float = 0.5
  relative_tolerance: float = 0.01
  absolute_tolerance: float = 0.02

  # Output shaping
  original_text_limit: int = 200
  dedup_description_length: int = 30

  # Tabular sampling
  currency_sample_rows: int = 20
  date_order_sample_rows: int = 30

  @classmethod
  def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExtractionConfig":
    """Build a config, overriding defaults with STATEMENTLEDGER_<FIELD> values."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for f in fields(cls):
      raw = environ.get(ENV_PREFIX + f.name.upper())
      if raw is None or raw.strip() == "":
        continue
      caster = int if f.type in (int, "int") else float
      try:
        overrides[f.name] = caster(raw)
      except ValueError:
        logging.getLogger(__name__).warning(
          f"Ignoring invalid value {raw!r} for {ENV_PREFIX + f.name.upper()}")
    return replace(cls(), **overrides)


DEFAULT_CONFIG = ExtractionConfig()


def configure_logging(level: Optional[str] = None):
  """Configure root logging for the CLI and the web app."""
  level = level or os.environ.get(ENV_PREFIX + "LOG_LEVEL", "INFO")
  logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
