"""Exceptions surfaced to callers of the converter."""


class StatementError(Exception):
  """Base class for every fatal, per-document failure."""


class UnsupportedFormatError(StatementError):
  """The document format could not be determined or is not handled."""


class UnreadableDocumentError(StatementError):
  """The document bytes are corrupt, encrypted or carry no data rows."""


class ColumnMappingError(StatementError):
  """No header row with a date column and a money column was found."""

  def __init__(self, message: str, headers=None):
    super().__init__(message)
    self.headers = list(headers or [])
