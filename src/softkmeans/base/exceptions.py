"""
Exception types raised by the soft k-means core.

Both derive from ValueError so callers that already guard parameter
validation with ``except ValueError`` keep working.
"""


class ConfigurationError(ValueError):
    """Invalid run configuration (fuzziness, threshold or distance measure)."""


class DecodeError(ValueError):
    """A persisted cluster record could not be decoded.

    Attributes:
        line_number: 1-based line of the offending record, if known
        field: Which part of the record failed ('prefix', 'id', 'center')
        record: The raw record text
    """

    def __init__(self, message: str, line_number: int = None,
                 field: str = None, record: str = None):
        super().__init__(message)
        self.line_number = line_number
        self.field = field
        self.record = record
