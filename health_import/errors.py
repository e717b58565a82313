"""
Error taxonomy for surveying exports and importing synthetic samples.
"""


class HealthImportError(Exception):
    """Base class for all errors raised by health_import"""


class InputError(HealthImportError):
    """Export source is missing, unreadable or empty"""


class ParseError(HealthImportError):
    """Export XML could not be parsed; no partial survey is returned"""


class UnsupportedTypeError(HealthImportError):
    """Record type is not in the importable allow-list"""

    def __init__(self, type_id: str, reason: str = "is not supported for writing"):
        self.type_id = type_id
        super().__init__(f"The selected data type {type_id} {reason}")


class SinkError(HealthImportError):
    """Sink failed to persist a sample batch"""


class SessionStateError(HealthImportError):
    """Import session operation called in the wrong state"""
