"""Error kinds raised by the wage engine and its storage layer.

Per-record errors are caught by the recalculation orchestrator and reported
with their ``kind``; ``ConfigNotFoundError`` and ``RecordNotFoundError`` are
systemic for the call that raised them.
"""


class EngineError(Exception):
    """Base class for expected wage engine failures"""
    kind = "EngineError"


class ParseError(EngineError):
    """Malformed time or date string"""
    kind = "ParseError"


class IncompleteShiftError(EngineError):
    """Shift has no clock-out yet"""
    kind = "IncompleteShiftError"


class PricingError(EngineError):
    """Hours or rates missing or invalid"""
    kind = "PricingError"


class StorageError(EngineError):
    """A single write could not be applied"""
    kind = "StorageError"


class ConfigNotFoundError(EngineError):
    """No wage settings for the organization and no global default"""
    kind = "ConfigNotFoundError"


class RecordNotFoundError(EngineError):
    """Timesheet entry id does not exist"""
    kind = "RecordNotFoundError"
