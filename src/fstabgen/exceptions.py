class ValidationError(Exception):
    pass


class EntryError(Exception):
    """Raised when a single table entry cannot be turned into units.
    The run continues with the next entry, but the exit status becomes a failure."""

    pass


class MalformedPriority(EntryError):
    pass


class DuplicateUnitError(EntryError):
    pass


class UnitWriteError(EntryError):
    pass
