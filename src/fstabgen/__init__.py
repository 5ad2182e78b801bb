from .exceptions import DuplicateUnitError, EntryError, MalformedPriority, UnitWriteError, ValidationError
from .fstab_generator import FstabGenerator

__all__ = ["FstabGenerator", "EntryError", "MalformedPriority", "DuplicateUnitError", "UnitWriteError", "ValidationError"]
