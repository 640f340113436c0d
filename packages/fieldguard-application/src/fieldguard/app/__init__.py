from .core import FieldGuardApp
from .discovery import discover_files

__all__ = ["FieldGuardApp", "discover_files"]
