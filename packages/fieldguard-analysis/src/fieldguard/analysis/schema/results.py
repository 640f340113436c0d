from dataclasses import dataclass, field
from typing import List

from fieldguard.spec import SourceParseError
from .violation import Violation, ViolationLevel


@dataclass
class AnalysisResult:
    """
    Aggregates everything one analysis run over a compilation unit produced.
    """

    violations: List[Violation] = field(default_factory=list)
    parse_errors: List[SourceParseError] = field(default_factory=list)
    file_count: int = 0
    whitelisted_field_count: int = 0
    site_count: int = 0
    # Sites whose owner type could not be statically determined.
    skipped_site_count: int = 0

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.level == ViolationLevel.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.level == ViolationLevel.WARNING)

    @property
    def is_clean(self) -> bool:
        return not self.violations and not self.parse_errors

    @property
    def is_success(self) -> bool:
        # Warnings do not fail a run; errors and unreadable files do.
        return self.error_count == 0 and not self.parse_errors
