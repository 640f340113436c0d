from typing import Protocol

from fieldguard.analysis.schema import AnalysisResult


class CheckReporterProtocol(Protocol):
    def report(self, result: AnalysisResult) -> bool:
        """Presents the result; returns True when the run succeeded."""
        ...
