from .violation import Violation, ViolationLevel
from .results import AnalysisResult

__all__ = ["Violation", "ViolationLevel", "AnalysisResult"]
