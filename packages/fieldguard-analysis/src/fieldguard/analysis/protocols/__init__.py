from .subject import AnalysisSubject

__all__ = ["AnalysisSubject"]
