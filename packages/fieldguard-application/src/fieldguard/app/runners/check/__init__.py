from .runner import CheckRunner
from .reporter import CheckReporter, JsonCheckReporter

__all__ = ["CheckRunner", "CheckReporter", "JsonCheckReporter"]
