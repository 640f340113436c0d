from .bus import SpyBus
from .workspace import WorkspaceFactory
from .analysis import analyze_sources, violation_summary

__all__ = ["SpyBus", "WorkspaceFactory", "analyze_sources", "violation_summary"]
