from pathlib import Path
from typing import List, Optional

from fieldguard.common import bus
from fieldguard.config import FieldGuardConfig, load_config_from_path
from fieldguard.analysis.rules import enabled_rule_ids
from fieldguard.analysis.schema import AnalysisResult

from .discovery import discover_files
from .runners.check import CheckReporter, CheckRunner
from .runners.check.protocols import CheckReporterProtocol


class FieldGuardApp:
    def __init__(
        self,
        root_path: Path,
        reporter: Optional[CheckReporterProtocol] = None,
    ):
        self.root_path = root_path
        self.reporter = reporter or CheckReporter()

    def load_config(self, **overrides) -> FieldGuardConfig:
        """
        Raises ConfigError when the project configuration or the overrides
        are invalid.
        """
        return load_config_from_path(self.root_path).merge(**overrides)

    def analyze(
        self, config: FieldGuardConfig, paths: Optional[List[str]] = None
    ) -> AnalysisResult:
        files = discover_files(self.root_path, paths or config.scan_paths, config.exclude)
        enabled = enabled_rule_ids(config.enable)
        if not files:
            bus.warning("check.run.no_files", paths=", ".join(paths or config.scan_paths))
        elif not enabled:
            bus.warning("check.run.no_rules")
        else:
            bus.info("check.run.start", count=len(files), rules=", ".join(enabled))

        return CheckRunner(self.root_path, config, enabled).run(files)

    def run_check(self, paths: Optional[List[str]] = None, **overrides) -> bool:
        """
        Loads the configuration, analyzes the project and reports the result.
        Returns True when no error-level violation was found.
        """
        config = self.load_config(**overrides)
        result = self.analyze(config, paths)
        return self.reporter.report(result)
