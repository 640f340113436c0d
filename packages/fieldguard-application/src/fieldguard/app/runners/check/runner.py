import logging
from pathlib import Path
from typing import List

from fieldguard.adapter.python import CompilationUnit, PythonAnalysisSubject
from fieldguard.analysis.engines.whitelist import create_whitelist_engine
from fieldguard.analysis.schema import AnalysisResult
from fieldguard.config import FieldGuardConfig

log = logging.getLogger(__name__)


class CheckRunner:
    def __init__(self, root_path: Path, config: FieldGuardConfig, enabled: List[str]):
        self.root_path = root_path
        self.config = config
        self.engine = create_whitelist_engine(
            enabled,
            deny=config.deny,
            check_initializers=config.check_initializers,
        )

    def run(self, files: List[Path]) -> AnalysisResult:
        unit = CompilationUnit.from_files(
            self.root_path.resolve(), files, self.config.source_roots
        )
        subject = PythonAnalysisSubject(
            unit,
            marker=self.config.marker,
            initializers=tuple(self.config.initializers),
            jobs=self.config.jobs,
        )
        result = self.engine.analyze(subject)
        log.debug(
            f"Analyzed {result.file_count} files: {len(result.violations)} violations"
        )
        return result
