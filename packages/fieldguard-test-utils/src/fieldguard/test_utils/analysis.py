from textwrap import dedent
from typing import Dict, Tuple

# Helpers to run the analysis over in-memory sources.


def analyze_sources(
    sources: Dict[str, str],
    deny: bool = False,
    check_initializers: bool = False,
    jobs: int = 1,
):
    from fieldguard.adapter.python import CompilationUnit, PythonAnalysisSubject
    from fieldguard.analysis.engines.whitelist import create_whitelist_engine
    from fieldguard.analysis.rules.catalog import FIELDS_MUTATED_BY_WHITELIST

    unit = CompilationUnit.from_sources(
        {path: dedent(source) for path, source in sources.items()}
    )
    engine = create_whitelist_engine(
        [FIELDS_MUTATED_BY_WHITELIST.id],
        deny=deny,
        check_initializers=check_initializers,
    )
    return engine.analyze(PythonAnalysisSubject(unit, jobs=jobs))


def violation_summary(result) -> Tuple[Tuple[str, str, int], ...]:
    """(field key, function, line) per violation, in report order."""
    return tuple(
        (str(v.field_key), v.function, v.span.lineno) for v in result.violations
    )
