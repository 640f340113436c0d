import logging
from typing import List

from fieldguard.analysis.protocols import AnalysisSubject
from fieldguard.analysis.registry import WhitelistRegistry
from fieldguard.analysis.schema import AnalysisResult, ViolationLevel
from fieldguard.analysis.rules.catalog import FIELDS_MUTATED_BY_WHITELIST
from fieldguard.analysis.rules.protocols import AnalysisRule
from fieldguard.analysis.rules.whitelist import FieldsMutatedByWhitelistRule

log = logging.getLogger(__name__)


class WhitelistEngine:
    """
    Orchestrates one analysis run over a compilation unit.

    Phases are strictly sequential: collect every whitelist, freeze the
    registry, scan every function body, then hand the sites to the rules.
    """

    def __init__(self, rules: List[AnalysisRule]):
        self._rules = rules

    @property
    def rules(self) -> List[AnalysisRule]:
        return list(self._rules)

    def analyze(self, subject: AnalysisSubject) -> AnalysisResult:
        # 1. Collection phase
        registry = WhitelistRegistry()
        marked = subject.collect_whitelists(registry)
        registry.freeze()
        log.debug(f"Collected {len(registry)} whitelisted fields from {marked} markers")

        # 2. Scan phase
        sites = subject.scan_mutation_sites()

        # 3. Report phase
        all_violations = []
        for rule in self._rules:
            all_violations.extend(rule.check(sites, registry))
        all_violations.sort(key=lambda v: (v.site.sort_key, v.rule_id))

        return AnalysisResult(
            violations=all_violations,
            parse_errors=list(subject.parse_errors),
            file_count=subject.file_count,
            whitelisted_field_count=len(registry),
            site_count=len(sites),
            skipped_site_count=subject.skipped_site_count,
        )


def create_whitelist_engine(
    enabled: List[str],
    deny: bool = False,
    check_initializers: bool = False,
) -> WhitelistEngine:
    """
    Factory function to create a WhitelistEngine from the enabled rule ids.
    """
    level = ViolationLevel.ERROR if deny else ViolationLevel.WARNING

    rules: List[AnalysisRule] = []
    if FIELDS_MUTATED_BY_WHITELIST.id in enabled:
        rules.append(
            FieldsMutatedByWhitelistRule(
                level=level, exempt_initializers=not check_initializers
            )
        )
    return WhitelistEngine(rules=rules)
