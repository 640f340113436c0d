import logging
from dataclasses import dataclass
from typing import Iterable, List

from fieldguard.spec import MutationSite, WhitelistLookupProtocol
from fieldguard.analysis.schema import Violation, ViolationLevel
from fieldguard.analysis.rules.catalog import FIELDS_MUTATED_BY_WHITELIST
from fieldguard.analysis.rules.protocols import AnalysisRule

log = logging.getLogger(__name__)


@dataclass
class FieldsMutatedByWhitelistRule(AnalysisRule):
    """
    Joins mutation sites against the frozen whitelist registry.

    One Violation is produced per site whose field has a whitelist that does
    not contain the site's enclosing function. Fields without a whitelist are
    unrestricted.
    """

    id: str = FIELDS_MUTATED_BY_WHITELIST.id
    level: ViolationLevel = ViolationLevel.WARNING
    # Assignments to `self` inside construction methods build the object
    # rather than mutate it.
    exempt_initializers: bool = True

    def check(
        self, sites: Iterable[MutationSite], registry: WhitelistLookupProtocol
    ) -> List[Violation]:
        violations: List[Violation] = []
        for site in sites:
            permitted = registry.lookup(site.field_key)
            if permitted is None:
                continue
            if site.function in permitted:
                continue
            if site.in_initializer and self.exempt_initializers:
                log.debug(f"Initializer site exempt: {site.field_key} in {site.function}")
                continue

            violations.append(
                Violation(
                    rule_id=self.id,
                    level=self.level,
                    category=FIELDS_MUTATED_BY_WHITELIST.category,
                    site=site,
                    permitted=tuple(sorted(permitted)),
                )
            )
        return violations
