from typing import Protocol, Iterable, List

from fieldguard.spec import MutationSite, WhitelistLookupProtocol
from fieldguard.analysis.schema import Violation


class AnalysisRule(Protocol):
    id: str

    def check(
        self, sites: Iterable[MutationSite], registry: WhitelistLookupProtocol
    ) -> List[Violation]: ...
