from typing import Protocol, List

from fieldguard.spec import MutationSite, SourceParseError, WhitelistRegistryProtocol


class AnalysisSubject(Protocol):
    """
    A protocol defining the interface for any compilation unit that can be
    analyzed by the whitelist engine.

    The engine calls `collect_whitelists` exactly once, before
    `scan_mutation_sites`.
    """

    @property
    def file_count(self) -> int:
        """Number of source files successfully loaded into the unit."""
        ...

    @property
    def parse_errors(self) -> List[SourceParseError]:
        """Files of the unit that could not be read or parsed."""
        ...

    @property
    def skipped_site_count(self) -> int:
        """
        Mutation sites dropped because their owner type could not be resolved.
        Only meaningful after `scan_mutation_sites` has run.
        """
        ...

    def collect_whitelists(self, registry: WhitelistRegistryProtocol) -> int:
        """
        Populates the registry from every field marker of the unit.
        Returns the number of marked field declarations seen.
        """
        ...

    def scan_mutation_sites(self) -> List[MutationSite]:
        """Returns every resolvable mutation site of the unit, deterministically ordered."""
        ...
