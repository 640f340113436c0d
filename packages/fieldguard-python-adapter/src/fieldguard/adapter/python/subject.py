import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from fieldguard.spec import (
    MARKER_NAME,
    MutationSite,
    SourceParseError,
    WhitelistRegistryProtocol,
)
from .extractor import AttributeExtractor
from .scanner import MutationSiteScanner
from .symbols import DEFAULT_INITIALIZERS, SymbolTable, SymbolTableBuilder
from .unit import CompilationUnit, ParsedModule

log = logging.getLogger(__name__)


class PythonAnalysisSubject:
    """
    Adapts a CompilationUnit of Python modules to the AnalysisSubject
    protocol consumed by the whitelist engine.
    """

    def __init__(
        self,
        unit: CompilationUnit,
        marker: str = MARKER_NAME,
        initializers: Tuple[str, ...] = DEFAULT_INITIALIZERS,
        jobs: int = 1,
    ):
        self.unit = unit
        self.marker = marker
        self.initializers = tuple(initializers)
        self.jobs = max(1, jobs)
        self._symbols: Optional[SymbolTable] = None
        self._skipped = 0

    @property
    def file_count(self) -> int:
        return len(self.unit.modules)

    @property
    def parse_errors(self) -> List[SourceParseError]:
        return self.unit.errors

    @property
    def skipped_site_count(self) -> int:
        return self._skipped

    @property
    def symbols(self) -> SymbolTable:
        if self._symbols is None:
            self._symbols = SymbolTable()
            for module in self.unit.modules:
                SymbolTableBuilder(
                    module, self._symbols, self.initializers, self.marker
                ).build()
        return self._symbols

    def collect_whitelists(self, registry: WhitelistRegistryProtocol) -> int:
        symbols = self.symbols
        log.debug(f"Symbol table holds {len(symbols)} classes")

        marked = 0
        for module in self.unit.modules:
            marked += AttributeExtractor(module, self.marker).extract(registry)
        return marked

    def _scan_module(self, module: ParsedModule) -> Tuple[List[MutationSite], int]:
        scanner = MutationSiteScanner(module, self.symbols, self.initializers)
        sites = scanner.scan()
        return sites, scanner.skipped_count

    def scan_mutation_sites(self) -> List[MutationSite]:
        symbols = self.symbols
        modules = self.unit.modules

        if self.jobs > 1 and len(modules) > 1:
            log.debug(f"Scanning {len(modules)} modules with {self.jobs} workers")
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                results = list(executor.map(self._scan_module, modules))
        else:
            results = [self._scan_module(module) for module in modules]

        self._skipped = sum(skipped for _, skipped in results)
        all_sites: List[MutationSite] = []
        for sites, _ in results:
            all_sites.extend(sites)
        all_sites.sort(key=lambda s: s.sort_key)
        log.debug(
            f"Found {len(all_sites)} mutation sites in {len(symbols)} classes, "
            f"{self._skipped} skipped"
        )
        return all_sites
