import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

import libcst as cst

from fieldguard.spec import SourceParseError
from .utils import logical_module_name, package_of

log = logging.getLogger(__name__)

DEFAULT_SOURCE_ROOTS = ("src", ".")


@dataclass
class ParsedModule:
    """
    One source file of the compilation unit, parsed once and shared by every
    phase of the analysis.
    """

    rel_path: str
    module_fqn: str
    package: str
    wrapper: cst.MetadataWrapper

    @classmethod
    def from_source(
        cls,
        source: str,
        rel_path: str = "module.py",
        source_roots: Sequence[str] = DEFAULT_SOURCE_ROOTS,
    ) -> "ParsedModule":
        """
        Raises libcst.ParserSyntaxError when the source is not valid Python.
        """
        module_fqn = logical_module_name(rel_path, source_roots)
        return cls(
            rel_path=rel_path,
            module_fqn=module_fqn,
            package=package_of(module_fqn, rel_path.endswith("__init__.py")),
            wrapper=cst.MetadataWrapper(cst.parse_module(source)),
        )


@dataclass
class CompilationUnit:
    """
    The set of modules analyzed together in one run, in a deterministic
    (sorted by relative path) order.
    """

    modules: List[ParsedModule] = field(default_factory=list)
    errors: List[SourceParseError] = field(default_factory=list)

    def _add_source(
        self, source: str, rel_path: str, source_roots: Sequence[str]
    ) -> None:
        try:
            self.modules.append(
                ParsedModule.from_source(source, rel_path, source_roots)
            )
        except cst.ParserSyntaxError as e:
            log.debug(f"Failed to parse {rel_path}: {e}")
            self.errors.append(SourceParseError(rel_path, e.message, e.raw_line))

    @classmethod
    def from_sources(
        cls,
        sources: Dict[str, str],
        source_roots: Sequence[str] = DEFAULT_SOURCE_ROOTS,
    ) -> "CompilationUnit":
        unit = cls()
        for rel_path in sorted(sources):
            unit._add_source(sources[rel_path], rel_path, source_roots)
        return unit

    @classmethod
    def from_files(
        cls,
        root_path: Path,
        files: Iterable[Path],
        source_roots: Sequence[str] = DEFAULT_SOURCE_ROOTS,
    ) -> "CompilationUnit":
        unit = cls()
        by_rel_path: Dict[str, Path] = {}
        for file_path in files:
            try:
                rel_path = file_path.relative_to(root_path).as_posix()
            except ValueError:
                rel_path = file_path.as_posix()
            by_rel_path[rel_path] = file_path

        for rel_path in sorted(by_rel_path):
            try:
                source = by_rel_path[rel_path].read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                log.debug(f"Failed to read {rel_path}: {e}")
                unit.errors.append(SourceParseError(rel_path, str(e)))
                continue
            unit._add_source(source, rel_path, source_roots)
        return unit
