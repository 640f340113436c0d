from .unit import CompilationUnit, ParsedModule, DEFAULT_SOURCE_ROOTS
from .symbols import SymbolTable, SymbolTableBuilder, DEFAULT_INITIALIZERS
from .resolver import TypeResolver
from .extractor import AttributeExtractor, parse_pragma
from .scanner import MutationSiteScanner
from .subject import PythonAnalysisSubject

__all__ = [
    "CompilationUnit",
    "ParsedModule",
    "DEFAULT_SOURCE_ROOTS",
    "SymbolTable",
    "SymbolTableBuilder",
    "DEFAULT_INITIALIZERS",
    "TypeResolver",
    "AttributeExtractor",
    "parse_pragma",
    "MutationSiteScanner",
    "PythonAnalysisSubject",
]
