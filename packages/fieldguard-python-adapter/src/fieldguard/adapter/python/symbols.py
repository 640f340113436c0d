from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import libcst as cst
import networkx as nx

from fieldguard.spec import MARKER_NAME
from .extractor import parse_pragma
from .frames import Frame, FrameKind, ScopedVisitor
from .resolver import TypeResolver
from .unit import ParsedModule

DEFAULT_INITIALIZERS: Tuple[str, ...] = ("__init__", "__post_init__")


@dataclass
class FieldSymbol:
    name: str
    # Fully qualified type name, when it can be determined statically.
    type_fqn: Optional[str] = None
    # True when the type was guessed from a constructor call rather than an
    # annotation; such types are only trusted if they name a known class.
    inferred: bool = False
    # False when the field was only seen as a plain `self.<attr> = ...` in an
    # initializer. An explicit declaration higher in the lineage owns it.
    explicit: bool = True


@dataclass
class ClassSymbol:
    fqn: str
    name: str
    module: str
    bases: Tuple[str, ...] = ()
    fields: Dict[str, FieldSymbol] = field(default_factory=dict)


class SymbolTable:
    """
    Classes declared in the compilation unit, their inheritance graph and the
    fields they declare.

    Built during the collection phase; read-only (and safe to share between
    scan workers) afterwards.
    """

    def __init__(self):
        self._classes: Dict[str, ClassSymbol] = {}
        # Edges point from a class to each of its bases, in declaration order.
        self._graph = nx.DiGraph()

    def add_class(self, symbol: ClassSymbol) -> ClassSymbol:
        existing = self._classes.get(symbol.fqn)
        if existing is not None:
            # Conditional redefinitions (e.g. under `if TYPE_CHECKING:`) merge.
            for base in symbol.bases:
                if base not in existing.bases:
                    existing.bases = existing.bases + (base,)
                    self._graph.add_edge(existing.fqn, base)
            return existing

        self._classes[symbol.fqn] = symbol
        self._graph.add_node(symbol.fqn)
        for base in symbol.bases:
            if base != symbol.fqn:
                self._graph.add_edge(symbol.fqn, base)
        return symbol

    def declare_field(
        self,
        class_fqn: str,
        name: str,
        type_fqn: Optional[str] = None,
        inferred: bool = False,
        explicit: bool = True,
    ) -> None:
        symbol = self._classes.get(class_fqn)
        if symbol is None:
            return
        existing = symbol.fields.get(name)
        if existing is None:
            symbol.fields[name] = FieldSymbol(name, type_fqn, inferred, explicit)
            return
        existing.explicit = existing.explicit or explicit
        if type_fqn is not None:
            # Annotations win over inferred types; otherwise the first one wins.
            if existing.type_fqn is None or (existing.inferred and not inferred):
                existing.type_fqn = type_fqn
                existing.inferred = inferred

    def has_class(self, fqn: Optional[str]) -> bool:
        return fqn is not None and fqn in self._classes

    def get(self, fqn: str) -> Optional[ClassSymbol]:
        return self._classes.get(fqn)

    def lineage(self, class_fqn: str) -> List[str]:
        """
        The class followed by its ancestors, depth-first in base declaration
        order. Bases outside the unit are included but have no symbols.
        """
        if class_fqn not in self._graph:
            return [class_fqn]
        return list(nx.dfs_preorder_nodes(self._graph, source=class_fqn))

    def _declaring_class(self, class_fqn: str, field_name: str) -> Optional[ClassSymbol]:
        declared = [
            symbol
            for symbol in map(self._classes.get, self.lineage(class_fqn))
            if symbol is not None and field_name in symbol.fields
        ]
        for symbol in declared:
            if symbol.fields[field_name].explicit:
                return symbol
        return declared[0] if declared else None

    def owner_of(self, class_fqn: str, field_name: str) -> str:
        """
        The class that declares `field_name` as seen from `class_fqn`; the
        class itself when no class in its lineage declares it.

        Explicit declarations (class body, annotations, markers) take
        precedence over plain initializer assignments, so a subclass
        `__init__` that sets an inherited field does not take it over.
        """
        symbol = self._declaring_class(class_fqn, field_name)
        return symbol.fqn if symbol is not None else class_fqn

    def field_type(self, class_fqn: str, field_name: str) -> Optional[str]:
        symbol = self._declaring_class(class_fqn, field_name)
        if symbol is None:
            return None
        info = symbol.fields[field_name]
        if info.inferred and not self.has_class(info.type_fqn):
            return None
        return info.type_fqn

    def __len__(self) -> int:
        return len(self._classes)


class SymbolTableBuilder(ScopedVisitor):
    """
    Records every class of a module, its bases and the fields it declares:
    class-body assignments, `self.<attr>: T` annotations and marked
    `self.<attr> = ...` assignments in any method, and plain
    `self.<attr> = ...` assignments in initializer methods.
    """

    def __init__(
        self,
        module: ParsedModule,
        symbols: SymbolTable,
        initializers: Tuple[str, ...] = DEFAULT_INITIALIZERS,
        marker: str = MARKER_NAME,
    ):
        super().__init__(module)
        self.symbols = symbols
        self.initializers = frozenset(initializers)
        self.marker = marker
        self._pragma_line = False
        # Not bound to the table: forward references may name later classes.
        self._resolver = TypeResolver(module, self.qualified_names)

    def build(self) -> SymbolTable:
        self.module.wrapper.visit(self)
        return self.symbols

    def on_enter_frame(self, frame: Frame) -> None:
        if frame.kind is not FrameKind.CLASS:
            return
        bases = []
        for arg in frame.node.bases:
            # Skip `metaclass=...` and other class keywords.
            if arg.keyword is not None or arg.star:
                continue
            base = self._resolver.resolve_base(arg.value)
            if base is not None:
                bases.append(base)
        self.symbols.add_class(
            ClassSymbol(
                fqn=frame.class_fqn,
                name=frame.name,
                module=self.module.module_fqn,
                bases=tuple(bases),
            )
        )

    def _in_initializer(self) -> bool:
        frame = self.current_frame
        return frame.is_method and frame.name in self.initializers

    def visit_SimpleStatementLine(self, node: cst.SimpleStatementLine) -> Optional[bool]:
        comment = node.trailing_whitespace.comment
        self._pragma_line = (
            comment is not None and parse_pragma(comment.value, self.marker) is not None
        )
        return True

    def leave_SimpleStatementLine(self, original_node: cst.SimpleStatementLine) -> None:
        self._pragma_line = False

    def visit_AnnAssign(self, node: cst.AnnAssign) -> Optional[bool]:
        frame = self.current_frame
        type_fqn = self._resolver.resolve_annotation(node.annotation)
        if frame.kind is FrameKind.CLASS and isinstance(node.target, cst.Name):
            self.symbols.declare_field(frame.class_fqn, node.target.value, type_fqn)
            return True

        attr = self.self_attribute(node.target)
        if attr is not None:
            self.symbols.declare_field(frame.class_fqn, attr, type_fqn)
        return True

    def visit_Assign(self, node: cst.Assign) -> Optional[bool]:
        frame = self.current_frame
        for target in node.targets:
            if frame.kind is FrameKind.CLASS and isinstance(target.target, cst.Name):
                self.symbols.declare_field(
                    frame.class_fqn,
                    target.target.value,
                    self._resolver.resolve_constructor(node.value),
                    inferred=True,
                )
                continue

            attr = self.self_attribute(target.target)
            if attr is None:
                continue
            if self._pragma_line or self._in_initializer():
                self.symbols.declare_field(
                    frame.class_fqn,
                    attr,
                    self._resolver.resolve_constructor(node.value),
                    inferred=True,
                    explicit=self._pragma_line,
                )
        return True
