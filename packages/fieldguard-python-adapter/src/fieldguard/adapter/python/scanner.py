import logging
from typing import Iterator, List, Optional, Tuple

import libcst as cst
from libcst.metadata import PositionProvider

from fieldguard.spec import FieldKey, MutationKind, MutationSite, SourceSpan
from .frames import Frame, FrameKind, ScopedVisitor
from .resolver import TypeResolver
from .symbols import DEFAULT_INITIALIZERS, SymbolTable
from .unit import ParsedModule
from .utils import iter_params

log = logging.getLogger(__name__)

# Kinds of evidence about what a local name is bound to.
SELF = "self"
ANNOTATION = "annotation"
VALUE = "value"
UNKNOWN = "unknown"
GLOBAL = "global"
NONLOCAL = "nonlocal"

Evidence = Tuple[str, Optional[cst.CSTNode]]

_SETATTR_FUNCTIONS = {"builtins.setattr", "builtins.delattr"}
_OBJECT_DUNDERS = {"__setattr__", "__delattr__"}


def _bound_names(target: cst.BaseExpression) -> Iterator[str]:
    if isinstance(target, cst.Name):
        yield target.value
    elif isinstance(target, (cst.Tuple, cst.List)):
        for element in target.elements:
            yield from _bound_names(element.value)
    elif isinstance(target, cst.StarredElement):
        yield from _bound_names(target.value)


def _literal_string(node: cst.BaseExpression) -> Optional[str]:
    if isinstance(node, (cst.SimpleString, cst.ConcatenatedString)):
        value = node.evaluated_value
        if isinstance(value, str):
            return value
    return None


class _BindingCollector(cst.CSTVisitor):
    """
    Records every name bound directly in one scope, without descending into
    nested function, lambda or class scopes.
    """

    def __init__(self, frame: Frame):
        super().__init__()
        self.frame = frame

    def _bind(self, name: str, kind: str, node: Optional[cst.CSTNode] = None) -> None:
        self.frame.bindings.setdefault(name, []).append((kind, node))

    def _bind_unknown(self, target: cst.BaseExpression) -> None:
        for name in _bound_names(target):
            self._bind(name, UNKNOWN)

    def visit_Assign(self, node: cst.Assign) -> Optional[bool]:
        for target in node.targets:
            if isinstance(target.target, cst.Name):
                self._bind(target.target.value, VALUE, node.value)
            else:
                self._bind_unknown(target.target)
        return True

    def visit_AnnAssign(self, node: cst.AnnAssign) -> Optional[bool]:
        if isinstance(node.target, cst.Name):
            self._bind(node.target.value, ANNOTATION, node.annotation)
        return True

    def visit_AugAssign(self, node: cst.AugAssign) -> Optional[bool]:
        self._bind_unknown(node.target)
        return True

    def visit_NamedExpr(self, node: cst.NamedExpr) -> Optional[bool]:
        if isinstance(node.target, cst.Name):
            self._bind(node.target.value, VALUE, node.value)
        return True

    def visit_For(self, node: cst.For) -> Optional[bool]:
        self._bind_unknown(node.target)
        return True

    def visit_CompFor(self, node: cst.CompFor) -> Optional[bool]:
        self._bind_unknown(node.target)
        return True

    def visit_WithItem(self, node: cst.WithItem) -> Optional[bool]:
        if node.asname is not None:
            self._bind_unknown(node.asname.name)
        return True

    def visit_ExceptHandler(self, node: cst.ExceptHandler) -> Optional[bool]:
        if node.name is not None:
            self._bind_unknown(node.name.name)
        return True

    def visit_MatchAs(self, node: cst.MatchAs) -> Optional[bool]:
        if node.name is not None:
            self._bind(node.name.value, UNKNOWN)
        return True

    def visit_MatchStar(self, node: cst.MatchStar) -> Optional[bool]:
        if node.name is not None:
            self._bind(node.name.value, UNKNOWN)
        return True

    def visit_Import(self, node: cst.Import) -> Optional[bool]:
        for alias in node.names:
            if alias.asname is not None:
                self._bind_unknown(alias.asname.name)
            else:
                dotted = cst.Module([]).code_for_node(alias.name)
                self._bind(dotted.split(".")[0], UNKNOWN)
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> Optional[bool]:
        if isinstance(node.names, cst.ImportStar):
            return False
        for alias in node.names:
            if alias.asname is not None:
                self._bind_unknown(alias.asname.name)
            elif isinstance(alias.name, cst.Name):
                self._bind(alias.name.value, UNKNOWN)
        return False

    def visit_Global(self, node: cst.Global) -> Optional[bool]:
        for item in node.names:
            self._bind(item.name.value, GLOBAL)
        return False

    def visit_Nonlocal(self, node: cst.Nonlocal) -> Optional[bool]:
        for item in node.names:
            self._bind(item.name.value, NONLOCAL)
        return False

    def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
        self._bind(node.name.value, UNKNOWN)
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
        self._bind(node.name.value, UNKNOWN)
        return False

    def visit_Lambda(self, node: cst.Lambda) -> Optional[bool]:
        return False


def collect_bindings(frame: Frame) -> None:
    collector = _BindingCollector(frame)
    node = frame.node
    if frame.kind is FrameKind.MODULE:
        for statement in node.body:
            statement.visit(collector)
        return

    if frame.kind in (FrameKind.FUNCTION, FrameKind.LAMBDA):
        for param in iter_params(node.params):
            name = param.name.value
            if name == frame.self_name:
                collector._bind(name, SELF)
            elif param.annotation is not None:
                collector._bind(name, ANNOTATION, param.annotation)
            else:
                collector._bind(name, UNKNOWN)
    node.body.visit(collector)


class MutationSiteScanner(ScopedVisitor):
    """
    Finds every place in a module where a field of a resolvable owner is
    written: assignments (plain, annotated, unpacking, loop, comprehension and
    `with` targets), augmented assignments, `del`, and the
    `setattr`/`delattr`/`object.__setattr__`/`object.__delattr__` calls with a
    literal field name.

    Sites whose owner type cannot be determined statically are skipped and
    counted in `skipped_count`.
    """

    def __init__(
        self,
        module: ParsedModule,
        symbols: SymbolTable,
        initializers: Tuple[str, ...] = DEFAULT_INITIALIZERS,
    ):
        super().__init__(module)
        self.symbols = symbols
        self.initializers = frozenset(initializers)
        self._resolver = TypeResolver(module, self.qualified_names, symbols)
        self._sites: List[MutationSite] = []
        self._skipped = 0

    @property
    def skipped_count(self) -> int:
        return self._skipped

    def scan(self) -> List[MutationSite]:
        self._sites = []
        self._skipped = 0
        self.module.wrapper.visit(self)
        return list(self._sites)

    def on_enter_frame(self, frame: Frame) -> None:
        collect_bindings(frame)

    # --- Owner resolution ---

    def _type_from_evidence(self, frame: Frame, evidence: List[Evidence]) -> Optional[str]:
        # A declared annotation fixes the type of the name for the whole scope.
        annotated = [node for kind, node in evidence if kind == ANNOTATION]
        if annotated:
            types = {self._resolver.resolve_annotation(node) for node in annotated}
        else:
            types = set()
            for kind, node in evidence:
                if kind == SELF:
                    types.add(frame.class_fqn)
                elif kind == VALUE:
                    types.add(self._resolver.infer_value(node))
                else:
                    types.add(None)
        if len(types) != 1:
            return None
        return types.pop()

    def _lookup_name_type(self, name: str) -> Optional[str]:
        frames = self.visible_frames()
        module = frames[-1]
        # Bindings made through `global`/`nonlocal` belong to the outer scope.
        carried: List[Evidence] = []
        functions_only = False
        for frame in frames:
            if functions_only and not frame.is_function:
                continue
            evidence = frame.bindings.get(name)
            if not evidence:
                continue
            kinds = {kind for kind, _ in evidence}
            if frame is not module and GLOBAL in kinds:
                carried.extend(e for e in evidence if e[0] != GLOBAL)
                declared = module.bindings.get(name, [])
                return self._type_from_evidence(
                    module, [e for e in declared if e[0] != GLOBAL] + carried
                )
            if frame is not module and NONLOCAL in kinds:
                carried.extend(e for e in evidence if e[0] != NONLOCAL)
                functions_only = True
                continue
            return self._type_from_evidence(
                frame, [e for e in evidence if e[0] != GLOBAL] + carried
            )
        return None

    def _resolve_owner(self, node: cst.BaseExpression) -> Optional[str]:
        if isinstance(node, (cst.Name, cst.Attribute)):
            # A class referenced directly, e.g. `Account.count = 0`.
            reference = self._resolver.resolve_reference(node)
            if self.symbols.has_class(reference):
                return reference

        if isinstance(node, cst.Name):
            return self._lookup_name_type(node.value)
        if isinstance(node, cst.Attribute):
            base = self._resolve_owner(node.value)
            if base is None:
                return None
            return self.symbols.field_type(base, node.attr.value)
        if isinstance(node, cst.Call):
            return self._resolver.infer_value(node)
        return None

    def _is_initializer_site(self, owner: cst.BaseExpression) -> bool:
        frame = self.enclosing_function
        return (
            frame is not None
            and frame.is_method
            and frame.name in self.initializers
            and isinstance(owner, cst.Name)
            and owner.value == frame.self_name
        )

    # --- Recording ---

    def _span(self, node: cst.CSTNode) -> SourceSpan:
        code_range = self.get_metadata(PositionProvider, node)
        return SourceSpan(
            path=self.module.rel_path,
            lineno=code_range.start.line,
            col_offset=code_range.start.column,
            end_lineno=code_range.end.line,
            end_col_offset=code_range.end.column,
        )

    def _record(
        self,
        node: cst.CSTNode,
        owner: cst.BaseExpression,
        field_name: str,
        kind: MutationKind,
    ) -> None:
        owner_type = self._resolve_owner(owner)
        if owner_type is None:
            self._skipped += 1
            log.debug(
                f"{self._span(node)}: skipped mutation of '{field_name}', "
                "owner type could not be resolved"
            )
            return

        self._sites.append(
            MutationSite(
                field_key=FieldKey(self.symbols.owner_of(owner_type, field_name), field_name),
                function=self.function_name,
                span=self._span(node),
                kind=kind,
                in_initializer=self._is_initializer_site(owner),
            )
        )

    def _record_target(self, target: cst.BaseExpression, kind: MutationKind) -> None:
        if isinstance(target, cst.Attribute):
            self._record(target, target.value, target.attr.value, kind)
        elif isinstance(target, (cst.Tuple, cst.List)):
            for element in target.elements:
                self._record_target(element.value, kind)
        elif isinstance(target, cst.StarredElement):
            self._record_target(target.value, kind)

    # --- LibCST hooks ---

    def visit_Assign(self, node: cst.Assign) -> Optional[bool]:
        for target in node.targets:
            self._record_target(target.target, MutationKind.ASSIGN)
        return True

    def visit_AnnAssign(self, node: cst.AnnAssign) -> Optional[bool]:
        if node.value is not None:
            self._record_target(node.target, MutationKind.ASSIGN)
        return True

    def visit_AugAssign(self, node: cst.AugAssign) -> Optional[bool]:
        self._record_target(node.target, MutationKind.AUG_ASSIGN)
        return True

    def visit_For(self, node: cst.For) -> Optional[bool]:
        self._record_target(node.target, MutationKind.ASSIGN)
        return True

    def visit_CompFor(self, node: cst.CompFor) -> Optional[bool]:
        self._record_target(node.target, MutationKind.ASSIGN)
        return True

    def visit_WithItem(self, node: cst.WithItem) -> Optional[bool]:
        if node.asname is not None:
            self._record_target(node.asname.name, MutationKind.ASSIGN)
        return True

    def visit_Del(self, node: cst.Del) -> Optional[bool]:
        self._record_target(node.target, MutationKind.DELETE)
        return True

    def _is_attribute_writer(self, func: cst.BaseExpression) -> bool:
        names = {q.name for q in self.qualified_names(func)}
        if names & _SETATTR_FUNCTIONS:
            return True
        if isinstance(func, cst.Attribute) and func.attr.value in _OBJECT_DUNDERS:
            if f"builtins.object.{func.attr.value}" in names:
                return True
            return "builtins.object" in {q.name for q in self.qualified_names(func.value)}
        return False

    def visit_Call(self, node: cst.Call) -> Optional[bool]:
        if not self._is_attribute_writer(node.func):
            return True
        positional = [a for a in node.args if a.keyword is None and not a.star]
        if len(positional) < 2:
            return True
        field_name = _literal_string(positional[1].value)
        if field_name is None:
            log.debug(f"{self._span(node)}: attribute name is not a literal, ignored")
            return True
        self._record(node, positional[0].value, field_name, MutationKind.CALL)
        return True
