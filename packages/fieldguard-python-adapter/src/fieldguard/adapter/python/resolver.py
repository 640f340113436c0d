import re
from typing import TYPE_CHECKING, Callable, Collection, Optional

import libcst as cst
from libcst.metadata import QualifiedName, QualifiedNameSource

from .unit import ParsedModule
from .utils import final_name, join_name, resolve_relative_name

if TYPE_CHECKING:
    from .symbols import SymbolTable

QualifiedNameLookup = Callable[[cst.CSTNode], Collection[QualifiedName]]

_DOTTED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

# Wrappers whose first argument is the effective type of the annotation.
_UNWRAPPED_GENERICS = {
    "typing.Optional",
    "typing.Annotated",
    "typing.Final",
    "typing.ClassVar",
    "typing_extensions.Annotated",
    "typing_extensions.Final",
}
_UNION_GENERICS = {"typing.Union"}


class TypeResolver:
    """
    Static type resolution on top of LibCST's QualifiedNameProvider.

    All names are returned fully qualified: names local to the module get the
    module FQN as prefix, relative imports are made absolute.
    """

    def __init__(
        self,
        module: ParsedModule,
        qualified_names: QualifiedNameLookup,
        symbols: Optional["SymbolTable"] = None,
    ):
        self.module = module
        self._qualified_names = qualified_names
        self.symbols = symbols

    def _absolutize(self, qname: QualifiedName) -> str:
        if qname.source == QualifiedNameSource.LOCAL:
            return join_name(self.module.module_fqn, qname.name)
        if qname.name.startswith("."):
            return resolve_relative_name(qname.name, self.module.package)
        return qname.name

    def resolve_reference(self, node: cst.CSTNode) -> Optional[str]:
        """
        Resolves a Name or dotted Attribute expression to the single fully
        qualified name it refers to. Ambiguous references resolve to None.
        """
        if not isinstance(node, (cst.Name, cst.Attribute)):
            return None
        candidates = {self._absolutize(q) for q in self._qualified_names(node)}
        if len(candidates) != 1:
            return None
        return candidates.pop()

    def resolve_base(self, node: cst.BaseExpression) -> Optional[str]:
        # `class Repo(Base[T])` inherits from `Base`.
        if isinstance(node, cst.Subscript):
            node = node.value
        return self.resolve_reference(node)

    def resolve_constructor(self, node: Optional[cst.BaseExpression]) -> Optional[str]:
        """
        The callee of a call expression, which is the constructed class when
        the call is an instantiation. Callers decide whether to trust it.
        """
        if isinstance(node, cst.Call):
            return self.resolve_reference(node.func)
        return None

    def infer_value(self, node: Optional[cst.BaseExpression]) -> Optional[str]:
        """The class instantiated by `node`, when it is a call to a known class."""
        target = self.resolve_constructor(node)
        if self.symbols is not None and self.symbols.has_class(target):
            return target
        return None

    def resolve_annotation(self, node: Optional[cst.CSTNode]) -> Optional[str]:
        if node is None:
            return None
        if isinstance(node, cst.Annotation):
            node = node.annotation

        if isinstance(node, cst.SimpleString):
            return self._resolve_forward_reference(node)

        if isinstance(node, cst.Subscript):
            head = self.resolve_reference(node.value)
            if head is None and final_name(node.value) in ("Optional", "Annotated"):
                head = f"typing.{final_name(node.value)}"
            arguments = [
                element.slice.value
                for element in node.slice
                if isinstance(element.slice, cst.Index)
            ]
            if head in _UNWRAPPED_GENERICS and arguments:
                return self.resolve_annotation(arguments[0])
            if head in _UNION_GENERICS:
                return self._resolve_single_member(arguments)
            return None

        if isinstance(node, cst.BinaryOperation) and isinstance(node.operator, cst.BitOr):
            return self._resolve_single_member(_flatten_union(node))

        return self.resolve_reference(node)

    def _resolve_single_member(self, members) -> Optional[str]:
        # `T | None` and `Union[T, None]` are `T` wherever they are mutated.
        non_none = [
            m for m in members if not (isinstance(m, cst.Name) and m.value == "None")
        ]
        if len(non_none) != 1:
            return None
        return self.resolve_annotation(non_none[0])

    def _resolve_forward_reference(self, node: cst.SimpleString) -> Optional[str]:
        text = node.evaluated_value
        if not isinstance(text, str):
            return None
        text = text.strip()
        if not _DOTTED_NAME.match(text):
            return None
        # Only forward references to classes of the same module are understood.
        candidate = join_name(self.module.module_fqn, text)
        if self.symbols is not None and not self.symbols.has_class(candidate):
            return None
        return candidate


def _flatten_union(node: cst.BaseExpression):
    if isinstance(node, cst.BinaryOperation) and isinstance(node.operator, cst.BitOr):
        yield from _flatten_union(node.left)
        yield from _flatten_union(node.right)
    else:
        yield node
