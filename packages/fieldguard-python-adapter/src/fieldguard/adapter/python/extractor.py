import ast
import io
import keyword
import logging
import re
import tokenize
from typing import Iterator, List, Optional, Set

import libcst as cst

from fieldguard.spec import MARKER_NAME, FieldKey, WhitelistRegistryProtocol
from .frames import FrameKind, ScopedVisitor
from .unit import ParsedModule
from .utils import final_name

log = logging.getLogger(__name__)


def _tokens_to_names(text: str) -> List[str]:
    """
    Reads identifiers and string literals out of a marker argument list, in
    order. Anything else (operators, numbers, keywords) is ignored.
    """
    names: List[str] = []
    try:
        for tok in tokenize.generate_tokens(io.StringIO(text.strip()).readline):
            if tok.type == tokenize.NAME and not keyword.iskeyword(tok.string):
                names.append(tok.string)
            elif tok.type == tokenize.STRING:
                try:
                    value = ast.literal_eval(tok.string)
                except (ValueError, SyntaxError):
                    continue
                if isinstance(value, str):
                    names.append(value)
    except (tokenize.TokenError, IndentationError) as e:
        # Unbalanced brackets and the like: keep what was read so far.
        log.debug(f"Stopped reading marker arguments {text!r}: {e}")
    return names


def parse_pragma(comment: str, marker: str = MARKER_NAME) -> Optional[List[str]]:
    """
    Parses a `# mutatedby(a, b)` or `# mutatedby: a, b` comment.

    The marker must open the comment, so prose that merely mentions it is
    not a pragma. Returns None when the comment is not a pragma, otherwise
    the permitted names (possibly none).
    """
    match = re.match(
        rf"#\s*{re.escape(marker)}\s*(?P<sep>[(:])(?P<rest>.*)$", comment.strip()
    )
    if match is None:
        return None
    rest = match.group("rest")
    if match.group("sep") == "(":
        closing = rest.rfind(")")
        if closing != -1:
            rest = rest[:closing]
    return _tokens_to_names(rest)


def marker_call_names(call: cst.Call) -> List[str]:
    names: List[str] = []
    for arg in call.args:
        if arg.keyword is not None or arg.star:
            continue
        value = arg.value
        if isinstance(value, (cst.SimpleString, cst.ConcatenatedString)):
            evaluated = value.evaluated_value
            if isinstance(evaluated, str):
                names.append(evaluated)
        elif isinstance(value, (cst.Name, cst.Attribute)):
            name = final_name(value)
            if name is not None and not keyword.iskeyword(name):
                names.append(name)
    return names


def _iter_annotated_metadata(node: cst.BaseExpression) -> Iterator[cst.BaseExpression]:
    if not isinstance(node, cst.Subscript):
        return
    elements = [e.slice.value for e in node.slice if isinstance(e.slice, cst.Index)]
    if final_name(node.value) == "Annotated":
        yield from elements[1:]
        elements = elements[:1]
    for element in elements:
        yield from _iter_annotated_metadata(element)


class AttributeExtractor(ScopedVisitor):
    """
    Collects the mutator whitelists declared on class fields of one module.

    A field is marked either through its annotation,

        balance: Annotated[int, mutatedby(deposit, "withdraw")] = 0

    or through a trailing comment pragma on the declaration,

        balance: int = 0  # mutatedby(deposit, withdraw)

    Both forms are accepted on class-body fields and on `self.<field>`
    declarations inside methods. Several markers on one field are unioned.
    """

    def __init__(self, module: ParsedModule, marker: str = MARKER_NAME):
        super().__init__(module)
        self.marker = marker
        self._registry: Optional[WhitelistRegistryProtocol] = None
        self._marked: Set[FieldKey] = set()

    def extract(self, registry: WhitelistRegistryProtocol) -> int:
        self._registry = registry
        self._marked = set()
        self.module.wrapper.visit(self)
        return len(self._marked)

    def _field_key(self, target: cst.BaseExpression) -> Optional[FieldKey]:
        frame = self.current_frame
        if frame.kind is FrameKind.CLASS and isinstance(target, cst.Name):
            return FieldKey(frame.class_fqn, target.value)
        attr = self.self_attribute(target)
        if attr is not None:
            return FieldKey(frame.class_fqn, attr)
        return None

    def _add(self, key: FieldKey, names: List[str]) -> None:
        log.debug(f"{self.module.rel_path}: {key} mutated by {sorted(set(names))}")
        self._registry.declare(key)
        for name in names:
            self._registry.insert(key, name)
        self._marked.add(key)

    def _targets(self, statement: cst.BaseSmallStatement) -> List[cst.BaseExpression]:
        if isinstance(statement, cst.AnnAssign):
            return [statement.target]
        if isinstance(statement, cst.Assign):
            return [t.target for t in statement.targets]
        return []

    def visit_SimpleStatementLine(self, node: cst.SimpleStatementLine) -> Optional[bool]:
        comment = node.trailing_whitespace.comment
        if comment is None:
            return True
        names = parse_pragma(comment.value, self.marker)
        if names is None:
            return True
        for statement in node.body:
            for target in self._targets(statement):
                key = self._field_key(target)
                if key is not None:
                    self._add(key, names)
        return True

    def visit_AnnAssign(self, node: cst.AnnAssign) -> Optional[bool]:
        key = self._field_key(node.target)
        if key is None:
            return True
        for metadata in _iter_annotated_metadata(node.annotation.annotation):
            if isinstance(metadata, cst.Call) and final_name(metadata.func) == self.marker:
                self._add(key, marker_call_names(metadata))
        return True
