from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import libcst as cst
from libcst.metadata import PositionProvider, QualifiedNameProvider

from .unit import ParsedModule
from .utils import LAMBDA_NAME, MODULE_SCOPE_NAME, final_name, join_name


class FrameKind(Enum):
    MODULE = "module"
    CLASS = "class"
    FUNCTION = "function"
    LAMBDA = "lambda"


@dataclass
class Frame:
    kind: FrameKind
    name: str
    qualname: str
    node: Optional[cst.CSTNode] = None
    # Class frames: the class itself. Method frames: the class owning the method.
    class_fqn: Optional[str] = None
    # Name of the instance (or class, for classmethods) parameter of a method.
    self_name: Optional[str] = None
    # name -> evidence list, filled by visitors that need local binding info.
    bindings: Dict[str, List[Tuple[str, Optional[cst.CSTNode]]]] = field(
        default_factory=dict
    )

    @property
    def is_method(self) -> bool:
        return self.kind is FrameKind.FUNCTION and self.self_name is not None

    @property
    def is_function(self) -> bool:
        return self.kind in (FrameKind.FUNCTION, FrameKind.LAMBDA)


def _is_staticmethod(node: cst.FunctionDef) -> bool:
    return any(final_name(d.decorator) == "staticmethod" for d in node.decorators)


class ScopedVisitor(cst.CSTVisitor):
    """
    Base visitor that keeps track of the lexical scope chain (module, classes,
    functions, lambdas) while walking a module.

    Subclasses react to scope changes through `on_enter_frame` and
    `on_leave_frame` instead of overriding the ClassDef/FunctionDef hooks.
    """

    METADATA_DEPENDENCIES = (PositionProvider, QualifiedNameProvider)

    def __init__(self, module: ParsedModule):
        super().__init__()
        self.module = module
        self._frames: List[Frame] = []

    # --- Scope bookkeeping ---

    @property
    def current_frame(self) -> Frame:
        return self._frames[-1]

    @property
    def enclosing_function(self) -> Optional[Frame]:
        for frame in reversed(self._frames):
            if frame.is_function:
                return frame
        return None

    @property
    def function_name(self) -> str:
        frame = self.enclosing_function
        return frame.name if frame else MODULE_SCOPE_NAME

    def visible_frames(self) -> List[Frame]:
        """
        Frames whose names are visible from the current position, innermost
        first. Class scopes are only visible from their own body.
        """
        visible = []
        for index, frame in enumerate(reversed(self._frames)):
            if index > 0 and frame.kind is FrameKind.CLASS:
                continue
            visible.append(frame)
        return visible

    def _child_qualname(self, name: str) -> str:
        parent = self._frames[-1]
        if parent.kind is FrameKind.MODULE:
            return name
        if parent.kind is FrameKind.CLASS:
            return f"{parent.qualname}.{name}"
        return f"{parent.qualname}.<locals>.{name}"

    def _push(self, frame: Frame) -> None:
        self._frames.append(frame)
        self.on_enter_frame(frame)

    def _pop(self) -> None:
        self.on_leave_frame(self._frames.pop())

    def on_enter_frame(self, frame: Frame) -> None:
        pass

    def on_leave_frame(self, frame: Frame) -> None:
        pass

    # --- LibCST hooks ---

    def visit_Module(self, node: cst.Module) -> Optional[bool]:
        self._frames = []
        self._push(Frame(kind=FrameKind.MODULE, name=MODULE_SCOPE_NAME, qualname="", node=node))
        return True

    def leave_Module(self, original_node: cst.Module) -> None:
        self._pop()

    def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
        qualname = self._child_qualname(node.name.value)
        self._push(
            Frame(
                kind=FrameKind.CLASS,
                name=node.name.value,
                qualname=qualname,
                node=node,
                class_fqn=join_name(self.module.module_fqn, qualname),
            )
        )
        return True

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self._pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
        parent = self._frames[-1]
        class_fqn = None
        self_name = None
        if parent.kind is FrameKind.CLASS and not _is_staticmethod(node):
            positional = list(node.params.posonly_params) + list(node.params.params)
            if positional:
                class_fqn = parent.class_fqn
                self_name = positional[0].name.value

        self._push(
            Frame(
                kind=FrameKind.FUNCTION,
                name=node.name.value,
                qualname=self._child_qualname(node.name.value),
                node=node,
                class_fqn=class_fqn,
                self_name=self_name,
            )
        )
        return True

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
        self._pop()

    def visit_Lambda(self, node: cst.Lambda) -> Optional[bool]:
        self._push(
            Frame(
                kind=FrameKind.LAMBDA,
                name=LAMBDA_NAME,
                qualname=self._child_qualname(LAMBDA_NAME),
                node=node,
            )
        )
        return True

    def leave_Lambda(self, original_node: cst.Lambda) -> None:
        self._pop()

    # --- Helpers ---

    def qualified_names(self, node: cst.CSTNode):
        return self.get_metadata(QualifiedNameProvider, node, set())

    def self_attribute(self, target: cst.BaseExpression) -> Optional[str]:
        """
        Returns the attribute name when `target` is `<self>.<attr>` inside a
        method, where `<self>` is the method's instance parameter.
        """
        frame = self.current_frame
        if not frame.is_method:
            return None
        if (
            isinstance(target, cst.Attribute)
            and isinstance(target.value, cst.Name)
            and target.value.value == frame.self_name
        ):
            return target.attr.value
        return None
