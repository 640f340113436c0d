from textwrap import dedent

from fieldguard.adapter.python import CompilationUnit, SymbolTable, SymbolTableBuilder


def build(sources):
    unit = CompilationUnit.from_sources(
        {path: dedent(source) for path, source in sources.items()}
    )
    symbols = SymbolTable()
    for module in unit.modules:
        SymbolTableBuilder(module, symbols).build()
    return symbols


def test_lineage_is_depth_first_in_base_order():
    symbols = build(
        {
            "m.py": """
            class A:
                x: int = 0

            class B(A):
                pass

            class Mixin:
                x: int = 0

            class C(B, Mixin):
                pass
            """
        }
    )

    assert symbols.lineage("m.C") == ["m.C", "m.B", "m.A", "m.Mixin"]
    assert symbols.owner_of("m.C", "x") == "m.A"
    assert symbols.owner_of("m.C", "undeclared") == "m.C"


def test_fields_declared_in_initializers_only():
    symbols = build(
        {
            "m.py": """
            import logging

            class Child:
                pass

            class Parent:
                def __init__(self):
                    self.child = Child()
                    self.log = logging.getLogger(__name__)
                    self.items = []

                def later(self):
                    self.cache = {}
            """
        }
    )

    parent = symbols.get("m.Parent")
    assert set(parent.fields) == {"child", "log", "items"}
    assert symbols.field_type("m.Parent", "child") == "m.Child"
    assert symbols.field_type("m.Parent", "log") is None
    assert symbols.field_type("m.Parent", "items") is None


def test_annotation_beats_inferred_type_and_forward_references_resolve():
    symbols = build(
        {
            "m.py": """
            from typing import Optional

            class Holder:
                child: Optional["Node"] = None
                other: "Node"
                broken: "Node | None"

                def __init__(self):
                    self.other = Leaf()

            class Node:
                pass

            class Leaf:
                pass
            """
        }
    )

    assert symbols.field_type("m.Holder", "child") == "m.Node"
    assert symbols.field_type("m.Holder", "other") == "m.Node"
    assert symbols.field_type("m.Holder", "broken") is None


def test_bases_resolve_across_modules_and_relative_imports():
    symbols = build(
        {
            "src/pkg/base.py": """
            class Base:
                f: int = 0
            """,
            "src/pkg/impl.py": """
            from .base import Base
            import pkg.base

            class Impl(Base):
                pass

            class Other(pkg.base.Base):
                pass
            """,
        }
    )

    assert symbols.lineage("pkg.impl.Impl") == ["pkg.impl.Impl", "pkg.base.Base"]
    assert symbols.owner_of("pkg.impl.Other", "f") == "pkg.base.Base"


def test_initializer_assignment_does_not_shadow_a_declared_base_field():
    symbols = build(
        {
            "m.py": """
            class Base:
                f: int = 0

            class Child(Base):
                def __init__(self):
                    self.f = 1
                    self.g = 2

            class Grandchild(Child):
                pass
            """
        }
    )

    assert "f" in symbols.get("m.Child").fields
    assert symbols.owner_of("m.Child", "f") == "m.Base"
    assert symbols.owner_of("m.Grandchild", "f") == "m.Base"
    assert symbols.owner_of("m.Grandchild", "g") == "m.Child"


def test_marked_self_fields_are_declared_in_any_method():
    symbols = build(
        {
            "m.py": """
            class Base:
                def setup(self):
                    self.f = 0  # mutatedby(setup)
                    self.plain = 0
                    self.g: int = 0

            class Child(Base):
                def __init__(self):
                    self.f = 1
            """
        }
    )

    assert set(symbols.get("m.Base").fields) == {"f", "g"}
    assert symbols.owner_of("m.Child", "f") == "m.Base"
