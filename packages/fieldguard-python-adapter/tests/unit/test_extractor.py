from textwrap import dedent

import pytest

from fieldguard.spec import FieldKey
from fieldguard.analysis import WhitelistRegistry
from fieldguard.adapter.python import AttributeExtractor, ParsedModule, parse_pragma


def extract(source: str, marker: str = "mutatedby"):
    module = ParsedModule.from_source(dedent(source), "pkg/model.py")
    registry = WhitelistRegistry()
    count = AttributeExtractor(module, marker).extract(registry)
    return registry.freeze(), count


def key(owner: str, field: str) -> FieldKey:
    return FieldKey(f"pkg.model.{owner}", field)


@pytest.mark.parametrize(
    "comment, expected",
    [
        ("# mutatedby(deposit, withdraw)", ["deposit", "withdraw"]),
        ("# mutatedby: deposit, 'withdraw'", ["deposit", "withdraw"]),
        ("#mutatedby()", []),
        ("# see mutatedby(reset) above", None),
        ("#   mutatedby (reset)", ["reset"]),
        ("# mutatedby(None, reset, 42, -)", ["reset"]),
        ("# just a comment", None),
        ("# mutatedby is mentioned here", None),
    ],
)
def test_parse_pragma(comment, expected):
    assert parse_pragma(comment) == expected


def test_typed_marker_in_class_body():
    registry, count = extract(
        """
        from typing import Annotated
        from fieldguard.spec import mutatedby

        class Account:
            balance: Annotated[int, mutatedby(deposit, "withdraw")] = 0
            owner: str = ""
        """
    )

    assert count == 1
    assert registry.lookup(key("Account", "balance")) == {"deposit", "withdraw"}
    assert registry.lookup(key("Account", "owner")) is None


def test_dotted_marker_and_keyword_arguments():
    registry, _ = extract(
        """
        import typing
        from fieldguard.spec import markers

        class Account:
            balance: typing.Annotated[int, markers.mutatedby(Account.deposit, strict=True)]
        """
    )

    assert registry.lookup(key("Account", "balance")) == {"deposit"}


def test_marker_on_self_attribute_inside_method():
    registry, _ = extract(
        """
        class Counter:
            def __init__(self):
                self.count: Annotated[int, mutatedby("increment")] = 0
                self.label = ""  # mutatedby(rename)

        def free(obj):
            obj.x: Annotated[int, mutatedby("nope")] = 0
        """
    )

    assert registry.lookup(key("Counter", "count")) == {"increment"}
    assert registry.lookup(key("Counter", "label")) == {"rename"}
    assert len(registry) == 2


def test_empty_marker_is_deny_all_and_distinct_from_no_marker():
    registry, _ = extract(
        """
        class Config:
            frozen: Annotated[bool, mutatedby()] = True
            loose: bool = False
        """
    )

    assert registry.lookup(key("Config", "frozen")) == frozenset()
    assert registry.lookup(key("Config", "loose")) is None


def test_malformed_marker_arguments_are_tolerated():
    registry, _ = extract(
        """
        class Config:
            value: Annotated[int, mutatedby(1 + 2, *names, f(x))] = 0
        """
    )

    assert registry.lookup(key("Config", "value")) == frozenset()


def test_several_markers_are_unioned():
    registry, count = extract(
        """
        class Account:
            balance: Annotated[int, mutatedby("deposit"), mutatedby("withdraw")] = 0  # mutatedby(audit)

            def reset(self):
                self.balance: Annotated[int, mutatedby("reset")] = 0
        """
    )

    assert count == 1
    assert registry.lookup(key("Account", "balance")) == {
        "deposit",
        "withdraw",
        "audit",
        "reset",
    }


def test_marker_nested_inside_optional():
    registry, _ = extract(
        """
        class Node:
            parent: Optional[Annotated["Node", mutatedby("attach")]] = None
        """
    )

    assert registry.lookup(key("Node", "parent")) == {"attach"}


def test_nested_class_fields_use_qualified_owner():
    registry, _ = extract(
        """
        class Outer:
            class Inner:
                x: Annotated[int, mutatedby("a")] = 0
        """
    )

    assert registry.lookup(key("Outer.Inner", "x")) == {"a"}


def test_custom_marker_name():
    registry, _ = extract(
        """
        class Account:
            balance: Annotated[int, writers("deposit")] = 0
            other: Annotated[int, mutatedby("deposit")] = 0
            audit: int = 0  # writers(close)
        """,
        marker="writers",
    )

    assert registry.lookup(key("Account", "balance")) == {"deposit"}
    assert registry.lookup(key("Account", "audit")) == {"close"}
    assert registry.lookup(key("Account", "other")) is None
