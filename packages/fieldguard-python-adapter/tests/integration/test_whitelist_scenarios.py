from fieldguard.analysis.schema import ViolationLevel
from fieldguard.test_utils import analyze_sources, violation_summary

ACCOUNT = """\
from typing import Annotated
from fieldguard.spec import mutatedby


class T:
    f: Annotated[int, mutatedby("a")] = 0
    g: int = 0

    def a(self):
        self.f = 1

    def b(self):
        self.f = 2
        self.g = 3
"""


def test_mutation_outside_whitelist_is_reported():
    result = analyze_sources({"pkg/model.py": ACCOUNT})

    assert violation_summary(result) == (("pkg.model.T.f", "b", 13),)
    (violation,) = result.violations
    assert violation.level == ViolationLevel.WARNING
    assert violation.permitted == ("a",)
    assert violation.message == (
        "field `T.f` is mutated by `b`, which is not in its mutator whitelist {a}"
    )
    assert str(violation.span) == "pkg/model.py:13:9"


def test_unmarked_code_produces_no_violations():
    result = analyze_sources(
        {
            "pkg/plain.py": """
            class Plain:
                x: int = 0

                def anything(self):
                    self.x = 1
                    self.x += 1
                    del self.x
            """
        }
    )

    assert result.violations == []
    assert result.site_count == 3
    assert result.is_clean


def test_whitelisted_functions_are_silent():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class Account:
                balance: int = 0  # mutatedby(deposit, withdraw)

                def deposit(self, amount):
                    self.balance += amount

                def withdraw(self, amount):
                    self.balance -= amount
            """
        }
    )

    assert result.violations == []
    assert result.whitelisted_field_count == 1


def test_deny_all_whitelist_flags_every_function():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class Config:
                frozen: Annotated[bool, mutatedby()] = True

                def a(self):
                    self.frozen = False

                def b(self):
                    setattr(self, "frozen", False)
            """
        }
    )

    assert [(v.function, v.permitted) for v in result.violations] == [
        ("a", ()),
        ("b", ()),
    ]


def test_markers_on_one_field_are_unioned():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class T:
                f: Annotated[int, mutatedby("a")] = 0  # mutatedby(c)

                def __init__(self):
                    self.f: Annotated[int, mutatedby("d")] = 0

                def a(self):
                    self.f = 1

                def b(self):
                    self.f = 2

                def c(self):
                    self.f = 3

                def d(self):
                    self.f = 4
            """
        }
    )

    (violation,) = result.violations
    assert violation.function == "b"
    assert violation.permitted == ("a", "c", "d")


def test_mutations_from_other_modules_and_free_functions():
    result = analyze_sources(
        {
            "src/bank/models.py": """
            class Account:
                balance: Annotated[int, mutatedby("deposit")] = 0

                def deposit(self, amount):
                    self.balance += amount
            """,
            "src/bank/service.py": """
            from .models import Account
            from bank import models

            def deposit(account: Account):
                account.balance += 1

            def drain(account: "models.Account"):
                account.balance = 0

            def reset(account: models.Account):
                account.balance = 0
            """,
        }
    )

    assert violation_summary(result) == (("bank.models.Account.balance", "reset", 12),)


def test_inherited_field_keeps_its_declaring_class_whitelist():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class Base:
                f: Annotated[int, mutatedby("a")] = 0

            class Child(Base):
                def a(self):
                    self.f = 1

                def b(self):
                    self.f = 2
            """
        }
    )

    assert violation_summary(result) == (("pkg.model.Base.f", "b", 10),)


def test_subclass_initializer_does_not_take_over_an_inherited_field():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class Base:
                f: Annotated[int, mutatedby("a")] = 0

            class Child(Base):
                def __init__(self):
                    self.f = 5

                def b(self):
                    self.f += 2
            """
        }
    )

    assert violation_summary(result) == (("pkg.model.Base.f", "b", 10),)


def test_pragma_on_self_field_outside_initializer_declares_the_field():
    result = analyze_sources(
        {
            "pkg/model.py": """
            class Base:
                def setup(self):
                    self.f = 0  # mutatedby(setup)

            class Child(Base):
                def b(self):
                    self.f = 2
            """
        }
    )

    assert violation_summary(result) == (("pkg.model.Base.f", "b", 8),)


def test_initializers_are_exempt_unless_requested():
    source = {
        "pkg/model.py": """
        class T:
            f: Annotated[int, mutatedby("a")] = 0

            def __init__(self):
                self.f = 1
        """
    }

    assert analyze_sources(source).violations == []
    assert violation_summary(analyze_sources(source, check_initializers=True)) == (
        ("pkg.model.T.f", "__init__", 6),
    )


def test_deny_level_turns_violations_into_errors():
    result = analyze_sources({"pkg/model.py": ACCOUNT}, deny=True)

    assert result.error_count == 1
    assert result.warning_count == 0
    assert not result.is_success


def test_output_is_deterministic_and_independent_of_worker_count():
    sources = {
        f"pkg/mod{i}.py": f"""
        from pkg.model import T

        def a(t: T):
            t.f = {i}

        def b(t: T):
            t.f = {i}
        """
        for i in range(6)
    }
    sources["pkg/model.py"] = ACCOUNT

    first = analyze_sources(sources)
    second = analyze_sources(sources)
    parallel = analyze_sources(sources, jobs=4)

    assert violation_summary(first) == violation_summary(second)
    assert violation_summary(first) == violation_summary(parallel)
    assert [v.span.path for v in first.violations] == sorted(
        v.span.path for v in first.violations
    )
    assert len(first.violations) == 7


def test_unparseable_file_is_recorded_and_the_rest_is_analyzed():
    result = analyze_sources(
        {"pkg/broken.py": "def oops(:\n", "pkg/model.py": ACCOUNT}
    )

    assert [e.path for e in result.parse_errors] == ["pkg/broken.py"]
    assert len(result.violations) == 1
    assert result.file_count == 1
    assert not result.is_success
