from unittest.mock import Mock

from fieldguard.spec import FieldKey, MutationSite, SourceSpan
from fieldguard.analysis.schema import Violation, ViolationLevel
from fieldguard.analysis.engines.whitelist import (
    WhitelistEngine,
    create_whitelist_engine,
)
from fieldguard.analysis.rules import FieldsMutatedByWhitelistRule


def _site(line: int, function: str = "b", field: str = "f") -> MutationSite:
    return MutationSite(
        field_key=FieldKey("pkg.T", field),
        function=function,
        span=SourceSpan("pkg.py", line, 4, line, 10),
    )


def _violation(site: MutationSite, rule_id: str = "r") -> Violation:
    return Violation(
        rule_id=rule_id,
        level=ViolationLevel.WARNING,
        category="restriction",
        site=site,
        permitted=("a",),
    )


def _subject(sites):
    subject = Mock()
    subject.file_count = 1
    subject.parse_errors = []
    subject.skipped_site_count = 0
    subject.scan_mutation_sites.return_value = sites
    return subject


def test_engine_aggregates_and_sorts_violations_from_all_rules():
    # 1. Setup
    late, early = _site(9), _site(3)
    subject = _subject([early, late])

    mock_rule1 = Mock()
    mock_rule1.check.return_value = [_violation(late)]
    mock_rule2 = Mock()
    mock_rule2.check.return_value = [_violation(early)]
    mock_rule3 = Mock()
    mock_rule3.check.return_value = []

    # 2. Execute
    engine = WhitelistEngine(rules=[mock_rule1, mock_rule2, mock_rule3])
    result = engine.analyze(subject)

    # 3. Assert
    for rule in (mock_rule1, mock_rule2, mock_rule3):
        rule.check.assert_called_once()
        sites_arg, registry_arg = rule.check.call_args.args
        assert sites_arg == [early, late]
        assert registry_arg.is_frozen

    assert [v.span.lineno for v in result.violations] == [3, 9]
    assert result.site_count == 2
    assert result.file_count == 1


def test_engine_collects_before_scanning():
    calls = []

    subject = _subject([])

    def collect(registry):
        calls.append("collect")
        registry.declare(FieldKey("pkg.T", "f"))
        registry.insert(FieldKey("pkg.T", "f"), "a")
        return 1

    def scan():
        calls.append("scan")
        return []

    subject.collect_whitelists.side_effect = collect
    subject.scan_mutation_sites.side_effect = scan

    result = WhitelistEngine(rules=[]).analyze(subject)

    assert calls == ["collect", "scan"]
    assert result.whitelisted_field_count == 1


def test_engine_reports_violation_for_site_outside_whitelist():
    subject = _subject([_site(5, function="b"), _site(6, function="a")])

    def collect(registry):
        registry.insert(FieldKey("pkg.T", "f"), "a")
        return 1

    subject.collect_whitelists.side_effect = collect

    result = create_whitelist_engine(["fields-mutated-by-whitelist"]).analyze(subject)

    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.function == "b"
    assert violation.span.lineno == 5
    assert violation.level == ViolationLevel.WARNING
    assert result.is_success


def test_factory_builds_no_rules_when_nothing_is_enabled():
    engine = create_whitelist_engine([])

    assert engine.rules == []


def test_factory_honours_deny_and_initializer_settings():
    engine = create_whitelist_engine(
        ["fields-mutated-by-whitelist"], deny=True, check_initializers=True
    )

    (rule,) = engine.rules
    assert isinstance(rule, FieldsMutatedByWhitelistRule)
    assert rule.level == ViolationLevel.ERROR
    assert rule.exempt_initializers is False


def test_result_with_error_level_violation_is_not_successful():
    subject = _subject([_site(5)])
    subject.collect_whitelists.side_effect = lambda r: r.declare(FieldKey("pkg.T", "f"))

    result = create_whitelist_engine(
        ["fields-mutated-by-whitelist"], deny=True
    ).analyze(subject)

    assert result.error_count == 1
    assert not result.is_success
