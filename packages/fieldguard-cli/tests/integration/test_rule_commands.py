from typer.testing import CliRunner

from fieldguard.cli.main import app

runner = CliRunner()


def test_rules_lists_the_whitelist_rule_as_opt_in():
    result = runner.invoke(app, ["rules"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "fields-mutated-by-whitelist" in result.stdout
    assert "restriction" in result.stdout
    assert "opt-in" in result.stdout


def test_explain_prints_rule_documentation():
    result = runner.invoke(
        app, ["explain", "fields-mutated-by-whitelist"], catch_exceptions=False
    )

    assert result.exit_code == 0
    assert "### What it does" in result.stdout
    assert "disallowed_function" in result.stdout


def test_explain_unknown_rule():
    result = runner.invoke(app, ["explain", "no-such-rule"], catch_exceptions=False)

    assert result.exit_code == 2
    assert "Unknown rule: no-such-rule" in result.stdout
