import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer

from fieldguard.common import bus
from fieldguard.spec import ConfigError
from fieldguard.analysis.rules import RULES, get_rule_info
from fieldguard.app import FieldGuardApp
from fieldguard.config import find_project_root
from fieldguard.app.runners.check import CheckReporter, JsonCheckReporter
from .rendering import CliRenderer

app = typer.Typer(
    name="fieldguard",
    help="Checks that class fields are only mutated by their whitelisted functions.",
    no_args_is_help=True,
)


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


@app.callback()
def main(
    loglevel: LogLevel = typer.Option(
        LogLevel.INFO,
        "--loglevel",
        help="Only show messages at or above this level.",
        case_sensitive=False,
    ),
):
    bus.set_renderer(CliRenderer())
    bus.set_level(loglevel.value)
    logging.basicConfig(
        level=logging.DEBUG if loglevel is LogLevel.DEBUG else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def check(
    paths: Optional[List[str]] = typer.Argument(
        None, help="Files or directories to analyze (default: scan_paths)."
    ),
    enable: Optional[List[str]] = typer.Option(
        None, "--enable", "-e", help="Enable an opt-in rule. Can be repeated."
    ),
    deny: bool = typer.Option(
        False, "--deny", help="Report violations as errors instead of warnings."
    ),
    jobs: Optional[int] = typer.Option(
        None, "--jobs", "-j", min=1, help="Worker threads for the scan phase."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT, "--format", help="Output format.", case_sensitive=False
    ),
    check_initializers: bool = typer.Option(
        False,
        "--check-initializers",
        help="Also check assignments to self inside __init__ and friends.",
    ),
):
    """Analyze the project and report fields mutated outside their whitelist."""
    if output_format is OutputFormat.JSON:
        reporter = JsonCheckReporter(write=typer.echo)
        # Keep stdout machine readable.
        bus.set_level("error")
    else:
        reporter = CheckReporter()

    cwd = Path.cwd()
    app_instance = FieldGuardApp(
        root_path=find_project_root(cwd) or cwd, reporter=reporter
    )
    try:
        success = app_instance.run_check(
            paths=[str((cwd / p).resolve()) for p in paths] if paths else None,
            enable=enable or None,
            level="deny" if deny else None,
            jobs=jobs,
            check_initializers=True if check_initializers else None,
        )
    except ConfigError as e:
        bus.error("cli.config.error", error=str(e))
        raise typer.Exit(code=2)

    if not success:
        raise typer.Exit(code=1)


@app.command()
def rules():
    """List the available rules."""
    for rule in sorted(RULES.values(), key=lambda r: r.id):
        state = bus.render_to_string(
            "cli.rules.enabled" if rule.default_enabled else "cli.rules.disabled"
        )
        typer.echo(
            bus.render_to_string(
                "cli.rules.entry",
                id=rule.id,
                category=rule.category,
                state=state,
                summary=rule.summary,
            )
        )


@app.command()
def explain(rule_id: str = typer.Argument(..., help="The rule to explain.")):
    """Print the documentation of a rule."""
    info = get_rule_info(rule_id)
    if info is None:
        bus.error("cli.explain.unknown", rule_id=rule_id)
        raise typer.Exit(code=2)

    typer.secho(
        bus.render_to_string(
            "cli.explain.header",
            id=info.id,
            category=info.category,
            version=info.version,
        ),
        bold=True,
    )
    typer.echo(info.explanation)


if __name__ == "__main__":
    app()
