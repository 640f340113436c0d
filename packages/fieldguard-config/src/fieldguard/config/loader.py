import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from fieldguard.spec import MARKER_NAME, ConfigError
from fieldguard.analysis.rules import RULES

log = logging.getLogger(__name__)

LEVEL_WARN = "warn"
LEVEL_DENY = "deny"


@dataclass(frozen=True)
class FieldGuardConfig:
    scan_paths: List[str] = field(default_factory=lambda: ["."])
    exclude: List[str] = field(default_factory=list)
    source_roots: List[str] = field(default_factory=lambda: ["src", "."])
    enable: List[str] = field(default_factory=list)
    marker: str = MARKER_NAME
    level: str = LEVEL_WARN
    initializers: List[str] = field(
        default_factory=lambda: ["__init__", "__post_init__"]
    )
    check_initializers: bool = False
    jobs: int = 1

    @property
    def deny(self) -> bool:
        return self.level == LEVEL_DENY

    def merge(self, **overrides: Any) -> "FieldGuardConfig":
        """
        Returns a copy with command line overrides applied. `None` values mean
        "not given" and keep the configured value; `enable` is additive.
        """
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "enable":
                changes[key] = self.enable + [r for r in value if r not in self.enable]
            else:
                changes[key] = value
        merged = replace(self, **changes)
        _validate(merged)
        return merged


def _expect_str_list(key: str, value: Any) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings, got {value!r}")
    return list(value)


def _validate(config: FieldGuardConfig) -> None:
    if config.level not in (LEVEL_WARN, LEVEL_DENY):
        raise ConfigError(f"'level' must be 'warn' or 'deny', got {config.level!r}")
    if not config.marker.isidentifier():
        raise ConfigError(f"'marker' must be an identifier, got {config.marker!r}")
    if config.jobs < 1:
        raise ConfigError(f"'jobs' must be at least 1, got {config.jobs}")
    unknown = [r for r in config.enable if r not in RULES]
    if unknown:
        raise ConfigError(f"Unknown rule(s) in 'enable': {', '.join(unknown)}")


def _parse_table(table: Dict[str, Any]) -> FieldGuardConfig:
    kwargs: Dict[str, Any] = {}
    for key in ("scan_paths", "exclude", "source_roots", "enable", "initializers"):
        if key in table:
            kwargs[key] = _expect_str_list(key, table[key])
    for key in ("marker", "level"):
        if key in table:
            if not isinstance(table[key], str):
                raise ConfigError(f"'{key}' must be a string, got {table[key]!r}")
            kwargs[key] = table[key]
    if "check_initializers" in table:
        if not isinstance(table["check_initializers"], bool):
            raise ConfigError("'check_initializers' must be a boolean")
        kwargs["check_initializers"] = table["check_initializers"]
    if "jobs" in table:
        if not isinstance(table["jobs"], int) or isinstance(table["jobs"], bool):
            raise ConfigError(f"'jobs' must be an integer, got {table['jobs']!r}")
        kwargs["jobs"] = table["jobs"]

    unknown = sorted(set(table) - set(FieldGuardConfig.__dataclass_fields__))
    if unknown:
        log.warning(f"Ignoring unknown [tool.fieldguard] keys: {', '.join(unknown)}")

    config = FieldGuardConfig(**kwargs)
    _validate(config)
    return config


def find_project_root(start: Path) -> Optional[Path]:
    """The nearest directory at or above `start` holding a pyproject.toml."""
    for candidate in [start, *start.parents]:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return None


def load_config_from_path(root_path: Path) -> FieldGuardConfig:
    """
    Reads `[tool.fieldguard]` from `<root_path>/pyproject.toml`. A missing
    file or table yields the defaults.

    Raises ConfigError when the file is not valid TOML or the table holds
    invalid values.
    """
    config_path = root_path / "pyproject.toml"
    if not config_path.is_file():
        return FieldGuardConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    table = data.get("tool", {}).get("fieldguard")
    if table is None:
        return FieldGuardConfig()
    if not isinstance(table, dict):
        raise ConfigError("[tool.fieldguard] must be a table")
    return _parse_table(table)
