from .loader import (
    FieldGuardConfig,
    LEVEL_DENY,
    LEVEL_WARN,
    find_project_root,
    load_config_from_path,
)

__all__ = [
    "FieldGuardConfig",
    "LEVEL_DENY",
    "LEVEL_WARN",
    "find_project_root",
    "load_config_from_path",
]
