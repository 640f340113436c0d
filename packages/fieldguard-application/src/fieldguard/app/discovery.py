import fnmatch
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Set

log = logging.getLogger(__name__)

# Directories and artifacts that never hold project sources.
EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".venv",
    "venv",
    ".tox",
    ".nox",
    ".idea",
    ".vscode",
    "build",
    "dist",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "__pycache__",
    "site-packages",
    "node_modules",
}


def _is_excluded_dir(name: str) -> bool:
    return name in EXCLUDED_DIRS or name.endswith(".egg-info")


def _matches_any(rel_path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        # A directory pattern excludes everything below it.
        if fnmatch.fnmatch(rel_path, pattern.rstrip("/") + "/*"):
            return True
    return False


def _walk(directory: Path) -> Iterable[Path]:
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if not _is_excluded_dir(entry.name):
                yield from _walk(entry)
        elif entry.suffix == ".py":
            yield entry


def discover_files(
    root_path: Path, scan_paths: Sequence[str], exclude: Sequence[str] = ()
) -> List[Path]:
    """
    Collects the Python files under `scan_paths` (relative to `root_path`),
    sorted and without duplicates.
    """
    found: Set[Path] = set()
    for scan_path_str in scan_paths:
        scan_path = (root_path / scan_path_str).resolve()
        if scan_path.is_dir():
            found.update(_walk(scan_path))
        elif scan_path.is_file() and scan_path.suffix == ".py":
            found.add(scan_path)
        else:
            log.debug(f"Scan path does not exist or is not Python: {scan_path}")

    resolved_root = root_path.resolve()
    files = []
    for file_path in sorted(found):
        try:
            rel_path = file_path.relative_to(resolved_root).as_posix()
        except ValueError:
            rel_path = file_path.as_posix()
        if exclude and _matches_any(rel_path, exclude):
            continue
        files.append(file_path)
    return files
