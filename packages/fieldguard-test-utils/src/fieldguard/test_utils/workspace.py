from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, List, Tuple

import tomli_w


class WorkspaceFactory:
    """
    Builds a throwaway project on disk: a pyproject.toml with an optional
    [tool.fieldguard] table, plus source files.
    """

    def __init__(self, root_path: Path):
        self.root_path = root_path
        self._files: List[Tuple[str, str]] = []
        self._pyproject: Dict[str, Any] = {"project": {"name": "test-project"}}

    def with_config(self, config: Dict[str, Any]) -> "WorkspaceFactory":
        tool = self._pyproject.setdefault("tool", {})
        tool.setdefault("fieldguard", {}).update(config)
        return self

    def with_source(self, path: str, content: str) -> "WorkspaceFactory":
        self._files.append((path, dedent(content)))
        return self

    def build(self) -> Path:
        self.root_path.mkdir(parents=True, exist_ok=True)
        with (self.root_path / "pyproject.toml").open("wb") as f:
            tomli_w.dump(self._pyproject, f)

        for path, content in self._files:
            file_path = self.root_path / path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        return self.root_path
