from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from fieldguard.spec import FieldKey, MutationSite, SourceSpan


class ViolationLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Violation:
    """
    A mutation site whose enclosing function is not in the field's whitelist.
    """

    rule_id: str
    level: ViolationLevel
    category: str
    site: MutationSite
    # The field's declared whitelist, sorted for stable rendering.
    permitted: Tuple[str, ...]

    @property
    def field_key(self) -> FieldKey:
        return self.site.field_key

    @property
    def function(self) -> str:
        return self.site.function

    @property
    def span(self) -> SourceSpan:
        return self.site.span

    @property
    def permitted_display(self) -> str:
        return "{" + ", ".join(self.permitted) + "}"

    @property
    def message(self) -> str:
        key = self.field_key
        if not self.permitted:
            return (
                f"field `{key.owner_name}.{key.field}` may not be mutated by any "
                f"function, but `{self.function}` mutates it"
            )
        return (
            f"field `{key.owner_name}.{key.field}` is mutated by `{self.function}`, "
            f"which is not in its mutator whitelist {self.permitted_display}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "level": self.level.value,
            "category": self.category,
            "path": self.span.path,
            "line": self.span.lineno,
            "col": self.span.col_offset + 1,
            "end_line": self.span.end_lineno,
            "end_col": self.span.end_col_offset + 1,
            "owner": self.field_key.owner,
            "field": self.field_key.field,
            "function": self.function,
            "kind": self.site.kind.value,
            "permitted": list(self.permitted),
            "message": self.message,
        }
