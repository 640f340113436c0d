from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class RuleInfo:
    id: str
    category: str
    default_enabled: bool
    version: str
    summary: str
    explanation: str


FIELDS_MUTATED_BY_WHITELIST = RuleInfo(
    id="fields-mutated-by-whitelist",
    category="restriction",
    default_enabled=False,
    version="0.1.0",
    summary=(
        "ensures that a field is only mutated by functions specified in its "
        "mutatedby(...) marker"
    ),
    explanation="""\
### What it does
Checks that a class field is mutated only by the functions named in its
`mutatedby(...)` marker.

### Why restrict this?
To ensure that certain fields are only modified by specific functions, keeping
encapsulation and control over field mutations.

### Example
```python
class MyClass:
    field1: Annotated[int, mutatedby("allowed_function")] = 0

    def allowed_function(self):
        self.field1 = 10

    def disallowed_function(self):
        self.field1 = 20  # This triggers a warning
```
""",
)

RULES: Dict[str, RuleInfo] = {
    FIELDS_MUTATED_BY_WHITELIST.id: FIELDS_MUTATED_BY_WHITELIST,
}


def get_rule_info(rule_id: str) -> Optional[RuleInfo]:
    return RULES.get(rule_id)


def enabled_rule_ids(requested: List[str]) -> List[str]:
    """
    Restriction rules are opt-in: a rule runs when it is on by default or when
    it was explicitly requested. Unknown ids are ignored here; the config
    loader is responsible for rejecting them.
    """
    enabled = {rule.id for rule in RULES.values() if rule.default_enabled}
    enabled.update(r for r in requested if r in RULES)
    return sorted(enabled)
