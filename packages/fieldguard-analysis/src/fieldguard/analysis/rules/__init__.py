from .catalog import RuleInfo, RULES, get_rule_info, enabled_rule_ids
from .whitelist import FieldsMutatedByWhitelistRule

__all__ = [
    "RuleInfo",
    "RULES",
    "get_rule_info",
    "enabled_rule_ids",
    "FieldsMutatedByWhitelistRule",
]
