from rule_sync.rules.matching import document_applies, matches_any, matches_glob
from rule_sync.rules.models import RuleDocument, RuleMetadata
from rule_sync.rules.parser import parse_rule, parse_rule_text, serialize_rule
from rule_sync.rules.resolver import PriorityResolver
from rule_sync.rules.store import RuleStore, RuleView

__all__ = [
    "PriorityResolver",
    "RuleDocument",
    "RuleMetadata",
    "RuleStore",
    "RuleView",
    "document_applies",
    "matches_any",
    "matches_glob",
    "parse_rule",
    "parse_rule_text",
    "serialize_rule",
]
