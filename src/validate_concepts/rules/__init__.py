"""Rule checks comparing a concept specification with its implementation."""

from .action_rules import ActionRules
from .naming_rules import NamingRules
from .query_rules import QueryRules
from .structure_rules import StructureRules

__all__ = ["ActionRules", "NamingRules", "QueryRules", "StructureRules"]
