"""
Rules Module - Offline rule-based responder
===========================================

This module provides the offline responder that operates without any
network access:
- Ordered regex rules, first match wins
- A fixed default reply when nothing matches
- YAML rule files with seeded defaults
"""

from .engine import (
    RulesEngine,
    Rule,
    RuleMatch,
    Message,
    Role,
    DEFAULT_RULES,
    DEFAULT_RESPONSE,
    respond,
)

__all__ = [
    "RulesEngine",
    "Rule",
    "RuleMatch",
    "Message",
    "Role",
    "DEFAULT_RULES",
    "DEFAULT_RESPONSE",
    "respond",
]
