"""
LCC Assistant - Offline assistant and operator workflows
========================================================

A local-only helper with two parts:
1. Rule-based responder (ordered regex rules, first match wins)
2. Operator workflows (prompt / decision / note steps walked by a pure state machine)

Both run without network access; the CLI, web API and terminal UI are
thin hosts around them.

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"
