"""
Terminal UI Module - Textual-based TUI
=====================================

This module provides a terminal-based user interface using Textual,
with the offline chat panel and the operator workflow screen.
"""

from .app import LCCAssistantApp, run_tui

__all__ = [
    "LCCAssistantApp",
    "run_tui",
]
