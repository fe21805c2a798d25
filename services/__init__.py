"""
Services Module - Session state for LCC Assistant hosts
=======================================================

This module provides the stateful wrappers used by the CLI and UIs:
- Chat Session: message list for the offline responder
- Operator Session: current run of a workflow
"""

from .assistant import ChatSession, DEFAULT_GREETING
from .operator import OperatorSession, describe_step, format_history, DONE_TEXT

__all__ = [
    "ChatSession",
    "DEFAULT_GREETING",
    "OperatorSession",
    "describe_step",
    "format_history",
    "DONE_TEXT",
]
