"""
Test Services Module
===================

Unit tests for the chat session and the operator session.
"""

import pytest
from datetime import datetime, timedelta
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.engine import RulesEngine, Rule, Role, DEFAULT_RESPONSE
from services.assistant import ChatSession, DEFAULT_GREETING
from services.operator import OperatorSession, DONE_TEXT, describe_step, format_history
from workflows.definitions import PUBLISH_DECISION
from workflows.dsl import HistoryEntry, NoteStep, RunState


def ticking_clock():
    now = [datetime(2026, 1, 4, 10, 15, 0)]

    def clock():
        value = now[0]
        now[0] += timedelta(seconds=2)
        return value

    return clock


class TestChatSession:
    """Tests for ChatSession."""

    def test_opens_with_greeting(self):
        """Test the first message is the greeting."""
        session = ChatSession()
        assert len(session.messages) == 1
        assert session.messages[0].role == Role.ASSISTANT
        assert session.messages[0].content == DEFAULT_GREETING

    def test_no_greeting(self):
        """Test an empty greeting starts an empty conversation."""
        assert ChatSession(greeting="").messages == ()

    def test_send_appends_turn(self):
        """Test a send adds the user line and the reply."""
        session = ChatSession()
        reply = session.send("  checklist  ")

        assert reply.content.startswith("Checklist:")
        roles = [m.role for m in session.messages]
        assert roles == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
        assert session.messages[1].content == "checklist"

    def test_blank_input_ignored(self):
        """Test blank lines add nothing."""
        session = ChatSession()
        assert session.send("   ") is None
        assert session.send(None) is None
        assert len(session.messages) == 1

    def test_unmatched_gets_default(self):
        """Test unmatched input gets the default reply."""
        assert ChatSession().send("hello?").content == DEFAULT_RESPONSE

    def test_messages_only_grow(self):
        """Test earlier messages are never rewritten."""
        session = ChatSession()
        session.send("security")
        before = session.messages
        session.send("export")

        assert session.messages[:len(before)] == before
        assert len(session.messages) == len(before) + 2

    def test_custom_engine(self):
        """Test the session uses the given engine."""
        engine = RulesEngine(rules=[Rule(name="ping", pattern="ping", response="pong")])
        assert ChatSession(engine).send("ping").content == "pong"

    def test_reset(self):
        """Test reset returns to the greeting only."""
        session = ChatSession()
        session.send("checklist")
        session.reset()
        assert len(session.messages) == 1


class TestDescribeStep:
    """Tests for step display helpers."""

    def test_describe(self):
        """Test each step kind is described."""
        assert describe_step(PUBLISH_DECISION.steps[0]) == "Define objective"
        assert describe_step(PUBLISH_DECISION.steps[1]) == "Risk level?"
        assert describe_step(NoteStep(text="Read this")) == "Read this"
        assert describe_step(None) == DONE_TEXT

    def test_format_history(self):
        """Test history lines include time, label and choice."""
        state = RunState(step_index=2, history=(
            HistoryEntry(timestamp=datetime(2026, 1, 4, 10, 15, 2), label="Define objective"),
            HistoryEntry(timestamp=datetime(2026, 1, 4, 10, 15, 9), label="Risk level?", choice="High"),
        ))
        assert format_history(state) == [
            "• 2026-01-04 10:15:02: Define objective",
            "• 2026-01-04 10:15:09: Risk level? → High",
        ]
        assert format_history(state, "%H:%M")[1] == "• 10:15: Risk level? → High"


class TestOperatorSession:
    """Tests for OperatorSession."""

    def test_walk_low_path(self):
        """Test a full run through the Low branch."""
        session = OperatorSession(PUBLISH_DECISION, clock=ticking_clock())

        assert session.describe_step() == "Define objective"
        assert session.choices() == []

        session.advance()
        assert session.choices() == ["Low", "High"]

        session.advance("Low")
        assert session.describe_step() == "Proceed to Publisher export when ready."

        session.advance()
        assert session.finished
        assert session.describe_step() == DONE_TEXT
        assert session.history_lines() == [
            "• 2026-01-04 10:15:00: Define objective",
            "• 2026-01-04 10:15:02: Risk level? → Low",
            "• 2026-01-04 10:15:04: note",
        ]

    def test_unknown_choice_keeps_state(self):
        """Test an unknown choice leaves the same state object."""
        session = OperatorSession(PUBLISH_DECISION)
        session.advance()
        before = session.state

        assert session.advance("Medium") is before
        assert session.state is before

    def test_finished_run_stays_finished(self):
        """Test advancing after the end changes nothing."""
        session = OperatorSession(PUBLISH_DECISION)
        session.advance()
        session.advance("Low")
        session.advance()
        final = session.state

        session.advance()
        session.advance("High")
        assert session.state is final

    def test_reset(self):
        """Test reset discards history."""
        session = OperatorSession(PUBLISH_DECISION)
        session.advance()
        session.reset()

        assert session.state.step_index == 0
        assert session.state.history == ()
        assert session.history_lines() == []
