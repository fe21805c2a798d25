"""
Test Terminal UI Module
======================

Drives the Textual application headlessly with its Pilot.
"""

import asyncio
import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from textual.widgets import Button, Input, Static, TabbedContent

from core.config import Config
from core.exceptions import UIError
from rules.engine import RulesEngine
from ui.terminal.app import LCCAssistantApp
from workflows.definitions import build_registry


def make_app(**kwargs) -> LCCAssistantApp:
    return LCCAssistantApp(
        config=Config(),
        rules_engine=RulesEngine(),
        registry=build_registry(),
        **kwargs
    )


def text_of(widget: Static) -> str:
    return str(widget.render())


def test_unknown_workflow():
    """Test starting on a missing workflow fails early."""
    with pytest.raises(UIError):
        make_app(workflow_id="missing")


def test_chat_round_trip():
    """Test submitting input shows the reply in the log."""
    async def scenario():
        app = make_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            assert len(app.query(".msg")) == 1

            chat_input = app.query_one("#chat-input", Input)
            assert chat_input.has_focus
            chat_input.value = "checklist"
            await pilot.press("enter")
            await pilot.pause()

            messages = app.query(".msg")
            assert len(messages) == 3
            assert text_of(messages.last()).startswith("Checklist:")
            assert chat_input.value == ""
            assert len(app.query(".msg-user")) == 1

    asyncio.run(scenario())


def test_blank_chat_input_ignored():
    """Test pressing enter on an empty line adds nothing."""
    async def scenario():
        app = make_app()
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await pilot.pause()
            assert len(app.chat_session.messages) == 1
            assert len(app.query(".msg")) == 1

    asyncio.run(scenario())


def test_operator_walk():
    """Test stepping through the workflow with the buttons."""
    async def scenario():
        app = make_app()
        async with app.run_test() as pilot:
            app.query_one(TabbedContent).active = "tab-operator"
            await pilot.pause()

            step_text = app.query_one("#step-text", Static)
            assert text_of(step_text) == "Define objective"

            app.query_one("#step-actions Button.next", Button).press()
            await pilot.pause()
            assert text_of(step_text) == "Risk level?"

            options = app.query("#step-actions Button.option")
            assert [b.name for b in options] == ["Low", "High"]

            options.last().press()
            await pilot.pause()
            assert text_of(step_text).startswith("High risk")
            assert app.operator_session.state.history[-1].choice == "High"
            assert "Risk level? → High" in text_of(app.query_one("#history", Static))

            app.query_one("#btn-reset", Button).press()
            await pilot.pause()
            assert text_of(step_text) == "Define objective"
            assert text_of(app.query_one("#history", Static)) == "No steps completed yet."

    asyncio.run(scenario())
