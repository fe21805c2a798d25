"""
Textual Application - Main TUI application
==========================================

This module implements the terminal interface for LCC Assistant: an
offline chat side-panel and an operator screen that walks a workflow.
"""

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.widgets import Button, Footer, Header, Input, Static, TabbedContent, TabPane

from core.config import Config, load_config
from core.exceptions import UIError
from core.logging import get_logger
from rules.engine import RulesEngine
from services.assistant import ChatSession
from services.operator import OperatorSession
from workflows.definitions import build_registry
from workflows.loader import WorkflowRegistry

logger = get_logger("tui.app")


class ChatPanel(Container):
    """Message log plus an input line."""

    def __init__(self, session: ChatSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self._rendered = 0

    def compose(self) -> ComposeResult:
        yield Static("💬 Lifelong Catch & Correct", classes="title")
        yield Static("Offline side-panel", classes="subtitle")
        yield VerticalScroll(id="chat-log")
        yield Input(placeholder="Type…", id="chat-input")

    async def on_mount(self) -> None:
        await self.render_new_messages()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return
        event.stop()
        reply = self.session.send(event.value)
        event.input.value = ""
        if reply is not None:
            await self.render_new_messages()

    async def render_new_messages(self) -> None:
        """Mount widgets for messages added since the last render."""
        log = self.query_one("#chat-log", VerticalScroll)
        pending = self.session.messages[self._rendered:]
        if not pending:
            return
        await log.mount_all(
            Static(m.content, markup=False, classes=f"msg msg-{m.role.value}")
            for m in pending
        )
        self._rendered += len(pending)
        log.scroll_end(animate=False)


class OperatorPanel(Container):
    """Current workflow step, its actions, and the run history."""

    def __init__(self, session: OperatorSession, time_format: str, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.time_format = time_format

    def compose(self) -> ComposeResult:
        yield Static("🧭 Operator Assistance", classes="title")
        yield Static(f"Workflow: {self.session.workflow.name}", markup=False, classes="subtitle")
        with Container(id="step-box"):
            yield Static("", id="step-text", markup=False)
            yield Horizontal(id="step-actions")
        yield Static("", id="history", markup=False)
        yield Button("↺ Reset", id="btn-reset", variant="warning")

    async def on_mount(self) -> None:
        await self.refresh_view()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button = event.button
        if button.id == "btn-reset":
            self.session.reset()
        elif button.has_class("option"):
            self.session.advance(button.name)
        elif button.has_class("next"):
            self.session.advance()
        else:
            return
        event.stop()
        await self.refresh_view()

    async def refresh_view(self) -> None:
        """Redraw the step, its buttons and the history trail."""
        self.query_one("#step-text", Static).update(self.session.describe_step())

        actions = self.query_one("#step-actions", Horizontal)
        await actions.remove_children()
        if not self.session.finished:
            choices = self.session.choices()
            if choices:
                buttons = [Button(label, name=label, classes="option") for label in choices]
            else:
                buttons = [Button("Next", classes="next", variant="primary")]
            await actions.mount_all(buttons)

        lines = self.session.history_lines(self.time_format)
        self.query_one("#history", Static).update("\n".join(lines) or "No steps completed yet.")


class LCCAssistantApp(App):
    """
    LCC Assistant terminal application.
    """

    TITLE = "LCC Assistant"

    CSS = """
    Screen {
        background: $surface;
    }

    .title {
        text-style: bold;
        color: $accent;
        padding: 0 1;
    }

    .subtitle {
        color: $text-muted;
        padding: 0 1 1 1;
    }

    #chat-log {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    .msg {
        margin: 0 0 1 0;
        padding: 0 1;
    }

    .msg-user {
        background: $boost;
        text-align: right;
    }

    .msg-assistant {
        color: $text;
    }

    #step-box {
        height: auto;
        border: round $primary;
        padding: 1;
    }

    #step-text {
        text-style: bold;
    }

    #step-actions {
        height: auto;
        margin: 1 0 0 0;
    }

    #step-actions Button {
        margin: 0 1 0 0;
    }

    #history {
        color: $text-muted;
        padding: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False),
    ]

    def __init__(
        self,
        config: Optional[Config] = None,
        rules_engine: Optional[RulesEngine] = None,
        registry: Optional[WorkflowRegistry] = None,
        workflow_id: Optional[str] = None,
    ):
        super().__init__()

        self.config = config or load_config()

        self.rules_engine = rules_engine or RulesEngine(
            rules_file=str(self.config.rules_path),
            seed_defaults=self.config.assistant.seed_default_rules,
        )
        self.registry = registry or build_registry(
            str(self.config.workflows_path),
            strict_targets=self.config.workflows.strict_targets,
        )

        workflow_id = workflow_id or self.config.workflows.default_workflow
        workflow = self.registry.get(workflow_id)
        if workflow is None:
            raise UIError(f"Unknown workflow: {workflow_id}", {"available": self.registry.ids()})

        self.chat_session = ChatSession(self.rules_engine, greeting=self.config.assistant.greeting)
        self.operator_session = OperatorSession(workflow)

    def compose(self) -> ComposeResult:
        yield Header()
        with TabbedContent(initial="tab-assistant"):
            with TabPane("Assistant", id="tab-assistant"):
                yield ChatPanel(self.chat_session, id="chat-panel")
            with TabPane("Operator", id="tab-operator"):
                yield OperatorPanel(
                    self.operator_session,
                    self.config.ui.history_time_format,
                    id="operator-panel",
                )
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#chat-input", Input).focus()
        logger.info(f"TUI started with workflow '{self.operator_session.workflow.id}'")


def run_tui(config: Optional[Config] = None, workflow_id: Optional[str] = None) -> None:
    app = LCCAssistantApp(config=config, workflow_id=workflow_id)
    app.run()


if __name__ == "__main__":
    run_tui()
