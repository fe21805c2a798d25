"""
Operator Session - Host-side owner of a workflow run
====================================================

Wraps the pure walker with the one piece of state a host screen needs:
the current ``RunState``. Also formats steps and the history trail for
display.
"""

from datetime import datetime
from typing import List, Optional

from core.logging import get_logger
from workflows.dsl import (
    Clock,
    DecisionStep,
    NoteStep,
    RunState,
    Step,
    Workflow,
    apply_choice,
    current_step,
    start_run,
)

logger = get_logger("services.operator")


DONE_TEXT = "Done."
DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def describe_step(step: Optional[Step]) -> str:
    """Display text for a step; ``DONE_TEXT`` when there is none."""
    if step is None:
        return DONE_TEXT
    if isinstance(step, NoteStep):
        return step.text
    return step.label


def format_history(state: RunState, time_format: str = DEFAULT_TIME_FORMAT) -> List[str]:
    """
    Render a run's history trail, one line per completed step.

    Example line: ``• 2026-01-04 10:15:02: Risk level? → High``
    """
    lines = []
    for entry in state.history:
        line = f"• {entry.timestamp.strftime(time_format)}: {entry.label}"
        if entry.choice:
            line += f" → {entry.choice}"
        lines.append(line)
    return lines


class OperatorSession:
    """
    A single run through one workflow.

    Example:
        session = OperatorSession(PUBLISH_DECISION)
        session.advance()          # prompt
        session.advance("High")    # decision
        print(session.describe_step())
    """

    def __init__(self, workflow: Workflow, clock: Clock = datetime.now):
        self.workflow = workflow
        self.clock = clock
        self.state: RunState = start_run()

    @property
    def step(self) -> Optional[Step]:
        """Current step, or None when the run is finished."""
        return current_step(self.workflow, self.state)

    @property
    def finished(self) -> bool:
        return self.step is None

    def choices(self) -> List[str]:
        """Option labels of the current decision step."""
        step = self.step
        if isinstance(step, DecisionStep):
            return [option.label for option in step.options]
        return []

    def advance(self, choice: Optional[str] = None) -> RunState:
        """
        Apply a choice (or a plain "next") to the current step.

        Returns:
            The new current state; unchanged when the choice did not apply
        """
        previous = self.state
        self.state = apply_choice(self.workflow, previous, choice, clock=self.clock)
        if self.state is previous:
            logger.debug(f"No transition for choice {choice!r} in {self.workflow.id}")
        return self.state

    def reset(self) -> None:
        """Discard the run and start again from the first step."""
        self.state = start_run()

    def describe_step(self) -> str:
        return describe_step(self.step)

    def history_lines(self, time_format: str = DEFAULT_TIME_FORMAT) -> List[str]:
        return format_history(self.state, time_format)
