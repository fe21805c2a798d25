"""
Workflow DSL - Step types and the run-state walker
==================================================

A workflow is an ordered list of steps. A run walks it with a single
index:

- prompt and note steps move to the next index
- decision steps jump to the ``next_index`` of the chosen option

Every transition returns a new ``RunState``; the caller keeps whichever
state it wants as current. Targets are not checked. An index past the
end (or before the start) simply means there is no current step, and
the run is finished.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Tuple, Union

from core.exceptions import WorkflowError
from core.logging import get_logger

logger = get_logger("workflows.dsl")


Clock = Callable[[], datetime]


@dataclass(frozen=True)
class DecisionOption:
    """One branch of a decision step."""
    label: str
    next_index: int


@dataclass(frozen=True)
class PromptStep:
    """Informational step with a label; advancing moves on by one."""
    label: str
    type: str = field(default="prompt", init=False)


@dataclass(frozen=True)
class DecisionStep:
    """Branching step; the chosen option decides the next index."""
    label: str
    options: Tuple[DecisionOption, ...] = ()
    type: str = field(default="decision", init=False)

    def __post_init__(self):
        object.__setattr__(self, "options", tuple(self.options))

    def find_option(self, label: Optional[str]) -> Optional[DecisionOption]:
        """Return the option whose label is exactly ``label``."""
        if label is None:
            return None
        for option in self.options:
            if option.label == label:
                return option
        return None


@dataclass(frozen=True)
class NoteStep:
    """Informational step with free text; advancing moves on by one."""
    text: str
    type: str = field(default="note", init=False)


Step = Union[PromptStep, DecisionStep, NoteStep]


@dataclass(frozen=True)
class Workflow:
    """
    A named, ordered sequence of steps.

    Attributes:
        id (str): Stable identifier
        name (str): Display name
        steps (tuple): Steps in order; indices are positions in this tuple
    """
    id: str
    name: str
    steps: Tuple[Step, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))

    def step_at(self, index: int) -> Optional[Step]:
        """Return the step at ``index``, or None when out of range."""
        if 0 <= index < len(self.steps):
            return self.steps[index]
        return None


@dataclass(frozen=True)
class HistoryEntry:
    """
    One completed step of a run.

    Attributes:
        timestamp (datetime): When the step was completed
        label (str): Step label (``"note"`` for notes, which have none)
        choice (str): Chosen option label, for decision steps only
    """
    timestamp: datetime
    label: str
    choice: Optional[str] = None


@dataclass(frozen=True)
class RunState:
    """
    Position of one run through a workflow plus its history trail.

    Attributes:
        step_index (int): Index of the current step; out of range means finished
        history (tuple): Completed steps, oldest first
    """
    step_index: int = 0
    history: Tuple[HistoryEntry, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "history", tuple(self.history))


def start_run() -> RunState:
    """Return the initial state of a run: first step, empty history."""
    return RunState(step_index=0, history=())


def current_step(workflow: Workflow, state: RunState) -> Optional[Step]:
    """Return the step the run is on, or None if the run is finished."""
    return workflow.step_at(state.step_index)


def is_finished(workflow: Workflow, state: RunState) -> bool:
    """True when the run's index no longer points at a step."""
    return current_step(workflow, state) is None


def apply_choice(
    workflow: Workflow,
    state: RunState,
    choice_label: Optional[str] = None,
    clock: Clock = datetime.now,
) -> RunState:
    """
    Advance a run by one step.

    - Finished run: ``state`` is returned unchanged.
    - Decision step: ``choice_label`` must equal one option's label
      exactly. If it does, the run jumps to that option's ``next_index``
      and the choice is recorded; otherwise ``state`` is returned
      unchanged.
    - Prompt or note step: the run moves to the next index.

    Args:
        workflow: Workflow being run
        state: Current state (not modified)
        choice_label: Option label, used by decision steps only
        clock: Source of the history timestamp

    Returns:
        The new state, or ``state`` itself for a no-op
    """
    step = current_step(workflow, state)

    if step is None:
        return state

    if isinstance(step, DecisionStep):
        option = step.find_option(choice_label)
        if option is None:
            logger.debug(f"Ignoring choice {choice_label!r} at step {state.step_index} of {workflow.id}")
            return state
        entry = HistoryEntry(timestamp=clock(), label=step.label, choice=option.label)
        next_index = option.next_index
    elif isinstance(step, PromptStep):
        entry = HistoryEntry(timestamp=clock(), label=step.label)
        next_index = state.step_index + 1
    elif isinstance(step, NoteStep):
        entry = HistoryEntry(timestamp=clock(), label=step.type)
        next_index = state.step_index + 1
    else:
        raise WorkflowError(
            f"Unsupported step object in workflow '{workflow.id}'",
            {"index": state.step_index, "step": repr(step)}
        )

    logger.debug(f"Workflow {workflow.id}: step {state.step_index} -> {next_index}")
    return RunState(step_index=next_index, history=state.history + (entry,))
