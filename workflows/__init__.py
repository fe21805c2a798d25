"""
Workflows Module - Operator decision workflows
==============================================

This module provides:
- The step types and the run-state walker (``dsl``)
- Loading, serialization and linting of definitions (``loader``)
- Built-in workflows (``definitions``)
"""

from .dsl import (
    DecisionOption,
    DecisionStep,
    HistoryEntry,
    NoteStep,
    PromptStep,
    RunState,
    Step,
    Workflow,
    apply_choice,
    current_step,
    is_finished,
    start_run,
)
from .loader import (
    ValidationIssue,
    WorkflowRegistry,
    load_workflow,
    load_workflows,
    run_state_from_dict,
    run_state_to_dict,
    validate_workflow,
    workflow_from_dict,
    workflow_to_dict,
)
from .definitions import BUILTIN_WORKFLOWS, PUBLISH_DECISION, build_registry

__all__ = [
    "DecisionOption",
    "DecisionStep",
    "HistoryEntry",
    "NoteStep",
    "PromptStep",
    "RunState",
    "Step",
    "Workflow",
    "apply_choice",
    "current_step",
    "is_finished",
    "start_run",
    "ValidationIssue",
    "WorkflowRegistry",
    "load_workflow",
    "load_workflows",
    "run_state_from_dict",
    "run_state_to_dict",
    "validate_workflow",
    "workflow_from_dict",
    "workflow_to_dict",
    "BUILTIN_WORKFLOWS",
    "PUBLISH_DECISION",
    "build_registry",
]
