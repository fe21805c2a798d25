"""
Workflow Loader - Declarative workflow files and state transport
================================================================

Workflows are authored as plain data (YAML files or JSON bodies):

    id: wf-1
    name: "Operator Assist: Publish Decision"
    steps:
      - type: prompt
        label: Define objective
      - type: decision
        label: Risk level?
        options:
          - {label: Low, next: 3}
          - {label: High, next: 2}
      - type: note
        text: "High risk: require review + export evidence."

This module converts between that shape and the ``workflows.dsl``
types, serializes run states for hosts that carry them across requests,
and lints definitions.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

from core.exceptions import WorkflowError
from core.logging import get_logger
from .dsl import (
    DecisionOption,
    DecisionStep,
    HistoryEntry,
    NoteStep,
    PromptStep,
    RunState,
    Step,
    Workflow,
)

logger = get_logger("workflows.loader")


WORKFLOW_SUFFIXES = (".yaml", ".yml")


def _require(data: Dict[str, Any], key: str, context: Dict[str, Any]) -> Any:
    if key not in data or data[key] is None:
        raise WorkflowError(f"Missing required key '{key}'", context)
    return data[key]


def _step_from_dict(data: Any, index: int) -> Step:
    context = {"step": index}
    if not isinstance(data, dict):
        raise WorkflowError("Step must be a mapping", context)

    step_type = data.get("type")
    if step_type == "prompt":
        return PromptStep(label=str(_require(data, "label", context)))

    if step_type == "note":
        return NoteStep(text=str(_require(data, "text", context)))

    if step_type == "decision":
        label = str(_require(data, "label", context))
        raw_options = data.get("options") or []
        if not isinstance(raw_options, list):
            raise WorkflowError("Decision options must be a list", context)
        options = []
        for option in raw_options:
            if not isinstance(option, dict):
                raise WorkflowError("Decision option must be a mapping", context)
            target = _require(option, "next", context)
            # bool is an int subclass but never a meaningful target
            if isinstance(target, bool) or not isinstance(target, int):
                raise WorkflowError(
                    "Decision option 'next' must be an integer",
                    {**context, "option": option.get("label")}
                )
            options.append(DecisionOption(label=str(_require(option, "label", context)), next_index=target))
        return DecisionStep(label=label, options=tuple(options))

    raise WorkflowError(f"Unknown step type: {step_type!r}", context)


def workflow_from_dict(data: Dict[str, Any]) -> Workflow:
    """
    Build a Workflow from its declarative form.

    Raises:
        WorkflowError: If the definition is malformed
    """
    if not isinstance(data, dict):
        raise WorkflowError("Workflow definition must be a mapping")

    workflow_id = str(_require(data, "id", {}))
    context = {"workflow": workflow_id}
    name = str(_require(data, "name", context))
    raw_steps = data.get("steps") or []
    if not isinstance(raw_steps, list):
        raise WorkflowError("Workflow steps must be a list", context)

    try:
        steps = tuple(_step_from_dict(step, i) for i, step in enumerate(raw_steps))
    except WorkflowError as e:
        raise WorkflowError(e.message, {**context, **e.details})

    return Workflow(id=workflow_id, name=name, steps=steps)


def step_to_dict(step: Step) -> Dict[str, Any]:
    """Convert a step to its declarative form."""
    if isinstance(step, DecisionStep):
        return {
            "type": step.type,
            "label": step.label,
            "options": [{"label": o.label, "next": o.next_index} for o in step.options],
        }
    if isinstance(step, PromptStep):
        return {"type": step.type, "label": step.label}
    if isinstance(step, NoteStep):
        return {"type": step.type, "text": step.text}
    raise WorkflowError(f"Unsupported step object: {step!r}")


def workflow_to_dict(workflow: Workflow) -> Dict[str, Any]:
    """Convert a Workflow to its declarative form."""
    return {
        "id": workflow.id,
        "name": workflow.name,
        "steps": [step_to_dict(step) for step in workflow.steps],
    }


def run_state_to_dict(state: RunState) -> Dict[str, Any]:
    """Convert a run state to a JSON-safe dictionary."""
    history = []
    for entry in state.history:
        item = {"timestamp": entry.timestamp.isoformat(), "label": entry.label}
        if entry.choice is not None:
            item["choice"] = entry.choice
        history.append(item)
    return {"step_index": state.step_index, "history": history}


def run_state_from_dict(data: Dict[str, Any]) -> RunState:
    """
    Rebuild a run state from ``run_state_to_dict`` output.

    Raises:
        WorkflowError: If the data is malformed
    """
    if not isinstance(data, dict):
        raise WorkflowError("Run state must be a mapping")

    step_index = data.get("step_index", 0)
    if isinstance(step_index, bool) or not isinstance(step_index, int):
        raise WorkflowError("step_index must be an integer", {"step_index": step_index})

    history = []
    for i, item in enumerate(data.get("history") or []):
        try:
            history.append(HistoryEntry(
                timestamp=datetime.fromisoformat(item["timestamp"]),
                label=str(item["label"]),
                choice=item.get("choice"),
            ))
        except (KeyError, TypeError, ValueError) as e:
            raise WorkflowError(f"Invalid history entry: {e}", {"entry": i})

    return RunState(step_index=step_index, history=tuple(history))


@dataclass(frozen=True)
class ValidationIssue:
    """
    One finding of ``validate_workflow``.

    Attributes:
        code (str): Machine-readable issue code
        message (str): Human-readable description
        step_index (int): Offending step, if any
    """
    code: str
    message: str
    step_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "step_index": self.step_index}


def validate_workflow(workflow: Workflow) -> List[ValidationIssue]:
    """
    Lint a workflow definition.

    This never raises and never changes how runs behave; an out-of-range
    target still just ends the run when it is taken.

    Returns:
        Issues found, in step order (empty when the workflow is clean)
    """
    issues = []
    count = len(workflow.steps)

    if count == 0:
        issues.append(ValidationIssue("EMPTY_WORKFLOW", f"Workflow '{workflow.id}' has no steps"))

    for index, step in enumerate(workflow.steps):
        if not isinstance(step, DecisionStep):
            continue

        if not step.options:
            issues.append(ValidationIssue(
                "NO_OPTIONS",
                f"Decision '{step.label}' has no options, runs cannot leave it",
                index,
            ))

        seen = set()
        for option in step.options:
            if option.label in seen:
                issues.append(ValidationIssue(
                    "DUPLICATE_OPTION",
                    f"Decision '{step.label}' repeats option '{option.label}', only the first is reachable",
                    index,
                ))
            seen.add(option.label)

            if not 0 <= option.next_index < count:
                issues.append(ValidationIssue(
                    "TARGET_OUT_OF_RANGE",
                    f"Option '{option.label}' of '{step.label}' targets step {option.next_index}, "
                    f"workflow has {count} steps",
                    index,
                ))

    return issues


def _check_strict(workflow: Workflow, source: str) -> None:
    out_of_range = [i for i in validate_workflow(workflow) if i.code == "TARGET_OUT_OF_RANGE"]
    if out_of_range:
        raise WorkflowError(
            f"Workflow '{workflow.id}' has out-of-range targets",
            {"path": source, "issues": [i.message for i in out_of_range]}
        )


def load_workflow(path: str, strict_targets: bool = False) -> Workflow:
    """
    Load a single workflow from a YAML file.

    Args:
        path: File to read
        strict_targets: Reject decision targets outside the step list

    Raises:
        WorkflowError: If the file cannot be read or the definition is malformed
    """
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise WorkflowError(f"Failed to parse workflow file: {e}", {"path": str(file_path)})
    except IOError as e:
        raise WorkflowError(f"Failed to read workflow file: {e}", {"path": str(file_path)})

    try:
        workflow = workflow_from_dict(data)
    except WorkflowError as e:
        raise WorkflowError(e.message, {"path": str(file_path), **e.details})

    if strict_targets:
        _check_strict(workflow, str(file_path))

    for issue in validate_workflow(workflow):
        logger.warning(f"{file_path.name}: {issue.message}")

    return workflow


def load_workflows(directory: str, strict_targets: bool = False) -> List[Workflow]:
    """
    Load every workflow file in a directory, sorted by file name.

    A missing directory yields no workflows.

    Raises:
        WorkflowError: If a file is malformed or two files share an id
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        return []

    workflows = []
    seen = {}
    for file_path in sorted(p for p in dir_path.iterdir() if p.suffix in WORKFLOW_SUFFIXES):
        workflow = load_workflow(str(file_path), strict_targets=strict_targets)
        if workflow.id in seen:
            raise WorkflowError(
                f"Duplicate workflow id '{workflow.id}'",
                {"paths": [seen[workflow.id], str(file_path)]}
            )
        seen[workflow.id] = str(file_path)
        workflows.append(workflow)

    logger.debug(f"Loaded {len(workflows)} workflows from {dir_path}")
    return workflows


class WorkflowRegistry:
    """
    Ordered collection of workflows keyed by id.

    Registering an id that already exists replaces the earlier
    definition in place, which lets a workflow file override a built-in.
    """

    def __init__(self, workflows: Optional[Iterable[Workflow]] = None):
        self._workflows: Dict[str, Workflow] = {}
        for workflow in workflows or ():
            self.register(workflow)

    def register(self, workflow: Workflow) -> None:
        if workflow.id in self._workflows:
            logger.info(f"Workflow '{workflow.id}' overridden")
        self._workflows[workflow.id] = workflow

    def get(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    def ids(self) -> List[str]:
        return list(self._workflows)

    def __contains__(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def __iter__(self) -> Iterator[Workflow]:
        return iter(list(self._workflows.values()))

    def __len__(self) -> int:
        return len(self._workflows)
