"""
Built-in workflow definitions.
"""

from typing import Optional

from .dsl import DecisionOption, DecisionStep, NoteStep, PromptStep, Workflow
from .loader import WorkflowRegistry, load_workflows


PUBLISH_DECISION = Workflow(
    id="wf-1",
    name="Operator Assist: Publish Decision",
    steps=(
        PromptStep(label="Define objective"),
        DecisionStep(
            label="Risk level?",
            options=(
                DecisionOption(label="Low", next_index=3),
                DecisionOption(label="High", next_index=2),
            ),
        ),
        NoteStep(text="High risk: require review + export evidence."),
        NoteStep(text="Proceed to Publisher export when ready."),
    ),
)

BUILTIN_WORKFLOWS = (PUBLISH_DECISION,)


def build_registry(workflows_dir: Optional[str] = None, strict_targets: bool = False) -> WorkflowRegistry:
    """Built-in workflows followed by any defined in ``workflows_dir``."""
    registry = WorkflowRegistry(BUILTIN_WORKFLOWS)
    if workflows_dir:
        for workflow in load_workflows(workflows_dir, strict_targets=strict_targets):
            registry.register(workflow)
    return registry
