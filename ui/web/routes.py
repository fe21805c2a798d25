"""
Web Routes - JSON API endpoints
===============================

This module defines the API for LCC Assistant. It is stateless: chat
history and workflow run states travel with each request and the new
values are returned, so the client owns all session state.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from core.exceptions import WorkflowError
from core.logging import get_logger
from rules.engine import Message
from workflows.dsl import RunState, Workflow, apply_choice, current_step, start_run
from workflows.loader import (
    run_state_from_dict,
    run_state_to_dict,
    step_to_dict,
    validate_workflow,
    workflow_from_dict,
    workflow_to_dict,
)

logger = get_logger("web.routes")

router = APIRouter(prefix="/api")


# === Models ===

class ChatMessage(BaseModel):
    """Chat message model."""
    role: Literal["user", "assistant"]
    content: str


class RespondRequest(BaseModel):
    """Responder request model."""
    history: List[ChatMessage] = Field(default_factory=list)
    input: Optional[str] = ""


class HistoryEntryModel(BaseModel):
    """Workflow history entry model."""
    timestamp: str
    label: str
    choice: Optional[str] = None


class RunStateModel(BaseModel):
    """Workflow run state model."""
    step_index: int = 0
    history: List[HistoryEntryModel] = Field(default_factory=list)


class AdvanceRequest(BaseModel):
    """Workflow advance request model."""
    state: RunStateModel
    choice: Optional[str] = None


# === Helpers ===

def _get_workflow(request: Request, workflow_id: str) -> Workflow:
    workflow = request.app.state.registry.get(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return workflow


def _run_payload(workflow: Workflow, state: RunState) -> Dict[str, Any]:
    step = current_step(workflow, state)
    return {
        "workflow_id": workflow.id,
        "state": run_state_to_dict(state),
        "step": step_to_dict(step) if step is not None else None,
        "finished": step is None,
    }


# === API Routes ===

@router.get("/status")
async def get_status(request: Request):
    """Get service status."""
    config = request.app.state.config
    return {
        "app": config.app_name,
        "version": config.version,
        "rules": len(request.app.state.rules_engine.rules),
        "workflows": len(request.app.state.registry),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/rules")
async def list_rules(request: Request):
    """List the rule table in match order."""
    engine = request.app.state.rules_engine
    return {
        "rules": [
            {"name": rule.name, "pattern": rule.pattern, "response": rule.render()}
            for rule in engine.get_all_rules()
        ],
        "default_response": engine.default_response,
    }


@router.post("/respond")
async def respond(request: Request, body: RespondRequest):
    """Reply to one line of user input."""
    engine = request.app.state.rules_engine

    history = [Message.from_dict(m.model_dump()) for m in body.history]
    reply = engine.respond(history, body.input)
    matches = engine.match_all(body.input)

    return {
        "message": reply.to_dict(),
        "matched_rule": matches[0].rule.name if matches else None,
        "shadowed_rules": [m.rule.name for m in matches[1:]],
    }


@router.get("/workflows")
async def list_workflows(request: Request):
    """List available workflows."""
    return {
        "workflows": [
            {"id": wf.id, "name": wf.name, "steps": len(wf.steps)}
            for wf in request.app.state.registry
        ]
    }


@router.post("/workflows/lint")
async def lint_workflow(definition: Dict[str, Any]):
    """Parse and lint a workflow definition without registering it."""
    try:
        workflow = workflow_from_dict(definition)
    except WorkflowError as e:
        raise HTTPException(status_code=422, detail={"error": e.message, **e.details})

    issues = validate_workflow(workflow)
    return {
        "workflow_id": workflow.id,
        "valid": not issues,
        "issues": [issue.to_dict() for issue in issues],
    }


@router.get("/workflows/{workflow_id}")
async def get_workflow(request: Request, workflow_id: str):
    """Get a workflow definition."""
    return workflow_to_dict(_get_workflow(request, workflow_id))


@router.get("/workflows/{workflow_id}/validate")
async def validate(request: Request, workflow_id: str):
    """Lint a registered workflow."""
    workflow = _get_workflow(request, workflow_id)
    issues = validate_workflow(workflow)
    return {
        "workflow_id": workflow.id,
        "valid": not issues,
        "issues": [issue.to_dict() for issue in issues],
    }


@router.post("/workflows/{workflow_id}/start")
async def start(request: Request, workflow_id: str):
    """Begin a new run."""
    workflow = _get_workflow(request, workflow_id)
    return _run_payload(workflow, start_run())


@router.post("/workflows/{workflow_id}/advance")
async def advance(request: Request, workflow_id: str, body: AdvanceRequest):
    """Apply a choice to a run state and return the new state."""
    workflow = _get_workflow(request, workflow_id)

    try:
        state = run_state_from_dict(body.state.model_dump())
    except WorkflowError as e:
        raise HTTPException(status_code=422, detail={"error": e.message, **e.details})

    new_state = apply_choice(workflow, state, body.choice)
    payload = _run_payload(workflow, new_state)
    payload["applied"] = new_state is not state
    return payload
