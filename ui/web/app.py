"""
FastAPI Application - Web API setup
===================================

Builds the FastAPI application that exposes the responder and the
workflow walker over HTTP. The rules engine and the workflow registry
are created once and shared by all requests through ``app.state``.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import Config, load_config
from core.exceptions import LCCError
from core.logging import get_logger, setup_logging
from rules.engine import RulesEngine
from workflows.definitions import build_registry
from workflows.loader import WorkflowRegistry

logger = get_logger("web.app")


def create_app(
    config: Optional[Config] = None,
    rules_engine: Optional[RulesEngine] = None,
    registry: Optional[WorkflowRegistry] = None,
    debug: bool = False
) -> FastAPI:
    """
    Create the API application.

    Anything not passed in is built from ``config``: the engine from the
    rules file and the registry from the workflows directory.

    Args:
        config: Settings (loaded from the default location if None)
        rules_engine: Responder to serve
        registry: Workflows to serve
        debug: Debug logging and FastAPI debug mode

    Returns:
        The FastAPI application
    """
    config = config or load_config()
    debug = debug or config.debug

    setup_logging(
        log_dir=config.log_dir or None,
        log_level="DEBUG" if debug else "INFO",
    )

    if rules_engine is None:
        rules_engine = RulesEngine(
            rules_file=str(config.rules_path),
            seed_defaults=config.assistant.seed_default_rules,
        )
    if registry is None:
        registry = build_registry(
            str(config.workflows_path),
            strict_targets=config.workflows.strict_targets,
        )

    app = FastAPI(
        title=config.app_name,
        description="Offline assistant and operator workflow API",
        version=config.version,
        debug=debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.rules_engine = rules_engine
    app.state.registry = registry

    from .routes import router
    app.include_router(router)

    @app.exception_handler(LCCError)
    async def handle_lcc_error(request: Request, exc: LCCError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=400, content={"error": exc.message, "details": exc.details})

    logger.info(f"API ready: {len(rules_engine.rules)} rules, {len(registry)} workflows")
    return app


def run_app(
    host: str = "127.0.0.1",
    port: int = 8080,
    debug: bool = False,
    config: Optional[Config] = None
) -> None:
    """Serve ``create_app(config)`` with uvicorn until interrupted."""
    import uvicorn

    app = create_app(config=config, debug=debug)
    logger.info(f"Serving on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="debug" if debug else "info")
