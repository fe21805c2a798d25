#!/usr/bin/env python3
"""
LCC Assistant - Main Entry Point
================================

This is the main entry point for LCC Assistant. It provides a
command-line interface to the offline responder and the operator
workflows, and starts the web API or the terminal UI.

Usage:
    python main.py --ask "checklist"     # One reply from the responder
    python main.py --chat                # Interactive chat on stdin
    python main.py --run wf-1            # Walk a workflow interactively
    python main.py --list-workflows      # Show available workflows
    python main.py --validate FILE       # Lint a workflow file
    python main.py --web                 # Start the web API
    python main.py --tui                 # Start the terminal UI
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional, TextIO

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, create_default_config, Config
from core.exceptions import LCCError
from core.logging import setup_logging, get_logger, set_log_context
from rules.engine import RulesEngine, DEFAULT_RULES
from services.assistant import ChatSession
from services.operator import OperatorSession
from workflows.definitions import build_registry
from workflows.dsl import DecisionStep
from workflows.loader import WorkflowRegistry, load_workflow, validate_workflow

logger = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="LCC Assistant - offline assistant and operator workflows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --ask "security"            Print one reply
  python main.py --ask "export" --explain    Show every rule that matches
  python main.py --chat                      Chat until EOF or 'quit'
  python main.py --run                       Walk the default workflow
  python main.py --validate flow.yaml        Lint a workflow file
  python main.py --web --port 9000           Start the web API on port 9000
  python main.py --init                      Write default config and rules
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--ask",
        type=str,
        metavar="TEXT",
        help="Print the responder's reply to TEXT"
    )
    mode_group.add_argument(
        "--chat",
        action="store_true",
        help="Interactive chat with the responder"
    )
    mode_group.add_argument(
        "--run",
        nargs="?",
        const="",
        metavar="WORKFLOW_ID",
        help="Walk a workflow interactively (default workflow if no id)"
    )
    mode_group.add_argument(
        "--list-workflows",
        action="store_true",
        help="List available workflows"
    )
    mode_group.add_argument(
        "--validate",
        type=str,
        metavar="PATH",
        help="Lint a workflow file"
    )
    mode_group.add_argument(
        "--rules",
        action="store_true",
        help="Print the rule table in match order"
    )
    mode_group.add_argument(
        "--init",
        action="store_true",
        help="Write default configuration and rules"
    )
    mode_group.add_argument(
        "--web",
        action="store_true",
        help="Start the web API server"
    )
    mode_group.add_argument(
        "--tui",
        action="store_true",
        help="Start the terminal UI"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="With --ask, list every matching rule in order"
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the web API (default: from config, 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host for the web API (default: from config, 127.0.0.1)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def build_engine(config: Config) -> RulesEngine:
    return RulesEngine(
        rules_file=str(config.rules_path),
        seed_defaults=config.assistant.seed_default_rules,
    )


def build_workflows(config: Config) -> WorkflowRegistry:
    return build_registry(
        str(config.workflows_path),
        strict_targets=config.workflows.strict_targets,
    )


def run_ask(engine: RulesEngine, text: str, explain: bool = False, out: Optional[TextIO] = None) -> None:
    """Print one reply, optionally with the rules that matched."""
    out = out or sys.stdout
    reply = engine.respond([], text)
    print(reply.content, file=out)

    if explain:
        matches = engine.match_all(text)
        if not matches:
            print("  (no rule matched, default response)", file=out)
        for i, match in enumerate(matches):
            marker = "✓ used" if i == 0 else "  shadowed"
            print(f"  {marker}: {match.rule.name} /{match.rule.pattern}/", file=out)


def run_chat(
    session: ChatSession,
    stdin: Optional[TextIO] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Chat on stdin until EOF or 'quit'."""
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    set_log_context(mode="chat")

    for message in session.messages:
        print(f"assistant> {message.content}", file=out)

    for line in stdin:
        text = line.strip()
        if text.lower() in ("quit", "exit"):
            break
        reply = session.send(text)
        if reply is not None:
            print(f"assistant> {reply.content}", file=out)


def run_workflow(
    session: OperatorSession,
    time_format: str,
    stdin: Optional[TextIO] = None,
    out: Optional[TextIO] = None,
) -> None:
    """
    Walk a workflow on stdin.

    Prompt and note steps advance on any line. Decision steps take the
    option label or its 1-based number.
    """
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    set_log_context(mode="run", workflow=session.workflow.id)

    print(f"Workflow: {session.workflow.name}", file=out)

    while not session.finished:
        step = session.step
        print(f"\n{session.describe_step()}", file=out)

        if isinstance(step, DecisionStep):
            choices = session.choices()
            for i, label in enumerate(choices, 1):
                print(f"  {i}) {label}", file=out)
            print("choice> ", end="", file=out)
        else:
            print("[enter to continue] ", end="", file=out)
        out.flush()

        line = stdin.readline()
        if not line:
            print("", file=out)
            break
        answer = line.strip()

        if isinstance(step, DecisionStep):
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                answer = choices[int(answer) - 1]
            before = session.state
            if session.advance(answer) is before:
                print(f"Unknown option: {answer!r}", file=out)
        else:
            session.advance()

    if session.finished:
        print(f"\n{session.describe_step()}", file=out)

    print("\nHistory:", file=out)
    for line in session.history_lines(time_format):
        print(line, file=out)


def run_list_workflows(registry: WorkflowRegistry, out: Optional[TextIO] = None) -> None:
    """Print id, name and step count of each workflow."""
    out = out or sys.stdout
    for workflow in registry:
        print(f"{workflow.id:<16} {workflow.name} ({len(workflow.steps)} steps)", file=out)


def run_validate(path: str, out: Optional[TextIO] = None) -> int:
    """Lint a workflow file. Returns the process exit code."""
    out = out or sys.stdout
    workflow = load_workflow(path)
    issues = validate_workflow(workflow)

    if not issues:
        print(f"✓ {workflow.id}: {len(workflow.steps)} steps, no issues", file=out)
        return 0

    print(f"✗ {workflow.id}: {len(issues)} issue(s)", file=out)
    for issue in issues:
        where = f"step {issue.step_index}" if issue.step_index is not None else "workflow"
        print(f"  [{issue.code}] {where}: {issue.message}", file=out)
    return 1


def run_rules(engine: RulesEngine, out: Optional[TextIO] = None) -> None:
    """Print the rule table in match order."""
    out = out or sys.stdout
    for i, rule in enumerate(engine.get_all_rules(), 1):
        print(f"{i:>2}. {rule.name:<16} /{rule.pattern}/ → {rule.render()}", file=out)
    print(f"    default → {engine.default_response}", file=out)


def run_init(config_path: Optional[str] = None, out: Optional[TextIO] = None) -> None:
    """Write the default config file and rules.yaml (at ``config_path`` if given)."""
    out = out or sys.stdout
    config = create_default_config(config_path=config_path)
    engine = RulesEngine(rules=DEFAULT_RULES, rules_file=str(config.rules_path))
    if not config.rules_path.exists():
        engine.save_rules()
    written = config_path or str(Path(config.config_dir) / "config.yaml")
    print(f"✓ Configuration written to {written}", file=out)
    print(f"✓ Rules file: {config.rules_path}", file=out)
    print(f"✓ Workflows directory: {config.workflows_path}", file=out)


def log_level_for(args: argparse.Namespace, config: Config) -> str:
    """
    Logging level for a run.

    One-shot modes only show warnings. The web server and the TUI also
    log startup information; the TUI logs to files only.
    """
    if config.debug:
        return "DEBUG"
    if args.web or args.tui:
        return "INFO"
    return "WARNING"


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        if args.init:
            run_init(args.config)
            return 0

        config = load_config(args.config)
        if args.debug:
            config.debug = True

        setup_logging(
            log_dir=config.log_dir,
            log_level=log_level_for(args, config),
            console_output=not args.tui
        )

        if args.ask is not None:
            run_ask(build_engine(config), args.ask, explain=args.explain)
        elif args.chat:
            session = ChatSession(build_engine(config), greeting=config.assistant.greeting)
            run_chat(session)
        elif args.run is not None:
            registry = build_workflows(config)
            workflow_id = args.run or config.workflows.default_workflow
            workflow = registry.get(workflow_id)
            if workflow is None:
                print(f"Unknown workflow: {workflow_id}", file=sys.stderr)
                print(f"Available: {', '.join(registry.ids())}", file=sys.stderr)
                return 1
            run_workflow(OperatorSession(workflow), config.ui.history_time_format)
        elif args.list_workflows:
            run_list_workflows(build_workflows(config))
        elif args.validate:
            return run_validate(args.validate)
        elif args.rules:
            run_rules(build_engine(config))
        elif args.web:
            from ui.web.app import run_app
            host = args.host or config.ui.web_host
            port = args.port or config.ui.web_port
            print(f"\nStarting web API on http://{host}:{port}")
            print("Press Ctrl+C to stop\n")
            run_app(host=host, port=port, debug=config.debug or config.ui.web_debug, config=config)
        elif args.tui:
            from ui.terminal.app import run_tui
            run_tui(config=config)
        else:
            print("No mode specified. Use --ask, --chat, --run, --web, --tui or --help")
            print("\nQuick start:")
            print("  python main.py --ask checklist")
            print("  python main.py --run")

        return 0

    except LCCError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
