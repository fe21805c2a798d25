"""
Rules Engine - Ordered pattern matching for offline responses
=============================================================

This module implements the offline responder: incoming text is checked
against an ordered table of rules and the first rule whose pattern matches
supplies the reply.

There is no priority field. The position of a rule in the table is its
priority, so more specific patterns must come before more general ones
or they will be shadowed.
"""

import re
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Callable, Iterable, Sequence, Union

from core.exceptions import RuleError
from core.logging import get_logger

logger = get_logger("rules.engine")


ResponseProducer = Union[str, Callable[[], str]]

DEFAULT_RESPONSE = "LCC active (offline). Try: checklist | security | export"


class Role(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """
    A single chat turn.

    Attributes:
        role (Role): Who wrote the message
        content (str): Message text
    """
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        """Convert message to dictionary."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create message from dictionary."""
        return cls(role=Role(data["role"]), content=str(data.get("content", "")))


@dataclass(frozen=True)
class RuleMatch:
    """
    Result of a rule matching a message.

    Attributes:
        rule (Rule): The matching rule
        text (str): The text that was matched (already stripped)
        groups (dict): Named groups captured by the pattern
    """
    rule: "Rule"
    text: str
    groups: Dict[str, str] = field(default_factory=dict)

    def get_response(self) -> str:
        """Produce the reply text of the matched rule."""
        return self.rule.render()


@dataclass(frozen=True)
class Rule:
    """
    A single (pattern, response) pair.

    The pattern is a regular expression searched case-insensitively
    anywhere in the text, so a plain word behaves like a substring test.
    It is compiled once, when the rule is created.

    Attributes:
        name (str): Unique rule name
        pattern (str): Regular expression source
        response: Fixed reply text, or a zero-argument callable producing it
    """
    name: str
    pattern: str
    response: ResponseProducer
    _regex: "re.Pattern" = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise RuleError("Rule name cannot be empty")
        if not isinstance(self.pattern, str):
            raise RuleError(f"Pattern for rule '{self.name}' must be a string")
        if not (isinstance(self.response, str) or callable(self.response)):
            raise RuleError(f"Response for rule '{self.name}' must be a string or callable")
        try:
            regex = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise RuleError(
                f"Invalid pattern for rule '{self.name}': {e}",
                {"pattern": self.pattern}
            )
        object.__setattr__(self, "_regex", regex)

    def matches(self, text: str) -> Optional[RuleMatch]:
        """
        Check if this rule matches a piece of text.

        Args:
            text: Text to check

        Returns:
            RuleMatch if matched, None otherwise
        """
        match = self._regex.search(text)
        if match is None:
            return None
        groups = {k: v for k, v in match.groupdict().items() if v is not None}
        return RuleMatch(rule=self, text=text, groups=groups)

    def render(self) -> str:
        """Produce the reply text."""
        if callable(self.response):
            return str(self.response())
        return self.response

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert rule to dictionary.

        Raises:
            RuleError: If the response is a callable, which has no file form
        """
        if callable(self.response):
            raise RuleError(f"Rule '{self.name}' has a computed response and cannot be saved")
        return {
            "name": self.name,
            "pattern": self.pattern,
            "response": self.response,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """
        Create rule from dictionary.

        Raises:
            RuleError: If a required key is missing or the pattern is invalid
        """
        if not isinstance(data, dict):
            raise RuleError("Rule entry must be a mapping", {"entry": repr(data)})
        missing = [key for key in ("name", "pattern", "response") if key not in data]
        if missing:
            raise RuleError(
                f"Rule entry is missing {', '.join(missing)}",
                {"name": data.get("name")}
            )
        return cls(
            name=str(data["name"]),
            pattern=str(data["pattern"]),
            response=str(data["response"]),
        )


DEFAULT_RULES = (
    Rule(
        name="checklist",
        pattern="checklist",
        response="Checklist: lint → build → export → test → zip",
    ),
    Rule(
        name="security",
        pattern="security",
        response="Security: no network, no secrets, local-only persistence, dependency review.",
    ),
    Rule(
        name="export",
        pattern="export",
        response="Exports: MD is text; PDF uses client render capture (no server).",
    ),
)


def _normalize(text: Optional[str]) -> str:
    if text is None:
        return ""
    return str(text).strip()


class RulesEngine:
    """
    Ordered rule table with first-match-wins resolution.

    Example:
        engine = RulesEngine(rules=[
            Rule(name="greeting", pattern=r"\\b(hello|hi)\\b", response="Hello!"),
        ])

        reply = engine.respond([], "hi there")
        print(reply.content)  # Hello!

    When ``config_dir`` is given the table is read from ``rules.yaml`` in
    that directory; a missing file is seeded with the built-in table.
    Without either argument the built-in table is used.
    """

    def __init__(
        self,
        config_dir: Optional[str] = None,
        rules: Optional[Iterable[Rule]] = None,
        default_response: str = DEFAULT_RESPONSE,
        rules_file: Optional[str] = None,
        seed_defaults: bool = True,
    ):
        """
        Initialize rules engine.

        Args:
            config_dir: Directory containing rules.yaml
            rules: Explicit rule table (takes precedence over files)
            default_response: Reply used when no rule matches
            rules_file: Explicit rules file path (overrides config_dir)
            seed_defaults: Write the built-in table when the file is missing
        """
        self.rules: List[Rule] = []
        self.default_response = default_response
        self.config_dir = Path(config_dir) if config_dir else None

        if rules_file:
            self.rules_file: Optional[Path] = Path(rules_file)
        elif self.config_dir:
            self.rules_file = self.config_dir / "rules.yaml"
        else:
            self.rules_file = None

        if rules is not None:
            for rule in rules:
                self.add_rule(rule)
        elif self.rules_file:
            self._load_rules(self.rules_file, seed_defaults)
        else:
            for rule in DEFAULT_RULES:
                self.add_rule(rule)

    def add_rule(self, rule: Rule) -> None:
        """
        Append a rule to the end of the table.

        Raises:
            RuleError: If a rule with the same name already exists
        """
        if self.get_rule(rule.name) is not None:
            raise RuleError(f"Duplicate rule name: {rule.name}")
        self.rules.append(rule)

    def remove_rule(self, name: str) -> bool:
        """
        Remove a rule by name.

        Returns:
            True if rule was removed
        """
        for i, rule in enumerate(self.rules):
            if rule.name == name:
                del self.rules[i]
                return True
        return False

    def get_rule(self, name: str) -> Optional[Rule]:
        """Get a rule by name."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    def get_all_rules(self) -> List[Rule]:
        """Get all rules, in table order."""
        return self.rules.copy()

    def match(self, text: Optional[str]) -> Optional[RuleMatch]:
        """
        Find the first rule in table order that matches the text.

        Args:
            text: Text to match; stripped before matching

        Returns:
            RuleMatch if found, None otherwise
        """
        normalized = _normalize(text)
        for rule in self.rules:
            match = rule.matches(normalized)
            if match:
                return match
        return None

    def match_all(self, text: Optional[str]) -> List[RuleMatch]:
        """
        Find all matching rules, in table order.

        Only the first entry would be used by ``respond``; the rest are
        the rules it shadows.
        """
        normalized = _normalize(text)
        matches = []
        for rule in self.rules:
            match = rule.matches(normalized)
            if match:
                matches.append(match)
        return matches

    def respond(self, history: Sequence[Message], text: Optional[str]) -> Message:
        """
        Produce the assistant reply for a piece of user input.

        ``history`` is accepted for context-aware rules but is not read by
        the matcher. The result depends only on ``text`` and the table.

        Args:
            history: Conversation so far (not modified)
            text: Raw user input; None is treated as empty

        Returns:
            Assistant message from the first matching rule, or the
            default response
        """
        match = self.match(text)
        if match is None:
            logger.debug("No rule matched, using default response")
            return Message(role=Role.ASSISTANT, content=self.default_response)

        logger.debug(f"Rule '{match.rule.name}' matched")
        return Message(role=Role.ASSISTANT, content=match.get_response())

    def _load_rules(self, rules_file: Path, seed_defaults: bool) -> None:
        """
        Load rules from a YAML file.

        Entries that fail to build are logged and skipped so one bad
        pattern does not take the whole table down.

        Raises:
            RuleError: If the file cannot be read or parsed
        """
        if not rules_file.exists():
            for rule in DEFAULT_RULES:
                self.add_rule(rule)
            if seed_defaults:
                self.save_rules(rules_file)
                logger.info(f"Created default rules file at {rules_file}")
            return

        try:
            with open(rules_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuleError(f"Failed to parse rules file: {e}", {"path": str(rules_file)})
        except IOError as e:
            raise RuleError(f"Failed to read rules file: {e}", {"path": str(rules_file)})

        if not isinstance(data, dict):
            raise RuleError("Rules file must contain a mapping", {"path": str(rules_file)})

        if data.get("default_response"):
            self.default_response = str(data["default_response"])

        for index, rule_data in enumerate(data.get("rules") or []):
            try:
                self.add_rule(Rule.from_dict(rule_data))
            except RuleError as e:
                logger.warning(f"Skipping rule #{index} in {rules_file}: {e}")

        logger.debug(f"Loaded {len(self.rules)} rules from {rules_file}")

    def save_rules(self, path: Optional[Path] = None) -> None:
        """
        Save current rules to file.

        Args:
            path: Path to save to (uses the engine's rules file if not specified)

        Raises:
            RuleError: If there is nowhere to save or the file cannot be written
        """
        if path is None:
            path = self.rules_file
        if path is None:
            raise RuleError("No rules file configured")

        data = {
            "default_response": self.default_response,
            "rules": [rule.to_dict() for rule in self.rules],
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except IOError as e:
            raise RuleError(f"Failed to write rules file: {e}", {"path": str(path)})


_default_engine = RulesEngine(rules=DEFAULT_RULES)


def respond(history: Sequence[Message], text: Optional[str]) -> Message:
    """
    Reply using the built-in rule table.

    Example:
        respond([], "CHECKLIST?").content
        # 'Checklist: lint → build → export → test → zip'
    """
    return _default_engine.respond(history, text)
