"""
Configuration - config.yaml plus LCC_* environment overrides
============================================================

Settings are resolved in three layers, later layers winning:
1. Dataclass defaults
2. ``config.yaml`` in the config directory (or an explicit file)
3. ``LCC_<SECTION>_<KEY>`` environment variables

The config directory also holds ``rules.yaml`` and the ``workflows/``
directory unless the settings point elsewhere.
"""

import os
import yaml
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .exceptions import ConfigError


APP_DIR_NAME = "lcc-assistant"
CONFIG_FILE_NAME = "config.yaml"

TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off")


@dataclass
class AssistantConfig:
    """
    Offline assistant configuration.

    Controls the chat side of the application: the greeting shown when
    a session opens and where the ordered rule table is read from.
    """
    greeting: str = "Lifelong Catch & Correct (offline) is active."

    # Empty means <config_dir>/rules.yaml
    rules_file: str = ""

    # Write the built-in rule table when the rules file is missing
    seed_default_rules: bool = True

    def validate(self) -> None:
        if not isinstance(self.greeting, str):
            raise ConfigError("assistant.greeting must be a string")


@dataclass
class WorkflowConfig:
    """
    Operator workflow configuration.

    Workflows are declarative YAML files; the built-in definitions are
    always available and files in ``workflows_dir`` are added on top.
    """
    # Empty means <config_dir>/workflows
    workflows_dir: str = ""
    default_workflow: str = "wf-1"

    # Reject decision targets outside the step list at load time
    strict_targets: bool = False

    def validate(self) -> None:
        if not self.default_workflow:
            raise ConfigError("workflows.default_workflow cannot be empty")


@dataclass
class UIConfig:
    """Settings for the web API and the terminal UI."""
    web_host: str = "127.0.0.1"
    web_port: int = 8080
    web_debug: bool = False

    # strftime format for workflow history lines
    history_time_format: str = "%Y-%m-%d %H:%M:%S"

    def validate(self) -> None:
        if not isinstance(self.web_port, int) or not 0 < self.web_port < 65536:
            raise ConfigError(f"ui.web_port out of range: {self.web_port!r}")


SECTIONS = ("assistant", "workflows", "ui")
PATH_KEYS = ("config_dir", "data_dir", "log_dir")


@dataclass
class Config:
    """
    Complete application settings.

    ``config_dir``, ``data_dir`` and ``log_dir`` are resolved at load
    time and are not written back by ``save_config``.
    """
    app_name: str = "LCC Assistant"
    version: str = "1.0.0"
    debug: bool = False

    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    workflows: WorkflowConfig = field(default_factory=WorkflowConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    config_dir: str = ""
    data_dir: str = ""
    log_dir: str = ""

    def validate(self) -> None:
        """
        Check every section.

        Raises:
            ConfigError: On the first invalid setting
        """
        for section in SECTIONS:
            getattr(self, section).validate()

    @property
    def rules_path(self) -> Path:
        """Resolved path of the rules file."""
        if self.assistant.rules_file:
            return Path(self.assistant.rules_file).expanduser()
        return Path(self.config_dir) / "rules.yaml"

    @property
    def workflows_path(self) -> Path:
        """Resolved path of the workflows directory."""
        if self.workflows.workflows_dir:
            return Path(self.workflows.workflows_dir).expanduser()
        return Path(self.config_dir) / "workflows"

    def to_dict(self) -> Dict[str, Any]:
        """Settings as written to config.yaml (runtime paths excluded)."""
        data: Dict[str, Any] = {
            "app_name": self.app_name,
            "version": self.version,
            "debug": self.debug,
        }
        for section in SECTIONS:
            data[section] = asdict(getattr(self, section))
        return data


def get_default_config_dir() -> Path:
    """``$LCC_CONFIG_DIR``, else the XDG config home, else ``~/.config`` or ``~/.lcc-assistant``."""
    override = os.environ.get("LCC_CONFIG_DIR")
    if override:
        return Path(override)

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    dot_config = Path.home() / ".config"
    if dot_config.exists():
        return dot_config / APP_DIR_NAME
    return Path.home() / f".{APP_DIR_NAME}"


def get_default_data_dir() -> Path:
    """``$LCC_DATA_DIR``, else the XDG data home, else ``~/.local/share``."""
    override = os.environ.get("LCC_DATA_DIR")
    if override:
        return Path(override)

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    return Path.home() / ".local" / "share" / APP_DIR_NAME


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}", {"path": str(path)})
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}", {"path": str(path)})

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping", {"path": str(path)})
    return data


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Build the effective configuration.

    With ``config_path`` the file must exist, and its directory becomes
    the config directory. Without it, ``config.yaml`` in the default
    config directory is read if present.

    Args:
        config_path: Explicit config file
        load_env: Apply ``LCC_*`` environment overrides

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    config = Config(
        config_dir=str(get_default_config_dir()),
        data_dir=str(get_default_data_dir()),
    )
    config.log_dir = str(Path(config.data_dir) / "logs")

    if config_path:
        source = Path(config_path)
        if not source.is_file():
            raise ConfigError("Config file not found", {"path": str(source)})
        config.config_dir = str(source.resolve().parent)
    else:
        source = Path(config.config_dir) / CONFIG_FILE_NAME

    if source.is_file():
        _apply_yaml_config(config, _read_yaml_mapping(source))

    if load_env:
        _apply_env_overrides(config)

    config.validate()
    return config


def _coerce(name: str, current: Any, value: Any) -> Any:
    """
    Convert a YAML value to the type of the setting it replaces.

    Booleans accept true/false and the strings in ``TRUE_STRINGS`` or
    ``FALSE_STRINGS``; integers accept ints and numeric strings.

    Raises:
        ConfigError: If the value cannot be converted
    """
    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        raise ConfigError(f"Invalid boolean for {name}: {value!r}")

    if isinstance(current, int):
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer for {name}: {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid integer for {name}: {value!r}")

    if value is None:
        return current
    return str(value)


def _apply_yaml_config(config: Config, data: Dict[str, Any]) -> None:
    """Copy known keys from parsed YAML onto ``config``; unknown keys are ignored."""
    for key in ("app_name", "version", "debug") + PATH_KEYS:
        if key in data:
            setattr(config, key, _coerce(key, getattr(config, key), data[key]))

    for section in SECTIONS:
        values = data.get(section) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Section '{section}' must be a mapping")
        target = getattr(config, section)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, _coerce(f"{section}.{key}", getattr(target, key), value))


def _to_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_STRINGS


ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "LCC_ASSISTANT_GREETING": ("assistant", "greeting", str),
    "LCC_ASSISTANT_RULES_FILE": ("assistant", "rules_file", str),
    "LCC_ASSISTANT_SEED_DEFAULT_RULES": ("assistant", "seed_default_rules", _to_bool),
    "LCC_WORKFLOWS_DIR": ("workflows", "workflows_dir", str),
    "LCC_WORKFLOWS_DEFAULT": ("workflows", "default_workflow", str),
    "LCC_WORKFLOWS_STRICT_TARGETS": ("workflows", "strict_targets", _to_bool),
    "LCC_UI_WEB_HOST": ("ui", "web_host", str),
    "LCC_UI_WEB_PORT": ("ui", "web_port", int),
    "LCC_UI_WEB_DEBUG": ("ui", "web_debug", _to_bool),
}


def _apply_env_overrides(config: Config) -> None:
    """
    Apply ``ENV_OVERRIDES`` present in the environment.

    Raises:
        ConfigError: If a value cannot be converted
    """
    for env_var, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            value = convert(raw)
        except ValueError:
            raise ConfigError(f"Invalid value for {env_var}: {raw!r}")
        setattr(getattr(config, section), key, value)


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """
    Write ``config.to_dict()`` as YAML.

    Args:
        config: Settings to write
        config_path: Destination (default ``<config_dir>/config.yaml``)

    Raises:
        ConfigError: If the file cannot be written
    """
    target = Path(config_path) if config_path else Path(config.config_dir) / CONFIG_FILE_NAME

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    except OSError as e:
        raise ConfigError(f"Cannot write config file: {e}", {"path": str(target)})


def create_default_config(config_dir: Optional[str] = None, config_path: Optional[str] = None) -> Config:
    """
    Create the directory layout and a default config file.

    With ``config_path`` the file is written there and its directory is
    the config directory. With ``config_dir`` (or a config path) the data
    and log directories are placed inside it; otherwise the default
    locations are used.

    Returns:
        The default configuration with its paths filled in
    """
    if config_path:
        config_dir = str(Path(config_path).expanduser().resolve().parent)

    if config_dir:
        base = Path(config_dir)
        config = Config(config_dir=str(base), data_dir=str(base / "data"), log_dir=str(base / "logs"))
    else:
        data_dir = get_default_data_dir()
        config = Config(
            config_dir=str(get_default_config_dir()),
            data_dir=str(data_dir),
            log_dir=str(data_dir / "logs"),
        )

    try:
        for directory in (Path(config.config_dir), Path(config.data_dir), Path(config.log_dir), config.workflows_path):
            directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Cannot create config directories: {e}", {"path": config.config_dir})

    save_config(config, config_path)
    return config
