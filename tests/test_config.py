"""
Test Configuration Module
========================

Unit tests for configuration loading and validation.
"""

import os
import pytest
import yaml
from pathlib import Path

# Add parent directory to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import (
    Config, AssistantConfig, WorkflowConfig, UIConfig,
    load_config, save_config, create_default_config,
)
from core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config lookups at a temporary directory and clear overrides."""
    for name in list(os.environ):
        if name.startswith("LCC_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("LCC_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("LCC_DATA_DIR", str(tmp_path / "data"))
    return tmp_path


class TestSections:
    """Tests for the configuration sections."""

    def test_assistant_defaults(self):
        """Test default assistant values."""
        config = AssistantConfig()
        assert config.greeting == "Lifelong Catch & Correct (offline) is active."
        assert config.rules_file == ""
        assert config.seed_default_rules is True

    def test_workflow_defaults(self):
        """Test default workflow values."""
        config = WorkflowConfig()
        assert config.default_workflow == "wf-1"
        assert config.strict_targets is False

    def test_empty_default_workflow_invalid(self):
        """Test the default workflow id cannot be blank."""
        with pytest.raises(ConfigError):
            WorkflowConfig(default_workflow="").validate()

    def test_invalid_port(self):
        """Test invalid port raises error."""
        with pytest.raises(ConfigError):
            UIConfig(web_port=70000).validate()

        with pytest.raises(ConfigError):
            UIConfig(web_port=0).validate()


class TestConfig:
    """Tests for main Config class."""

    def test_default_values(self):
        """Test default configuration values."""
        config = Config()
        assert config.app_name == "LCC Assistant"
        assert config.debug is False
        assert isinstance(config.assistant, AssistantConfig)
        assert isinstance(config.ui, UIConfig)

    def test_to_dict_has_no_paths(self):
        """Test runtime paths are not written out."""
        data = Config(config_dir="/tmp/x").to_dict()
        assert set(data) == {"app_name", "version", "debug", "assistant", "workflows", "ui"}
        assert data["workflows"]["default_workflow"] == "wf-1"

    def test_resolved_paths(self):
        """Test rules and workflows default to the config directory."""
        config = Config(config_dir="/etc/lcc")
        assert config.rules_path == Path("/etc/lcc/rules.yaml")
        assert config.workflows_path == Path("/etc/lcc/workflows")

        config.assistant.rules_file = "/srv/rules.yaml"
        config.workflows.workflows_dir = "/srv/flows"
        assert config.rules_path == Path("/srv/rules.yaml")
        assert config.workflows_path == Path("/srv/flows")


class TestLoadConfig:
    """Tests for configuration loading."""

    def test_load_defaults(self, isolated_env):
        """Test loading with no config file uses defaults."""
        config = load_config()
        assert config.ui.web_port == 8080
        assert config.config_dir == str(isolated_env / "config")
        assert config.log_dir == str(isolated_env / "data" / "logs")

    def test_load_from_yaml(self, isolated_env):
        """Test values from config.yaml are applied and unknown keys ignored."""
        config_dir = isolated_env / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(yaml.safe_dump({
            "debug": True,
            "assistant": {"greeting": "Hello", "unknown_key": 1},
            "workflows": {"strict_targets": True},
        }), encoding="utf-8")

        config = load_config()

        assert config.debug is True
        assert config.assistant.greeting == "Hello"
        assert config.workflows.strict_targets is True
        assert not hasattr(config.assistant, "unknown_key")

    def test_yaml_strings_converted(self, isolated_env):
        """Test quoted booleans and numbers in config.yaml get the setting's type."""
        config_dir = isolated_env / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            'debug: "no"\n'
            'assistant:\n  seed_default_rules: "off"\n'
            'workflows:\n  strict_targets: "false"\n'
            'ui:\n  web_port: "9001"\n  web_debug: "yes"\n',
            encoding="utf-8",
        )

        config = load_config()

        assert config.debug is False
        assert config.assistant.seed_default_rules is False
        assert config.workflows.strict_targets is False
        assert config.ui.web_port == 9001
        assert config.ui.web_debug is True

    @pytest.mark.parametrize("text", [
        'workflows:\n  strict_targets: "maybe"\n',
        'ui:\n  web_port: "eighty"\n',
        'ui:\n  web_port: true\n',
    ])
    def test_yaml_bad_types(self, tmp_path, text):
        """Test values that cannot be converted raise ConfigError."""
        path = tmp_path / "typed.yaml"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path), load_env=False)

    def test_explicit_path_sets_config_dir(self, tmp_path):
        """Test files beside an explicit config are used."""
        path = tmp_path / "elsewhere" / "lcc.yaml"
        path.parent.mkdir()
        path.write_text("ui:\n  web_port: 9001\n", encoding="utf-8")

        config = load_config(str(path))

        assert config.ui.web_port == 9001
        assert config.rules_path == path.parent.resolve() / "rules.yaml"

    def test_explicit_path_missing(self, tmp_path):
        """Test a missing explicit file is an error."""
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable files raise ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("ui: [", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        """Test a top-level list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_env_overrides(self, monkeypatch):
        """Test environment variables win over defaults."""
        monkeypatch.setenv("LCC_UI_WEB_PORT", "9090")
        monkeypatch.setenv("LCC_WORKFLOWS_STRICT_TARGETS", "yes")
        monkeypatch.setenv("LCC_ASSISTANT_SEED_DEFAULT_RULES", "off")
        monkeypatch.setenv("LCC_WORKFLOWS_DEFAULT", "custom")

        config = load_config()

        assert config.ui.web_port == 9090
        assert config.workflows.strict_targets is True
        assert config.assistant.seed_default_rules is False
        assert config.workflows.default_workflow == "custom"

    def test_env_ignored_when_disabled(self, monkeypatch):
        """Test load_env=False skips overrides."""
        monkeypatch.setenv("LCC_UI_WEB_PORT", "9090")
        assert load_config(load_env=False).ui.web_port == 8080

    def test_bad_env_int(self, monkeypatch):
        """Test a non-numeric port is an error."""
        monkeypatch.setenv("LCC_UI_WEB_PORT", "eighty")
        with pytest.raises(ConfigError):
            load_config()


class TestSaveConfig:
    """Tests for writing configuration."""

    def test_save_and_load(self, tmp_path):
        """Test a saved config loads back."""
        path = tmp_path / "config.yaml"
        config = Config()
        config.assistant.greeting = "Saved greeting"
        config.ui.web_port = 8181

        save_config(config, str(path))
        loaded = load_config(str(path), load_env=False)

        assert loaded.assistant.greeting == "Saved greeting"
        assert loaded.ui.web_port == 8181

    def test_create_default_config(self, tmp_path):
        """Test the directory layout is created."""
        config_dir = tmp_path / "fresh"
        config = create_default_config(str(config_dir))

        assert (config_dir / "config.yaml").exists()
        assert (config_dir / "workflows").is_dir()
        assert Path(config.log_dir).is_dir()

    def test_create_default_config_at_path(self, tmp_path):
        """Test an explicit file name is kept and loads back."""
        path = tmp_path / "fresh" / "custom.yaml"
        config = create_default_config(config_path=str(path))

        assert path.is_file()
        assert not (path.parent / "config.yaml").exists()
        assert config.config_dir == str(path.parent.resolve())
        assert load_config(str(path), load_env=False).ui.web_port == 8080
