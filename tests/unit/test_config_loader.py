"""Tests for configuration loader."""

from pathlib import Path

import pytest
from triage_config import ConfigurationError, load_config_from_dict, load_config_from_yaml
from triage_config.schemas import TriageConfig

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestLoadConfigFromYaml:
    """Tests for load_config_from_yaml function."""

    def test_load_valid_config(self, tmp_path):
        """Test loading a valid YAML configuration."""
        config_file = tmp_path / "triage.yaml"
        config_file.write_text(
            """
thresholds:
  critical: 90
  high: 70
  medium: 50
  low: 25

matching:
  max_load: 3

specialists:
  - id: spec_1
    name: Ada
    specialties: [compliance]
"""
        )

        config = load_config_from_yaml(config_file)

        assert isinstance(config, TriageConfig)
        assert config.thresholds.critical == 90
        assert config.thresholds.low == 25
        assert config.matching.max_load == 3
        assert len(config.specialists) == 1
        assert config.specialists[0].id == "spec_1"

    def test_load_shipped_config(self):
        """Test the sample configuration in configs/ is valid."""
        config = load_config_from_yaml(REPO_ROOT / "configs" / "triage.yaml")

        assert [seed.id for seed in config.specialists] == ["exp_001", "exp_002", "exp_003"]
        assert config.redis.enabled is False

    def test_file_not_found(self):
        """Test loading non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            load_config_from_yaml("/nonexistent/triage.yaml")

    def test_invalid_yaml_syntax(self, tmp_path):
        """Test invalid YAML syntax raises error."""
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("thresholds:\n  critical: [80\n")

        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_config_from_yaml(config_file)

    def test_empty_config_file(self, tmp_path):
        """Test an empty file yields the default configuration."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = load_config_from_yaml(config_file)

        assert config == TriageConfig()

    def test_non_dict_config(self, tmp_path):
        """Test non-dict YAML raises error."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="must be a YAML object"):
            load_config_from_yaml(config_file)

    def test_validation_error(self, tmp_path):
        """Test out-of-order thresholds raise error."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("thresholds:\n  critical: 10\n  high: 60\n")

        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config_from_yaml(config_file)

    def test_config_directory_path(self, tmp_path):
        """Test passing a directory raises error."""
        with pytest.raises(ConfigurationError, match="not a file"):
            load_config_from_yaml(tmp_path)


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict function."""

    def test_load_valid_dict(self):
        """Test loading from a valid dictionary."""
        config = load_config_from_dict(
            {
                "auto_resolution": {"confidence_threshold": 0.9},
                "monitor": {"critical_stale_minutes": 15},
            }
        )

        assert config.auto_resolution.confidence_threshold == 0.9
        assert config.monitor.critical_stale_minutes == 15

    def test_load_minimal_dict(self):
        """Test an empty dictionary gives defaults."""
        config = load_config_from_dict({})

        assert config.thresholds.low == 20
        assert config.matching.max_load == 5

    def test_validation_error(self):
        """Test invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_config_from_dict({"matching": {"max_load": 0}})

    def test_duplicate_specialists(self):
        """Test duplicate specialist ids raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            load_config_from_dict(
                {
                    "specialists": [
                        {"id": "a", "name": "A"},
                        {"id": "a", "name": "B"},
                    ]
                }
            )


class TestConfigurationError:
    """Tests for ConfigurationError exception."""

    def test_error_message(self):
        """Test error message is preserved."""
        error = ConfigurationError("Test error")
        assert str(error) == "Test error"

    def test_error_inheritance(self):
        """Test ConfigurationError inherits from Exception."""
        assert isinstance(ConfigurationError("x"), Exception)
