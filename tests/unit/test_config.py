"""
Unit tests for configuration settings.
"""

import pytest
from pydantic import ValidationError

from app.core.config import EnvironmentEnum, Settings, get_config_summary, settings


class TestSettings:
    """Test cases for the Settings class."""

    def test_branching_defaults(self):
        config = Settings(_env_file=None)

        assert config.fork_copy_messages is False
        assert config.main_branch_name == "main"
        assert config.main_branch_color == "#B7FF3A"
        assert config.default_conversation_title == "New Conversation"
        assert config.title_max_length == 40

    def test_branch_colors_list_parses_palette(self):
        config = Settings(_env_file=None, branch_colors=" #111111, #222222 ,,#333333")

        assert config.branch_colors_list == ["#111111", "#222222", "#333333"]

    def test_allowed_origins_list(self):
        config = Settings(_env_file=None, allowed_origins="http://a.test, http://b.test")

        assert config.allowed_origins_list == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("alias,expected", [("dev", EnvironmentEnum.development), ("prod", EnvironmentEnum.production)])
    def test_environment_aliases(self, alias, expected):
        assert Settings(_env_file=None, environment=alias).environment == expected

    def test_invalid_main_branch_color(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, main_branch_color="green")

    def test_non_positive_title_length_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, title_max_length=0)

    def test_fork_copy_flag_from_environment(self, monkeypatch):
        monkeypatch.setenv("FORK_COPY_MESSAGES", "true")

        assert Settings(_env_file=None).fork_copy_messages is True

    def test_test_environment_has_encryption(self):
        assert settings.has_encryption is True

    def test_config_summary(self):
        summary = get_config_summary()

        assert summary["app_name"] == settings.app_name
        assert summary["features"]["credential_storage"] is True
        assert "fork_copy_messages" in summary["features"]
