# tests/test_config.py
"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest

from fedstore.config import Config, default_config, load_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_config(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestConfig:
    """Test the Config dataclass."""

    def test_defaults(self):
        config = Config(hostname="social.example")
        assert config.scheme == "https"
        assert config.page_size == 20
        assert config.base_url == "https://social.example"

    def test_hostname_is_normalized(self):
        assert Config(hostname="  Social.Example ").hostname == "social.example"

    def test_default_port_is_dropped_from_hostname(self):
        assert Config(hostname="social.example:443").hostname == "social.example"
        assert Config(hostname="social.example:80", scheme="http").hostname == "social.example"
        assert Config(hostname="social.example:8443").hostname == "social.example:8443"

    def test_bad_hostname_port(self):
        with pytest.raises(ValueError, match="hostname"):
            Config(hostname="social.example:port")

    def test_hostname_required(self):
        with pytest.raises(ValueError):
            Config(hostname="")

    @pytest.mark.parametrize("overrides", [
        {"page_size": 0},
        {"page_size": 50, "max_page_size": 10},
        {"scheme": "ftp"},
        {"lock_poll_interval": 0},
        {"id_attempts": 0},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            Config(hostname="social.example", **overrides)

    def test_dict_round_trip(self):
        config = Config(hostname="social.example", page_size=5)
        assert Config.from_dict(config.to_dict()) == config

    def test_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown config keys"):
            Config.from_dict({"hostname": "social.example", "colour": "blue"})

    def test_default_config(self):
        assert default_config().hostname == "localhost"
        assert default_config("social.example").hostname == "social.example"


class TestLoadConfig:
    """Test layering of file, environment and overrides."""

    def test_from_yaml(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "hostname: social.example\npage_size: 5\n")

        config = load_config(path, environ={})

        assert config.hostname == "social.example"
        assert config.page_size == 5

    def test_environment_wins_over_file(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "hostname: social.example\npage_size: 5\n")

        config = load_config(path, environ={"FEDSTORE_PAGE_SIZE": "7", "FEDSTORE_LOCK_POLL_INTERVAL": "0.2"})

        assert config.page_size == 7
        assert config.lock_poll_interval == 0.2

    def test_overrides_win(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "hostname: social.example\n")

        config = load_config(path, environ={"FEDSTORE_HOSTNAME": "env.example"}, hostname="cli.example")

        assert config.hostname == "cli.example"

    def test_none_overrides_ignored(self):
        config = load_config(environ={"FEDSTORE_HOSTNAME": "env.example"}, hostname=None)
        assert config.hostname == "env.example"

    def test_missing_hostname(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "page_size: 5\n")
        with pytest.raises(ValueError, match="hostname"):
            load_config(path, environ={})

    def test_empty_file(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "")
        config = load_config(path, environ={}, hostname="social.example")
        assert config.page_size == 20

    def test_file_must_be_mapping(self, temp_dir):
        path = write_config(temp_dir / "fedstore.yaml", "- hostname\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path, environ={})

    def test_bad_environment_value(self):
        with pytest.raises(ValueError):
            load_config(environ={"FEDSTORE_HOSTNAME": "social.example", "FEDSTORE_PAGE_SIZE": "many"})
