"""
Tests for configuration models and the config loader.
"""

import json

import pytest
import yaml
from pydantic import ValidationError

from httpchain import Client
from httpchain.config import (
    ClientConfig,
    ConfigLoader,
    HttpChainConfig,
    LoggingConfig,
    LogLevel,
    PoolConfig,
    load_config,
)
from httpchain.exceptions import InvalidArgumentError
from httpchain.transport import AiohttpTransport


class TestConfigModels:
    def test_defaults(self):
        config = HttpChainConfig()

        assert config.logging.level == LogLevel.INFO
        assert config.pool.max_connections == 100
        assert config.client.max_redirects == 20
        assert config.client.follow_redirects is True
        assert config.client.throw_exceptions is None

    def test_pool_validation(self):
        with pytest.raises(ValidationError):
            PoolConfig(max_connections=0)
        with pytest.raises(ValidationError):
            PoolConfig(pool_timeout=0)

    def test_empty_header_name_rejected(self):
        with pytest.raises(ValidationError):
            ClientConfig(default_headers={" ": "x"})

    def test_request_defaults(self):
        config = ClientConfig(
            user_agent="agent/1.0",
            default_headers={"X-Team": "core"},
            conn_timeout=2.0,
        )
        defaults = config.request_defaults()

        assert defaults["headers"] == {"X-Team": "core", "User-Agent": "agent/1.0"}
        assert defaults["conn_timeout"] == 2.0
        assert "throw_exceptions" not in defaults
        assert "socket_timeout" not in defaults

    def test_explicit_user_agent_header_wins(self):
        config = ClientConfig(user_agent="agent/1.0", default_headers={"User-Agent": "mine"})
        assert config.request_defaults()["headers"]["User-Agent"] == "mine"

    def test_client_from_config(self):
        config = HttpChainConfig(pool=PoolConfig(max_connections=5))
        client = Client.from_config(config)

        assert isinstance(client.transport, AiohttpTransport)
        assert client.transport.config.max_connections == 5
        assert client.config is config.client


class TestConfigLoader:
    def test_yaml_file(self, temp_dir):
        path = temp_dir / "httpchain.yaml"
        path.write_text(
            yaml.safe_dump(
                {"client": {"max_redirects": 5, "user_agent": "yaml"}, "logging": {"level": "DEBUG"}}
            )
        )

        config = ConfigLoader().load_config(path)

        assert config.client.max_redirects == 5
        assert config.client.user_agent == "yaml"
        assert config.logging.level == LogLevel.DEBUG

    def test_json_file(self, temp_dir):
        path = temp_dir / "httpchain.json"
        path.write_text(json.dumps({"pool": {"verify_ssl": False}}))

        assert load_config(path).pool.verify_ssl is False

    def test_missing_file(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            ConfigLoader().load_config(temp_dir / "missing.yaml")

    def test_unsupported_format(self, temp_dir):
        path = temp_dir / "httpchain.ini"
        path.write_text("[client]")

        with pytest.raises(InvalidArgumentError):
            ConfigLoader().load_config(path)

    def test_broken_file(self, temp_dir):
        path = temp_dir / "httpchain.json"
        path.write_text("{broken")

        with pytest.raises(InvalidArgumentError):
            ConfigLoader().load_config(path)

    def test_environment_overrides_file(self, temp_dir, monkeypatch):
        path = temp_dir / "httpchain.yaml"
        path.write_text(yaml.safe_dump({"client": {"max_redirects": 5, "user_agent": "yaml"}}))

        monkeypatch.setenv("HTTPCHAIN_MAX_REDIRECTS", "7")
        monkeypatch.setenv("HTTPCHAIN_THROW_EXCEPTIONS", "false")
        monkeypatch.setenv("HTTPCHAIN_POOL_TIMEOUT", "2.5")

        config = ConfigLoader().load_config(path)

        assert config.client.max_redirects == 7
        assert config.client.user_agent == "yaml"
        assert config.client.throw_exceptions is False
        assert config.pool.pool_timeout == 2.5

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("MYAPP_USER_AGENT", "prefixed")
        loader = ConfigLoader(env_prefix="MYAPP_")
        loader.config_paths = []

        assert loader.load_config().client.user_agent == "prefixed"

    def test_no_sources(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("HOME", str(temp_dir))
        loader = ConfigLoader()
        loader.config_paths = [temp_dir / "httpchain.yaml"]

        assert loader.load_config() == HttpChainConfig()

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("Off", False), ("42", 42), ("1.5", 1.5), ("text", "text")],
    )
    def test_convert_env_value(self, raw, expected):
        assert ConfigLoader()._convert_env_value(raw) == expected

    @pytest.mark.parametrize("name", ["saved.yaml", "saved.json"])
    def test_save_and_reload(self, temp_dir, name):
        config = HttpChainConfig(
            client=ClientConfig(max_redirects=3, default_headers={"X-A": "1"}),
            logging=LoggingConfig(level=LogLevel.WARNING),
        )
        path = temp_dir / "nested" / name

        loader = ConfigLoader()
        loader.save_config(config, path)

        assert loader.load_config(path) == config
