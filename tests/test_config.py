"""Configuration loading from the environment."""

import pytest

from core.config import DEFAULT_BASE_URL, VRMConfig, load_config
from core.errors import ConfigError


def test_defaults_with_only_token():
    config = load_config({"VRM_TOKEN": "abc"})
    assert config.token == "abc"
    assert config.base_url == DEFAULT_BASE_URL
    assert config.token_kind == "Token"
    assert config.timeout is None
    assert config.authorization == "Token abc"


@pytest.mark.parametrize("env", [{}, {"VRM_TOKEN": ""}, {"VRM_TOKEN": "   "}])
def test_missing_token_fails_fast(env):
    with pytest.raises(ConfigError, match="VRM_TOKEN"):
        load_config(env)


def test_bearer_kind_and_custom_base_url():
    config = load_config({
        "VRM_TOKEN": "abc",
        "VRM_TOKEN_KIND": "Bearer",
        "VRM_BASE_URL": "https://example.test/v2/",
        "VRM_TIMEOUT": "7.5",
    })
    assert config.authorization == "Bearer abc"
    assert config.base_url == "https://example.test/v2"
    assert config.timeout == 7.5


def test_unknown_token_kind_rejected():
    with pytest.raises(ConfigError, match="VRM_TOKEN_KIND"):
        load_config({"VRM_TOKEN": "abc", "VRM_TOKEN_KIND": "Basic"})


@pytest.mark.parametrize("timeout", ["soon", "0", "-3"])
def test_bad_timeout_rejected(timeout):
    with pytest.raises(ConfigError, match="VRM_TIMEOUT"):
        load_config({"VRM_TOKEN": "abc", "VRM_TIMEOUT": timeout})


def test_bad_log_level_rejected():
    with pytest.raises(ConfigError, match="VRM_LOG_LEVEL"):
        load_config({"VRM_TOKEN": "abc", "VRM_LOG_LEVEL": "chatty"})


def test_token_not_in_repr():
    assert "sekrit" not in repr(VRMConfig(token="sekrit"))
