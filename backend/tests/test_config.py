"""
Tests for RuntimeConfig defaults and validated runtime updates.
"""

import logging

import pytest

from config import DEFAULT_MODEL, RuntimeConfig, get_config, runtime_config


class TestDefaults:
    """Environment-driven defaults."""

    def test_builtin_defaults(self, monkeypatch):
        for key in ("LLM_AGENT_MODEL", "LLM_CLASSIFIER_MODEL", "LLM_TIMEOUT", "AGENT_MAX_ITERATIONS", "CLASSIFIER_HISTORY"):
            monkeypatch.delenv(key, raising=False)
        config = RuntimeConfig()
        assert config.model_agent == DEFAULT_MODEL
        assert config.model_classifier == DEFAULT_MODEL
        assert config.llm_timeout == 120.0
        assert config.max_iterations == 10
        assert config.classifier_history == 5

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_AGENT_MODEL", "gpt-4o")
        monkeypatch.delenv("LLM_CLASSIFIER_MODEL", raising=False)
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "4")
        monkeypatch.setenv("LLM_TIMEOUT", "30")
        config = RuntimeConfig()
        assert config.model_agent == "gpt-4o"
        # Classifier falls back to the agent model
        assert config.model_classifier == "gpt-4o"
        assert config.max_iterations == 4
        assert config.llm_timeout == 30.0

    def test_classifier_model_env(self, monkeypatch):
        monkeypatch.setenv("LLM_AGENT_MODEL", "gpt-4o")
        monkeypatch.setenv("LLM_CLASSIFIER_MODEL", "gpt-4o-mini")
        assert RuntimeConfig().model_classifier == "gpt-4o-mini"

    def test_singleton(self):
        assert get_config() is runtime_config


class TestUpdate:
    """Runtime updates."""

    def test_valid_update(self):
        config = RuntimeConfig()
        result = config.update(max_iterations=6, model_agent="gpt-4o", llm_timeout=45.5)
        assert sorted(result["updated"]) == ["llm_timeout", "max_iterations", "model_agent"]
        assert result["ignored"] == []
        assert config.max_iterations == 6
        assert config.model_agent == "gpt-4o"
        assert config.llm_timeout == 45.5

    def test_update_count_increments(self):
        config = RuntimeConfig()
        first = config.update(max_iterations=3)["update_count"]
        second = config.update(max_iterations=4)["update_count"]
        assert second == first + 1

    @pytest.mark.parametrize(
        "key,value",
        [
            ("max_iterations", 0),
            ("max_iterations", 51),
            ("max_iterations", "5"),
            ("max_iterations", True),
            ("llm_timeout", 0.1),
            ("classifier_history", -1),
        ],
    )
    def test_rejects_out_of_range(self, key, value):
        config = RuntimeConfig()
        before = getattr(config, key)
        result = config.update(**{key: value})
        assert result["ignored"] == [key]
        assert getattr(config, key) == before

    def test_rejects_bad_model_name(self):
        config = RuntimeConfig()
        result = config.update(model_agent="gpt 4; rm -rf /")
        assert result["ignored"] == ["model_agent"]

    def test_rejects_unknown_private_and_credentials(self):
        config = RuntimeConfig()
        result = config.update(nope=1, _lock=None, llm_api_key="sk-test")
        assert sorted(result["ignored"]) == ["_lock", "llm_api_key", "nope"]
        assert result["updated"] == []

    def test_base_url_validation(self):
        config = RuntimeConfig()
        assert config.update(llm_base_url="ftp://example.com")["ignored"] == ["llm_base_url"]
        assert config.update(llm_base_url="http://localhost:8081/v1/")["updated"] == ["llm_base_url"]
        assert config.llm_base_url == "http://localhost:8081/v1"


class TestExport:
    """to_dict, timeouts and reset."""

    def test_to_dict_excludes_private_and_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
        data = RuntimeConfig().to_dict()
        assert "llm_api_key" not in data
        assert not any(k.startswith("_") for k in data)
        assert "sk-secret" not in repr(RuntimeConfig())

    def test_llm_timeout(self):
        config = RuntimeConfig()
        config.update(llm_timeout=30, llm_connect_timeout=5)
        assert config.get_llm_timeout() == {"total": 30, "connect": 5}

    def test_reset_to_defaults(self, monkeypatch):
        monkeypatch.delenv("AGENT_MAX_ITERATIONS", raising=False)
        config = RuntimeConfig()
        config.update(max_iterations=3)
        result = config.reset_to_defaults()
        assert config.max_iterations == 10
        assert result["changes"]["max_iterations"] == {"old": 3, "new": 10}


class TestLogLevel:
    """log_level updates reach the root logger."""

    def test_update_applies_to_root_logger(self):
        root = logging.getLogger()
        previous = root.level
        try:
            config = RuntimeConfig()
            assert config.update(log_level="debug")["updated"] == ["log_level"]
            assert config.log_level == "DEBUG"
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)

    def test_rejects_unknown_level(self):
        config = RuntimeConfig()
        assert config.update(log_level="LOUD")["ignored"] == ["log_level"]


class TestEnvParsing:
    """Malformed environment values fall back to defaults."""

    def test_bad_numbers(self, monkeypatch):
        monkeypatch.setenv("LLM_TIMEOUT", "soon")
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "ten")
        config = RuntimeConfig()
        assert config.llm_timeout == 120.0
        assert config.max_iterations == 10
