from __future__ import annotations

import logging

import pytest

from gemtui.config import DEFAULT_TIMEOUT, Config, ConfigError, configure_logging, load_config

ENV = {"GEMINI_API_KEY": "secret-key", "GEMINI_MODEL": "gemini-1.5-flash"}


def test_defaults_from_environment():
    config = load_config(env=ENV)
    assert config.api_key == "secret-key"
    assert config.model == "gemini-1.5-flash"
    assert config.provider == "litellm"
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.candidates == 1
    assert config.tick_interval == pytest.approx(0.05)
    assert config.log_file is None


def test_google_api_key_fallback():
    config = load_config(env={"GOOGLE_API_KEY": "g", "GEMINI_MODEL": "m"})
    assert config.api_key == "g"


def test_cli_overrides_win():
    config = load_config({"model": "gemini-pro", "provider": "gemini", "timeout": "5", "tick_ms": 20, "candidates": None}, env=ENV)
    assert config.model == "gemini-pro"
    assert config.provider == "gemini"
    assert config.timeout == 5.0
    assert config.tick_interval == pytest.approx(0.02)


@pytest.mark.parametrize("raw", ["0", "none", "off", 0])
def test_timeout_can_be_disabled(raw):
    assert load_config({"timeout": raw}, env=ENV).timeout is None


def test_missing_key_fails_fast():
    with pytest.raises(ConfigError, match="API key"):
        load_config(env={"GEMINI_MODEL": "m"})


def test_missing_model_fails_fast():
    with pytest.raises(ConfigError, match="model"):
        load_config(env={"GEMINI_API_KEY": "k"})


@pytest.mark.parametrize("env_extra, message", [
    ({"GEMTUI_TIMEOUT": "soon"}, "timeout"),
    ({"GEMTUI_TIMEOUT": "-1"}, "negative"),
    ({"GEMTUI_CANDIDATES": "0"}, "candidates"),
    ({"GEMTUI_TICK_MS": "0"}, "tick"),
    ({"GEMTUI_LOG_LEVEL": "chatty"}, "log level"),
])
def test_bad_values(env_extra, message):
    with pytest.raises(ConfigError, match=message):
        load_config(env={**ENV, **env_extra})


def test_env_file_is_loaded(tmp_path, monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-file\nGEMINI_MODEL=file-model\n")
    config = load_config(env_file=env_file)
    assert (config.api_key, config.model) == ("from-file", "file-model")
    monkeypatch.delenv("GEMINI_API_KEY")
    monkeypatch.delenv("GEMINI_MODEL")


def test_env_file_found_in_working_directory(tmp_path, monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    (tmp_path / ".env").write_text("GEMINI_API_KEY=cwd-key\nGEMINI_MODEL=cwd-model\n")
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert (config.api_key, config.model) == ("cwd-key", "cwd-model")
    monkeypatch.delenv("GEMINI_API_KEY")
    monkeypatch.delenv("GEMINI_MODEL")


def test_repr_hides_key():
    assert "secret-key" not in repr(load_config(env=ENV))


def test_logging_goes_to_file(tmp_path):
    log_file = tmp_path / "gemtui.log"
    configure_logging(Config(api_key="k", model="m", log_file=log_file, log_level="DEBUG"))
    root = logging.getLogger("gemtui")
    try:
        logging.getLogger("gemtui.loop").debug("tick")
        for handler in root.handlers:
            handler.flush()
        assert "gemtui.loop: tick" in log_file.read_text()
    finally:
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        root.propagate = True
        root.setLevel(logging.NOTSET)


def test_logging_disabled_without_file():
    configure_logging(Config(api_key="k", model="m"))
    root = logging.getLogger("gemtui")
    try:
        assert all(isinstance(h, logging.NullHandler) for h in root.handlers)
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = True
