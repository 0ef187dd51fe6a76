from __future__ import annotations

import contextlib
import logging

import pytest

from conftest import CTRL_C, ENTER, FakeBackend, FakeClient, keys
from gemtui import cli


class RecordingBackend(FakeBackend):
    instances: list = []

    def __init__(self, events=(), fail_on_poll=False):
        super().__init__(events)
        self.fail_on_poll = fail_on_poll
        self.acquired = False
        self.restored = False
        RecordingBackend.instances.append(self)

    @contextlib.contextmanager
    def acquire(self):
        self.acquired = True
        try:
            yield self
        finally:
            self.restored = True

    def poll(self, timeout):
        if self.fail_on_poll:
            raise OSError(5, "Input/output error")
        return super().poll(timeout)


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_MODEL", "GEMTUI_PROVIDER", "GEMTUI_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    RecordingBackend.instances = []
    return monkeypatch


def test_missing_configuration_exits_before_touching_terminal(env, capsys):
    env.setattr(cli, "TerminalBackend", RecordingBackend)
    assert cli.main([]) == cli.EXIT_CONFIG_ERROR
    assert RecordingBackend.instances == []
    assert "GEMINI_API_KEY" in capsys.readouterr().err


def test_quit_while_awaiting_restores_terminal(env):
    env.setenv("GEMINI_API_KEY", "k")
    client = FakeClient(hold=True)
    env.setattr(cli, "build_client", lambda config: client)
    env.setattr(cli, "TerminalBackend", lambda: RecordingBackend(keys("hi") + [ENTER, CTRL_C]))

    try:
        assert cli.main(["--model", "gemini-1.5-flash"]) == cli.EXIT_OK
    finally:
        client.release.set()

    backend = RecordingBackend.instances[0]
    assert backend.acquired and backend.restored
    assert "asking..." in backend.screen


def test_terminal_failure_is_fatal(env, capsys):
    env.setenv("GEMINI_API_KEY", "k")
    env.setenv("GEMINI_MODEL", "m")
    env.setattr(cli, "build_client", lambda config: FakeClient())
    env.setattr(cli, "TerminalBackend", lambda: RecordingBackend(fail_on_poll=True))

    assert cli.main([]) == cli.EXIT_TERMINAL_ERROR
    assert RecordingBackend.instances[0].restored
    assert "Terminal error" in capsys.readouterr().err


def test_log_file_option(env, tmp_path):
    env.setenv("GEMINI_API_KEY", "k")
    env.setattr(cli, "build_client", lambda config: FakeClient())
    env.setattr(cli, "TerminalBackend", lambda: RecordingBackend([CTRL_C]))
    log_file = tmp_path / "run.log"

    try:
        assert cli.main(["--model", "m", "--log-file", str(log_file)]) == cli.EXIT_OK
        text = log_file.read_text()
    finally:
        root = logging.getLogger("gemtui")
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        root.propagate = True
        root.setLevel(logging.NOTSET)
    assert "interaction loop stopped" in text
    assert "'k'" not in text


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "gemtui" in capsys.readouterr().out
