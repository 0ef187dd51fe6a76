"""
Pytest configuration and fixtures for gemtui tests.
"""

import os
import threading

import pytest
from blessed.keyboard import Keystroke
from hypothesis import Verbosity, settings

from gemtui.screen import Region, ScreenBuffer

settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal, deadline=None)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose, deadline=None)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


ENTER = Keystroke("\r", code=343, name="KEY_ENTER")
BACKSPACE = Keystroke("\x7f", code=263, name="KEY_BACKSPACE")
CTRL_C = Keystroke("\x03")
UP = Keystroke("\x1b[A", code=259, name="KEY_UP")


def keys(text):
    return [Keystroke(c) for c in text]


class FakeBackend:
    """Feeds scripted keys to the loop and keeps every drawn frame."""

    def __init__(self, events=(), w=60, h=20):
        self.events = list(events)
        self.w, self.h = w, h
        self.polls = []
        self.frames = []

    def poll(self, timeout):
        self.polls.append(timeout)
        return self.events.pop(0) if self.events else None

    def draw(self, frame):
        buf = ScreenBuffer(self.w, self.h)
        frame(buf, Region(0, 0, self.w, self.h))
        self.frames.append(buf)

    @property
    def screen(self) -> str:
        return self.frames[-1].text()


class FakeClient:
    """Request client that answers from a script, optionally holding until released."""

    def __init__(self, fragments=("Hello there",), error=None, hold=False):
        self.fragments = list(fragments)
        self.error = error
        self.calls = []
        self.release = threading.Event()
        if not hold:
            self.release.set()

    def submit(self, prompt):
        self.calls.append(prompt)
        self.release.wait(5)
        if self.error is not None:
            raise self.error
        return list(self.fragments)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def held_client():
    client = FakeClient(hold=True)
    yield client
    client.release.set()
