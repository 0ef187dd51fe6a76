import logging
import time
from typing import Callable, Optional

from blessed.keyboard import Keystroke

from .clients import RequestClient
from .keys import KeyAction, classify
from .render import render_frame
from .request import PendingRequest
from .state import AppState

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.05


class InteractionLoop:
    '''
    The main loop: poll the terminal, apply the key, pick up a finished
    request, redraw.

    Polling waits at most until the end of the current tick, so the screen is
    redrawn at least once per tick whether or not keys arrive. Requests run on
    their own thread (see PendingRequest) and their outcome is applied here,
    on the loop's thread, before the frame is drawn.
    '''
    def __init__(self, backend, client: RequestClient, state: Optional[AppState] = None,
                 tick_interval: float = TICK_INTERVAL, clock: Callable[[], float] = time.monotonic,
                 render=render_frame):
        self.backend = backend
        self.client = client
        self.state = state or AppState()
        self.tick_interval = tick_interval
        self.clock = clock
        self.render = render
        self.tick_start = clock()

    def run(self) -> AppState:
        logger.info("interaction loop started (tick %.0f ms)", self.tick_interval * 1000)
        while not self.state.should_exit:
            self.step()
        if self.state.pending is not None:
            logger.info("exiting with a request still outstanding")
        logger.info("interaction loop stopped")
        return self.state

    def remaining(self) -> float:
        return max(0.0, self.tick_interval - (self.clock() - self.tick_start))

    def step(self):
        key = self.backend.poll(self.remaining())
        if self.remaining() <= 0:
            self.tick_start = self.clock()
        if key is not None:
            self.handle_key(key)
        self.collect()
        self.backend.draw(lambda buf, r: self.render(buf, r, self.state))

    def handle_key(self, key: Keystroke):
        action, text = classify(key)
        state = self.state
        if action is KeyAction.QUIT:
            state.should_exit = True
        elif action is KeyAction.SUBMIT:
            self.submit()
        elif action is KeyAction.ERASE:
            state.buffer.backspace()
            state.conversation.keystroke()
        elif action is KeyAction.TEXT:
            state.buffer.append(text)
            state.conversation.keystroke()

    def submit(self) -> bool:
        state = self.state
        prompt = state.buffer.snapshot()
        if not state.conversation.submit(prompt):
            return False
        # the conversation only accepts a prompt when nothing is outstanding
        assert state.pending is None
        state.buffer.clear()
        state.pending = PendingRequest(prompt, self.client).start()
        return True

    def collect(self):
        pending = self.state.pending
        if pending is None:
            return
        outcome = pending.take()
        if outcome is None:
            return
        self.state.pending = None
        if not self.state.conversation.resolve(pending.prompt, outcome):
            logger.warning("dropped a stale result for a prompt that is no longer awaited")
