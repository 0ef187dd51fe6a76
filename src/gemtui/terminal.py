import contextlib
import logging
import os
from typing import Callable, Optional

from blessed import Terminal
from blessed.keyboard import Keystroke

from .screen import Region, ScreenBuffer

os.environ.setdefault('ESCDELAY', '25')  # reduce escape key delay (ms)

logger = logging.getLogger(__name__)

FrameFn = Callable[[ScreenBuffer, Region], None]


class TerminalBackend:
    '''
    Owns the real terminal. `acquire()` puts it in raw mode on the alternate
    screen with the cursor hidden, and undoes all of that on exit, including
    when the loop dies with an exception.
    '''
    def __init__(self, term: Optional[Terminal] = None):
        self.term = term or Terminal()
        self.buf: Optional[ScreenBuffer] = None
        self._stack: Optional[contextlib.ExitStack] = None

    @contextlib.contextmanager
    def acquire(self):
        stack = contextlib.ExitStack()
        try:
            stack.enter_context(self.term.raw())
            stack.enter_context(self.term.hidden_cursor())
            stack.enter_context(self.term.fullscreen())
        except BaseException:
            stack.close()
            raise
        self._stack = stack
        try:
            print(self.term.clear, end='', flush=True)
            yield self
        finally:
            self.restore()

    def restore(self):
        stack, self._stack = self._stack, None
        if stack is None:
            return
        try:
            stack.close()
        except OSError:
            logger.exception("failed to restore terminal")
        print(self.term.normal, end='', flush=True)

    def poll(self, timeout: float) -> Optional[Keystroke]:
        key = self.term.inkey(timeout=timeout)
        return key if key else None

    def read_event(self) -> Keystroke:
        return self.term.inkey()

    def draw(self, frame: FrameFn):
        w, h = self.term.width, self.term.height
        if self.buf is None or self.buf.w != w or self.buf.h != h:
            self.buf = ScreenBuffer(w, h)
        else:
            self.buf.clear()
        frame(self.buf, Region(0, 0, w, h))
        self.buf.flush(self.term)
