from enum import Enum
from typing import Tuple

from blessed.keyboard import Keystroke

QUIT_KEYS = {'\x03'}  # ctrl+c
SUBMIT_NAMES = {'KEY_ENTER'}
SUBMIT_KEYS = {'\r', '\n'}
ERASE_NAMES = {'KEY_BACKSPACE', 'KEY_DELETE'}
ERASE_KEYS = {'\x7f', '\x08'}


class KeyAction(Enum):
    QUIT = "quit"
    SUBMIT = "submit"
    ERASE = "erase"
    TEXT = "text"
    IGNORE = "ignore"


def classify(key: Keystroke) -> Tuple[KeyAction, str]:
    '''Map a keystroke to what the loop should do with it, plus the text to append (if any).'''
    s = str(key)
    if s in QUIT_KEYS:
        return KeyAction.QUIT, ""
    if key.name in SUBMIT_NAMES or s in SUBMIT_KEYS:
        return KeyAction.SUBMIT, ""
    if key.name in ERASE_NAMES or s in ERASE_KEYS:
        return KeyAction.ERASE, ""
    if not key.is_sequence and len(s) == 1 and s.isprintable():
        return KeyAction.TEXT, s
    return KeyAction.IGNORE, ""
