from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

if TYPE_CHECKING:
    from .request import PendingRequest


class ErrorKind(Enum):
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"
    REMOTE_REJECTED = "remote_rejected"


class InputBuffer:
    '''The prompt currently being typed.'''
    def __init__(self, text: str = ""):
        self._chars = list(text)

    def append(self, ch: str):
        self._chars.append(ch)

    def backspace(self):
        if self._chars:
            self._chars.pop()

    def clear(self):
        self._chars = []

    def snapshot(self) -> str:
        return "".join(self._chars)

    def __len__(self): return len(self._chars)
    def __str__(self): return self.snapshot()
    def __repr__(self): return f"InputBuffer({self.snapshot()!r})"


# --- conversation phases ---

@dataclass(frozen=True)
class Idle:
    pass

@dataclass(frozen=True)
class Composing:
    pass

@dataclass(frozen=True)
class Awaiting:
    prompt: str

@dataclass(frozen=True)
class Completed:
    fragments: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "fragments", tuple(self.fragments))

    @property
    def primary(self) -> str:
        return self.fragments[0] if self.fragments else ""

@dataclass(frozen=True)
class Failed:
    kind: ErrorKind


Phase = Union[Idle, Composing, Awaiting, Completed, Failed]
Outcome = Union[Completed, Failed]


class ConversationState:
    '''
    Request/response state machine.

    Only one prompt can be Awaiting at a time; `submit` refuses while a request
    is outstanding, and `resolve` only accepts the outcome for that prompt.
    The last outcome stays in `shown` until the next accepted submission, so
    the renderer can keep displaying it while the user types again.
    '''
    def __init__(self):
        self.phase: Phase = Idle()
        self.shown: Optional[Outcome] = None

    @property
    def awaiting(self) -> bool:
        return isinstance(self.phase, Awaiting)

    def submit(self, prompt: str) -> bool:
        if not prompt or self.awaiting:
            return False
        self.phase = Awaiting(prompt)
        self.shown = None
        return True

    def resolve(self, prompt: str, outcome: Outcome) -> bool:
        if not self.awaiting or self.phase.prompt != prompt:
            return False
        self.phase = outcome
        self.shown = outcome
        return True

    def keystroke(self):
        if isinstance(self.phase, (Completed, Failed)):
            self.phase = Composing()


@dataclass
class AppState:
    buffer: InputBuffer = field(default_factory=InputBuffer)
    conversation: ConversationState = field(default_factory=ConversationState)
    pending: Optional["PendingRequest"] = None
    should_exit: bool = False
