import time
from typing import Optional

from .screen import Region, ScreenBuffer, wrap_lines
from .state import AppState, Awaiting, Completed, ErrorKind, Failed

SPINNER = "/—\\|"
PLACEHOLDER = "Type a prompt below and press Enter."
QUIT_HINT = " ctrl+c to quit "

ERROR_MESSAGES = {
    ErrorKind.TRANSPORT_FAILURE: "Could not reach the service. Check your connection and try again.",
    ErrorKind.MALFORMED_RESPONSE: "The service sent a response that could not be read.",
    ErrorKind.REMOTE_REJECTED: "The service rejected the request.",
}

INPUT_MIN_H = 3
INPUT_MAX_H = 8


def input_height(text: str, w: int) -> int:
    rows = len(wrap_lines(text + " ", w - 2, words=False)) if w > 2 else 1
    return max(INPUT_MIN_H, min(INPUT_MAX_H, rows + 2))


def render_output(buf: ScreenBuffer, r: Region, state: AppState, now: float):
    buf.titled_box(r, "Gemini", 'blue', title_style='bold_blue')
    inner = r.shrink(1, 1)
    conv = state.conversation

    if isinstance(conv.phase, Awaiting):
        spin = "[" + SPINNER[int(now * 12) % len(SPINNER)] + "]"
        elapsed = f" ({state.pending.elapsed():.1f}s)" if state.pending else ""
        x = inner.x
        for text, style in ((spin + " ", 'bright_yellow'), ("asking...", 'blue'), (elapsed, 'bright_black')):
            text = text[:max(0, inner.x + inner.w - x)]
            buf.puts(x, inner.y, text, style)
            x += len(text)
        return

    shown = conv.shown
    if shown is None:
        buf.text_contained(PLACEHOLDER, inner, style='bright_black')
    elif isinstance(shown, Failed):
        buf.puts(inner.x, inner.y, "✗ request failed"[:inner.w], 'bold_red')
        buf.text_contained(ERROR_MESSAGES[shown.kind], inner.shrink(0, 1, 0, 0), style='red')
    elif isinstance(shown, Completed):
        # only the first candidate is shown
        extra = len(shown.fragments) - 1
        body, footer = inner.split_bottom(1 if extra and inner.h > 1 else 0)
        buf.text_contained(shown.primary, body, style='white')
        if footer.h:
            buf.puts(footer.x, footer.y, f"(+{extra} more candidate{'s' if extra > 1 else ''})"[:footer.w], 'bright_black')


def render_input(buf: ScreenBuffer, r: Region, state: AppState, now: float):
    buf.titled_box(r, "Ask something", 'bold', title_style='bold')
    x, y, w, h = r
    if w > len(QUIT_HINT) + 20:
        buf.puts(x + w - len(QUIT_HINT) - 2, y + h - 1, QUIT_HINT, 'bright_black')

    inner = r.shrink(1, 1)
    blink = "█" if int(now * 3) % 2 == 0 else " "
    rows = wrap_lines(state.buffer.snapshot() + blink, inner.w, words=False)
    # keep the end of a long prompt (and the cursor) in view
    for i, line in enumerate(rows[-inner.h:] if inner.h else []):
        buf.puts(inner.x, inner.y + i, line, 'white')


def render_frame(buf: ScreenBuffer, r: Region, state: AppState, now: Optional[float] = None):
    now = time.time() if now is None else now
    output_r, input_r = r.split_bottom(input_height(state.buffer.snapshot(), r.w))
    render_output(buf, output_r, state, now)
    render_input(buf, input_r, state, now)
