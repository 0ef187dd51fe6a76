import textwrap
from typing import List, Optional, Tuple, Union

Rect = Tuple[int, int, int, int]  # (x, y, w, h)
RegionLike = Union['Region', Rect]


class Region(tuple):
    """
    A (x,y,w,h) area on the screen.
    Used for laying out the frame.
    """
    def __new__(cls, x: int = 0, y: int = 0, w: int = 0, h: int = 0):
        return super().__new__(cls, (int(x), int(y), max(0, int(w)), max(0, int(h))))

    def __repr__(self):
        return f"Region{super().__repr__()}"

    @property
    def x(self) -> int: return self[0]
    @property
    def y(self) -> int: return self[1]
    @property
    def w(self) -> int: return self[2]
    @property
    def h(self) -> int: return self[3]

    def split_bottom(self, h: int) -> Tuple['Region', 'Region']:
        '''Cut `h` rows off the bottom; returns (top, bottom).'''
        h = min(max(0, h), self.h)
        return Region(self.x, self.y, self.w, self.h - h), Region(self.x, self.y + self.h - h, self.w, h)

    def shrink(self, left: int, top: Optional[int] = None, right: Optional[int] = None, bottom: Optional[int] = None) -> 'Region':
        top = top if top is not None else left
        right = right if right is not None else left
        bottom = bottom if bottom is not None else top
        return Region(
            self[0] + left,
            self[1] + top,
            self[2] - left - right,
            self[3] - top - bottom
        )


def wrap_lines(txt: str, w: int, words=True) -> List[str]:
    '''Split text into rows of at most `w` cells, keeping explicit newlines.'''
    if w <= 0:
        return []
    txt = txt.replace('\r\n', '\n').replace('\r', '\n').replace('\t', '    ')
    rows = []
    for para in txt.split('\n'):
        if not para:
            rows.append("")
        elif words:
            rows.extend(textwrap.wrap(para, w, drop_whitespace=False, replace_whitespace=False) or [""])
        else:
            rows.extend(para[i:i + w] for i in range(0, len(para), w))
    return rows


class ScreenBuffer:
    def __init__(self, w, h):
        self.w, self.h = w, h
        self.chars = [[' '] * w for _ in range(h)]
        self.styles: List[List[Optional[str]]] = [[None] * w for _ in range(h)]

    def put(self, x, y, char, style=None):
        if 0 <= x < self.w and 0 <= y < self.h:
            self.chars[y][x] = char
            self.styles[y][x] = style

    def puts(self, x, y, text, style=None):
        for i, c in enumerate(text):
            self.put(x + i, y, c, style)

    def clear(self):
        for row in self.chars: row[:] = [' '] * self.w
        for row in self.styles: row[:] = [None] * self.w

    def row_text(self, y: int) -> str:
        return "".join(self.chars[y])

    def text(self) -> str:
        return "\n".join(self.row_text(y) for y in range(self.h))

    def render(self, term) -> str:
        '''The whole buffer as one string of terminal output, starting from home.'''
        out = [term.home]
        for y in range(self.h):
            out.append(term.move_xy(0, y))
            for x in range(self.w):
                c, s = self.chars[y][x], self.styles[y][x]
                styled = getattr(term, s, None) if s else None
                out.append(styled(c) if styled else c)
        return "".join(out)

    def flush(self, term):
        print(self.render(term), end='', flush=True)

    def rect_line(self, r: RegionLike, style=None):
        x, y, w, h = r
        if w < 2 or h < 2: return
        for col in range(x + 1, x + w - 1):
            self.put(col, y, '─', style)
            self.put(col, y + h - 1, '─', style)
        for row in range(y + 1, y + h - 1):
            self.put(x, row, '│', style)
            self.put(x + w - 1, row, '│', style)
        self.put(x, y, '┌', style)
        self.put(x + w - 1, y, '┐', style)
        self.put(x, y + h - 1, '└', style)
        self.put(x + w - 1, y + h - 1, '┘', style)

    def titled_box(self, r: RegionLike, title: str, style=None, title_style=None):
        x, y, w, h = r
        self.rect_line(r, style)
        if title and w > 4:
            self.puts(x + 2, y, f" {title} "[:w - 4], title_style or style)

    def text_contained(self, txt: str, r: RegionLike, style=None, words=True) -> int:
        '''Draw wrapped text inside `r`; returns the number of rows the text needs.'''
        x, y, w, h = r
        rows = wrap_lines(txt, w, words)
        for i, line in enumerate(rows[:h]):
            self.puts(x, y + i, line, style)
        return len(rows)
