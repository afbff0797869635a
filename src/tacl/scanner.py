"""Structural scanner: per-line classification and indentation.

Every other stage works on the `Line` records produced here; nothing in this
module can fail on arbitrary text.
"""

from dataclasses import dataclass

TAB_WIDTH = 4

_OPENERS = {"[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


@dataclass
class Line:
    number: int  # zero-based
    text: str
    indent: int
    blank: bool  # empty, whitespace-only, or a comment

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def offset(self) -> int:
        """Character column where the content starts."""
        return len(self.text) - len(self.text.lstrip())


def indent_level(text: str, tab_width: int = TAB_WIDTH) -> int:
    """Indentation depth: a space counts 1, a tab counts `tab_width`."""
    indent = 0
    for char in text:
        if char == " ":
            indent += 1
        elif char == "\t":
            indent += tab_width
        else:
            break
    return indent


def is_blank(text: str) -> bool:
    """True for empty and whitespace-only lines, and for `#` comments."""
    stripped = text.strip()
    return not stripped or stripped.startswith("#")


def scan_line(number: int, text: str, tab_width: int = TAB_WIDTH) -> Line:
    return Line(
        number=number,
        text=text,
        indent=indent_level(text, tab_width),
        blank=is_blank(text),
    )


def scan_lines(source: str, tab_width: int = TAB_WIDTH) -> list[Line]:
    """Split source on newlines (dropping a trailing CR) and scan each line."""
    return [
        scan_line(number, text.removesuffix("\r"), tab_width)
        for number, text in enumerate(source.split("\n"))
    ]


def dedent(text: str, columns: int, tab_width: int = TAB_WIDTH) -> str:
    """Remove up to `columns` columns of leading whitespace."""
    removed = 0
    pos = 0
    while pos < len(text) and removed < columns:
        char = text[pos]
        if char == " ":
            removed += 1
        elif char == "\t":
            removed += tab_width
        else:
            break
        pos += 1
    return text[pos:]


def split_top_level(text: str, sep: str = ",") -> list[tuple[int, str]]:
    """Split on `sep` outside brackets, braces and double quotes.

    Returns (offset, piece) pairs, offsets relative to `text`. Pieces are not
    stripped. Always returns at least one piece.

        >>> split_top_level("a, [b, c]")
        [(0, 'a'), (2, ' [b, c]')]
    """
    pieces: list[tuple[int, str]] = []
    depth = 0
    in_string = False
    start = 0
    for pos, char in enumerate(text):
        if in_string:
            if char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(depth - 1, 0)
        elif char == sep and depth == 0:
            pieces.append((start, text[start:pos]))
            start = pos + 1
    pieces.append((start, text[start:]))
    return pieces
