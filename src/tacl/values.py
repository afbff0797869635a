"""Value grammar.

A value position is sniffed by its leading token:

    |  >  (optionally followed by - or +)   block string on the following lines
    &path                                   reference
    "text"                                  string (no escape processing)
    -12 / 3.5                               number (int, or float when a '.' is present)
    true / false / null                     boolean / null
    [a, b, ...]                             flow sequence
    {k: v, ...}                             flow mapping
    (nothing)                               block sequence or block mapping below
    anything else                           raw string

Block bodies must sit `indent_step` columns deeper than the line that opens
them. Every reference met while parsing is appended to
`ValueParser.references` in source order.
"""

import re
from dataclasses import dataclass

from . import ast
from .config import ParseOptions
from .scanner import Line, dedent, split_top_level

_BLOCK_SCALAR_RE = re.compile(r"^[|>][-+]?$")
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_KEY_VALUE_RE = re.compile(r"^(\w+)\s*:\s*(.*)$")


@dataclass
class ParsedValue:
    value: ast.Value
    end_line: int  # last source line the value occupies


def parse_scalar(text: str) -> ast.Value | None:
    """Quoted string, number, boolean or null; None if `text` is none of these."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return ast.StringValue(value=text[1:-1])
    if _NUMBER_RE.match(text):
        if "." in text:
            return ast.NumberValue(value=float(text))
        return ast.NumberValue(value=int(text))
    if text in ("true", "false"):
        return ast.BooleanValue(value=text == "true")
    if text == "null":
        return ast.NullValue()
    return None


class ValueParser:
    """Parses value positions against the scanned lines of one source."""

    def __init__(self, lines: list[Line], options: ParseOptions | None = None):
        self.lines = lines
        self.options = options or ParseOptions()
        self.references: list[ast.Reference] = []

    def parse_value(self, text: str, line: int, column: int) -> ast.Value:
        """Parse the value text found at (line, column)."""
        return self.parse(text, line, column).value

    def parse(self, text: str, line: int, column: int, inline: bool = False) -> ParsedValue:
        """Parse a value and report how far down the source it reaches.

        `inline` is set for elements of flow collections: they never look at
        the following lines.
        """
        trimmed = text.strip()
        column += len(text) - len(text.lstrip())

        if _BLOCK_SCALAR_RE.match(trimmed) and not inline:
            return self._parse_block_string(line)

        if trimmed.startswith("&"):
            return ParsedValue(self._reference(trimmed, line, column), line)

        scalar = parse_scalar(trimmed)
        if scalar is not None:
            return ParsedValue(scalar, line)

        if trimmed.startswith("["):
            return ParsedValue(self._parse_flow_sequence(trimmed, line, column), line)

        if trimmed.startswith("{"):
            return ParsedValue(self._parse_flow_mapping(trimmed, line, column), line)

        if not trimmed and not inline:
            nxt = self._next_content_line(line)
            if (
                nxt is not None
                and nxt.indent > self.lines[line].indent
                and nxt.stripped.startswith("-")
            ):
                return self._parse_block_sequence(line)
            return self._parse_block_mapping(line)

        return ParsedValue(ast.StringValue(value=trimmed), line)

    # -- References --------------------------------------------------------

    def _reference(self, token: str, line: int, column: int) -> ast.Reference:
        ref = ast.Reference(
            path=token[1:],
            range=ast.Range.create(line, column, line, column + len(token)),
        )
        self.references.append(ref)
        return ref

    # -- Block forms -------------------------------------------------------

    def _body_indent(self, line: int) -> int:
        return self.lines[line].indent + self.options.indent_step

    def _next_content_line(self, line: int) -> Line | None:
        for candidate in self.lines[line + 1:]:
            if not candidate.blank:
                return candidate
        return None

    def _parse_block_string(self, line: int) -> ParsedValue:
        min_indent = self._body_indent(line)
        body: list[str] = []
        end_line = line
        for candidate in self.lines[line + 1:]:
            if candidate.stripped and candidate.indent < min_indent:
                break
            body.append(dedent(candidate.text, min_indent, self.options.tab_width))
            if candidate.stripped:
                end_line = candidate.number
        text = "\n".join(body).rstrip()
        return ParsedValue(ast.StringValue(value=text), end_line)

    def _parse_block_sequence(self, line: int) -> ParsedValue:
        """`- item` lines at the body indent or deeper.

        Items are scalars or references, never nested blocks.
        """
        expected = self._body_indent(line)
        items: list[ast.Value] = []
        end_line = line
        for candidate in self.lines[line + 1:]:
            if candidate.blank:
                continue
            if candidate.indent < expected:
                break
            end_line = candidate.number
            stripped = candidate.stripped
            if not stripped.startswith("-"):
                continue
            rest = stripped[1:]
            item = rest.strip()
            column = candidate.offset + 1 + (len(rest) - len(rest.lstrip()))
            if item.startswith("&"):
                items.append(self._reference(item, candidate.number, column))
                continue
            scalar = parse_scalar(item)
            items.append(scalar if scalar is not None else ast.StringValue(value=item))
        return ParsedValue(ast.SequenceValue(items=items), end_line)

    def _parse_block_mapping(self, line: int) -> ParsedValue:
        """`key: value` lines at exactly the body indent, each value recursed."""
        expected = self._body_indent(line)
        entries: dict[str, ast.Value] = {}
        end_line = line
        index = line + 1
        while index < len(self.lines):
            candidate = self.lines[index]
            index += 1
            if candidate.blank:
                continue
            if candidate.indent < expected:
                break
            end_line = max(end_line, candidate.number)
            if candidate.indent != expected:
                continue
            m = _KEY_VALUE_RE.match(candidate.stripped)
            if m is None:
                continue
            parsed = self.parse(m.group(2), candidate.number, candidate.offset + m.start(2))
            entries[m.group(1)] = parsed.value
            end_line = max(end_line, parsed.end_line)
            index = max(index, parsed.end_line + 1)
        return ParsedValue(ast.MappingValue(entries=entries), end_line)

    # -- Flow forms --------------------------------------------------------

    @staticmethod
    def _flow_body(trimmed: str, closer: str) -> str:
        return trimmed[1:-1] if trimmed.endswith(closer) else trimmed[1:]

    def _parse_flow_sequence(self, trimmed: str, line: int, column: int) -> ast.SequenceValue:
        body = self._flow_body(trimmed, "]")
        if not body.strip():
            return ast.SequenceValue()
        items = [
            self.parse(piece, line, column + 1 + offset, inline=True).value
            for offset, piece in split_top_level(body)
        ]
        return ast.SequenceValue(items=items)

    def _parse_flow_mapping(self, trimmed: str, line: int, column: int) -> ast.MappingValue:
        body = self._flow_body(trimmed, "}")
        entries: dict[str, ast.Value] = {}
        if not body.strip():
            return ast.MappingValue()
        for offset, piece in split_top_level(body):
            parts = split_top_level(piece, sep=":")
            if len(parts) < 2:
                continue
            key = parts[0][1].strip()
            if len(key) >= 2 and key.startswith('"') and key.endswith('"'):
                key = key[1:-1]
            value_offset = parts[1][0]
            entries[key] = self.parse(
                piece[value_offset:], line, column + 1 + offset + value_offset, inline=True
            ).value
        return ast.MappingValue(entries=entries)
