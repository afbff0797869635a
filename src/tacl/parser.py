"""Document builder for .tacl files.

Grammar (line oriented, indentation significant):
    document    = (typedef | field)*
    typedef     = "@type" NAME ":" NEWLINE (INDENT field)*
    field       = NAME ";" type ":" value      typed field with a value
                | NAME ";" type                declaration without a value
                | NAME ":" value               bare field, type inferred

Blank lines and `#` comments are skipped. A type block stays open while lines
are indented deeper than its header. Lines taken up by a multi-line value
(block string, block sequence, block mapping) belong to that value and are
not read again as fields.

The parse never fails: lines that match nothing are skipped, unknown types
become CustomType, unknown values become raw strings, and unresolved
references are reported as diagnostics.
"""

import logging
import re
from pathlib import Path

from . import ast
from .config import ParseOptions
from .resolver import resolve_references
from .scanner import Line, scan_lines
from .type_parser import parse_type
from .values import ValueParser

logger = logging.getLogger(__name__)

_TYPE_HEADER_RE = re.compile(r"^@type\s+(\w+)\s*:")
_TYPED_VALUE_RE = re.compile(r"^(\w+)\s*;\s*([^:\s][^:]*?)\s*:\s*(.*)$")
_TYPE_ONLY_RE = re.compile(r"^(\w+)\s*;\s*(\S.*?)\s*$")
_BARE_RE = re.compile(r"^(\w+)\s*:\s*(.*)$")

INFERRED = "inferred"


class Parser:
    """Single top-to-bottom pass over the scanned lines of one source."""

    def __init__(self, source: str, options: ParseOptions | None = None):
        self.options = options or ParseOptions()
        self.lines = scan_lines(source, self.options.tab_width)
        self.values = ValueParser(self.lines, self.options)
        self.types: dict[str, ast.TypeDefinition] = {}
        self.fields: dict[str, ast.FieldDefinition] = {}

    def parse(self) -> ast.Document:
        current_type: ast.TypeDefinition | None = None
        type_indent = 0
        index = 0

        while index < len(self.lines):
            line = self.lines[index]
            index += 1
            if line.blank:
                continue

            header = _TYPE_HEADER_RE.match(line.stripped)
            if header:
                current_type = ast.TypeDefinition(
                    name=header.group(1),
                    range=ast.Range.create(line.number, 0, line.number, len(line.text)),
                )
                previous = self.types.get(current_type.name)
                if previous is not None:
                    self._drop_references(*previous.fields.values())
                self.types[current_type.name] = current_type
                type_indent = line.indent
                logger.debug("type %s opened at line %d", current_type.name, line.number)
                continue

            if current_type is not None:
                if line.indent > type_indent:
                    field = self.parse_field(line)
                    if field is not None:
                        self._store(current_type.fields, field)
                        current_type.range = ast.Range(
                            start=current_type.range.start, end=field.range.end
                        )
                        index = field.range.end.line + 1
                    continue
                logger.debug("type %s closed at line %d", current_type.name, line.number)
                current_type = None

            field = self.parse_field(line)
            if field is not None:
                self._store(self.fields, field)
                index = field.range.end.line + 1

        diagnostics: list[ast.Diagnostic] = []
        if self.options.resolve_references:
            diagnostics = resolve_references(self.fields, self.values.references)

        return ast.Document(
            types=self.types,
            fields=self.fields,
            references=self.values.references,
            diagnostics=diagnostics,
        )

    def parse_field(self, line: Line) -> ast.FieldDefinition | None:
        """Parse one field line; None when the line is not a field."""
        stripped = line.stripped
        offset = line.offset

        m = _TYPED_VALUE_RE.match(stripped)
        if m:
            name, type_text, value_text = m.group(1), m.group(2), m.group(3).rstrip()
            return self._field_with_value(
                line,
                name,
                parse_type(type_text),
                value_text,
                offset + m.start(3),
                type_range=self._span(line, offset + m.start(2), len(type_text)),
            )

        m = _TYPE_ONLY_RE.match(stripped)
        if m:
            name, type_text = m.group(1), m.group(2)
            return ast.FieldDefinition(
                name=name,
                type=parse_type(type_text),
                range=self._span(line, 0, len(line.text)),
                type_range=self._span(line, offset + m.start(2), len(type_text)),
            )

        m = _BARE_RE.match(stripped)
        if m:
            name, value_text = m.group(1), m.group(2).rstrip()
            return self._field_with_value(
                line,
                name,
                ast.PrimitiveType(name=INFERRED),
                value_text,
                offset + m.start(2),
            )

        return None

    def _field_with_value(
        self,
        line: Line,
        name: str,
        type_expr: ast.TypeExpr,
        value_text: str,
        value_col: int,
        type_range: ast.Range | None = None,
    ) -> ast.FieldDefinition:
        parsed = self.values.parse(value_text, line.number, value_col)
        if parsed.end_line > line.number:
            end = self.lines[parsed.end_line]
            field_range = ast.Range.create(line.number, 0, end.number, len(end.text))
            value_range = ast.Range.create(line.number, value_col, end.number, len(end.text))
        else:
            field_range = self._span(line, 0, len(line.text))
            value_range = self._span(line, value_col, len(value_text))
        return ast.FieldDefinition(
            name=name,
            type=type_expr,
            value=parsed.value,
            range=field_range,
            type_range=type_range,
            value_range=value_range,
        )

    def _store(self, fields: dict[str, ast.FieldDefinition], field: ast.FieldDefinition) -> None:
        """Insert `field`; a same-named field is replaced, references and all."""
        previous = fields.get(field.name)
        if previous is not None:
            self._drop_references(previous)
        fields[field.name] = field

    def _drop_references(self, *fields: ast.FieldDefinition) -> None:
        dropped = {id(ref) for f in fields for ref in ast.iter_references(f.value)}
        if not dropped:
            return
        logger.debug("dropping %d reference(s) of replaced definitions", len(dropped))
        self.values.references[:] = [
            ref for ref in self.values.references if id(ref) not in dropped
        ]

    @staticmethod
    def _span(line: Line, start: int, length: int) -> ast.Range:
        return ast.Range.create(line.number, start, line.number, start + length)


def parse(source: str, options: ParseOptions | None = None) -> ast.Document:
    """Parse .tacl source into a resolved Document."""
    return Parser(source, options).parse()


def parse_file(filepath: str | Path, options: ParseOptions | None = None) -> ast.Document:
    """Parse a UTF-8 encoded .tacl file."""
    filepath = Path(filepath)
    source = filepath.read_text(encoding="utf-8")
    return parse(source, options)
