"""Reference resolution.

Runs after the whole document has been built, in two phases:

1. `ReferenceResolver.resolve` walks every reference path against the
   top-level fields and returns a `Resolution`: a table of resolved values
   keyed by reference position, plus one diagnostic per unresolved path.
   Nothing is mutated.
2. `apply_resolution` writes the table into the `resolved` slot of each
   reference, exactly once.

Path syntax: dot-separated segments, each `name` optionally followed by one
or more `[N]` indexes, e.g. `servers[0].ports[1]`. Resolution is one level
deep: if the target is itself a reference, that reference is the result.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from . import ast

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"^(\w+)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")


@dataclass
class Resolution:
    """Outcome of resolving a list of references."""

    values: dict[int, ast.Value] = field(default_factory=dict)  # reference index -> target
    diagnostics: list[ast.Diagnostic] = field(default_factory=list)

    def is_resolved(self, index: int) -> bool:
        return index in self.values


def split_segment(segment: str) -> tuple[str, list[int]]:
    """`items[2][0]` -> ("items", [2, 0]). Malformed segments are kept verbatim."""
    m = _SEGMENT_RE.match(segment)
    if m is None:
        return segment, []
    return m.group(1), [int(i) for i in _INDEX_RE.findall(m.group(2))]


def unresolved_diagnostic(ref: ast.Reference) -> ast.Diagnostic:
    return ast.Diagnostic(
        range=ref.range,
        message=f"Cannot resolve reference: &{ref.path}",
        severity="error",
        path=ref.path,
    )


class ReferenceResolver:
    """Resolves reference paths against a document's top-level fields."""

    def __init__(self, fields: Mapping[str, ast.FieldDefinition]):
        self.fields = fields

    def lookup(self, path: str) -> ast.Value | None:
        """Value at `path`, or None when any step is missing."""
        head, *rest = path.split(".")
        name, indices = split_segment(head)
        definition = self.fields.get(name)
        if definition is None or definition.value is None:
            return None

        current = self._index(definition.value, indices)
        for segment in rest:
            if current is None:
                return None
            name, indices = split_segment(segment)
            current = self._index(self._member(current, name), indices)
        return current

    def resolve(self, references: Sequence[ast.Reference]) -> Resolution:
        resolution = Resolution()
        for index, ref in enumerate(references):
            target = self.lookup(ref.path)
            if target is None:
                logger.debug("unresolved reference &%s at line %d", ref.path, ref.range.start.line)
                resolution.diagnostics.append(unresolved_diagnostic(ref))
            else:
                resolution.values[index] = target
        return resolution

    @staticmethod
    def _member(value: ast.Value | None, name: str) -> ast.Value | None:
        match value:
            case ast.MappingValue(entries=entries):
                return entries.get(name)
            case (
                ast.NullValue()
                | ast.StringValue()
                | ast.NumberValue()
                | ast.BooleanValue()
                | ast.SequenceValue()
                | ast.Reference()
                | None
            ):
                return None

    @staticmethod
    def _index(value: ast.Value | None, indices: list[int]) -> ast.Value | None:
        for i in indices:
            match value:
                case ast.SequenceValue(items=items) if i < len(items):
                    value = items[i]
                case (
                    ast.SequenceValue()
                    | ast.NullValue()
                    | ast.StringValue()
                    | ast.NumberValue()
                    | ast.BooleanValue()
                    | ast.MappingValue()
                    | ast.Reference()
                    | None
                ):
                    return None
        return value


def apply_resolution(references: Sequence[ast.Reference], resolution: Resolution) -> None:
    for index, ref in enumerate(references):
        if resolution.is_resolved(index):
            ref.resolved = resolution.values[index]


def resolve_references(
    fields: Mapping[str, ast.FieldDefinition],
    references: Sequence[ast.Reference],
) -> list[ast.Diagnostic]:
    """Resolve and apply; returns the diagnostics for unresolved paths."""
    resolution = ReferenceResolver(fields).resolve(references)
    apply_resolution(references, resolution)
    return resolution.diagnostics
