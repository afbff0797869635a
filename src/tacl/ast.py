"""Document model for parsed TACL sources."""

import re
from collections.abc import Iterator
from typing import Annotated, Any
from typing import Literal as TypingLiteral

from pydantic import BaseModel, Field

_HEAD_RE = re.compile(r"\w+")


# Source locations (zero-based, LSP style)
class Position(BaseModel):
    line: int
    character: int


class Range(BaseModel):
    start: Position
    end: Position

    @classmethod
    def create(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> "Range":
        return cls(
            start=Position(line=start_line, character=start_char),
            end=Position(line=end_line, character=end_char),
        )

    def contains(self, position: Position) -> bool:
        """Inclusive at both ends."""
        if position.line < self.start.line or position.line > self.end.line:
            return False
        if position.line == self.start.line and position.character < self.start.character:
            return False
        if position.line == self.end.line and position.character > self.end.character:
            return False
        return True


# Type expressions - discriminated on `kind`
class PrimitiveType(BaseModel):
    kind: TypingLiteral["primitive"] = "primitive"
    name: str  # string, int, bool, float, null, object (or "inferred")


class OptionalType(BaseModel):
    kind: TypingLiteral["optional"] = "optional"
    inner: "TypeExpr"


class CollectionType(BaseModel):
    """list[T] carries one param, dict[K, V] carries two."""

    kind: TypingLiteral["collection"] = "collection"
    name: TypingLiteral["list", "dict"]
    params: list["TypeExpr"]


class UnionType(BaseModel):
    kind: TypingLiteral["union"] = "union"
    members: list["TypeExpr"]


class LiteralType(BaseModel):
    kind: TypingLiteral["literal"] = "literal"
    values: list[str]  # quoted entries stored unquoted


class CustomType(BaseModel):
    """Named type, looked up against @type definitions by name."""

    kind: TypingLiteral["custom"] = "custom"
    name: str


TypeExpr = Annotated[
    PrimitiveType | OptionalType | CollectionType | UnionType | LiteralType | CustomType,
    Field(discriminator="kind"),
]


# Values - discriminated on `kind`
class NullValue(BaseModel):
    kind: TypingLiteral["null"] = "null"


class StringValue(BaseModel):
    kind: TypingLiteral["string"] = "string"
    value: str


class NumberValue(BaseModel):
    kind: TypingLiteral["number"] = "number"
    value: int | float

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int)


class BooleanValue(BaseModel):
    kind: TypingLiteral["boolean"] = "boolean"
    value: bool


class SequenceValue(BaseModel):
    kind: TypingLiteral["sequence"] = "sequence"
    items: list["Value"] = []


class MappingValue(BaseModel):
    kind: TypingLiteral["mapping"] = "mapping"
    entries: dict[str, "Value"] = {}


class Reference(BaseModel):
    """An `&path` value.

    `resolved` is filled once by the resolver pass. It holds the value the
    path points at, which may itself be another Reference (one level only).
    """

    kind: TypingLiteral["reference"] = "reference"
    path: str
    range: Range
    resolved: "Value | None" = Field(default=None, repr=False)

    def __eq__(self, other: object) -> bool:
        # Resolved values can point back into their own container.
        if not isinstance(other, Reference):
            return NotImplemented
        return (
            self.path == other.path
            and self.range == other.range
            and to_python(self.resolved) == to_python(other.resolved)
        )

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not None


Value = Annotated[
    NullValue
    | StringValue
    | NumberValue
    | BooleanValue
    | SequenceValue
    | MappingValue
    | Reference,
    Field(discriminator="kind"),
]


def to_python(value: Value | None, _seen: frozenset[int] = frozenset()) -> Any:
    """Lower a value to plain Python data.

    References lower to their resolved value, or to the text `&path` when
    unresolved, when they resolve to another reference, or when they loop
    back into a value already being lowered.
    """
    match value:
        case None | NullValue():
            return None
        case StringValue(value=v) | NumberValue(value=v) | BooleanValue(value=v):
            return v
        case SequenceValue(items=items):
            return [to_python(item, _seen) for item in items]
        case MappingValue(entries=entries):
            return {key: to_python(item, _seen) for key, item in entries.items()}
        case Reference(path=path, resolved=resolved):
            if resolved is None or isinstance(resolved, Reference) or id(value) in _seen:
                return f"&{path}"
            return to_python(resolved, _seen | {id(value)})


def iter_references(value: Value | None) -> Iterator[Reference]:
    """References held in a value's slots; `resolved` targets are not followed."""
    match value:
        case Reference():
            yield value
        case SequenceValue(items=items):
            for item in items:
                yield from iter_references(item)
        case MappingValue(entries=entries):
            for item in entries.values():
                yield from iter_references(item)


def reference_head(path: str) -> str | None:
    """Field name a reference path starts from: `a` for `a[0].b`."""
    m = _HEAD_RE.match(path)
    return m.group(0) if m else None


# Definitions
class FieldDefinition(BaseModel):
    name: str
    type: TypeExpr
    value: Value | None = None  # None = forward declaration
    range: Range
    type_range: Range | None = None
    value_range: Range | None = None


class TypeDefinition(BaseModel):
    """An `@type Name:` block; its fields never merge into the top level."""

    name: str
    fields: dict[str, FieldDefinition] = {}
    range: Range


class Diagnostic(BaseModel):
    range: Range
    message: str
    severity: TypingLiteral["error", "warning", "info"] = "error"
    source: str = "tacl"
    path: str | None = None  # reference path, for unresolved references


class Document(BaseModel):
    """A parsed .tacl source."""

    types: dict[str, TypeDefinition] = {}
    fields: dict[str, FieldDefinition] = {}
    references: list[Reference] = []
    diagnostics: list[Diagnostic] = []

    @property
    def has_errors(self) -> bool:
        return any(d.severity == "error" for d in self.diagnostics)

    def iter_fields(self) -> Iterator[FieldDefinition]:
        """Top-level fields first, then fields nested in @type blocks."""
        yield from self.fields.values()
        for typedef in self.types.values():
            yield from typedef.fields.values()

    def find_reference_at(self, position: Position) -> Reference | None:
        for ref in self.references:
            if ref.range.contains(position):
                return ref
        return None

    def find_field_at(self, position: Position) -> FieldDefinition | None:
        for field in self.iter_fields():
            if field.range.contains(position):
                return field
        return None

    def find_type_at(self, position: Position) -> TypeDefinition | None:
        for typedef in self.types.values():
            if typedef.range.contains(position):
                return typedef
        return None

    def find_definition(self, position: Position) -> FieldDefinition | TypeDefinition | None:
        """Definition for the symbol at `position`.

        On a reference, the top-level field named by its first path segment.
        Otherwise, on a field whose type is a custom name, that @type block.
        """
        ref = self.find_reference_at(position)
        if ref is not None:
            head = reference_head(ref.path)
            if head in self.fields:
                return self.fields[head]

        field = self.find_field_at(position)
        if field is not None and isinstance(field.type, CustomType):
            return self.types.get(field.type.name)
        return None

    def references_to(self, name: str) -> list[Reference]:
        """References whose path starts at the top-level field `name`."""
        return [ref for ref in self.references if reference_head(ref.path) == name]


# Rebuild models for forward references
OptionalType.model_rebuild()
CollectionType.model_rebuild()
UnionType.model_rebuild()
SequenceValue.model_rebuild()
MappingValue.model_rebuild()
Reference.model_rebuild()
FieldDefinition.model_rebuild()
TypeDefinition.model_rebuild()
Document.model_rebuild()
