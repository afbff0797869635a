"""TACL: parse typed, indentation-based configuration with references.

Pipeline: scan lines -> build types and fields -> resolve `&` references.

Example:
    from tacl import parse

    doc = parse(open("service.tacl").read())
    doc.fields["port"].value.value    # 8080
    for d in doc.diagnostics:         # unresolved references
        print(d.range.start.line, d.message)
"""

__version__ = "0.1.0"

from .ast import (
    BooleanValue,
    CollectionType,
    CustomType,
    Diagnostic,
    Document,
    FieldDefinition,
    LiteralType,
    MappingValue,
    NullValue,
    NumberValue,
    OptionalType,
    Position,
    PrimitiveType,
    Range,
    Reference,
    SequenceValue,
    StringValue,
    TypeDefinition,
    TypeExpr,
    UnionType,
    Value,
    iter_references,
    reference_head,
    to_python,
)
from .cache import DocumentCache
from .config import ParseOptions
from .parser import Parser, parse, parse_file
from .render import document_to_dict, format_type, format_value
from .resolver import ReferenceResolver, Resolution, apply_resolution, resolve_references
from .scanner import indent_level, is_blank, scan_lines, split_top_level
from .type_parser import parse_type
from .values import ValueParser, parse_scalar

__all__ = [
    # Parse
    "parse",
    "parse_file",
    "Parser",
    "ParseOptions",
    # Grammar pieces
    "parse_type",
    "parse_scalar",
    "ValueParser",
    "indent_level",
    "is_blank",
    "scan_lines",
    "split_top_level",
    # Model
    "Document",
    "TypeDefinition",
    "FieldDefinition",
    "Diagnostic",
    "Position",
    "Range",
    "TypeExpr",
    "PrimitiveType",
    "OptionalType",
    "CollectionType",
    "UnionType",
    "LiteralType",
    "CustomType",
    "Value",
    "NullValue",
    "StringValue",
    "NumberValue",
    "BooleanValue",
    "SequenceValue",
    "MappingValue",
    "Reference",
    "to_python",
    "iter_references",
    "reference_head",
    # Resolve
    "ReferenceResolver",
    "Resolution",
    "apply_resolution",
    "resolve_references",
    # Cache
    "DocumentCache",
    # Render
    "format_type",
    "format_value",
    "document_to_dict",
]
