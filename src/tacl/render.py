"""Canonical text for type expressions and values, and plain-data export."""

import json
from typing import Any

from . import ast


def format_type(type_expr: ast.TypeExpr) -> str:
    match type_expr:
        case ast.PrimitiveType(name=name) | ast.CustomType(name=name):
            return name
        case ast.OptionalType(inner=inner):
            return f"optional[{format_type(inner)}]"
        case ast.CollectionType(name=name, params=params):
            return f"{name}[{', '.join(format_type(p) for p in params)}]"
        case ast.UnionType(members=members):
            return f"union[{', '.join(format_type(m) for m in members)}]"
        case ast.LiteralType(values=values):
            return f"literal[{', '.join(json.dumps(v) for v in values)}]"


def format_value(value: ast.Value) -> str:
    """Single-line rendering; references render as `&path`."""
    match value:
        case ast.NullValue():
            return "null"
        case ast.StringValue(value=v):
            return json.dumps(v)
        case ast.BooleanValue(value=v):
            return "true" if v else "false"
        case ast.NumberValue(value=v):
            return repr(v)
        case ast.SequenceValue(items=items):
            return f"[{', '.join(format_value(item) for item in items)}]"
        case ast.MappingValue(entries=entries):
            return "{" + ", ".join(f"{k}: {format_value(v)}" for k, v in entries.items()) + "}"
        case ast.Reference(path=path):
            return f"&{path}"


def _range_to_dict(r: ast.Range | None) -> dict[str, int] | None:
    if r is None:
        return None
    return {
        "start_line": r.start.line,
        "start_character": r.start.character,
        "end_line": r.end.line,
        "end_character": r.end.character,
    }


def _field_to_dict(field: ast.FieldDefinition) -> dict[str, Any]:
    out: dict[str, Any] = {
        "type": format_type(field.type),
        "range": _range_to_dict(field.range),
    }
    if field.value is not None:
        out["value"] = ast.to_python(field.value)
    return out


def document_to_dict(document: ast.Document) -> dict[str, Any]:
    """Plain-data view of a document, safe for JSON and YAML."""
    return {
        "types": {
            name: {
                "range": _range_to_dict(typedef.range),
                "fields": {n: _field_to_dict(f) for n, f in typedef.fields.items()},
            }
            for name, typedef in document.types.items()
        },
        "fields": {name: _field_to_dict(f) for name, f in document.fields.items()},
        "references": [
            {
                "path": ref.path,
                "range": _range_to_dict(ref.range),
                "resolved": ref.is_resolved,
            }
            for ref in document.references
        ],
        "diagnostics": [
            {
                "severity": d.severity,
                "message": d.message,
                "range": _range_to_dict(d.range),
            }
            for d in document.diagnostics
        ],
    }
