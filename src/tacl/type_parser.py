"""Type expression grammar.

    type       = primitive | generic | NAME
    primitive  = "string" | "int" | "bool" | "float" | "null" | "object"
    generic    = "optional" "[" type "]"
               | "list" "[" type "]"
               | "dict" "[" type "," type "]"
               | "union" "[" type ("," type)* "]"
               | "literal" "[" lit ("," lit)* "]"
    lit        = STRING | TOKEN

Parameter lists are split on commas at bracket depth zero, so nested
generics such as `dict[string, list[int]]` keep their inner commas. Anything
that does not fit the grammar becomes a CustomType naming the whole text.
"""

import re

from . import ast
from .scanner import split_top_level

PRIMITIVES = frozenset({"string", "int", "bool", "float", "null", "object"})
GENERICS = ("optional", "list", "dict", "union", "literal")

_GENERIC_RE = re.compile(r"^(optional|list|dict|union|literal)\[(.*)\]$", re.DOTALL)


def parse_type(text: str) -> ast.TypeExpr:
    """Parse a type expression. Never fails."""
    text = text.strip()
    if text in PRIMITIVES:
        return ast.PrimitiveType(name=text)

    m = _GENERIC_RE.match(text)
    if m is None or not m.group(2).strip():
        return ast.CustomType(name=text)

    name, inner = m.group(1), m.group(2)
    match name:
        case "optional":
            return ast.OptionalType(inner=parse_type(inner))
        case "list":
            return ast.CollectionType(name="list", params=[parse_type(inner)])
        case "dict":
            pieces = split_top_level(inner)
            if len(pieces) < 2:
                return ast.CustomType(name=text)
            # Split on the first top-level comma only
            key = pieces[0][1]
            value = inner[pieces[1][0]:]
            return ast.CollectionType(name="dict", params=[parse_type(key), parse_type(value)])
        case "union":
            members = _params(inner)
            if not members:
                return ast.CustomType(name=text)
            return ast.UnionType(members=[parse_type(member) for member in members])
        case "literal":
            values = [_unquote(v) for v in _params(inner)]
            if not values:
                return ast.CustomType(name=text)
            return ast.LiteralType(values=values)
    return ast.CustomType(name=text)


def _params(inner: str) -> list[str]:
    return [piece.strip() for _, piece in split_top_level(inner) if piece.strip()]


def _unquote(token: str) -> str:
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token[1:-1]
    return token
