"""Tests for Document queries and whole-document invariants."""

from tacl import parse
from tacl.ast import MappingValue, Position, Range, Reference, SequenceValue

SOURCE = """\
# Service configuration
@type Server:
  host; string
  port; int: 80

primary; Server:
  host: localhost
  ports: [80, 443]
backups; list[string]:
  - &primary.host
  - spare
first_port; int: &primary.ports[0]
broken; int: &nowhere
"""


def collect_references(value) -> list[Reference]:
    """References reachable from a value, without following `resolved`."""
    match value:
        case Reference():
            return [value]
        case SequenceValue(items=items):
            return [ref for item in items for ref in collect_references(item)]
        case MappingValue(entries=entries):
            return [ref for item in entries.values() for ref in collect_references(item)]
        case _:
            return []


class TestIdempotence:
    def test_same_source_same_document(self):
        assert parse(SOURCE) == parse(SOURCE)

    def test_independent_of_previous_parses(self):
        first = parse(SOURCE)
        parse("other: &thing\nx: [1, 2]")
        assert parse(SOURCE) == first

    def test_documents_share_no_references(self):
        first, second = parse(SOURCE), parse(SOURCE)
        assert all(a is not b for a, b in zip(first.references, second.references))


class TestReferenceInvariants:
    def test_every_reference_sits_in_exactly_one_slot(self):
        doc = parse(SOURCE)
        reachable = [
            ref
            for field in doc.iter_fields()
            for ref in collect_references(field.value)
        ]
        assert len(reachable) == len(doc.references)
        assert {id(r) for r in reachable} == {id(r) for r in doc.references}

    def test_duplicates_leave_no_orphan_references(self):
        doc = parse("a: &x\na: [&y]\n@type T:\n  f: &z\n@type T:\n  g: 1")
        reachable = [
            ref
            for field in doc.iter_fields()
            for ref in collect_references(field.value)
        ]
        assert {id(r) for r in reachable} == {id(r) for r in doc.references}
        assert [r.path for r in doc.references] == ["y"]

    def test_references_in_source_order(self):
        doc = parse(SOURCE)
        assert [r.path for r in doc.references] == ["primary.host", "primary.ports[0]", "nowhere"]

    def test_unresolved_iff_diagnostic(self):
        doc = parse(SOURCE)
        unresolved = [r for r in doc.references if r.resolved is None]
        assert [r.range for r in unresolved] == [d.range for d in doc.diagnostics]

    def test_has_errors(self):
        assert parse(SOURCE).has_errors
        assert not parse("a: 1\nb: &a").has_errors


class TestPositionLookup:
    def test_find_field_returns_same_object(self):
        doc = parse(SOURCE)
        assert doc.find_field_at(Position(line=11, character=3)) is doc.fields["first_port"]

    def test_find_field_in_multi_line_body(self):
        doc = parse(SOURCE)
        assert doc.find_field_at(Position(line=7, character=4)) is doc.fields["primary"]

    def test_find_type_field(self):
        doc = parse(SOURCE)
        assert doc.find_field_at(Position(line=3, character=4)) is doc.types["Server"].fields["port"]

    def test_find_field_outside_any_field(self):
        doc = parse(SOURCE)
        assert doc.find_field_at(Position(line=0, character=2)) is None

    def test_find_reference_bounds_are_inclusive(self):
        doc = parse("a: 1\nz; int: &missing")
        ref = doc.fields["z"].value
        assert doc.find_reference_at(Position(line=1, character=8)) is ref
        assert doc.find_reference_at(Position(line=1, character=16)) is ref
        assert doc.find_reference_at(Position(line=1, character=7)) is None
        assert doc.find_reference_at(Position(line=0, character=1)) is None

    def test_find_type(self):
        doc = parse(SOURCE)
        assert doc.find_type_at(Position(line=2, character=0)) is doc.types["Server"]
        assert doc.find_type_at(Position(line=6, character=0)) is None

    def test_definition_of_reference_is_first_segment_field(self):
        doc = parse(SOURCE)
        assert doc.find_definition(Position(line=9, character=6)) is doc.fields["primary"]
        assert doc.find_definition(Position(line=11, character=20)) is doc.fields["primary"]

    def test_definition_of_custom_typed_field_is_type(self):
        doc = parse(SOURCE)
        assert doc.find_definition(Position(line=6, character=3)) is doc.types["Server"]

    def test_no_definition(self):
        doc = parse(SOURCE)
        assert doc.find_definition(Position(line=12, character=14)) is None
        assert doc.find_definition(Position(line=8, character=2)) is None
        assert doc.find_definition(Position(line=4, character=0)) is None

    def test_definition_of_undeclared_custom_type(self):
        doc = parse("x; Missing")
        assert doc.find_definition(Position(line=0, character=0)) is None

    def test_references_to_field(self):
        doc = parse(SOURCE)
        refs = doc.references_to("primary")
        assert [r.path for r in refs] == ["primary.host", "primary.ports[0]"]
        assert all(any(r is known for known in doc.references) for r in refs)

    def test_references_to_matches_whole_name(self):
        doc = parse("ab: 1\nx: &ab\ny: &a")
        assert [r.path for r in doc.references_to("a")] == ["a"]
        assert [r.path for r in doc.references_to("ab")] == ["ab"]
        assert doc.references_to("zzz") == []

    def test_iter_fields_order(self):
        doc = parse(SOURCE)
        names = [f.name for f in doc.iter_fields()]
        assert names == ["primary", "backups", "first_port", "broken", "host", "port"]


class TestRange:
    def test_contains_multi_line(self):
        r = Range.create(1, 4, 3, 2)
        assert r.contains(Position(line=2, character=0))
        assert r.contains(Position(line=1, character=4))
        assert r.contains(Position(line=3, character=2))
        assert not r.contains(Position(line=1, character=3))
        assert not r.contains(Position(line=3, character=3))
        assert not r.contains(Position(line=0, character=10))
