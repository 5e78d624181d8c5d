import pytest

from xmlform import schema_index
from xmlform.editor import (
    AddRow, BeginEditField, CancelField, CommitField, EditorState, RemoveRow, SetAttribute,
    parse_target, reduce,
)
from xmlform.errors import EditRejected
from xmlform.forward import to_document
from xmlform.reverse import to_xml
from xmlform.xmlio import parse_xml


@pytest.fixture
def state(company_xml, company_xsd):
    doc = to_document(parse_xml(company_xml), schema_index.build(company_xsd))
    return EditorState(document=doc)


def test_parse_target():
    assert parse_target("0.5#r1.c2@id") == ("0.5", 1, 2, "id")
    assert parse_target("0.1") == ("0.1", None, None, None)
    with pytest.raises(EditRejected):
        parse_target("zero")


def test_begin_commit_cycle(state):
    s = reduce(state, BeginEditField(target="0.0"))
    assert s.editing == "0.0" and s.draft == "Acme Corp"
    s = reduce(s, CommitField(target="0.0", value="  Acme Inc "))
    assert s.editing is None and s.dirty
    assert s.document.find("0.0").raw_value == "Acme Inc"
    assert state.document.find("0.0").raw_value == "Acme Corp"


def test_cancel_leaves_value(state):
    s = reduce(reduce(state, BeginEditField(target="0.0")), CancelField(target="0.0"))
    assert s.editing is None and s.draft is None
    assert s.document == state.document


def test_enum_commit_outside_choices_is_rejected(state):
    s = reduce(state, CommitField(target="0.3", value="CEO"))
    assert s.document.find("0.3").raw_value == "Manager"
    assert s.messages and "CEO" in s.messages[-1]
    s = reduce(s, CommitField(target="0.3", value="Intern"))
    assert s.document.find("0.3").raw_value == "Intern"


def test_enum_can_be_cleared(state):
    s = reduce(state, CommitField(target="0.3", value=""))
    assert s.document.find("0.3").raw_value == ""


def test_table_cell_edits(state):
    s = reduce(state, CommitField(target="0.5#r1.c0", value="Grace B. Hopper"))
    assert s.document.find("0.5").rows[1].items[0].raw_value == "Grace B. Hopper"
    s = reduce(s, CommitField(target="0.5#r0.c2", value="Wizard"))
    assert s.document.find("0.5").rows[0].items[2].raw_value == "Engineer"
    assert len(s.messages) == 1


def test_sections_are_not_editable(state):
    s = reduce(state, CommitField(target="0.4", value="x"))
    assert s.document == state.document
    assert "not editable" in s.messages[-1]


def test_unknown_target(state):
    s = reduce(state, BeginEditField(target="0.99"))
    assert "no such unit" in s.messages[-1]


def test_attributes(state):
    s = reduce(state, SetAttribute(target="0", name="version", value="3"))
    s = reduce(s, SetAttribute(target="0.5#r0", name="team", value="core"))
    s = reduce(s, CommitField(target="0.5#r1@id", value="e9"))
    root = to_xml(s.document)
    assert root.attributes == {"version": "3"}
    employees = root.children[5].children
    assert employees[0].attributes == {"id": "e1", "team": "core"}
    assert employees[1].attributes == {"id": "e9"}


def test_invalid_attribute_name(state):
    s = reduce(state, SetAttribute(target="0", name="1bad", value="x"))
    assert "invalid attribute name" in s.messages[-1]


def test_add_and_remove_rows(state):
    s = reduce(state, AddRow(target="0.5"))
    s = reduce(s, CommitField(target="0.5#r2.c0", value="Alan Turing"))
    root = to_xml(s.document)
    added = root.children[5].children[2]
    assert added.tag == "employee"
    assert [(c.tag, c.text) for c in added.children] == [("fullName", "Alan Turing")]
    s = reduce(s, RemoveRow(target="0.5#r0"))
    assert [r.items[0].raw_value for r in s.document.find("0.5").rows] == ["Grace Hopper", "Alan Turing"]


def test_add_row_needs_a_table(state):
    s = reduce(state, AddRow(target="0.4"))
    assert "only be added to a table" in s.messages[-1]
