"""Explicit edit commands over an annotated document.

Every change to a document goes through `reduce(state, command)`, which
returns a new state and leaves the old one untouched. Targets address
units by node id, table rows and cells by suffix, attributes by `@name`:

    0.1            unit 0.1
    0.1#r2         row 2 of the table on unit 0.1 (leaf rows hold a value)
    0.1#r2.c0      item 0 of that row
    0.1#r2.c0@id   attribute `id` of that item
"""
import re
from typing import List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel, Field

from .errors import EditRejected
from .models import AnnotatedNode, AttributeAnnotation, RowItem, TableRow

TARGET_RE = re.compile(r"^(?P<node>\d+(?:\.\d+)*)(?:#r(?P<row>\d+)(?:\.c(?P<item>\d+))?)?(?:@(?P<attr>.+))?$")
NAME_RE = re.compile(r"^[A-Za-z_][\w.\-]*$")


# ---------- Commands ----------
class BeginEditField(BaseModel):
    target: str

class CommitField(BaseModel):
    target: str
    value: str = ""

class CancelField(BaseModel):
    target: str

class SetAttribute(BaseModel):
    target: str
    name: str
    value: str = ""

class AddRow(BaseModel):
    target: str

class RemoveRow(BaseModel):
    target: str

Command = Union[BeginEditField, CommitField, CancelField, SetAttribute, AddRow, RemoveRow]


class EditorState(BaseModel):
    document: AnnotatedNode
    editing: Optional[str] = Field(None, description="Target currently open for editing.")
    draft: Optional[str] = None
    messages: List[str] = Field(default_factory=list)
    dirty: bool = False


# ---------- Target resolution ----------
class Target:
    """Live references into the document a target string points at."""
    def __init__(self, node: AnnotatedNode, row: Optional[TableRow] = None,
                 item: Optional[RowItem] = None, attr: Optional[str] = None):
        self.node, self.row, self.item, self.attr = node, row, item, attr

    @property
    def owner(self):
        return self.item or self.row or self.node


def parse_target(text: str) -> Tuple[str, Optional[int], Optional[int], Optional[str]]:
    m = TARGET_RE.match(text or "")
    if not m:
        raise EditRejected(text, "malformed target")
    row = int(m.group("row")) if m.group("row") is not None else None
    item = int(m.group("item")) if m.group("item") is not None else None
    return m.group("node"), row, item, m.group("attr")

def resolve(doc: AnnotatedNode, text: str) -> Target:
    node_id, row_no, item_no, attr = parse_target(text)
    node = doc.find(node_id)
    if node is None:
        raise EditRejected(text, "no such unit")
    t = Target(node=node, attr=attr)
    if row_no is not None:
        if row_no >= len(node.rows):
            raise EditRejected(text, "no such row")
        t.row = node.rows[row_no]
        if item_no is not None:
            if item_no >= len(t.row.items):
                raise EditRejected(text, "no such cell")
            t.item = t.row.items[item_no]
    return t

def choices_for(t: Target) -> List[str]:
    if t.item is not None:
        return t.node.column_choices.get(t.item.tag, [])
    if t.row is not None:
        return t.node.column_choices.get(t.row.source_tag, [])
    return t.node.choices

def current_value(t: Target, text: str) -> str:
    if t.attr is not None:
        for a in t.owner.attributes:
            if a.name == t.attr:
                return a.value
        raise EditRejected(text, f"no attribute {t.attr!r}")
    if t.item is not None:
        return t.item.raw_value
    if t.row is not None:
        if not t.row.leaf:
            raise EditRejected(text, "row has no value of its own; target one of its cells")
        return t.row.raw_value
    if not t.node.is_editable:
        raise EditRejected(text, f"{t.node.role.value} unit is not editable")
    return t.node.raw_value

def assign(t: Target, value: str):
    if t.attr is not None:
        set_attr(t.owner.attributes, t.attr, value)
    elif t.item is not None:
        t.item.raw_value = value
        t.item.present = t.item.present or bool(value)
    elif t.row is not None:
        t.row.raw_value = value
    else:
        t.node.raw_value = value

def set_attr(attrs: List[AttributeAnnotation], name: str, value: str):
    for a in attrs:
        if a.name == name:
            a.value = value
            return
    attrs.append(AttributeAnnotation(name=name, value=value))


# ---------- Reducer ----------
def apply(state: EditorState, cmd: Command) -> EditorState:
    new = state.model_copy(deep=True)
    doc = new.document
    if isinstance(cmd, BeginEditField):
        t = resolve(doc, cmd.target)
        new.draft = current_value(t, cmd.target)
        new.editing = cmd.target
    elif isinstance(cmd, CommitField):
        t = resolve(doc, cmd.target)
        current_value(t, cmd.target)
        value = cmd.value.strip() if t.attr is None else cmd.value
        choices = choices_for(t) if t.attr is None else []
        if choices and value and value not in choices:
            raise EditRejected(cmd.target, f"{value!r} is not one of {', '.join(choices)}")
        assign(t, value)
        new.editing = new.draft = None
        new.dirty = True
    elif isinstance(cmd, CancelField):
        if new.editing is not None and new.editing != cmd.target:
            raise EditRejected(cmd.target, f"not being edited (editing {new.editing})")
        new.editing = new.draft = None
    elif isinstance(cmd, SetAttribute):
        t = resolve(doc, cmd.target)
        if t.attr is not None:
            raise EditRejected(cmd.target, "attribute name goes in the command, not the target")
        if not NAME_RE.match(cmd.name or ""):
            raise EditRejected(cmd.target, f"invalid attribute name {cmd.name!r}")
        set_attr(t.owner.attributes, cmd.name, cmd.value)
        new.dirty = True
    elif isinstance(cmd, AddRow):
        t = resolve(doc, cmd.target)
        if t.row is not None or not t.node.has_table:
            raise EditRejected(cmd.target, "rows can only be added to a table")
        t.node.rows.append(blank_row(t.node, cmd.target))
        new.dirty = True
    elif isinstance(cmd, RemoveRow):
        t = resolve(doc, cmd.target)
        if t.row is None or t.item is not None:
            raise EditRejected(cmd.target, "target a row, e.g. 0.1#r0")
        _, row_no, _, _ = parse_target(cmd.target)
        del t.node.rows[row_no]
        new.dirty = True
    else:
        raise EditRejected(getattr(cmd, "target", "?"), f"unknown command {type(cmd).__name__}")
    return new

def blank_row(table: AnnotatedNode, target: str) -> TableRow:
    if not table.rows:
        raise EditRejected(target, "empty table has no row template")
    template = table.rows[0]
    if template.leaf:
        return TableRow(source_tag=template.source_tag, leaf=True)
    return TableRow(source_tag=template.source_tag,
                    items=[RowItem(tag=c, present=False) for c in table.columns])

def reduce(state: EditorState, cmd: Command) -> EditorState:
    """Apply one command. A rejected command leaves the document as it was and records why."""
    try:
        return apply(state, cmd)
    except EditRejected as e:
        logger.warning(f"Edit rejected: {e}")
        return state.model_copy(update={"messages": state.messages + [str(e)]})
