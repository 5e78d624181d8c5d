"""Annotated document tree -> XML tree.

Only back-reference data is read: source tags, attribute annotations,
row/cell tags and raw values. Labels, hints and roles other than
"is this a value holder" are presentation and are ignored.
"""
from typing import List, Optional

from loguru import logger

from .errors import StructureLost
from .models import AnnotatedNode, AttributeAnnotation, RowItem, TableRow, XmlNode
from .xmlio import serialize


def attribute_map(attrs: List[AttributeAnnotation]) -> dict:
    out = {}
    for a in attrs:
        name = (a.name or "").strip()
        if name:
            out[name] = a.value
    return out

def checked_value(tag: str, value: str, choices: List[str]) -> Optional[str]:
    value = (value or "").strip()
    if choices and value and value not in choices:
        logger.warning(f"<{tag}> value {value!r} is outside its enumeration; written as unspecified")
        value = ""
    return value or None

def require_tag(tag: str, where: str) -> str:
    tag = (tag or "").strip()
    if not tag:
        raise StructureLost(f"{where} has no source tag")
    return tag


# ---------- Tables ----------
def cell_node(item: RowItem, choices: List[str]) -> Optional[XmlNode]:
    # placeholders the user never filled stay out of the document
    if not item.present and not (item.raw_value or "").strip():
        return None
    tag = require_tag(item.tag, "table cell")
    return XmlNode(tag=tag, attributes=attribute_map(item.attributes),
                   text=checked_value(tag, item.raw_value, choices))

def row_node(row: TableRow, table: AnnotatedNode) -> XmlNode:
    tag = require_tag(row.source_tag, f"row of <{table.source_tag}>")
    attrs = attribute_map(row.attributes)
    if row.leaf:
        return XmlNode(tag=tag, attributes=attrs,
                       text=checked_value(tag, row.raw_value, table.column_choices.get(tag, [])))
    cells = [cell_node(it, table.column_choices.get(it.tag, [])) for it in row.items]
    return XmlNode(tag=tag, attributes=attrs, children=[c for c in cells if c is not None])


# ---------- Nodes ----------
def build(node: AnnotatedNode) -> XmlNode:
    tag = require_tag(node.source_tag, f"unit {node.node_id}")
    children: List[XmlNode] = [row_node(r, node) for r in node.rows]
    children.extend(build(c) for c in node.children)
    text = None
    if not children and node.is_editable:
        text = checked_value(tag, node.raw_value, node.choices)
    return XmlNode(tag=tag, attributes=attribute_map(node.attributes), children=children, text=text)

def to_xml(doc: Optional[AnnotatedNode]) -> XmlNode:
    """Reverse pass; raises StructureLost when the root back-reference is gone."""
    if doc is None or not (doc.source_tag or "").strip():
        raise StructureLost("edited document has no root element")
    return build(doc)

def to_xml_text(doc: Optional[AnnotatedNode], indent: int = 2) -> str:
    return serialize(to_xml(doc), indent)
