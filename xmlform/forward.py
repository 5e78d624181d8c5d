"""XML tree -> annotated, editable document tree.

Depth 0 is the document title, depths 1 and 2 get section and subsection
headings, homogeneous collections become tables and text-only elements
become fields. Every unit carries the tag (and attribute names) it came
from so the reverse pass never has to infer structure from layout.
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from .classification import NodeClass, align_row, attrs_of, classify_node, infer_columns, is_tabular
from .config import DEFAULT_SETTINGS, Settings
from .content import ContentKind, classify
from .errors import ParseFailure
from .models import (
    AnnotatedNode, FieldDescriptor, FieldKind, InvalidDocument, Role, STRING_FIELD, XmlNode,
)
from .textutils import format_tag_name
from .xmlio import parse_xml

SchemaLike = Mapping  # SchemaFieldIndex or any tag -> FieldDescriptor mapping

KIND_HINTS = {FieldKind.DATE: ContentKind.DATE, FieldKind.NUMBER: ContentKind.NUMBER}


def descriptor(schema: Optional[SchemaLike], tag: str) -> FieldDescriptor:
    if schema is None:
        return STRING_FIELD
    return schema.get(tag, STRING_FIELD)

def constrain(tag: str, value: str, choices: List[str]) -> str:
    """Enum values must be one of the choices or unspecified ('')."""
    if value and value not in choices:
        logger.warning(f"<{tag}> value {value!r} is not in its enumeration; shown as unspecified")
        return ""
    return value

def value_fields(tag: str, value: str, desc: FieldDescriptor, settings: Settings) -> Dict[str, Any]:
    if desc.is_enum:
        return {
            "raw_value": constrain(tag, value, desc.enumeration_values),
            "choices": list(desc.enumeration_values),
            "choice_docs": dict(desc.enumeration_docs),
            "hint": ContentKind.PLAIN,
        }
    hint = classify(value, settings.paragraph_threshold)
    if hint == ContentKind.PLAIN and not value:
        hint = KIND_HINTS.get(desc.kind, hint)
    return {"raw_value": value, "hint": hint}


# ---------- Units ----------
def field_node(node: XmlNode, node_id: str, schema, settings: Settings) -> AnnotatedNode:
    desc = descriptor(schema, node.tag)
    return AnnotatedNode(
        node_id=node_id, source_tag=node.tag, role=Role.FIELD,
        label=format_tag_name(node.tag), attributes=attrs_of(node),
        documentation=desc.documentation,
        **value_fields(node.tag, node.text or "", desc, settings),
    )

def table_fields(node: XmlNode, schema, settings: Settings) -> Dict[str, Any]:
    columns = infer_columns(node, settings.column_inference)
    rows = [align_row(item, columns) for item in node.children]
    column_choices: Dict[str, List[str]] = {}
    for tag in dict.fromkeys(columns):
        desc = descriptor(schema, tag)
        if desc.is_enum:
            column_choices[tag] = list(desc.enumeration_values)
    for row in rows:
        if row.leaf and row.source_tag in column_choices:
            row.raw_value = constrain(row.source_tag, row.raw_value, column_choices[row.source_tag])
        for it in row.items:
            if it.tag in column_choices:
                it.raw_value = constrain(it.tag, it.raw_value, column_choices[it.tag])
    return {"columns": columns, "rows": rows, "column_choices": column_choices}

def emit(node: XmlNode, node_id: str, depth: int, schema, settings: Settings) -> AnnotatedNode:
    if not node.children:
        return field_node(node, node_id, schema, settings)

    cls = classify_node(node, depth, settings.section_depth)
    base = dict(node_id=node_id, source_tag=node.tag, label=format_tag_name(node.tag),
                attributes=attrs_of(node), documentation=descriptor(schema, node.tag).documentation)

    if cls == NodeClass.HOMOGENEOUS_COLLECTION and depth <= settings.table_depth and is_tabular(node):
        return AnnotatedNode(role=Role.COLLECTION_TABLE, **base, **table_fields(node, schema, settings))

    if depth <= settings.section_depth:
        role = Role.SECTION if depth == 1 else Role.SUBSECTION
    else:
        role = Role.CONTAINER
    return AnnotatedNode(role=role, **base, children=children_of(node, node_id, depth, schema, settings))

def children_of(node: XmlNode, node_id: str, depth: int, schema, settings: Settings) -> List[AnnotatedNode]:
    return [emit(c, f"{node_id}.{i}", depth + 1, schema, settings) for i, c in enumerate(node.children)]


# ---------- Public ----------
def to_document(root: XmlNode, schema: Optional[SchemaLike] = None,
                settings: Settings = DEFAULT_SETTINGS) -> AnnotatedNode:
    """Forward pass. Reads `root`, never mutates it."""
    desc = descriptor(schema, root.tag)
    base = dict(node_id="0", source_tag=root.tag, role=Role.TITLE, label=format_tag_name(root.tag),
                attributes=attrs_of(root), documentation=desc.documentation)
    cls = classify_node(root, 0, settings.section_depth)
    if not root.children:
        doc = AnnotatedNode(**base, **value_fields(root.tag, root.text or "", desc, settings))
    elif cls == NodeClass.HOMOGENEOUS_COLLECTION and is_tabular(root):
        doc = AnnotatedNode(**base, **table_fields(root, schema, settings))
    else:
        doc = AnnotatedNode(**base, children=children_of(root, "0", 0, schema, settings))
    logger.debug(f"Forward pass: <{root.tag}> -> {sum(1 for _ in doc.walk())} units")
    return doc

def transcode_text(xml_text: str, schema: Optional[SchemaLike] = None,
                   settings: Settings = DEFAULT_SETTINGS) -> Union[AnnotatedNode, InvalidDocument]:
    """Parse and transcode; a malformed document yields an InvalidDocument placeholder."""
    try:
        root = parse_xml(xml_text, settings)
    except ParseFailure as e:
        logger.warning(str(e))
        return InvalidDocument(message=str(e), source=e.source)
    return to_document(root, schema, settings)
