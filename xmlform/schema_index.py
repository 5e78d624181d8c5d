"""Flat lookup of schema field metadata: tag name -> FieldDescriptor.

Only the parts of an XSD-like schema the document view needs are read:
element names, their simple kind, enumeration values and whatever
documentation can be recovered for each value. Source schemas often carry
their value descriptions as loose comments instead of xs:documentation, so
recovery falls back to positional comment heuristics.
"""
import re
from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional

from loguru import logger
from lxml import etree

from .errors import ParseFailure
from .models import FieldDescriptor, FieldKind, STRING_FIELD
from .textutils import collapse_ws, escape_attr, looks_escaped, unescape_html
from .xmlio import local_name, parse_document

NUMBER_TYPES = {
    "integer", "int", "long", "short", "byte", "decimal", "float", "double",
    "positiveInteger", "negativeInteger", "nonNegativeInteger", "nonPositiveInteger",
    "unsignedInt", "unsignedLong", "unsignedShort", "unsignedByte",
}
DATE_TYPES = {"date", "dateTime", "gYear", "gYearMonth", "gMonthDay"}
MAX_TYPE_CHAIN = 16


# ---------- Small helpers ----------
def strip_prefix(qname: str) -> str:
    return (qname or "").split(":")[-1].strip()

def xs_children(el: etree._Element, name: str) -> List[etree._Element]:
    return [c for c in el if isinstance(c.tag, str) and local_name(c) == name]

def xs_child(el: etree._Element, name: str) -> Optional[etree._Element]:
    found = xs_children(el, name)
    return found[0] if found else None

def annotation_text(el: etree._Element) -> Optional[str]:
    ann = xs_child(el, "annotation")
    if ann is None:
        return None
    docs = [collapse_ws("".join(d.itertext())) for d in xs_children(ann, "documentation")]
    text = " ".join(d for d in docs if d)
    return text or None

def builtin_kind(type_name: str) -> FieldKind:
    if type_name in NUMBER_TYPES: return FieldKind.NUMBER
    if type_name in DATE_TYPES: return FieldKind.DATE
    return FieldKind.STRING


class TypeRegistry:
    """Named simple types, keyed by a stable integer id in declaration order."""
    def __init__(self):
        self._types: List[etree._Element] = []
        self._by_name: Dict[str, int] = {}

    def register(self, name: str, el: etree._Element) -> int:
        if name in self._by_name:
            logger.debug(f"Duplicate simpleType {name!r}; keeping the first declaration")
            return self._by_name[name]
        self._types.append(el)
        self._by_name[name] = len(self._types) - 1
        return self._by_name[name]

    def id_of(self, name: str) -> Optional[int]:
        return self._by_name.get(name)

    def get(self, type_id: int) -> etree._Element:
        return self._types[type_id]

    def __len__(self):
        return len(self._types)


class SchemaFieldIndex(Mapping):
    def __init__(self, fields: Optional[Dict[str, FieldDescriptor]] = None,
                 root_names: Optional[List[str]] = None):
        self._fields = dict(fields or {})
        self.root_names = list(root_names or [])

    def __getitem__(self, tag: str) -> FieldDescriptor:
        return self._fields[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, tag: str, default: FieldDescriptor = STRING_FIELD) -> FieldDescriptor:
        found = self._fields.get(tag)
        if found is None:
            logger.debug(f"No schema descriptor for <{tag}>; treating it as a string field")
            return default
        return found

    @property
    def is_empty(self) -> bool:
        return not self._fields


# ---------- Documentation recovery ----------
def comment_style(restriction: etree._Element) -> str:
    """'preceding' when comments sit before each enumeration, else 'following'."""
    enums = xs_children(restriction, "enumeration")
    if enums and isinstance(enums[0].getprevious(), etree._Comment):
        return "preceding"
    return "following"

def heuristic_doc(source: str, value: str, style: str) -> Optional[str]:
    v = re.escape(escape_attr(value))
    decl = (rf"<(?:\w+:)?enumeration\b[^>]*?\bvalue\s*=\s*(?P<q>[\"']){v}(?P=q)[^>]*?"
            r"(?:/>|(?<!/)>(?:(?!<(?:\w+:)?enumeration\b).)*?</(?:\w+:)?enumeration>)")
    following = re.compile(decl + r"[ \t]*\r?\n?[ \t]*<!--(?P<doc>.*?)-->", re.S)
    preceding = re.compile(r"<!--(?P<doc>(?:(?!-->).)*?)-->\s*" + decl, re.S)
    labelled = re.compile(rf"<!--\s*{v}\s*[:=\-–]\s*(?P<doc>.*?)-->", re.S)
    order = (preceding, following) if style == "preceding" else (following, preceding)
    for pat in (*order, labelled):
        m = pat.search(source)
        if not m:
            continue
        text = collapse_ws(m.group("doc"))
        if text:
            return text
    return None

def enumeration_docs(restriction: etree._Element, source: str) -> Dict[str, str]:
    style = comment_style(restriction)
    docs: Dict[str, str] = {}
    for en in xs_children(restriction, "enumeration"):
        value = en.get("value")
        if value is None:
            continue
        doc = annotation_text(en) or heuristic_doc(source, value, style)
        if doc:
            docs[value] = doc
    return docs


# ---------- Descriptor resolution ----------
def describe_simple_type(st: etree._Element, registry: TypeRegistry, source: str,
                         type_name: Optional[str] = None, documentation: Optional[str] = None,
                         depth: int = 0) -> FieldDescriptor:
    restriction = xs_child(st, "restriction")
    if restriction is None:
        return FieldDescriptor(documentation=documentation, type_name=type_name)
    values: List[str] = []
    for en in xs_children(restriction, "enumeration"):
        v = en.get("value")
        if v is not None and v not in values:
            values.append(v)
    if values:
        return FieldDescriptor(kind=FieldKind.ENUM, enumeration_values=values,
                               enumeration_docs=enumeration_docs(restriction, source),
                               documentation=documentation, type_name=type_name)
    base = strip_prefix(restriction.get("base", ""))
    base_id = registry.id_of(base)
    if base_id is not None and depth < MAX_TYPE_CHAIN:
        inherited = describe_simple_type(registry.get(base_id), registry, source, depth=depth + 1)
        return inherited.model_copy(update={"documentation": documentation, "type_name": type_name or base})
    return FieldDescriptor(kind=builtin_kind(base), documentation=documentation, type_name=type_name)

def describe_element(el: etree._Element, registry: TypeRegistry, source: str) -> FieldDescriptor:
    doc = annotation_text(el)
    st = xs_child(el, "simpleType")
    if st is not None:
        return describe_simple_type(st, registry, source, documentation=doc)
    type_name = strip_prefix(el.get("type", ""))
    if not type_name:
        return FieldDescriptor(documentation=doc)
    type_id = registry.id_of(type_name)
    if type_id is not None:
        return describe_simple_type(registry.get(type_id), registry, source,
                                    type_name=type_name, documentation=doc)
    return FieldDescriptor(kind=builtin_kind(type_name), documentation=doc, type_name=type_name)


# ---------- Public ----------
def build(schema_source: str) -> SchemaFieldIndex:
    """Build the field index; an unparsable schema yields an empty index."""
    if looks_escaped(schema_source or ""):
        schema_source = unescape_html(schema_source)
    try:
        root = parse_document(schema_source, source="schema", keep_comments=True)
    except ParseFailure as e:
        logger.warning(f"Schema ignored, every field falls back to string: {e}")
        return SchemaFieldIndex()

    if local_name(root) != "schema":
        logger.warning(f"Schema root is <{local_name(root)}>, expected <schema>; scanning it anyway")

    registry = TypeRegistry()
    for st in root.iter(etree.Element):
        if local_name(st) == "simpleType" and st.get("name"):
            registry.register(st.get("name"), st)

    fields: Dict[str, FieldDescriptor] = {}
    root_names: List[str] = []
    for el in root.iter(etree.Element):
        if local_name(el) != "element" or not el.get("name"):
            continue
        name = el.get("name")
        if el.getparent() is root:
            root_names.append(name)
        if name in fields:
            continue
        fields[name] = describe_element(el, registry, schema_source)

    logger.debug(f"Schema index: {len(fields)} fields, {len(registry)} named simple types")
    return SchemaFieldIndex(fields, root_names)
