"""Infer an XSD skeleton from a sample document.

Every element name gets one declaration: elements with children or
attributes get a named complexType, text-only ones a built-in type picked
from the values seen. Children that repeat under one parent become
maxOccurs="unbounded"; children missing from some occurrences get
minOccurs="0". The result is a starting point to edit by hand.
"""
import re
from typing import Dict, List, Set

from loguru import logger
from lxml import etree

from .content import ContentKind, classify, parse_date
from .models import XmlNode
from .xmlio import XML_DECLARATION

XS = "http://www.w3.org/2001/XMLSchema"
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
INT_RE = re.compile(r"^[+-]?\d+$")


def q(name: str) -> str:
    return f"{{{XS}}}{name}"


class Shape:
    """Everything seen for one element name across the document."""
    def __init__(self, tag: str):
        self.tag = tag
        self.seen = 0
        self.children: Dict[str, List[int]] = {}   # tag -> [minOccurs, maxOccurs]
        self.attributes: Dict[str, List[str]] = {}
        self.required: Set[str] = set()
        self.values: List[str] = []

    @property
    def is_complex(self) -> bool:
        return bool(self.children or self.attributes)

    def add(self, node: XmlNode):
        counts: Dict[str, int] = {}
        for t in node.child_tags():
            counts[t] = counts.get(t, 0) + 1
        for t, occ in self.children.items():
            if t not in counts:
                occ[0] = 0
        for t, n in counts.items():
            if t not in self.children:
                self.children[t] = [n if self.seen == 0 else 0, n]
            else:
                occ = self.children[t]
                occ[0], occ[1] = min(occ[0], n), max(occ[1], n)
        names = set(node.attributes)
        self.required = names if self.seen == 0 else self.required & names
        for k, v in node.attributes.items():
            self.attributes.setdefault(k, []).append(v)
        if node.text:
            self.values.append(node.text)
        self.seen += 1


def collect(node: XmlNode, shapes: Dict[str, Shape]):
    shapes.setdefault(node.tag, Shape(node.tag)).add(node)
    for c in node.children:
        collect(c, shapes)

def leaf_type(values: List[str]) -> str:
    kinds = {classify(v) for v in values if v}
    if kinds == {ContentKind.NUMBER}:
        return "xs:integer" if all(INT_RE.match(v) for v in values if v) else "xs:decimal"
    if kinds == {ContentKind.DATE} and all(ISO_DATE_RE.match(v) and parse_date(v) for v in values if v):
        return "xs:date"
    return "xs:string"

def unique_name(base: str, used: Set[str]) -> str:
    """Type names must not collide, even by case alone (some tools fold case)."""
    name, n = base, 2
    while name.lower() in used:
        name = f"{base}{n}"
        n += 1
    used.add(name.lower())
    return name


# ---------- XSD output ----------
def add_attributes(parent: etree._Element, shape: Shape):
    for name, values in shape.attributes.items():
        etree.SubElement(parent, q("attribute"), name=name, type=leaf_type(values),
                         use="required" if name in shape.required else "optional")

def complex_type(schema: etree._Element, shape: Shape, type_names: Dict[str, str], shapes: Dict[str, Shape]):
    ct = etree.SubElement(schema, q("complexType"), name=type_names[shape.tag])
    if not shape.children:
        ext = etree.SubElement(etree.SubElement(ct, q("simpleContent")), q("extension"),
                               base=leaf_type(shape.values))
        add_attributes(ext, shape)
        return
    seq = etree.SubElement(ct, q("sequence"))
    for tag, (lo, hi) in shape.children.items():
        child = shapes[tag]
        el = etree.SubElement(seq, q("element"), name=tag,
                              type=type_names[tag] if child.is_complex else leaf_type(child.values))
        if lo == 0:
            el.set("minOccurs", "0")
        if hi > 1:
            el.set("maxOccurs", "unbounded")
    add_attributes(ct, shape)

def generate_schema(root: XmlNode) -> str:
    shapes: Dict[str, Shape] = {}
    collect(root, shapes)
    used: Set[str] = set()
    type_names = {tag: unique_name(f"{tag}Type", used) for tag, s in shapes.items() if s.is_complex}

    schema = etree.Element(q("schema"), nsmap={"xs": XS})
    schema.set("elementFormDefault", "qualified")
    top = shapes[root.tag]
    etree.SubElement(schema, q("element"), name=root.tag,
                     type=type_names[root.tag] if top.is_complex else leaf_type(top.values))
    for tag, shape in shapes.items():
        if shape.is_complex:
            complex_type(schema, shape, type_names, shapes)

    logger.debug(f"Generated schema: {len(shapes)} element names, {len(type_names)} complex types")
    etree.indent(schema, space="  ")
    return f"{XML_DECLARATION}\n{etree.tostring(schema, encoding='unicode')}\n"
