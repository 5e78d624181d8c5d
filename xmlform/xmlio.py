from typing import Optional

from loguru import logger
from lxml import etree

from .config import DEFAULT_SETTINGS, Settings
from .errors import ParseFailure, StructureLost
from .models import XmlNode
from .textutils import looks_escaped, unescape_html

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def make_parser(keep_comments: bool = False) -> etree.XMLParser:
    return etree.XMLParser(remove_comments=not keep_comments, remove_pis=True,
                           resolve_entities=False, no_network=True)

def parse_document(text: str, source: str = "xml", keep_comments: bool = False) -> etree._Element:
    """Well-formedness gate shared by the XML and schema loaders."""
    if not (text or "").strip():
        raise ParseFailure(f"{source.upper()} content is empty", source=source)
    if looks_escaped(text):
        text = unescape_html(text)
    try:
        return etree.fromstring(text.strip().encode("utf-8"), make_parser(keep_comments))
    except etree.XMLSyntaxError as e:
        line, col = (e.position if e.position else (None, None))
        raise ParseFailure(e.msg or str(e), source=source, line=line, column=col) from e

def local_name(el: etree._Element) -> str:
    return etree.QName(el).localname

def direct_text(el: etree._Element) -> str:
    parts = [el.text or ""]
    parts.extend(c.tail or "" for c in el)
    return " ".join(p.strip() for p in parts if p and p.strip())

def element_children(el: etree._Element):
    # comments, PIs and unresolved entities have non-string tags
    return [c for c in el if isinstance(c.tag, str)]

def element_to_node(el: etree._Element, settings: Settings = DEFAULT_SETTINGS) -> XmlNode:
    tag = local_name(el)
    if tag != el.tag:
        logger.debug(f"Dropping namespace of <{el.tag}>")
    attrs = {etree.QName(k).localname: v for k, v in el.attrib.items()}
    kids = element_children(el)
    if not kids:
        text = (el.text or "").strip()
        return XmlNode(tag=tag, attributes=attrs, text=text or None)
    loose = direct_text(el)
    if loose:
        if settings.mixed_content == "reject":
            raise ParseFailure(f"mixed content in <{tag}>", source="xml",
                               line=el.sourceline)
        logger.warning(f"Mixed content in <{tag}> collapsed to its child elements; dropped text {loose[:40]!r}")
    return XmlNode(tag=tag, attributes=attrs,
                   children=[element_to_node(c, settings) for c in kids])

def parse_xml(text: str, settings: Settings = DEFAULT_SETTINGS) -> XmlNode:
    root = parse_document(text, source="xml")
    return element_to_node(root, settings)


# ---------- Serialization ----------
def node_to_element(node: XmlNode, parent: Optional[etree._Element] = None) -> etree._Element:
    try:
        el = etree.Element(node.tag) if parent is None else etree.SubElement(parent, node.tag)
        for k, v in node.attributes.items():
            el.set(k, v)
        if node.children:
            for c in node.children:
                node_to_element(c, el)
        elif node.text:
            el.text = node.text
    except ValueError as e:
        raise StructureLost(f"cannot write <{node.tag}>: {e}") from e
    return el

def serialize(node: XmlNode, indent: int = 2) -> str:
    root = node_to_element(node)
    etree.indent(root, space=" " * indent)
    body = etree.tostring(root, encoding="unicode")
    return f"{XML_DECLARATION}\n{body}\n"
