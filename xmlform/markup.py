"""HTML rendering of the annotated document, and reading it back after edits.

The markup carries every back-reference as data-* attributes:

    data-xml-tag        source element of a unit, row or cell
    data-role           unit role (title, section, field, ...)
    data-attr-name      attribute name, with data-attr-value as a snapshot
    data-xml-value      the edit surface holding the current value
    data-content        value snapshot taken at render time
    data-xml-attrs      JSON attribute map for table rows and cells
    data-columns        JSON column tags of a collection table

`read_html` uses those and nothing else: headings, labels, classes and
styling can change without affecting what gets saved.
"""
import json
from typing import Dict, Iterator, List, Optional, Tuple, Union

from lxml import etree
from lxml import html as lhtml

from .classification import cell_for, column_slots
from .config import DEFAULT_SETTINGS, Settings
from .content import ContentKind, classify, describe, format_date_display
from .errors import StructureLost
from .models import AnnotatedNode, AttributeAnnotation, InvalidDocument, Role, RowItem, TableRow
from .textutils import format_tag_name

HEADINGS = {Role.TITLE: "h1", Role.SECTION: "h2", Role.SUBSECTION: "h3", Role.COLLECTION_TABLE: "h3"}

CSS = """
.xf-document { font-family: Calibri, sans-serif; max-width: 8.5in; margin: 0 auto; }
.xf-heading { margin: 0.6em 0 0.3em 0; }
.xf-field { margin: 0.2em 0; }
.xf-label { font-weight: bold; margin-right: 0.4em; }
.xf-doc { display: block; color: #666; }
.doc-metadata { color: #444; font-size: 0.9em; margin-bottom: 0.4em; }
.doc-attr { margin-right: 1em; }
.xf-paragraph { text-align: justify; margin: 0.3em 0 0.6em 0; }
.xf-currency { font-family: monospace; }
.xf-table { border-collapse: collapse; width: 100%; margin-bottom: 1em; }
.xf-table th, .xf-table td { border: 1px solid #999; padding: 4px 8px; }
.xf-table td[data-absent] { background: #f6f6f6; }
.xf-error { color: #b00020; font-weight: bold; }
"""


# ---------- Rendering ----------
def sub(parent: Optional[etree._Element], tag: str, cls: Optional[str] = None,
        attrs: Optional[Dict[str, str]] = None, text: Optional[str] = None) -> etree._Element:
    el = etree.Element(tag) if parent is None else etree.SubElement(parent, tag)
    if cls:
        el.set("class", cls)
    for k, v in (attrs or {}).items():
        el.set(k, v)
    if text:
        el.text = text
    return el

def attrs_json(attrs: List[AttributeAnnotation]) -> str:
    return json.dumps({a.name: a.value for a in attrs}, ensure_ascii=False)

def render_attributes(parent: etree._Element, attrs: List[AttributeAnnotation]):
    if not attrs:
        return
    meta = sub(parent, "div", "doc-metadata")
    for a in attrs:
        span = sub(meta, "span", "doc-attr", {"data-attr-name": a.name, "data-attr-value": a.value})
        label = sub(span, "strong", text=f"{format_tag_name(a.name)}:")
        label.tail = " "
        sub(span, "span", "attr-value", {"data-attr-edit": "", "contenteditable": "true"}, a.value)

def render_select(parent: etree._Element, value: str, choices: List[str],
                  docs: Dict[str, str], unspecified: str) -> etree._Element:
    sel = sub(parent, "select", "xf-value xf-select", {"data-xml-value": ""})
    blank = sub(sel, "option", attrs={"value": ""}, text=unspecified)
    if not value:
        blank.set("selected", "selected")
    for c in choices:
        opt = sub(sel, "option", attrs={"value": c}, text=c)
        if docs.get(c):
            opt.set("title", docs[c])
        if c == value:
            opt.set("selected", "selected")
    return sel

def render_edit(parent: etree._Element, value: str, hint: ContentKind) -> etree._Element:
    attrs = {"data-xml-value": "", "contenteditable": "true"}
    if hint == ContentKind.EMAIL:
        return sub(parent, "a", "xf-value xf-link", {**attrs, "href": f"mailto:{value}"}, value)
    if hint == ContentKind.URL:
        href = value if "://" in value else f"http://{value}"
        return sub(parent, "a", "xf-value xf-link", {**attrs, "href": href, "target": "_blank"}, value)
    if hint == ContentKind.PARAGRAPH:
        return sub(parent, "div", "xf-value xf-paragraph", attrs, value)
    if hint == ContentKind.DATE:
        return sub(parent, "span", "xf-value xf-date", {**attrs, "title": format_date_display(value)}, value)
    if hint == ContentKind.CURRENCY:
        return sub(parent, "span", "xf-value xf-currency", attrs, value)
    return sub(parent, "span", "xf-value", attrs, value)

def render_value(box: etree._Element, node: AnnotatedNode, settings: Settings):
    box.set("data-content", node.raw_value)
    if node.is_enum:
        render_select(box, node.raw_value, node.choices, node.choice_docs, settings.unspecified_label)
        return
    box.set("data-hint", node.hint.value)
    render_edit(box, node.raw_value, node.hint)

def render_cell(td: etree._Element, item: RowItem, position: int,
                choices: Dict[str, List[str]], settings: Settings):
    td.set("data-xml-tag", item.tag)
    td.set("data-xml-attrs", attrs_json(item.attributes))
    td.set("data-position", str(position))
    td.set("data-content", item.raw_value)
    if not item.present:
        td.set("data-absent", "true")
    if item.tag in choices:
        render_select(td, item.raw_value, choices[item.tag], {}, settings.unspecified_label)
    else:
        render_edit(td, item.raw_value, classify(item.raw_value, settings.paragraph_threshold))

def render_table(box: etree._Element, node: AnnotatedNode, settings: Settings):
    table = sub(box, "table", "xf-table", {
        "data-columns": json.dumps(node.columns, ensure_ascii=False),
        "data-column-choices": json.dumps(node.column_choices, ensure_ascii=False),
    })
    head = sub(sub(table, "thead"), "tr")
    for c in node.columns:
        sub(head, "th", text=format_tag_name(c))
    body = sub(table, "tbody")
    for r, row in enumerate(node.rows):
        tr = sub(body, "tr", "xf-row", {"data-xml-tag": row.source_tag,
                                        "data-xml-attrs": attrs_json(row.attributes),
                                        "data-row": str(r)})
        if row.leaf:
            tr.set("data-leaf", "true")
            td = sub(tr, "td", attrs={"data-xml-tag": row.source_tag, "data-content": row.raw_value})
            if row.source_tag in node.column_choices:
                render_select(td, row.raw_value, node.column_choices[row.source_tag], {}, settings.unspecified_label)
            else:
                render_edit(td, row.raw_value, classify(row.raw_value, settings.paragraph_threshold))
            continue
        shown = set()
        for tag, nth in column_slots(node.columns):
            i = cell_for(row, tag, nth)
            td = sub(tr, "td")
            if i >= 0:
                shown.add(i)
                render_cell(td, row.items[i], i, node.column_choices, settings)
        for i, item in enumerate(row.items):
            if i not in shown:
                render_cell(sub(tr, "td", "xf-extra"), item, i, node.column_choices, settings)

def render_unit(parent: etree._Element, node: AnnotatedNode, settings: Settings):
    box = sub(parent, "div", f"xf-node xf-{node.role.value}", {
        "data-xml-tag": node.source_tag, "data-role": node.role.value, "data-node-id": node.node_id,
    })
    heading = HEADINGS.get(node.role)
    if heading:
        sub(box, heading, "xf-heading", text=node.label)
    if node.role == Role.FIELD:
        prefix = describe(node.hint) if node.hint in (ContentKind.EMAIL, ContentKind.PHONE) else ""
        sub(box, "span", "xf-label", text=f"{node.label}:" if not prefix else f"{node.label} ({prefix}):")
    if node.documentation:
        sub(box, "small", "xf-doc", text=node.documentation)
    render_attributes(box, node.attributes)
    if node.is_editable:
        render_value(box, node, settings)
    if node.has_table:
        render_table(box, node, settings)
    for c in node.children:
        render_unit(box, c, settings)

def render_html(doc: Union[AnnotatedNode, InvalidDocument], settings: Settings = DEFAULT_SETTINGS,
                standalone: bool = False) -> str:
    wrapper = sub(None, "div", "xf-document")
    if isinstance(doc, InvalidDocument):
        sub(wrapper, "div", "xf-error", text=doc.message)
    else:
        wrapper.set("data-xml-root", doc.source_tag)
        render_unit(wrapper, doc, settings)
    if not standalone:
        return lhtml.tostring(wrapper, encoding="unicode")
    page = sub(None, "html")
    head = sub(page, "head")
    sub(head, "meta", attrs={"charset": "utf-8"})
    sub(head, "title", text=doc.label if isinstance(doc, AnnotatedNode) else "Invalid document")
    sub(head, "style", text=CSS)
    sub(page, "body").append(wrapper)
    return "<!DOCTYPE html>\n" + lhtml.tostring(page, encoding="unicode")


# ---------- Reading edited markup ----------
def owned(el: etree._Element) -> Iterator[etree._Element]:
    """Descendants that belong to this unit; nested units, attribute spans and tables are yielded but not entered."""
    for child in el:
        if not isinstance(child.tag, str):
            continue
        yield child
        if child.get("data-role") is None and child.get("data-attr-name") is None and child.tag != "table":
            yield from owned(child)

def load_json(raw: Optional[str], default, what: str):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        raise StructureLost(f"unreadable {what}: {e}") from e

def read_attrs(raw: Optional[str]) -> List[AttributeAnnotation]:
    data = load_json(raw, {}, "attribute map")
    return [AttributeAnnotation(name=str(k), value=str(v)) for k, v in data.items()]

def read_edit(edit: etree._Element) -> Tuple[str, List[str], Dict[str, str]]:
    if edit.tag != "select":
        return edit.text_content().strip(), [], {}
    options = list(edit.iter("option"))
    selected = [o for o in options if o.get("selected") is not None]
    value = selected[0].get("value", "") if selected else ""
    choices = [o.get("value") for o in options if o.get("value")]
    docs = {o.get("value"): o.get("title") for o in options if o.get("value") and o.get("title")}
    return value, choices, docs

def find_edit(el: etree._Element) -> Optional[etree._Element]:
    found = el.xpath(".//*[@data-xml-value]")
    return found[0] if found else None

def read_cell_value(td: etree._Element) -> str:
    edit = find_edit(td)
    if edit is None:
        return td.get("data-content", "")
    return read_edit(edit)[0]

def read_attr_span(span: etree._Element) -> AttributeAnnotation:
    edits = span.xpath(".//*[@data-attr-edit]")
    value = edits[0].text_content() if edits else span.get("data-attr-value", "")
    return AttributeAnnotation(name=span.get("data-attr-name"), value=value)

def read_row(tr: etree._Element) -> TableRow:
    tds = [td for td in tr if td.tag == "td" and td.get("data-xml-tag") is not None]
    attrs = read_attrs(tr.get("data-xml-attrs"))
    if tr.get("data-leaf") == "true":
        value = read_cell_value(tds[0]) if tds else ""
        return TableRow(source_tag=tr.get("data-xml-tag"), attributes=attrs, leaf=True, raw_value=value)
    keyed = []
    for n, td in enumerate(tds):
        present = td.get("data-absent") != "true"
        pos = td.get("data-position")
        key = (0, int(pos)) if present and pos and pos.isdigit() else (1, n)
        keyed.append((key, RowItem(tag=td.get("data-xml-tag"), raw_value=read_cell_value(td),
                                   attributes=read_attrs(td.get("data-xml-attrs")), present=present)))
    keyed.sort(key=lambda kv: kv[0])
    return TableRow(source_tag=tr.get("data-xml-tag"), attributes=attrs, items=[it for _, it in keyed])

def read_table(table: etree._Element) -> dict:
    rows = [read_row(tr) for tr in table.iter("tr") if tr.get("data-xml-tag") is not None]
    return {
        "columns": [str(c) for c in load_json(table.get("data-columns"), [], "table columns")],
        "column_choices": load_json(table.get("data-column-choices"), {}, "column choices"),
        "rows": rows,
    }

def read_unit(el: etree._Element, node_id: str) -> AnnotatedNode:
    tag = el.get("data-xml-tag") or ""
    try:
        role = Role(el.get("data-role"))
    except ValueError:
        role = Role.CONTAINER
    try:
        hint = ContentKind(el.get("data-hint") or "plain")
    except ValueError:
        hint = ContentKind.PLAIN
    mine = list(owned(el))
    kw = dict(node_id=node_id, source_tag=tag, role=role, label=format_tag_name(tag), hint=hint,
              attributes=[read_attr_span(a) for a in mine if a.get("data-attr-name") is not None])
    edits = [e for e in mine if e.get("data-xml-value") is not None]
    if edits:
        kw["raw_value"], kw["choices"], kw["choice_docs"] = read_edit(edits[0])
    elif el.get("data-content") is not None:
        kw["raw_value"] = el.get("data-content")
    tables = [t for t in mine if t.tag == "table" and t.get("data-columns") is not None]
    if tables:
        kw.update(read_table(tables[0]))
    units = [u for u in mine if u.get("data-role") is not None]
    kw["children"] = [read_unit(u, f"{node_id}.{i}") for i, u in enumerate(units)]
    return AnnotatedNode(**kw)

def read_html(markup: str) -> AnnotatedNode:
    """Rebuild the annotated tree from edited markup; StructureLost when no root unit survives."""
    try:
        tree = lhtml.fromstring(markup)
    except (etree.ParserError, ValueError) as e:
        raise StructureLost(f"edited markup could not be read: {e}") from e
    units = tree.xpath("descendant-or-self::*[@data-role]")
    if not units or not (units[0].get("data-xml-tag") or "").strip():
        raise StructureLost("edited markup has no document root")
    return read_unit(units[0], "0")
