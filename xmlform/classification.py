from enum import Enum
from typing import Dict, List, Tuple

from loguru import logger

from .models import AttributeAnnotation, RowItem, TableRow, XmlNode


class NodeClass(str, Enum):
    LEAF_FIELD = "leafField"
    HOMOGENEOUS_COLLECTION = "homogeneousCollection"
    SECTION = "section"
    PLAIN_CONTAINER = "plainContainer"


def is_homogeneous(node: XmlNode) -> bool:
    return bool(node.children) and len(set(node.child_tags())) == 1

def classify_node(node: XmlNode, depth: int, section_depth: int = 2) -> NodeClass:
    if node.is_leaf:
        return NodeClass.LEAF_FIELD if node.text else NodeClass.PLAIN_CONTAINER
    if is_homogeneous(node):
        return NodeClass.HOMOGENEOUS_COLLECTION
    if 1 <= depth <= section_depth:
        return NodeClass.SECTION
    return NodeClass.PLAIN_CONTAINER


# ---------- Collections ----------
def is_tabular(node: XmlNode) -> bool:
    """Homogeneous and every item is flat enough to become one table row."""
    if not is_homogeneous(node):
        return False
    if is_leaf_collection(node):
        return True
    return all(not item.text and all(not cell.children for cell in item.children)
               for item in node.children)

def is_leaf_collection(node: XmlNode) -> bool:
    return all(not item.children for item in node.children)

def infer_columns(node: XmlNode, mode: str = "first") -> List[str]:
    """Column tags for a tabular collection.

    'first' reads the first item that has fields, the way the table header
    has always been built; fields that only appear in later rows get no
    column. 'union' merges every row's tags in first-seen order.
    """
    if not node.children:
        return []
    if is_leaf_collection(node):
        return [node.children[0].tag]
    if mode != "union":
        return next(item.child_tags() for item in node.children if item.children)
    columns: List[str] = []
    for item in node.children:
        counts: Dict[str, int] = {}
        for tag in item.child_tags():
            counts[tag] = counts.get(tag, 0) + 1
            if columns.count(tag) < counts[tag]:
                columns.append(tag)
    return columns

def attrs_of(node: XmlNode) -> List[AttributeAnnotation]:
    return [AttributeAnnotation(name=k, value=v) for k, v in node.attributes.items()]

def column_slots(columns: List[str]) -> List[Tuple[str, int]]:
    """('a', 0), ('b', 0), ('a', 1): the n-th occurrence of each column tag."""
    seen: Dict[str, int] = {}
    out = []
    for tag in columns:
        out.append((tag, seen.get(tag, 0)))
        seen[tag] = seen.get(tag, 0) + 1
    return out

def align_row(item: XmlNode, columns: List[str]) -> TableRow:
    """One table row for a collection item.

    Items keep the row's own document order; columns the row lacks are added
    as empty placeholders at the end.
    """
    if not item.children and columns == [item.tag]:
        return TableRow(source_tag=item.tag, attributes=attrs_of(item),
                        leaf=True, raw_value=item.text or "")
    wanted: Dict[str, int] = {}
    for tag in columns:
        wanted[tag] = wanted.get(tag, 0) + 1
    used: Dict[str, int] = {}
    items: List[RowItem] = []
    for cell in item.children:
        used[cell.tag] = used.get(cell.tag, 0) + 1
        if used[cell.tag] > wanted.get(cell.tag, 0):
            logger.warning(f"<{item.tag}> field <{cell.tag}> has no column (columns come from the first row) and is dropped")
            continue
        items.append(RowItem(tag=cell.tag, raw_value=cell.text or "", attributes=attrs_of(cell)))
    for tag, nth in column_slots(columns):
        if nth >= used.get(tag, 0):
            items.append(RowItem(tag=tag, present=False))
    return TableRow(source_tag=item.tag, attributes=attrs_of(item), items=items)

def cell_for(row: TableRow, tag: str, nth: int) -> int:
    """Index into row.items for the n-th column with this tag, -1 if none."""
    seen = 0
    for i, it in enumerate(row.items):
        if it.tag == tag:
            if seen == nth:
                return i
            seen += 1
    return -1
