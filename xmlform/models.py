from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .content import ContentKind

# --- 1. XML side ---

class LeafText(BaseModel):
    text: str

class Children(BaseModel):
    nodes: List["XmlNode"]

class Mixed(BaseModel):
    text: str
    nodes: List["XmlNode"]

NodeContent = Union[LeafText, Children, Mixed]


class XmlNode(BaseModel):
    """One XML element. Either children or text, never both after parsing."""
    tag: str = Field(..., description="Element name, case-sensitive.")
    attributes: Dict[str, str] = Field(default_factory=dict, description="Attributes in document order.")
    children: List["XmlNode"] = Field(default_factory=list)
    text: Optional[str] = Field(None, description="Trimmed direct text; only set on childless elements.")

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def content(self) -> NodeContent:
        if self.children and self.text:
            return Mixed(text=self.text, nodes=self.children)
        if self.children:
            return Children(nodes=self.children)
        return LeafText(text=self.text or "")

    def child_tags(self) -> List[str]:
        return [c.tag for c in self.children]

    def iter(self) -> Iterator["XmlNode"]:
        yield self
        for c in self.children:
            yield from c.iter()

Children.model_rebuild()
Mixed.model_rebuild()


# --- 2. Schema side ---

class FieldKind(str, Enum):
    ENUM = "enum"
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class FieldDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FieldKind = FieldKind.STRING
    enumeration_values: List[str] = Field(default_factory=list)
    enumeration_docs: Dict[str, str] = Field(default_factory=dict)
    documentation: Optional[str] = Field(None, description="Element-level xs:documentation, when present.")
    type_name: Optional[str] = Field(None, description="Named simple type the field was resolved from.")

    @property
    def is_enum(self) -> bool:
        return self.kind == FieldKind.ENUM and bool(self.enumeration_values)

STRING_FIELD = FieldDescriptor()


# --- 3. Document side ---

class Role(str, Enum):
    TITLE = "title"
    SECTION = "section"
    SUBSECTION = "subsection"
    FIELD = "field"
    COLLECTION_TABLE = "collectionTable"
    CONTAINER = "container"


class AttributeAnnotation(BaseModel):
    name: str
    value: str = ""


class RowItem(BaseModel):
    tag: str
    raw_value: str = ""
    attributes: List[AttributeAnnotation] = Field(default_factory=list)
    present: bool = Field(True, description="False for a placeholder cell the source row did not have.")


class TableRow(BaseModel):
    source_tag: str
    attributes: List[AttributeAnnotation] = Field(default_factory=list)
    items: List[RowItem] = Field(default_factory=list)
    leaf: bool = Field(False, description="Row item is text-only; its value lives in raw_value.")
    raw_value: str = ""


class AnnotatedNode(BaseModel):
    node_id: str
    source_tag: str
    role: Role
    label: str = ""
    raw_value: str = ""
    hint: ContentKind = ContentKind.PLAIN
    choices: List[str] = Field(default_factory=list)
    choice_docs: Dict[str, str] = Field(default_factory=dict)
    documentation: Optional[str] = None
    attributes: List[AttributeAnnotation] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    column_choices: Dict[str, List[str]] = Field(default_factory=dict, description="Enumeration values per enum column.")
    rows: List[TableRow] = Field(default_factory=list)
    children: List["AnnotatedNode"] = Field(default_factory=list)

    @property
    def is_enum(self) -> bool:
        return bool(self.choices)

    @property
    def has_table(self) -> bool:
        return self.role == Role.COLLECTION_TABLE or bool(self.columns or self.rows)

    @property
    def is_editable(self) -> bool:
        return self.role == Role.FIELD or (self.role == Role.TITLE and not self.children and not self.has_table)

    def walk(self) -> Iterator["AnnotatedNode"]:
        yield self
        for c in self.children:
            yield from c.walk()

    def find(self, node_id: str) -> Optional["AnnotatedNode"]:
        for n in self.walk():
            if n.node_id == node_id:
                return n
        return None


class InvalidDocument(BaseModel):
    """Stands in for a document tree when the input could not be parsed."""
    message: str
    source: str = "xml"
