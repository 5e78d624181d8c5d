"""One open document: the last good XML, the schema index and the live edit state."""
from typing import List, Optional, Union

from loguru import logger
from pydantic import BaseModel

from . import schema_index
from .config import DEFAULT_SETTINGS, Settings
from .editor import Command, EditorState, reduce
from .errors import ParseFailure, StructureLost
from .forward import to_document
from .markup import read_html, render_html
from .models import AnnotatedNode, InvalidDocument, XmlNode
from .reverse import to_xml
from .schema_index import SchemaFieldIndex
from .xmlio import parse_xml, serialize


class SaveResult(BaseModel):
    ok: bool
    xml: Optional[str] = None
    message: str = ""


class ConversionSession:
    def __init__(self, settings: Settings = DEFAULT_SETTINGS):
        self.settings = settings
        self.schema = SchemaFieldIndex()
        self.saved: Optional[XmlNode] = None
        self.state: Optional[EditorState] = None
        self.messages: List[str] = []

    # ---------- Loading ----------
    def load_schema(self, schema_text: str) -> SchemaFieldIndex:
        """Replace the schema; an open document is re-rendered against it from the last saved XML."""
        self.schema = schema_index.build(schema_text)
        if self.saved is not None:
            self.state = EditorState(document=self.view(self.saved))
        return self.schema

    def load_xml(self, xml_text: str) -> Union[AnnotatedNode, InvalidDocument]:
        try:
            root = parse_xml(xml_text, self.settings)
        except ParseFailure as e:
            logger.warning(str(e))
            self.messages.append(str(e))
            return InvalidDocument(message=str(e), source=e.source)
        self.saved = root
        self.state = EditorState(document=self.view(root))
        logger.info(f"Loaded <{root.tag}> ({sum(1 for _ in root.iter())} elements)")
        return self.state.document

    def view(self, root: XmlNode) -> AnnotatedNode:
        return to_document(root, self.schema if not self.schema.is_empty else None, self.settings)

    @property
    def document(self) -> Optional[AnnotatedNode]:
        return self.state.document if self.state else None

    # ---------- Editing ----------
    def dispatch(self, cmd: Command) -> EditorState:
        if self.state is None:
            raise StructureLost("no document loaded")
        seen = len(self.state.messages)
        self.state = reduce(self.state, cmd)
        self.messages.extend(self.state.messages[seen:])
        return self.state

    def cancel(self) -> Optional[AnnotatedNode]:
        """Drop unsaved edits and rebuild the view from the last saved XML."""
        if self.saved is None:
            return None
        self.state = EditorState(document=self.view(self.saved))
        return self.state.document

    # ---------- Saving ----------
    def save(self, doc: Optional[AnnotatedNode] = None) -> SaveResult:
        doc = doc if doc is not None else self.document
        try:
            root = to_xml(doc)
            text = serialize(root, self.settings.indent)
        except StructureLost as e:
            logger.error(f"Save rejected: {e}")
            self.messages.append(str(e))
            last = serialize(self.saved, self.settings.indent) if self.saved is not None else None
            return SaveResult(ok=False, xml=last, message=str(e))
        self.saved = root
        self.state = EditorState(document=self.view(root))
        return SaveResult(ok=True, xml=text, message="saved")

    def save_markup(self, markup: str) -> SaveResult:
        try:
            doc = read_html(markup)
        except StructureLost as e:
            logger.error(f"Save rejected: {e}")
            self.messages.append(str(e))
            last = serialize(self.saved, self.settings.indent) if self.saved is not None else None
            return SaveResult(ok=False, xml=last, message=str(e))
        return self.save(doc)

    def render_html(self, standalone: bool = False) -> str:
        doc = self.document
        if doc is None:
            doc = InvalidDocument(message=self.messages[-1] if self.messages else "no document loaded")
        return render_html(doc, self.settings, standalone)
